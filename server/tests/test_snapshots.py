# ─────────────────────────────────────────────────────────────────────────────
# Inline Snapshot Tests — inline-snapshot
# ─────────────────────────────────────────────────────────────────────────────
# Demonstrates: inline-snapshot for capturing expected values directly
# in the test source code.
#
# Usage:
#   pytest --inline-snapshot=create    → fills in snapshot() values
#   pytest --inline-snapshot=update    → updates changed snapshots
#   pytest                             → compares against stored snapshots
# ─────────────────────────────────────────────────────────────────────────────

import json

from inline_snapshot import snapshot

from gateway.schemas import Equipment, Experience, Goal, PlanRequest
from gateway.services.prompts import PLAN_OUTPUT_SCHEMA, PlanContext, build_plan_prompt


class TestPlanPromptSnapshots:
    """Regression guards for the plan prompt.

    The JSON structure block is checked separately; the snapshots cover
    the profile and context lines above it.
    """

    def test_profile_only(self):
        request = PlanRequest(
            goal=Goal.strength,
            days_per_week=3,
            equipment=Equipment.bodyweight,
            experience=Experience.beginner,
        )
        prompt = build_plan_prompt(request)
        assert prompt.endswith(PLAN_OUTPUT_SCHEMA)
        assert prompt.removesuffix(PLAN_OUTPUT_SCHEMA) == snapshot(
            """\
Act as an elite personal trainer. Create a 1-week structural workout plan.

User Profile:
- Goal: Strength
- Experience: Beginner
- Availability: 3 days/week
- Equipment Available: Bodyweight

Schedule exactly 3 training days.
Return valid JSON with this structure:
"""
        )

    def test_with_context(self):
        request = PlanRequest(
            goal=Goal.muscle_gain,
            days_per_week=4,
            equipment=Equipment.dumbbells,
            experience=Experience.intermediate,
        )
        context = PlanContext(
            history=[{"date": "2026-10-01", "exercise": "Squat"}],
            recommended_exercises=["Goblet Squat", "Push-up"],
        )
        prompt = build_plan_prompt(request, context)
        assert prompt.removesuffix(PLAN_OUTPUT_SCHEMA) == snapshot(
            """\
Act as an elite personal trainer. Create a 1-week structural workout plan.

User Profile:
- Goal: Muscle Gain
- Experience: Intermediate
- Availability: 4 days/week
- Equipment Available: Dumbbells

Context:
- Recent History: [{"date":"2026-10-01","exercise":"Squat"}] (Use this to set volume and intensity.)
- Recommended Exercises: Goblet Squat, Push-up (Prioritize these if they fit the split.)

Schedule exactly 4 training days.
Return valid JSON with this structure:
"""
        )

    def test_empty_context(self):
        request = PlanRequest(
            goal=Goal.fat_loss,
            days_per_week=5,
            equipment=Equipment.full_gym,
            experience=Experience.advanced,
        )
        prompt = build_plan_prompt(request, PlanContext())
        assert "- Recent History: No recent workout history found." in prompt
        assert "Recommended Exercises" not in prompt


class TestPlanSchemaSnapshot:
    def test_schema_is_valid_json(self):
        schema = json.loads(PLAN_OUTPUT_SCHEMA)
        day = schema["schedule"]["weeks"][0]["days"][0]
        assert sorted(schema) == snapshot(["description", "name", "schedule"])
        assert sorted(day) == snapshot(["day", "exercises", "focus"])
        assert sorted(day["exercises"][0]) == snapshot(["name", "notes", "reps", "sets"])
