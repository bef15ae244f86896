# ─────────────────────────────────────────────────────────────────────────────
# Plan Prompt Templates — request fields (+ optional context) → prompt text
# ─────────────────────────────────────────────────────────────────────────────


import json
from dataclasses import dataclass, field
from typing import Any

from gateway.schemas import PlanRequest

NO_HISTORY = "No recent workout history found."

PLAN_OUTPUT_SCHEMA = """{
  "name": "Plan Name",
  "description": "Strategic summary.",
  "schedule": {
    "weeks": [
      {
        "week_order": 1,
        "days": [
          {
            "day": "Monday",
            "focus": "Upper Body",
            "exercises": [
              { "name": "Exercise Name", "sets": 3, "reps": "8-12", "notes": "Focus on form" }
            ]
          }
        ]
      }
    ]
  }
}"""


@dataclass(frozen=True)
class PlanContext:
    """Advisory context gathered from the store before prompting."""

    history: list[dict[str, Any]] = field(default_factory=list)
    recommended_exercises: list[str] = field(default_factory=list)


def _history_summary(history: list[dict[str, Any]]) -> str:
    if not history:
        return NO_HISTORY
    return json.dumps(history, default=str, separators=(",", ":"))


def build_plan_prompt(request: PlanRequest, context: PlanContext | None = None) -> str:
    """Prompt for a one-week plan returned as JSON."""
    lines = [
        "Act as an elite personal trainer. Create a 1-week structural workout plan.",
        "",
        "User Profile:",
        f"- Goal: {request.goal.value}",
        f"- Experience: {request.experience.value}",
        f"- Availability: {request.days_per_week} days/week",
        f"- Equipment Available: {request.equipment.value}",
    ]
    if context is not None:
        lines += [
            "",
            "Context:",
            f"- Recent History: {_history_summary(context.history)}"
            " (Use this to set volume and intensity.)",
        ]
        if context.recommended_exercises:
            lines.append(
                f"- Recommended Exercises: {', '.join(context.recommended_exercises)}"
                " (Prioritize these if they fit the split.)"
            )
    lines += [
        "",
        f"Schedule exactly {request.days_per_week} training days.",
        "Return valid JSON with this structure:",
        PLAN_OUTPUT_SCHEMA,
    ]
    return "\n".join(lines)
