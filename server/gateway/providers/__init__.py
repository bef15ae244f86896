"""External collaborators — Protocol interfaces and their Supabase/Gemini adapters."""

from gateway.providers.gemini import GeminiModel
from gateway.providers.protocol import (
    EntitlementStore,
    ExerciseStore,
    GenerativeModel,
    IdentityStore,
    ImagePart,
)
from gateway.providers.supabase_store import SupabaseStore

__all__ = [
    "EntitlementStore",
    "ExerciseStore",
    "GeminiModel",
    "GenerativeModel",
    "IdentityStore",
    "ImagePart",
    "SupabaseStore",
]
