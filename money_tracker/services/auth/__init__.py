"""Auth services package."""

from money_tracker.services.auth.interface import (
    AuthError,
    AuthServiceInterface,
    StateChangeCallback,
)
from money_tracker.services.auth.supabase_auth import SupabaseAuthService

__all__ = [
    "AuthError",
    "AuthServiceInterface",
    "StateChangeCallback",
    "SupabaseAuthService",
]
