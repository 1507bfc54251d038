"""Auth session and assistant chat models."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from money_tracker.models.transaction import utcnow


class AuthSession(BaseModel):
    """
    An authenticated identity as issued by the auth service.

    The user_id scopes every remote read and write.
    """

    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = None
    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    expires_at: Optional[datetime] = None

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= utcnow()

    @classmethod
    def from_token_response(cls, payload: dict[str, Any]) -> "AuthSession":
        """Build from a GoTrue token/signup response body."""
        user = payload.get("user") or {}
        expires_at = None
        if payload.get("expires_at"):
            expires_at = datetime.fromtimestamp(int(payload["expires_at"]), tz=timezone.utc)
        elif payload.get("expires_in"):
            expires_at = utcnow() + timedelta(seconds=int(payload["expires_in"]))
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            user_id=user["id"],
            email=user.get("email"),
            expires_at=expires_at,
        )


class ChatMessage(BaseModel):
    """One turn of the assistant conversation."""

    role: str = Field(..., pattern="^(user|assistant)$")
    content: str = Field(..., min_length=1)
