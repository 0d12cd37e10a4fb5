"""Session management models."""

from datetime import datetime
from enum import StrEnum
from typing import NewType
from uuid import UUID

from coursehub.core.db import Model

SessionId = NewType("SessionId", str)


class SessionStatus(StrEnum):
    ISSUED = "issued"  # Created at login, not used yet
    ACTIVE = "active"  # Served at least one authenticated request
    REVOKED = "revoked"  # Logged out


class Session(Model):
    """User authentication session.

    Indexed on session_id - unique, user_id, expires_at (TTL).
    Expiry is derived from expires_at and is never stored as a status.
    """

    session_id: SessionId
    user_id: UUID
    status: SessionStatus = SessionStatus.ISSUED
    issued_at: datetime
    expires_at: datetime
    last_used_at: datetime | None = None

    def is_usable(self, at: datetime) -> bool:
        """Whether the session still accepts requests at the given time."""
        return self.status != SessionStatus.REVOKED and at <= self.expires_at
