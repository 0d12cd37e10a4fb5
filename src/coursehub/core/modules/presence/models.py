from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from coursehub.core.db import Model
from coursehub.core.modules.user.models import UserView


class PresenceEntry(Model):
    """Last known activity of a user.

    One entry per user (indexed on user_id - unique). Entries are never deleted,
    they drop out of the active list once last_active is older than the threshold.
    """

    user_id: UUID
    last_active: datetime
    current_location: str | None = None


class ActiveUser(BaseModel):
    """Presence entry joined with its user (API representation)."""

    user_id: UUID = Field(..., description="User ID")
    last_active: datetime = Field(..., description="Time of the latest heartbeat")
    current_location: str | None = Field(None, description="Page reported by the latest heartbeat")
    user: UserView = Field(..., description="User account")

    @classmethod
    def from_domain(cls, entry: PresenceEntry, user: UserView) -> "ActiveUser":
        return cls(user_id=entry.user_id, last_active=entry.last_active, current_location=entry.current_location, user=user)


class PageVisit(Model):
    """Single page view reported by the client."""

    user_id: UUID
    page: str
    visited_at: datetime


class PageVisitStats(BaseModel):
    """Visit count for a page."""

    page: str = Field(..., description="Page path")
    count: int = Field(..., description="Number of recorded visits", ge=0)
