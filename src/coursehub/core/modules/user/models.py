from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from coursehub.core.db import Model
from coursehub.utils import now


class UserRole(StrEnum):
    ADMIN = "admin"
    USER = "user"


class User(Model):
    """User domain model with credentials.

    Indexed on username - unique, account_id - unique.
    """

    username: str  # Login identifier
    account_id: str  # External-facing account ID, e.g. a student number
    role: UserRole = UserRole.USER
    password_hash: str  # "<hex key>.<hex salt>", see credential.hasher
    created_at: datetime = Field(default_factory=now)


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    account_id: str = Field(..., description="External account ID")
    role: UserRole = Field(..., description="User role")
    created_at: datetime = Field(..., description="Registration time")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, username=user.username, account_id=user.account_id, role=user.role, created_at=user.created_at)
