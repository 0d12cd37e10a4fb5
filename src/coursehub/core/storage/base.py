"""Storage interfaces consumed by the services.

Every backend must raise DuplicateIdentityError from UserStore.insert when a
unique attribute (username, account_id) is already taken.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from coursehub.core.modules.presence.models import PageVisit, PageVisitStats, PresenceEntry
from coursehub.core.modules.session.models import Session, SessionId, SessionStatus
from coursehub.core.modules.user.models import User


class UserStore(ABC):
    @abstractmethod
    async def get(self, user_id: UUID) -> User | None: ...

    @abstractmethod
    async def find_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    async def find_by_account_id(self, account_id: str) -> User | None: ...

    @abstractmethod
    async def list_all(self) -> list[User]: ...

    @abstractmethod
    async def insert(self, user: User) -> User: ...

    @abstractmethod
    async def set_password_hash(self, user_id: UUID, password_hash: str) -> None: ...

    @abstractmethod
    async def delete(self, user_id: UUID) -> bool: ...


class SessionStore(ABC):
    @abstractmethod
    async def insert(self, session: Session) -> None: ...

    @abstractmethod
    async def get(self, session_id: SessionId) -> Session | None: ...

    @abstractmethod
    async def mark_used(self, session_id: SessionId, at: datetime) -> None:
        """Set status active (unless revoked) and last_used_at."""

    @abstractmethod
    async def set_status(self, session_id: SessionId, status: SessionStatus) -> bool: ...

    @abstractmethod
    async def delete_stale(self, before: datetime) -> int:
        """Delete sessions expired before the given time and all revoked sessions."""


class PresenceStore(ABC):
    @abstractmethod
    async def upsert(self, user_id: UUID, last_active: datetime, location: str | None) -> PresenceEntry:
        """Create or update the entry; a None location keeps the stored one."""

    @abstractmethod
    async def get(self, user_id: UUID) -> PresenceEntry | None: ...

    @abstractmethod
    async def list_since(self, since: datetime) -> list[PresenceEntry]:
        """Entries with last_active >= since."""

    @abstractmethod
    async def count(self) -> int: ...


class PageVisitStore(ABC):
    @abstractmethod
    async def insert(self, visit: PageVisit) -> None: ...

    @abstractmethod
    async def list_by_user(self, user_id: UUID) -> list[PageVisit]: ...

    @abstractmethod
    async def most_visited(self, limit: int) -> list[PageVisitStats]:
        """Pages ordered by visit count descending, then by page name."""


class Storage(ABC):
    """Bundle of stores sharing one backend."""

    users: UserStore
    sessions: SessionStore
    presence: PresenceStore
    page_visits: PageVisitStore

    async def open(self) -> None:
        """Prepare the backend (indexes, connections)."""

    async def close(self) -> None:
        """Release backend resources."""
