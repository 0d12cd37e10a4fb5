"""In-process storage backend.

Each method finishes its check-then-write without awaiting, so concurrent tasks
on the same event loop never observe a half-applied update.
"""

from collections import Counter
from datetime import datetime
from uuid import UUID

from coursehub.core.modules.presence.models import PageVisit, PageVisitStats, PresenceEntry
from coursehub.core.modules.session.models import Session, SessionId, SessionStatus
from coursehub.core.modules.user.models import User
from coursehub.core.storage.base import PageVisitStore, PresenceStore, SessionStore, Storage, UserStore
from coursehub.errors import DuplicateIdentityError


class MemoryUserStore(UserStore):
    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}

    async def get(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

    async def find_by_username(self, username: str) -> User | None:
        return next((u for u in self._users.values() if u.username == username), None)

    async def find_by_account_id(self, account_id: str) -> User | None:
        return next((u for u in self._users.values() if u.account_id == account_id), None)

    async def list_all(self) -> list[User]:
        return list(self._users.values())

    async def insert(self, user: User) -> User:
        for existing in self._users.values():
            if existing.username == user.username:
                raise DuplicateIdentityError(f"Username '{user.username}' already exists")
            if existing.account_id == user.account_id:
                raise DuplicateIdentityError(f"Account ID '{user.account_id}' already exists")
        self._users[user.id] = user
        return user

    async def set_password_hash(self, user_id: UUID, password_hash: str) -> None:
        user = self._users.get(user_id)
        if user is not None:
            self._users[user_id] = user.model_copy(update={"password_hash": password_hash})

    async def delete(self, user_id: UUID) -> bool:
        return self._users.pop(user_id, None) is not None


class MemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._sessions: dict[SessionId, Session] = {}

    async def insert(self, session: Session) -> None:
        self._sessions[session.session_id] = session

    async def get(self, session_id: SessionId) -> Session | None:
        return self._sessions.get(session_id)

    async def mark_used(self, session_id: SessionId, at: datetime) -> None:
        session = self._sessions.get(session_id)
        if session is None or session.status == SessionStatus.REVOKED:
            return
        self._sessions[session_id] = session.model_copy(update={"status": SessionStatus.ACTIVE, "last_used_at": at})

    async def set_status(self, session_id: SessionId, status: SessionStatus) -> bool:
        session = self._sessions.get(session_id)
        if session is None:
            return False
        self._sessions[session_id] = session.model_copy(update={"status": status})
        return True

    async def delete_stale(self, before: datetime) -> int:
        stale = [
            sid for sid, s in self._sessions.items() if s.status == SessionStatus.REVOKED or s.expires_at < before
        ]
        for sid in stale:
            del self._sessions[sid]
        return len(stale)


class MemoryPresenceStore(PresenceStore):
    def __init__(self) -> None:
        self._entries: dict[UUID, PresenceEntry] = {}

    async def upsert(self, user_id: UUID, last_active: datetime, location: str | None) -> PresenceEntry:
        existing = self._entries.get(user_id)
        if existing is None:
            entry = PresenceEntry(user_id=user_id, last_active=last_active, current_location=location)
        else:
            update: dict[str, object] = {"last_active": last_active}
            if location is not None:
                update["current_location"] = location
            entry = existing.model_copy(update=update)
        self._entries[user_id] = entry
        return entry

    async def get(self, user_id: UUID) -> PresenceEntry | None:
        return self._entries.get(user_id)

    async def list_since(self, since: datetime) -> list[PresenceEntry]:
        return [e for e in self._entries.values() if e.last_active >= since]

    async def count(self) -> int:
        return len(self._entries)


class MemoryPageVisitStore(PageVisitStore):
    def __init__(self) -> None:
        self._visits: list[PageVisit] = []

    async def insert(self, visit: PageVisit) -> None:
        self._visits.append(visit)

    async def list_by_user(self, user_id: UUID) -> list[PageVisit]:
        return [v for v in self._visits if v.user_id == user_id]

    async def most_visited(self, limit: int) -> list[PageVisitStats]:
        counts = Counter(v.page for v in self._visits)
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [PageVisitStats(page=page, count=count) for page, count in ranked[:limit]]


class MemoryStorage(Storage):
    def __init__(self) -> None:
        self.users = MemoryUserStore()
        self.sessions = MemorySessionStore()
        self.presence = MemoryPresenceStore()
        self.page_visits = MemoryPageVisitStore()
