from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from coursehub.config import Config
from coursehub.core.core import Clock, Core
from coursehub.core.modules.presence.models import ActiveUser, PageVisit, PageVisitStats, PresenceEntry
from coursehub.core.modules.session.models import SessionId
from coursehub.core.modules.user.models import UserView
from coursehub.core.storage.base import Storage
from coursehub.utils import now


class App:
    """Facade for all application operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config, storage: Storage | None = None, clock: Clock = now) -> None:
        self._core = Core(config, storage, clock)

    @property
    def config(self) -> Config:
        return self._core.config

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def login(
        self, username: str, password: str, replaced_session_id: SessionId | None = None
    ) -> tuple[SessionId, UserView]:
        """Authenticate user and create session, revoking the session it replaces."""
        session, user = await self._core.services.auth.login(username, password)
        if replaced_session_id:
            await self._core.services.session.revoke(replaced_session_id)
        return session.session_id, UserView.from_domain(user)

    async def register(self, username: str, password: str, account_id: str) -> UserView:
        """Register a regular user account (public)."""
        user = await self._core.services.auth.register(username, password, account_id)
        return UserView.from_domain(user)

    async def logout(self, session_id: SessionId | None) -> None:
        """Invalidate user session. Always succeeds."""
        await self._core.services.auth.logout(session_id)

    async def get_current_user(self, session_id: SessionId | None) -> UserView:
        current_user = await self._core.services.access.ensure_authenticated(session_id)
        return UserView.from_domain(current_user)

    async def change_password(self, session_id: SessionId | None, old_password: str, new_password: str) -> None:
        current_user = await self._core.services.access.ensure_authenticated(session_id)
        await self._core.services.auth.change_password(current_user.id, old_password, new_password)

    async def heartbeat(self, session_id: SessionId | None, location: str | None = None) -> PresenceEntry:
        """Refresh the current user's presence."""
        current_user = await self._core.services.access.ensure_authenticated(session_id)
        return await self._core.services.presence.heartbeat(current_user.id, location)

    async def get_active_users(self, session_id: SessionId | None, threshold_ms: int | None = None) -> list[ActiveUser]:
        """List users active within the threshold (admin only)."""
        await self._core.services.access.ensure_admin(session_id)
        if threshold_ms is None:
            threshold_ms = self._core.config.presence_threshold_ms
        return await self._core.services.presence.list_active(threshold_ms)

    async def record_page_visit(self, session_id: SessionId | None, page: str) -> PageVisit:
        current_user = await self._core.services.access.ensure_authenticated(session_id)
        return await self._core.services.presence.record_page_visit(current_user.id, page)

    async def get_my_page_visits(self, session_id: SessionId | None) -> list[PageVisit]:
        current_user = await self._core.services.access.ensure_authenticated(session_id)
        return await self._core.services.presence.get_page_visits_by_user(current_user.id)

    async def get_most_visited_pages(self, session_id: SessionId | None, limit: int = 5) -> list[PageVisitStats]:
        """Most visited pages (admin only)."""
        await self._core.services.access.ensure_admin(session_id)
        return await self._core.services.presence.get_most_visited_pages(limit)

    async def get_all_users(self, session_id: SessionId | None) -> list[UserView]:
        """Get all users (admin only)."""
        await self._core.services.access.ensure_admin(session_id)
        users = await self._core.services.user.get_all_users()
        return [UserView.from_domain(user) for user in users]

