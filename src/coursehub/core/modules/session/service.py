import asyncio
import contextlib
import secrets
from datetime import timedelta
from uuid import UUID

import structlog

from coursehub.core.core import Service
from coursehub.core.modules.session.models import Session, SessionId, SessionStatus
from coursehub.core.modules.user.models import User
from coursehub.errors import SessionInvalidError

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Service for managing user sessions."""

    _sweep_task: asyncio.Task[None] | None = None

    async def on_start(self) -> None:
        interval = self.core.config.session_sweep_interval_seconds
        if interval > 0:
            self._sweep_task = asyncio.create_task(self._sweep_loop(interval))

    async def on_stop(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None

    async def create_session(self, user_id: UUID) -> Session:
        issued_at = self.now()
        session = Session(
            session_id=SessionId(secrets.token_urlsafe(32)),
            user_id=user_id,
            issued_at=issued_at,
            expires_at=issued_at + timedelta(seconds=self.core.config.session_ttl_seconds),
        )
        await self.storage.sessions.insert(session)
        logger.debug("session_created", user_id=str(user_id), expires_at=session.expires_at.isoformat())
        return session

    async def resolve(self, session_id: SessionId) -> UUID | None:
        """Return the session's user ID, or None if unknown, expired or revoked."""
        session = await self.storage.sessions.get(session_id)
        at = self.now()
        if session is None or not session.is_usable(at):
            return None
        await self.storage.sessions.mark_used(session_id, at)
        return session.user_id

    async def get_authenticated_user(self, session_id: SessionId | None) -> User:
        if not session_id:
            raise SessionInvalidError
        user_id = await self.resolve(session_id)
        if user_id is None:
            raise SessionInvalidError
        user = await self.core.services.user.find_user(user_id)
        if user is None:
            raise SessionInvalidError
        return user

    async def revoke(self, session_id: SessionId) -> None:
        """Revoke a session. Unknown or already revoked sessions are ignored."""
        if await self.storage.sessions.set_status(session_id, SessionStatus.REVOKED):
            logger.debug("session_revoked")

    async def purge_expired(self) -> int:
        """Remove expired and revoked sessions from storage."""
        count = await self.storage.sessions.delete_stale(self.now())
        if count:
            logger.info("sessions_purged", count=count)
        return count

    async def _sweep_loop(self, interval: int) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.purge_expired()
            except Exception:
                logger.exception("session_sweep_failed")
