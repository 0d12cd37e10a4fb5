from datetime import UTC, datetime, timedelta
from uuid import UUID

import structlog

from coursehub.core.core import Service
from coursehub.core.modules.presence.models import ActiveUser, PageVisit, PageVisitStats, PresenceEntry
from coursehub.core.modules.user.models import UserView
from coursehub.errors import ValidationError

logger = structlog.get_logger(__name__)


class PresenceService(Service):
    """Tracks who is online and which pages they visit."""

    async def heartbeat(self, user_id: UUID, location: str | None = None) -> PresenceEntry:
        """Record activity; without a location the previous one is kept."""
        return await self.storage.presence.upsert(user_id, self.now(), location)

    async def get_entry(self, user_id: UUID) -> PresenceEntry | None:
        return await self.storage.presence.get(user_id)

    async def list_active(self, threshold_ms: int) -> list[ActiveUser]:
        """Users whose last heartbeat is at most threshold_ms old (inclusive)."""
        if threshold_ms < 0:
            raise ValidationError("Threshold must not be negative")

        try:
            since = self.now() - timedelta(milliseconds=threshold_ms)
        except OverflowError:
            # Window reaches past the earliest representable time
            since = datetime.min.replace(tzinfo=UTC)
        entries = await self.storage.presence.list_since(since)

        result: list[ActiveUser] = []
        for entry in entries:
            user = await self.core.services.user.find_user(entry.user_id)
            if user is None:
                # User and presence stores have drifted apart
                logger.error(
                    "presence_integrity_fault",
                    presence_id=str(entry.id),
                    user_id=str(entry.user_id),
                    last_active=entry.last_active.isoformat(),
                )
                continue
            result.append(ActiveUser.from_domain(entry, UserView.from_domain(user)))
        return result

    async def record_page_visit(self, user_id: UUID, page: str) -> PageVisit:
        """Store a page visit and refresh the user's presence with that page."""
        page = page.strip()
        if not page:
            raise ValidationError("Page is required")

        visit = PageVisit(user_id=user_id, page=page, visited_at=self.now())
        await self.storage.page_visits.insert(visit)
        await self.heartbeat(user_id, page)
        return visit

    async def get_page_visits_by_user(self, user_id: UUID) -> list[PageVisit]:
        return await self.storage.page_visits.list_by_user(user_id)

    async def get_most_visited_pages(self, limit: int = 5) -> list[PageVisitStats]:
        if limit < 1:
            raise ValidationError("Limit must be at least 1")
        return await self.storage.page_visits.most_visited(limit)
