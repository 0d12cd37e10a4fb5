from coursehub.core.core import Service
from coursehub.core.modules.session.models import SessionId
from coursehub.core.modules.user.models import User, UserRole
from coursehub.errors import AccessDeniedError


class AccessService(Service):
    async def ensure_authenticated(self, session_id: SessionId | None) -> User:
        """Ensure the user is authenticated."""
        return await self.core.services.session.get_authenticated_user(session_id)

    async def ensure_admin(self, session_id: SessionId | None) -> User:
        """Ensure the authenticated user is admin, raise AccessDeniedError if not."""
        user = await self.core.services.session.get_authenticated_user(session_id)
        if user.role != UserRole.ADMIN:
            raise AccessDeniedError("Admin privileges required")
        return user
