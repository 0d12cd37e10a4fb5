from uuid import UUID

import structlog

from coursehub.core.core import Service
from coursehub.core.modules.session.models import Session, SessionId
from coursehub.core.modules.user.models import User, UserRole
from coursehub.core.modules.user.validators import normalize_identifier, validate_password
from coursehub.errors import InvalidCredentialsError, ValidationError

logger = structlog.get_logger(__name__)

LOGIN_LOCATION = "login"


class AuthService(Service):
    """Login, registration and logout on top of credentials, sessions and presence."""

    async def login(self, username: str, password: str) -> tuple[Session, User]:
        """Verify credentials and open a session.

        Unknown users and wrong passwords raise the same InvalidCredentialsError.
        """
        username = normalize_identifier(username)
        credential = self.core.services.credential
        user = await self.core.services.user.find_by_username(username)
        if user is None:
            await credential.burn_verify(password)
            logger.info("login_failed", username=username)
            raise InvalidCredentialsError
        if not await credential.verify(password, user.password_hash):
            logger.info("login_failed", username=username)
            raise InvalidCredentialsError

        if credential.needs_rehash(user.password_hash):
            await self.core.services.user.set_password(user.id, password)
            logger.warning("legacy_credential_upgraded", user_id=str(user.id))

        session = await self.core.services.session.create_session(user.id)
        await self.core.services.presence.heartbeat(user.id, LOGIN_LOCATION)
        logger.info("login_succeeded", user_id=str(user.id))
        return session, user

    async def register(self, username: str, password: str, account_id: str, role: UserRole = UserRole.USER) -> User:
        """Create a new account. Raises DuplicateIdentityError for taken names."""
        return await self.core.services.user.create_user(username, password, account_id, role)

    async def logout(self, session_id: SessionId | None) -> None:
        if session_id:
            await self.core.services.session.revoke(session_id)

    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        """Change password after verifying the current one."""
        user = await self.core.services.user.get_user(user_id)
        if not await self.core.services.credential.verify(old_password, user.password_hash):
            raise ValidationError("Invalid current password")

        validate_password(new_password)
        await self.core.services.user.set_password(user_id, new_password)
