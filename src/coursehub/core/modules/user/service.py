from uuid import UUID

import structlog

from coursehub.core.core import Service
from coursehub.core.modules.user.models import User, UserRole
from coursehub.core.modules.user.validators import validate_identifier, validate_password
from coursehub.errors import DuplicateIdentityError, NotFoundError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """User directory on top of the user store."""

    async def get_user(self, user_id: UUID) -> User:
        """Get user by ID."""
        user = await self.storage.users.get(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    async def find_user(self, user_id: UUID) -> User | None:
        return await self.storage.users.get(user_id)

    async def find_by_username(self, username: str) -> User | None:
        return await self.storage.users.find_by_username(username)

    async def find_by_account_id(self, account_id: str) -> User | None:
        return await self.storage.users.find_by_account_id(account_id)

    async def get_all_users(self) -> list[User]:
        return await self.storage.users.list_all()

    async def create_user(self, username: str, password: str, account_id: str, role: UserRole = UserRole.USER) -> User:
        """Validate input, check uniqueness and create user with hashed password."""
        username = validate_identifier(username, "Username")
        account_id = validate_identifier(account_id, "Account ID")
        validate_password(password)

        # Fast path only; the store's unique constraint decides concurrent races
        if await self.find_by_username(username) is not None:
            raise DuplicateIdentityError(f"Username '{username}' already exists")
        if await self.find_by_account_id(account_id) is not None:
            raise DuplicateIdentityError(f"Account ID '{account_id}' already exists")

        return await self._insert_user(username, password, account_id, role)

    async def set_password(self, user_id: UUID, password: str) -> None:
        """Hash and store a new password without policy checks."""
        password_hash = await self.core.services.credential.hash(password)
        await self.storage.users.set_password_hash(user_id, password_hash)

    async def ensure_admin_user_exists(self) -> None:
        """Create the configured admin account if it is missing."""
        config = self.core.config
        if config.admin_password is None:
            return
        if await self.find_by_username(config.admin_username) is not None:
            return
        await self._insert_user(config.admin_username, config.admin_password, config.admin_account_id, UserRole.ADMIN)
        logger.info("admin_user_created", username=config.admin_username)

    async def _insert_user(self, username: str, password: str, account_id: str, role: UserRole) -> User:
        password_hash = await self.core.services.credential.hash(password)
        user = await self.storage.users.insert(
            User(username=username, account_id=account_id, role=role, password_hash=password_hash)
        )
        logger.info("user_created", user_id=str(user.id), username=username, role=role)
        return user

    async def on_start(self) -> None:
        await self.ensure_admin_user_exists()
        logger.debug("user_service_started", user_count=len(await self.get_all_users()))
