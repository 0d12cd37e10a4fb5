from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import cast

import structlog

from coursehub import utils
from coursehub.config import Config
from coursehub.core.storage.base import Storage

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def create_storage(database_url: str) -> Storage:
    """Pick the storage backend from the database URL scheme."""
    if database_url.startswith("memory://"):
        from coursehub.core.storage.memory import MemoryStorage  # noqa: PLC0415

        return MemoryStorage()
    if database_url.startswith(("mongodb://", "mongodb+srv://")):
        from coursehub.core.storage.mongo import MongoStorage  # noqa: PLC0415

        return MongoStorage(database_url)
    raise ValueError(f"Unsupported database URL: {database_url}")


class Service:
    """Base class for services backed by the injected storage."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core

    def now(self) -> datetime:
        """Current time from the core clock."""
        return self.core.clock()


class Services:
    """Service registry that automatically discovers and initializes services."""

    from coursehub.core.modules.access.service import AccessService  # noqa: PLC0415
    from coursehub.core.modules.auth.service import AuthService  # noqa: PLC0415
    from coursehub.core.modules.credential.service import CredentialService  # noqa: PLC0415
    from coursehub.core.modules.presence.service import PresenceService  # noqa: PLC0415
    from coursehub.core.modules.session.service import SessionService  # noqa: PLC0415
    from coursehub.core.modules.user.service import UserService  # noqa: PLC0415

    credential: CredentialService
    user: UserService
    session: SessionService
    presence: PresenceService
    access: AccessService
    auth: AuthService

    def __init__(self, storage: Storage) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for startup - credential before user (admin bootstrap hashes a password)
        service_configs = [
            ("credential", "coursehub.core.modules.credential.service", "CredentialService"),
            ("user", "coursehub.core.modules.user.service", "UserService"),
            ("session", "coursehub.core.modules.session.service", "SessionService"),
            ("presence", "coursehub.core.modules.presence.service", "PresenceService"),
            ("access", "coursehub.core.modules.access.service", "AccessService"),
            ("auth", "coursehub.core.modules.auth.service", "AuthService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(storage)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        # Reverse order so dependants stop before their dependencies
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, storage, clock, and all service instances."""

    config: Config
    storage: Storage
    clock: Clock
    services: Services

    def __init__(self, config: Config, storage: Storage | None = None, clock: Clock = utils.now) -> None:
        """Initialize core with config and storage, and auto-register services.

        Storage defaults to the backend selected by config.database_url.
        """
        self.config = config
        self.storage = storage if storage is not None else create_storage(config.database_url)
        self.clock = clock
        self.services = Services(self.storage)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Open storage and start all services."""
        if self.config.uses_insecure_secret:
            logger.warning("insecure_session_secret", hint="set COURSEHUB_SESSION_SECRET_KEY")
        await self.storage.open()
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close storage on shutdown."""
        await self.services.stop_all()
        await self.storage.close()
