"""Shared pytest fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from coursehub.app import App
from coursehub.config import Config
from coursehub.core.core import Core
from coursehub.core.modules.credential.hasher import KdfParams
from coursehub.core.storage.memory import MemoryStorage


class FakeClock:
    """Controllable clock for expiry and presence tests."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 9, 2, 8, 0, tzinfo=UTC))


@pytest.fixture
def kdf_params():
    """Cheap KDF parameters so tests stay fast."""
    return KdfParams(time_cost=1, memory_cost=64, parallelism=1, hash_len=32)


@pytest.fixture
def config():
    return Config(
        _env_file=None,
        database_url="memory://",
        session_secret_key="test-secret",
        session_sweep_interval_seconds=0,
        kdf_time_cost=1,
        kdf_memory_cost=64,
        kdf_parallelism=1,
        kdf_hash_len=32,
        admin_username="admin",
        admin_account_id="admin001",
        admin_password="admin-pass",
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
async def core(config, storage, clock):
    """Started core on in-memory storage with the fake clock."""
    core = Core(config, storage, clock)
    async with core.lifespan():
        yield core


@pytest.fixture
async def alice(core):
    return await core.services.auth.register("alice", "secret123", "S-1001")


@pytest.fixture
def app(config):
    return App(config)
