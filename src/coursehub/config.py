from typing import Literal, Self

from pydantic import model_validator
from pydantic_settings import BaseSettings

INSECURE_SESSION_SECRET = "coursehub-insecure-dev-secret"  # noqa: S105


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = "memory://"  # memory:// or mongodb://host:port/dbname
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    environment: Literal["development", "production"] = "development"
    session_secret_key: str = INSECURE_SESSION_SECRET  # Signs the session cookie
    session_ttl_seconds: int = 24 * 60 * 60
    session_sweep_interval_seconds: int = 60 * 60  # 0 disables the background sweep
    cors_origins: list[str] = []
    presence_threshold_ms: int = 15 * 60 * 1000  # Default window for "who is online"
    # Argon2id cost parameters, fixed for the lifetime of the stored credentials
    kdf_time_cost: int = 2
    kdf_memory_cost: int = 19 * 1024  # KiB
    kdf_parallelism: int = 1
    kdf_hash_len: int = 64
    allow_legacy_credentials: bool = True
    # Bootstrap admin account, created on startup when admin_password is set
    admin_username: str = "admin"
    admin_account_id: str = "admin"
    admin_password: str | None = None

    model_config = {
        "env_file": [".env"],
        "env_prefix": "COURSEHUB_",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def check_session_secret(self) -> Self:
        if self.is_production and self.uses_insecure_secret:
            raise ValueError("COURSEHUB_SESSION_SECRET_KEY must be set in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def uses_insecure_secret(self) -> bool:
        return self.session_secret_key == INSECURE_SESSION_SECRET
