import asyncio
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Protocol, Union

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.database import Database, create_database


class Settings(BaseSettings):
    SECRET: Optional[str] = None
    SECRET_FILE: Optional[str] = None

    # Fallback binding and the preferred "verified" binding
    DATABASE_URL: Optional[str] = None
    VERIFIED_DATABASE_URL: Optional[str] = None
    DATABASE_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @model_validator(mode="after")
    def require_secret(self):
        if self.SECRET is None and self.SECRET_FILE is None:
            raise ValueError("Either SECRET or SECRET_FILE must be set")
        return self


# Read the environment once and reuse the same settings everywhere
@lru_cache
def get_settings() -> Settings:
    return Settings()


# =========================
# Secrets
# =========================
class SecretHandle(Protocol):
    async def value(self) -> str: ...


class FileSecret:
    """Secret kept in a file (e.g. a mounted docker/k8s secret), read on demand."""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> str:
        with open(self.path, encoding="utf-8") as handle:
            return handle.read().strip()

    async def value(self) -> str:
        return await asyncio.to_thread(self._read)


async def resolve_secret(secret: Union[str, SecretHandle]) -> str:
    if isinstance(secret, str):
        return secret
    return await secret.value()


# =========================
# Gateway configuration
# =========================
@dataclass(frozen=True)
class GatewayConfig:
    """Everything a request needs; built once at startup and only ever read."""

    secret: Union[str, SecretHandle]
    database: Optional[Database] = None
    verified_database: Optional[Database] = None

    async def dispose(self) -> None:
        for db in (self.database, self.verified_database):
            if db is not None:
                await db.dispose()


def build_config(settings: Settings) -> GatewayConfig:
    secret = settings.SECRET
    if secret is None:
        secret = FileSecret(settings.SECRET_FILE)

    database = None
    if settings.DATABASE_URL:
        database = create_database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

    verified_database = None
    if settings.VERIFIED_DATABASE_URL:
        verified_database = create_database(
            settings.VERIFIED_DATABASE_URL, echo=settings.DATABASE_ECHO
        )

    return GatewayConfig(
        secret=secret, database=database, verified_database=verified_database
    )
