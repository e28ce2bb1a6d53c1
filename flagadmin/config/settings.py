"""
Main settings object.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL

from .managers import AsyncSessionManager


class Settings(BaseSettings):
    database_type: Literal["sqlite", "postgres"] = "sqlite"
    database_user: str | None = None
    database_password: str | None = None
    database_port: int | None = None
    database_host: str | None = None
    database_db: str = "flagadmin.db"

    database_echo: bool = False

    # Create the tables on application startup (development only)
    create_tables: bool = False

    # Actor recorded on events and memberships when a request does not name one
    default_actor: str = "admin"

    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(env_prefix="FLAGADMIN_", env_file=".env")

    @property
    def async_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite+aiosqlite"
            case "postgres":
                return "postgresql+asyncpg"
            case _:
                raise ValueError

    @property
    def async_uri(self) -> URL:
        return URL.create(
            drivername=self.async_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def async_manager(self) -> AsyncSessionManager:
        return AsyncSessionManager(
            connection_url=self.async_uri, echo=self.database_echo
        )
