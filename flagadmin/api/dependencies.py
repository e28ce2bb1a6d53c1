"""
Dependencies used by the API.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger
from structlog.typing import FilteringBoundLogger

from flagadmin.config.settings import Settings
from flagadmin.stores.base import Stores
from flagadmin.stores.sql import sql_stores


@lru_cache
def SETTINGS():
    return Settings()


DATABASE_MANAGER = SETTINGS().async_manager()


async def get_async_session():
    async with DATABASE_MANAGER.session() as session:
        async with session.begin():
            yield session


def logger():
    return get_logger()


SettingsDependency = Annotated[Settings, Depends(SETTINGS)]
DatabaseDependency = Annotated[AsyncSession, Depends(get_async_session)]
LoggerDependency = Annotated[FilteringBoundLogger, Depends(logger)]


def get_stores(conn: DatabaseDependency) -> Stores:
    return sql_stores(conn)


def get_actor(
    settings: SettingsDependency,
    x_actor: Annotated[str | None, Header()] = None,
) -> str:
    """
    The user name changes are attributed to. Callers are trusted to set it.
    """
    return x_actor or settings.default_actor


StoresDependency = Annotated[Stores, Depends(get_stores)]
ActorDependency = Annotated[str, Depends(get_actor)]
