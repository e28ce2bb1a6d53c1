"""
Database engine and session management.
"""

from sqlalchemy import URL, event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class AsyncSessionManager:
    """
    A manager for asynchronous sessions. Expected usage:

    manager = AsyncSessionManager(conn_url)

    async with manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)
            groups = await groups_service.get_all(stores=stores, log=log)
    """

    connection_url: URL | str
    engine: AsyncEngine
    session: async_sessionmaker

    def __init__(self, connection_url: URL | str, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_async_engine(self.connection_url, echo=echo)

        if self.engine.dialect.name == "sqlite":
            event.listen(
                self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys
            )

        self.session = async_sessionmaker(self.engine, expire_on_commit=False)

    async def create_all(self):
        """
        Run the `SQLModel.metadata.create_all` migration tool. Required
        to set up the table schema.
        """
        # Registers the tables on the metadata.
        from flagadmin.database.meta import ALL_TABLES  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def drop_all(self):
        """
        Run the `SQLModel.metadata.drop_all` deletion method. WARNING: this
        will delete all data in your database; you probably don't want to do this
        unless you are writing a test.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)

    async def dispose(self):
        await self.engine.dispose()
