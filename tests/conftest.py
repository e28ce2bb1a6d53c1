"""
Core configuration
"""

import pytest
import pytest_asyncio
import structlog

from flagadmin.config.settings import Settings
from flagadmin.service import roles as role_service
from flagadmin.service import users as user_service


@pytest.fixture(scope="session")
def server_settings(tmp_path_factory):
    database = tmp_path_factory.mktemp("database") / "flagadmin.db"

    yield Settings(database_type="sqlite", database_db=str(database))


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def session_manager(server_settings: Settings):
    manager = server_settings.async_manager()
    await manager.create_all()

    yield manager

    await manager.drop_all()
    await manager.dispose()


@pytest.fixture(scope="session")
def logger():
    yield structlog.get_logger()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def users(session_manager, logger):
    """
    Four users, keyed by user name.
    """
    async with session_manager.session() as conn:
        async with conn.begin():
            created = {}

            for user_name in ["alice", "bob", "carol", "dave"]:
                user = await user_service.create(
                    user_name=user_name,
                    email=f"{user_name}@example.com",
                    name=user_name.title(),
                    conn=conn,
                    log=logger,
                )
                created[user_name] = user.user_id

    yield created


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def roles(session_manager, logger):
    """
    One root role and one project role, keyed by type.
    """
    async with session_manager.session() as conn:
        async with conn.begin():
            root = await role_service.create(
                name="Admin", type="root", conn=conn, log=logger
            )
            project = await role_service.create(
                name="Project Member", type="project", conn=conn, log=logger
            )

            created = {"root": root.role_id, "project": project.role_id}

    yield created
