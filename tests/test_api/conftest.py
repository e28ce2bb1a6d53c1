"""
Fixtures for the API tests. Requests run against the test database through
a dependency override.
"""

import httpx
import pytest_asyncio


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def client(session_manager):
    from flagadmin.api.app import app
    from flagadmin.api.dependencies import get_async_session

    async def get_test_session():
        async with session_manager.session() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[get_async_session] = get_test_session

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
