"""
FastAPI app
"""

from importlib.metadata import version

from fastapi import FastAPI

from flagadmin.config.logging import configure_logging

from .dependencies import DATABASE_MANAGER, SETTINGS, logger
from .errors import add_exception_handlers
from .groups import group_app
from .projects import project_app
from .roles import role_app
from .users import user_app

settings = SETTINGS()

configure_logging(level=settings.log_level, log_json=settings.log_json)


async def lifespan(app: FastAPI):
    app.settings = settings

    if settings.create_tables:
        await DATABASE_MANAGER.create_all()
        await logger().ainfo("api.tables_created")

    yield

    await DATABASE_MANAGER.dispose()


app = FastAPI(
    lifespan=lifespan,
    title="Feature flag group administration API",
    summary="Manage groups of users, their memberships and their roles.",
    version=version("flagadmin"),
)

app = add_exception_handlers(app)

app.include_router(group_app, prefix="/groups")
app.include_router(project_app, prefix="/projects")
app.include_router(role_app, prefix="/roles")
app.include_router(user_app, prefix="/users")
