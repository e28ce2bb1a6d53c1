"""
Translation of service-layer exceptions into HTTP responses.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from structlog import get_logger

from flagadmin.service.groups import (
    BadDataError,
    GroupRoleExistsError,
    NameExistsError,
)
from flagadmin.service.roles import RoleExistsError
from flagadmin.service.users import UserExistsError, UserNotFound
from flagadmin.stores.group import GroupNotFound
from flagadmin.stores.role import RoleNotFound


def _handler(status_code: int):
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        await get_logger().ainfo(
            "api.error",
            path=request.url.path,
            error_type=type(exc).__name__,
            status_code=status_code,
        )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handle


def add_exception_handlers(app: FastAPI) -> FastAPI:
    """
    Register handlers so that validation and lookup failures become 4xx
    responses instead of 500s.
    """
    app.add_exception_handler(BadDataError, _handler(status.HTTP_400_BAD_REQUEST))

    for conflict in (
        NameExistsError,
        GroupRoleExistsError,
        UserExistsError,
        RoleExistsError,
    ):
        app.add_exception_handler(conflict, _handler(status.HTTP_409_CONFLICT))

    for not_found in (GroupNotFound, UserNotFound, RoleNotFound):
        app.add_exception_handler(not_found, _handler(status.HTTP_404_NOT_FOUND))

    return app
