"""
User accounts and their groups.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel

from flagadmin.core.group import GroupData
from flagadmin.core.user import UserData
from flagadmin.core.uuid import UUID
from flagadmin.service import groups as groups_service
from flagadmin.service import users as user_service

from .dependencies import (
    ActorDependency,
    DatabaseDependency,
    LoggerDependency,
    StoresDependency,
)

user_app = APIRouter(tags=["Users"])


class UserCreationRequest(BaseModel):
    user_name: str
    email: str | None = None
    name: str | None = None


class ExternalGroupsRequest(BaseModel):
    external_groups: list[str]


@user_app.get(
    "",
    summary="List all users",
)
async def list_users(conn: DatabaseDependency) -> list[UserData]:
    return await user_service.get_user_list(conn=conn)


@user_app.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user",
    description="User names are normalised to lower case with underscores.",
    responses={
        201: {"description": "User created."},
        409: {"description": "A user with this user name already exists."},
    },
)
async def create_user(
    content: UserCreationRequest,
    actor: ActorDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> UserData:
    user = await user_service.create(
        user_name=content.user_name,
        email=content.email,
        name=content.name,
        conn=conn,
        log=log.bind(actor=actor),
    )

    return user.to_core()


@user_app.delete(
    "/{user_name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user",
    description="The user's group memberships are removed with them.",
    responses={
        204: {"description": "User deleted."},
        404: {"description": "User not found."},
    },
)
async def delete_user(
    user_name: str,
    actor: ActorDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> None:
    await user_service.delete(
        user_name=user_name, conn=conn, log=log.bind(actor=actor)
    )


@user_app.get(
    "/{user_id}/groups",
    summary="Groups a user is a member of",
    responses={404: {"description": "User not found."}},
)
async def list_user_groups(
    user_id: UUID,
    conn: DatabaseDependency,
    stores: StoresDependency,
    log: LoggerDependency,
) -> list[GroupData]:
    await user_service.read_by_id(user_id=user_id, conn=conn)

    return await groups_service.get_groups_for_user(
        user_id=user_id, stores=stores, log=log
    )


@user_app.post(
    "/{user_id}/external-groups",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Synchronise a user's externally sourced groups",
    description=(
        "Add the user to every group mapped to one of the external group "
        "names, and remove them from mapped groups no longer reported."
    ),
    responses={
        204: {"description": "Memberships synchronised."},
        404: {"description": "User not found."},
    },
)
async def sync_external_groups(
    user_id: UUID,
    content: ExternalGroupsRequest,
    actor: ActorDependency,
    conn: DatabaseDependency,
    stores: StoresDependency,
    log: LoggerDependency,
) -> None:
    await user_service.read_by_id(user_id=user_id, conn=conn)

    await groups_service.sync_external_groups(
        user_id=user_id,
        external_groups=content.external_groups,
        created_by=actor,
        stores=stores,
        log=log,
    )
