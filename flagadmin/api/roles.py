"""
Role management.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel

from flagadmin.core.role import RoleData, RoleType
from flagadmin.core.uuid import UUID
from flagadmin.service import roles as role_service

from .dependencies import ActorDependency, DatabaseDependency, LoggerDependency

role_app = APIRouter(tags=["Role Management"])


class RoleCreationRequest(BaseModel):
    name: str
    type: RoleType
    description: str | None = None


@role_app.get(
    "",
    summary="List roles",
    description="List all roles, optionally only those of one type.",
)
async def list_roles(
    conn: DatabaseDependency, role_type: RoleType | None = None
) -> list[RoleData]:
    roles = await role_service.get_role_list(conn=conn, role_type=role_type)
    return [role.to_core() for role in roles]


@role_app.get(
    "/{role_id}",
    summary="Get role by ID",
    responses={404: {"description": "Role not found."}},
)
async def get_role(role_id: UUID, conn: DatabaseDependency) -> RoleData:
    return (await role_service.read_by_id(role_id=role_id, conn=conn)).to_core()


@role_app.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new role",
    responses={
        201: {"description": "Role created."},
        409: {"description": "A role with this name already exists."},
    },
)
async def create_role(
    content: RoleCreationRequest,
    actor: ActorDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> RoleData:
    role = await role_service.create(
        name=content.name,
        type=content.type,
        description=content.description,
        conn=conn,
        log=log.bind(actor=actor),
    )

    return role.to_core()
