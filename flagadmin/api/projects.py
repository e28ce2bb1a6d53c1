"""
Project-scoped views of groups and their roles.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel

from flagadmin.core.group import GroupRoleData, GroupWithProjectRoleData
from flagadmin.core.uuid import UUID
from flagadmin.service import groups as groups_service

from .dependencies import ActorDependency, LoggerDependency, StoresDependency

project_app = APIRouter(tags=["Project Groups"])


class GroupRoleRequest(BaseModel):
    group_id: UUID
    role_id: UUID


@project_app.get(
    "/groups",
    summary="Groups with a role in any project",
)
async def list_all_project_groups(
    stores: StoresDependency, log: LoggerDependency
) -> list[GroupWithProjectRoleData]:
    return await groups_service.get_project_groups(stores=stores, log=log)


@project_app.get(
    "/{project_id}/groups",
    summary="Groups with a role in a project",
    description="Groups holding a role in the project, with members and role.",
)
async def list_project_groups(
    project_id: str, stores: StoresDependency, log: LoggerDependency
) -> list[GroupWithProjectRoleData]:
    return await groups_service.get_project_groups(
        stores=stores, log=log, project_id=project_id
    )


@project_app.get(
    "/{project_id}/roles",
    summary="Group role assignments in a project",
)
async def list_project_roles(
    project_id: str, stores: StoresDependency, log: LoggerDependency
) -> list[GroupRoleData]:
    return await groups_service.get_roles_for_project(
        project_id=project_id, stores=stores, log=log
    )


@project_app.post(
    "/{project_id}/groups",
    status_code=status.HTTP_201_CREATED,
    summary="Give a group a role in a project",
    responses={
        201: {"description": "Role assigned."},
        400: {"description": "Not a project role, or the group holds a root role."},
        404: {"description": "Group or role not found."},
        409: {"description": "The group already holds this role in the project."},
    },
)
async def add_project_group(
    project_id: str,
    content: GroupRoleRequest,
    actor: ActorDependency,
    stores: StoresDependency,
    log: LoggerDependency,
) -> GroupRoleData:
    return await groups_service.add_group_to_role(
        group_id=content.group_id,
        role_id=content.role_id,
        project=project_id,
        created_by=actor,
        stores=stores,
        log=log.bind(actor=actor),
    )
