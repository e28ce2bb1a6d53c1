"""
Group management.
"""

from fastapi import APIRouter, HTTPException, status

from flagadmin.core.group import CreateGroupData, GroupData, GroupModelData
from flagadmin.core.uuid import UUID
from flagadmin.service import groups as groups_service

from .dependencies import ActorDependency, LoggerDependency, StoresDependency

group_app = APIRouter(tags=["Group Management"])


@group_app.get(
    "",
    summary="List all groups",
    description="Retrieve all groups with their members and projects.",
    responses={
        200: {"description": "List of groups."},
    },
)
async def list_groups(
    stores: StoresDependency, log: LoggerDependency
) -> list[GroupModelData]:
    groups = await groups_service.get_all(stores=stores, log=log)
    await log.adebug("api.group.list", number_of_groups=len(groups))
    return groups


@group_app.get(
    "/{group_id}",
    summary="Get group by ID",
    description="Retrieve a group by its ID, with information about its members.",
    responses={
        200: {"description": "Group details with members."},
        404: {"description": "Group not found."},
    },
)
async def get_group(
    group_id: UUID, stores: StoresDependency, log: LoggerDependency
) -> GroupModelData:
    return await groups_service.get_group(group_id=group_id, stores=stores, log=log)


@group_app.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new group",
    description=(
        "Create a new group with the given name and initial members. "
        "The acting user is taken from the `X-Actor` header."
    ),
    responses={
        201: {"description": "Group created successfully."},
        400: {"description": "Invalid group data."},
        404: {"description": "A member or the root role does not exist."},
        409: {"description": "A group with this name already exists."},
    },
)
async def create_group(
    content: CreateGroupData,
    actor: ActorDependency,
    stores: StoresDependency,
    log: LoggerDependency,
) -> GroupData:
    log = log.bind(actor=actor)

    if content.group_id is not None:
        await log.awarning("api.group.create.id_given")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Group ids are assigned by the server",
        )

    return await groups_service.create_group(
        group=content, created_by=actor, stores=stores, log=log
    )


@group_app.put(
    "/{group_id}",
    summary="Update a group",
    description=(
        "Update a group. `user_ids` is the full desired membership: "
        "users not listed are removed from the group."
    ),
    responses={
        200: {"description": "Group updated successfully."},
        400: {"description": "Invalid group data."},
        404: {"description": "Group not found."},
        409: {"description": "A group with this name already exists."},
    },
)
async def update_group(
    group_id: UUID,
    content: CreateGroupData,
    actor: ActorDependency,
    stores: StoresDependency,
    log: LoggerDependency,
) -> GroupData:
    group = content.model_copy(update={"group_id": group_id})

    return await groups_service.update_group(
        group=group, created_by=actor, stores=stores, log=log.bind(actor=actor)
    )


@group_app.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group",
    responses={
        204: {"description": "Group deleted successfully."},
        404: {"description": "Group not found."},
    },
)
async def delete_group(
    group_id: UUID,
    actor: ActorDependency,
    stores: StoresDependency,
    log: LoggerDependency,
) -> None:
    log = log.bind(actor=actor)

    # Surfaces GroupNotFound as a 404.
    await stores.groups.get(group_id)

    await groups_service.delete_group(group_id=group_id, stores=stores, log=log)
