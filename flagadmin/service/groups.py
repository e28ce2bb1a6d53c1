"""
Service layer for groups.

All functions take the `Stores` to run against and a logger. Validation
happens before any write of a call; nothing here rolls back earlier writes if
a later store call fails, that is left to whoever owns the transaction.
"""

from structlog.typing import FilteringBoundLogger

from flagadmin.core.event import GROUP_CREATED, GROUP_UPDATED, EventData
from flagadmin.core.group import (
    CreateGroupData,
    GroupData,
    GroupMemberData,
    GroupMembershipData,
    GroupModelData,
    GroupProjectData,
    GroupRoleData,
    GroupWithProjectRoleData,
)
from flagadmin.core.user import UserData
from flagadmin.core.uuid import UUID
from flagadmin.stores.base import Stores
from flagadmin.stores.role import RoleNotFound

from . import users as user_service


class BadDataError(Exception):
    pass


class NameExistsError(Exception):
    pass


class GroupRoleExistsError(Exception):
    pass


def membership_diff(
    existing: list[UUID], desired: list[UUID]
) -> tuple[list[UUID], list[UUID]]:
    """
    Compare the current members of a group with the desired members.

    Parameters
    ----------
    existing: list[UUID]
        User ids currently in the group.
    desired: list[UUID]
        User ids that should be in the group.

    Returns
    -------
    additions: list[UUID]
        Users in `desired` but not in `existing`, in `desired` order.
    removals: list[UUID]
        Users in `existing` but not in `desired`, in `existing` order.
    """
    existing_set = set(existing)
    desired_set = set(desired)

    additions = [x for x in dict.fromkeys(desired) if x not in existing_set]
    removals = [x for x in dict.fromkeys(existing) if x not in desired_set]

    return additions, removals


def _map_group_with_users(
    group: GroupData,
    memberships: list[GroupMembershipData],
    users: list[UserData],
) -> GroupModelData:
    """
    Attach the members of `group` (and only those) to it.
    """
    group_memberships = {
        m.user_id: m for m in memberships if m.group_id == group.group_id
    }

    members = [
        GroupMemberData(
            user=user,
            joined_at=group_memberships[user.user_id].joined_at,
            created_by=group_memberships[user.user_id].created_by,
        )
        for user in users
        if user.user_id in group_memberships
    ]

    return GroupModelData(**group.model_dump(), users=members)


def _map_group_with_projects(
    group_projects: list[GroupProjectData], group: GroupModelData
) -> GroupModelData:
    group.projects = [
        x.project for x in group_projects if x.group_id == group.group_id
    ]
    return group


async def get_all(stores: Stores, log: FilteringBoundLogger) -> list[GroupModelData]:
    """
    Get all groups with their members and the projects they are scoped to.
    Order follows the store's group listing.

    Parameters
    ----------
    stores: Stores
        The stores to read from.
    log: FilteringBoundLogger
        Logger instance.
    """
    groups = await stores.groups.get_all()
    group_ids = [g.group_id for g in groups]

    memberships = await stores.groups.get_all_users_by_groups(group_ids)
    users = await stores.accounts.get_all_with_id([m.user_id for m in memberships])
    group_projects = await stores.groups.get_group_projects(group_ids)

    await log.adebug(
        "group.listed",
        number_of_groups=len(groups),
        number_of_memberships=len(memberships),
    )

    return [
        _map_group_with_projects(
            group_projects, _map_group_with_users(group, memberships, users)
        )
        for group in groups
    ]


async def get_group(
    group_id: UUID, stores: Stores, log: FilteringBoundLogger
) -> GroupModelData:
    """
    Read a group and its members.

    Raises
    ------
    flagadmin.stores.group.GroupNotFound
        If the group does not exist (raised by the store).
    """
    log = log.bind(group_id=group_id)

    group = await stores.groups.get(group_id)
    memberships = await stores.groups.get_all_users_by_groups([group_id])
    users = await stores.accounts.get_all_with_id([m.user_id for m in memberships])

    await log.adebug("group.found", number_of_members=len(memberships))

    return _map_group_with_users(group, memberships, users)


async def validate_group(
    group: CreateGroupData,
    stores: Stores,
    log: FilteringBoundLogger,
    existing: GroupData | None = None,
) -> None:
    """
    Check a group before it is created or updated.

    Parameters
    ----------
    group: CreateGroupData
        The incoming group.
    existing: GroupData | None
        The stored state of the group when this is an update. The name
        collision check only runs when there is no existing group or its
        name is changing.

    Raises
    ------
    BadDataError
        If the name is empty, the root role is not of type `root`, or a root
        role is being set on a group that already holds a project role.
    NameExistsError
        If another group already has this name.
    flagadmin.stores.role.RoleNotFound
        If the root role does not exist.
    flagadmin.service.users.UserNotFound
        If any of the listed members does not exist.
    """
    log = log.bind(group_name=group.name, group_id=group.group_id)

    if not group.name or not group.name.strip():
        await log.ainfo("group.invalid", reason="empty_name")
        raise BadDataError("Group name cannot be empty")

    if existing is None or existing.name != group.name:
        if await stores.groups.exists_with_name(group.name):
            await log.ainfo("group.name_exists")
            raise NameExistsError("Group name already exists")

    if group.root_role is not None:
        try:
            role = await stores.roles.get(group.root_role)
        except RoleNotFound as e:
            await log.ainfo("group.root_role_does_not_exist", root_role=group.root_role)
            raise e

        if role.type != "root":
            await log.ainfo("group.invalid", reason="not_a_root_role", role_type=role.type)
            raise BadDataError(f"Role {role.name} is not a root role")

    if group.user_ids:
        found = await stores.accounts.get_all_with_id(group.user_ids)
        missing = set(group.user_ids) - {x.user_id for x in found}

        if missing:
            await log.ainfo("group.user_does_not_exist", missing_user_ids=missing)
            raise user_service.UserNotFound(
                f"Users with IDs {sorted(str(x) for x in missing)} not found"
            )

    if (
        group.group_id is not None
        and group.root_role is not None
        and await stores.groups.has_project_role(group.group_id)
    ):
        await log.ainfo("group.invalid", reason="root_and_project_role")
        raise BadDataError(
            "This group already has a project role and cannot also be given a root role"
        )


async def create_group(
    group: CreateGroupData,
    created_by: str | None,
    stores: Stores,
    log: FilteringBoundLogger,
) -> GroupData:
    """
    Create a new group, add its initial members and record a creation event.

    Parameters
    ----------
    group: CreateGroupData
        The new group. `user_ids` become its initial members.
    created_by: str | None
        The acting user; recorded on the memberships and the event.

    Returns
    -------
    GroupData
        The persisted group, without resolved members.

    Raises
    ------
    BadDataError
    NameExistsError
        See `validate_group`.
    """
    log = log.bind(
        group_name=group.name,
        created_by=created_by,
        number_of_members=len(group.user_ids),
    )

    await validate_group(group=group, stores=stores, log=log)

    new_group = await stores.groups.create(group, created_by)
    log = log.bind(group_id=new_group.group_id)

    await stores.groups.add_users_to_group(
        new_group.group_id, group.user_ids, created_by
    )

    await stores.events.store(
        EventData(
            type=GROUP_CREATED,
            created_by=created_by,
            data=group.model_dump(mode="json"),
        )
    )

    await log.ainfo("group.created")

    return new_group


async def update_group(
    group: CreateGroupData,
    created_by: str | None,
    stores: Stores,
    log: FilteringBoundLogger,
) -> GroupData:
    """
    Update a group and bring its membership in line with `group.user_ids`:
    newly listed users are added, users no longer listed are removed, the
    rest are left alone.

    Raises
    ------
    BadDataError
        If `group.group_id` is missing, or see `validate_group`.
    NameExistsError
        See `validate_group`.
    flagadmin.stores.group.GroupNotFound
        If the group does not exist.
    """
    if group.group_id is None:
        await log.ainfo("group.invalid", reason="missing_id", group_name=group.name)
        raise BadDataError("A group id is required to update a group")

    log = log.bind(group_id=group.group_id, group_name=group.name, created_by=created_by)

    pre_data = await stores.groups.get(group.group_id)

    await validate_group(group=group, stores=stores, log=log, existing=pre_data)

    new_group = await stores.groups.update(group)

    existing_members = await stores.groups.get_all_users_by_groups([group.group_id])

    additions, removals = membership_diff(
        existing=[m.user_id for m in existing_members], desired=group.user_ids
    )

    await stores.groups.update_group_users(
        new_group.group_id, additions, removals, created_by
    )

    await stores.events.store(
        EventData(
            type=GROUP_UPDATED,
            created_by=created_by,
            data=new_group.model_dump(mode="json"),
            pre_data=pre_data.model_dump(mode="json"),
        )
    )

    await log.ainfo(
        "group.updated",
        number_of_added_users=len(additions),
        number_of_removed_users=len(removals),
    )

    return new_group


async def get_project_groups(
    stores: Stores,
    log: FilteringBoundLogger,
    project_id: str | None = None,
) -> list[GroupWithProjectRoleData]:
    """
    Get the groups holding a role in `project_id` (or in any project), with
    their members and the role they hold. A group with several roles is
    reported with the first one found.
    """
    log = log.bind(project_id=project_id)

    group_roles = await stores.groups.get_project_group_roles(project_id)

    if not group_roles:
        await log.adebug("group.project_groups.none")
        return []

    groups = await stores.groups.get_all_with_id([x.group_id for x in group_roles])
    memberships = await stores.groups.get_all_users_by_groups(
        [g.group_id for g in groups]
    )
    users = await stores.accounts.get_all_with_id([m.user_id for m in memberships])

    first_role: dict[UUID, GroupRoleData] = {}
    for group_role in group_roles:
        first_role.setdefault(group_role.group_id, group_role)

    await log.adebug("group.project_groups", number_of_groups=len(groups))

    return [
        GroupWithProjectRoleData(
            **_map_group_with_users(group, memberships, users).model_dump(),
            role_id=first_role[group.group_id].role_id,
            added_at=first_role[group.group_id].created_at,
        )
        for group in groups
    ]


async def delete_group(
    group_id: UUID, stores: Stores, log: FilteringBoundLogger
) -> None:
    """
    Delete a group by its ID, along with its memberships and role assignments.
    """
    log = log.bind(group_id=group_id)
    await stores.groups.delete(group_id)
    await log.ainfo("group.deleted")


async def get_roles_for_project(
    project_id: str, stores: Stores, log: FilteringBoundLogger
) -> list[GroupRoleData]:
    roles = await stores.groups.get_project_group_roles(project_id)
    await log.adebug(
        "group.project_roles", project_id=project_id, number_of_roles=len(roles)
    )
    return roles


async def add_group_to_role(
    group_id: UUID,
    role_id: UUID,
    project: str,
    created_by: str | None,
    stores: Stores,
    log: FilteringBoundLogger,
) -> GroupRoleData:
    """
    Give a group a project role inside `project`.

    Raises
    ------
    BadDataError
        If the role is not a project role, or the group holds a root role;
        root and project roles are mutually exclusive.
    GroupRoleExistsError
        If the group already holds this role in `project`.
    flagadmin.stores.group.GroupNotFound
        If the group does not exist.
    flagadmin.stores.role.RoleNotFound
        If the role does not exist.
    """
    log = log.bind(group_id=group_id, role_id=role_id, project=project)

    group = await stores.groups.get(group_id)
    role = await stores.roles.get(role_id)

    if role.type != "project":
        await log.ainfo("group.invalid", reason="not_a_project_role", role_type=role.type)
        raise BadDataError(f"Role {role.name} is not a project role")

    if group.root_role is not None:
        await log.ainfo("group.invalid", reason="root_and_project_role")
        raise BadDataError(
            "This group has a root role and cannot also be given a project role"
        )

    if await stores.groups.has_group_role(group_id, role_id, project):
        await log.ainfo("group.role_exists")
        raise GroupRoleExistsError(
            f"Group {group.name} already holds role {role.name} in {project}"
        )

    group_role = await stores.groups.add_group_to_role(
        group_id, role_id, project, created_by
    )
    await log.ainfo("group.role_added")

    return group_role


async def remove_group_from_role(
    group_id: UUID,
    role_id: UUID,
    project: str,
    stores: Stores,
    log: FilteringBoundLogger,
) -> None:
    log = log.bind(group_id=group_id, role_id=role_id, project=project)
    await stores.groups.remove_group_from_role(group_id, role_id, project)
    await log.ainfo("group.role_removed")


async def sync_external_groups(
    user_id: UUID,
    external_groups: list[str],
    stores: Stores,
    log: FilteringBoundLogger,
    created_by: str | None = None,
) -> None:
    """
    Reconcile a user's memberships with the group names reported by an
    external identity provider. The user is added to every group mapped to
    one of `external_groups`, and removed from every externally mapped group
    that none of them map to any more. Groups without mappings are untouched.
    Calling this repeatedly with the same list changes nothing after the
    first call.

    Parameters
    ----------
    user_id: UUID
        The user being synchronised.
    external_groups: list[str]
        Group names from the identity provider. Anything other than a list
        makes this a no-op.
    created_by: str | None
        Recorded on the new memberships.
    """
    log = log.bind(user_id=user_id, created_by=created_by)

    if not isinstance(external_groups, list):
        await log.adebug("group.external_sync.skipped")
        return

    new_groups = await stores.groups.get_new_groups_for_external_user(
        user_id, external_groups
    )
    await stores.groups.add_user_to_groups(
        user_id, [g.group_id for g in new_groups], created_by
    )

    old_memberships = await stores.groups.get_old_groups_for_external_user(
        user_id, external_groups
    )
    await stores.groups.delete_users_from_group(old_memberships)

    await log.ainfo(
        "group.external_sync",
        number_of_external_groups=len(external_groups),
        number_of_added_groups=len(new_groups),
        number_of_removed_groups=len(old_memberships),
    )


async def get_groups_for_user(
    user_id: UUID, stores: Stores, log: FilteringBoundLogger
) -> list[GroupData]:
    groups = await stores.groups.get_groups_for_user(user_id)
    await log.adebug("group.for_user", user_id=user_id, number_of_groups=len(groups))
    return groups
