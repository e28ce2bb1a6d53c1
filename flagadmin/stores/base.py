"""
Store contracts used by the service layer. Any persistence backend that
implements these protocols can be handed to the services; the SQL
implementations live next to this module.
"""

from typing import Protocol

from flagadmin.core.event import EventData
from flagadmin.core.group import (
    CreateGroupData,
    GroupData,
    GroupMembershipData,
    GroupProjectData,
    GroupRoleData,
)
from flagadmin.core.role import RoleData
from flagadmin.core.user import UserData
from flagadmin.core.uuid import UUID


class GroupStore(Protocol):
    async def get_all(self) -> list[GroupData]: ...

    async def get_all_with_id(self, group_ids: list[UUID]) -> list[GroupData]: ...

    async def get(self, group_id: UUID) -> GroupData: ...

    async def create(
        self, group: CreateGroupData, created_by: str | None
    ) -> GroupData: ...

    async def update(self, group: CreateGroupData) -> GroupData: ...

    async def delete(self, group_id: UUID) -> None: ...

    async def exists_with_name(self, name: str) -> bool: ...

    async def has_project_role(self, group_id: UUID) -> bool: ...

    async def get_all_users_by_groups(
        self, group_ids: list[UUID]
    ) -> list[GroupMembershipData]: ...

    async def get_group_projects(
        self, group_ids: list[UUID]
    ) -> list[GroupProjectData]: ...

    async def get_project_group_roles(
        self, project_id: str | None = None
    ) -> list[GroupRoleData]: ...

    async def add_users_to_group(
        self, group_id: UUID, user_ids: list[UUID], created_by: str | None
    ) -> None: ...

    async def update_group_users(
        self,
        group_id: UUID,
        new_user_ids: list[UUID],
        deletable_user_ids: list[UUID],
        created_by: str | None,
    ) -> None: ...

    async def delete_users_from_group(
        self, memberships: list[GroupMembershipData]
    ) -> None: ...

    async def add_user_to_groups(
        self, user_id: UUID, group_ids: list[UUID], created_by: str | None
    ) -> None: ...

    async def get_new_groups_for_external_user(
        self, user_id: UUID, external_groups: list[str]
    ) -> list[GroupData]: ...

    async def get_old_groups_for_external_user(
        self, user_id: UUID, external_groups: list[str]
    ) -> list[GroupMembershipData]: ...

    async def get_groups_for_user(self, user_id: UUID) -> list[GroupData]: ...

    async def add_group_to_role(
        self, group_id: UUID, role_id: UUID, project: str, created_by: str | None
    ) -> GroupRoleData: ...

    async def has_group_role(
        self, group_id: UUID, role_id: UUID, project: str
    ) -> bool: ...

    async def remove_group_from_role(
        self, group_id: UUID, role_id: UUID, project: str
    ) -> None: ...


class AccountStore(Protocol):
    async def get_all_with_id(self, user_ids: list[UUID]) -> list[UserData]: ...


class RoleStore(Protocol):
    async def get(self, role_id: UUID) -> RoleData: ...


class EventStore(Protocol):
    async def store(self, event: EventData) -> EventData: ...

    async def get_all(self, event_type: str | None = None) -> list[EventData]: ...


class Stores:
    """
    The set of stores a service call runs against.
    """

    groups: GroupStore
    events: EventStore
    accounts: AccountStore
    roles: RoleStore

    def __init__(
        self,
        groups: GroupStore,
        events: EventStore,
        accounts: AccountStore,
        roles: RoleStore,
    ):
        self.groups = groups
        self.events = events
        self.accounts = accounts
        self.roles = roles
