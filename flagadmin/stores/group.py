"""
SQL implementation of the group store.
"""

from datetime import datetime, timezone

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from flagadmin.core.group import (
    CreateGroupData,
    GroupData,
    GroupMembershipData,
    GroupProjectData,
    GroupRoleData,
)
from flagadmin.core.uuid import UUID
from flagadmin.database.group import Group, GroupRole, GroupUser


class GroupNotFound(Exception):
    pass


def _is_mapped_to(group: Group, external_groups: set[str]) -> bool:
    return bool(external_groups.intersection(group.mappings_sso or []))


class SQLGroupStore:
    """
    Group store backed by an async SQLAlchemy session. Writes are flushed but
    never committed here; the owner of the session controls the transaction.
    """

    conn: AsyncSession

    def __init__(self, conn: AsyncSession):
        self.conn = conn

    async def _read(self, group_id: UUID) -> Group:
        group = await self.conn.get(Group, group_id)

        if group is None:
            raise GroupNotFound(f"Group with id {group_id} not found")

        return group

    async def get_all(self) -> list[GroupData]:
        result = await self.conn.execute(
            select(Group).order_by(Group.created_at, Group.group_id)
        )
        return [group.to_core() for group in result.scalars().all()]

    async def get_all_with_id(self, group_ids: list[UUID]) -> list[GroupData]:
        if not group_ids:
            return []

        result = await self.conn.execute(
            select(Group)
            .where(Group.group_id.in_(set(group_ids)))
            .order_by(Group.created_at, Group.group_id)
        )
        return [group.to_core() for group in result.scalars().all()]

    async def get(self, group_id: UUID) -> GroupData:
        return (await self._read(group_id)).to_core()

    async def create(self, group: CreateGroupData, created_by: str | None) -> GroupData:
        new_group = Group(
            name=group.name,
            description=group.description,
            mappings_sso=list(group.mappings_sso),
            root_role=group.root_role,
            created_at=datetime.now(tz=timezone.utc),
            created_by=created_by,
        )

        if group.group_id is not None:
            new_group.group_id = group.group_id

        self.conn.add(new_group)
        await self.conn.flush()

        return new_group.to_core()

    async def update(self, group: CreateGroupData) -> GroupData:
        existing = await self._read(group.group_id)

        existing.name = group.name
        existing.description = group.description
        existing.mappings_sso = list(group.mappings_sso)
        existing.root_role = group.root_role

        self.conn.add(existing)
        await self.conn.flush()

        return existing.to_core()

    async def delete(self, group_id: UUID) -> None:
        await self.conn.execute(delete(GroupUser).where(GroupUser.group_id == group_id))
        await self.conn.execute(delete(GroupRole).where(GroupRole.group_id == group_id))
        await self.conn.execute(delete(Group).where(Group.group_id == group_id))

    async def exists_with_name(self, name: str) -> bool:
        result = await self.conn.execute(select(exists().where(Group.name == name)))
        return bool(result.scalar())

    async def has_project_role(self, group_id: UUID) -> bool:
        result = await self.conn.execute(
            select(exists().where(GroupRole.group_id == group_id))
        )
        return bool(result.scalar())

    async def get_all_users_by_groups(
        self, group_ids: list[UUID]
    ) -> list[GroupMembershipData]:
        if not group_ids:
            return []

        result = await self.conn.execute(
            select(GroupUser)
            .where(GroupUser.group_id.in_(set(group_ids)))
            .order_by(GroupUser.joined_at)
        )
        return [membership.to_core() for membership in result.scalars().all()]

    async def get_group_projects(self, group_ids: list[UUID]) -> list[GroupProjectData]:
        if not group_ids:
            return []

        result = await self.conn.execute(
            select(GroupRole.group_id, GroupRole.project)
            .where(GroupRole.group_id.in_(set(group_ids)))
            .distinct()
        )
        return [
            GroupProjectData(group_id=group_id, project=project)
            for group_id, project in result.all()
        ]

    async def get_project_group_roles(
        self, project_id: str | None = None
    ) -> list[GroupRoleData]:
        query = select(GroupRole).order_by(GroupRole.created_at)

        if project_id is not None:
            query = query.where(GroupRole.project == project_id)

        result = await self.conn.execute(query)
        return [role.to_core() for role in result.scalars().all()]

    async def add_users_to_group(
        self, group_id: UUID, user_ids: list[UUID], created_by: str | None
    ) -> None:
        joined_at = datetime.now(tz=timezone.utc)

        self.conn.add_all(
            [
                GroupUser(
                    group_id=group_id,
                    user_id=user_id,
                    joined_at=joined_at,
                    created_by=created_by,
                )
                for user_id in dict.fromkeys(user_ids)
            ]
        )
        await self.conn.flush()

    async def update_group_users(
        self,
        group_id: UUID,
        new_user_ids: list[UUID],
        deletable_user_ids: list[UUID],
        created_by: str | None,
    ) -> None:
        if new_user_ids:
            await self.add_users_to_group(group_id, new_user_ids, created_by)

        if deletable_user_ids:
            await self.conn.execute(
                delete(GroupUser)
                .where(GroupUser.group_id == group_id)
                .where(GroupUser.user_id.in_(set(deletable_user_ids)))
            )

    async def delete_users_from_group(
        self, memberships: list[GroupMembershipData]
    ) -> None:
        for membership in memberships:
            await self.conn.execute(
                delete(GroupUser)
                .where(GroupUser.group_id == membership.group_id)
                .where(GroupUser.user_id == membership.user_id)
            )

    async def add_user_to_groups(
        self, user_id: UUID, group_ids: list[UUID], created_by: str | None
    ) -> None:
        joined_at = datetime.now(tz=timezone.utc)

        self.conn.add_all(
            [
                GroupUser(
                    group_id=group_id,
                    user_id=user_id,
                    joined_at=joined_at,
                    created_by=created_by,
                )
                for group_id in dict.fromkeys(group_ids)
            ]
        )
        await self.conn.flush()

    async def get_new_groups_for_external_user(
        self, user_id: UUID, external_groups: list[str]
    ) -> list[GroupData]:
        """
        Groups mapped to any of `external_groups` that the user is not yet a
        member of.
        """
        member_of = select(GroupUser.group_id).where(GroupUser.user_id == user_id)

        result = await self.conn.execute(
            select(Group)
            .where(Group.group_id.not_in(member_of))
            .order_by(Group.created_at, Group.group_id)
        )

        wanted = set(external_groups)

        return [
            group.to_core()
            for group in result.scalars().all()
            if _is_mapped_to(group, wanted)
        ]

    async def get_old_groups_for_external_user(
        self, user_id: UUID, external_groups: list[str]
    ) -> list[GroupMembershipData]:
        """
        Memberships of the user in externally mapped groups that none of
        `external_groups` map to any more. Groups without mappings are
        managed by hand and never returned.
        """
        result = await self.conn.execute(
            select(GroupUser, Group)
            .join(Group, Group.group_id == GroupUser.group_id)
            .where(GroupUser.user_id == user_id)
        )

        wanted = set(external_groups)

        return [
            membership.to_core()
            for membership, group in result.all()
            if group.mappings_sso and not _is_mapped_to(group, wanted)
        ]

    async def get_groups_for_user(self, user_id: UUID) -> list[GroupData]:
        result = await self.conn.execute(
            select(Group)
            .join(GroupUser, GroupUser.group_id == Group.group_id)
            .where(GroupUser.user_id == user_id)
            .order_by(Group.created_at, Group.group_id)
        )
        return [group.to_core() for group in result.scalars().all()]

    async def add_group_to_role(
        self, group_id: UUID, role_id: UUID, project: str, created_by: str | None
    ) -> GroupRoleData:
        group_role = GroupRole(
            group_id=group_id,
            role_id=role_id,
            project=project,
            created_at=datetime.now(tz=timezone.utc),
            created_by=created_by,
        )

        self.conn.add(group_role)
        await self.conn.flush()

        return group_role.to_core()

    async def has_group_role(
        self, group_id: UUID, role_id: UUID, project: str
    ) -> bool:
        result = await self.conn.execute(
            select(
                exists()
                .where(GroupRole.group_id == group_id)
                .where(GroupRole.role_id == role_id)
                .where(GroupRole.project == project)
            )
        )
        return bool(result.scalar())

    async def remove_group_from_role(
        self, group_id: UUID, role_id: UUID, project: str
    ) -> None:
        await self.conn.execute(
            delete(GroupRole)
            .where(GroupRole.group_id == group_id)
            .where(GroupRole.role_id == role_id)
            .where(GroupRole.project == project)
        )
