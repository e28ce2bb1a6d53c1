"""
Group ORM, along with the membership and project-role association tables.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from flagadmin.core.group import (
    GroupData,
    GroupMembershipData,
    GroupRoleData,
)
from flagadmin.core.uuid import UUID, uuid7


class GroupUser(SQLModel, table=True):
    """
    A record of a user's group membership. At most one per (group, user).
    """

    __tablename__ = "group_user"

    group_id: Optional[UUID] = Field(
        primary_key=True, foreign_key="group.group_id", ondelete="CASCADE"
    )
    user_id: Optional[UUID] = Field(
        primary_key=True, foreign_key="user.user_id", ondelete="CASCADE"
    )

    joined_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )
    created_by: str | None = None

    def to_core(self) -> GroupMembershipData:
        return GroupMembershipData(
            group_id=self.group_id,
            user_id=self.user_id,
            joined_at=self.joined_at,
            created_by=self.created_by,
        )


class GroupRole(SQLModel, table=True):
    """
    A project role held by a group inside a single project.
    """

    __tablename__ = "group_role"

    group_id: Optional[UUID] = Field(
        primary_key=True, foreign_key="group.group_id", ondelete="CASCADE"
    )
    role_id: Optional[UUID] = Field(
        primary_key=True, foreign_key="role.role_id", ondelete="CASCADE"
    )
    project: str = Field(primary_key=True)

    created_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )
    created_by: str | None = None

    def to_core(self) -> GroupRoleData:
        return GroupRoleData(
            group_id=self.group_id,
            role_id=self.role_id,
            project=self.project,
            created_at=self.created_at,
            created_by=self.created_by,
        )


class Group(SQLModel, table=True):
    group_id: UUID = Field(primary_key=True, default_factory=uuid7)

    name: str = Field(unique=True)
    description: str | None = None

    # External (SSO) group names that imply membership of this group.
    mappings_sso: list[str] = Field(sa_column=Column(JSON), default_factory=list)

    root_role: UUID | None = Field(
        default=None, foreign_key="role.role_id", ondelete="SET NULL"
    )

    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True)))
    created_by: str | None = None

    def to_core(self) -> GroupData:
        """
        Convert this Group ORM object to a GroupData core object.
        """
        return GroupData(
            group_id=self.group_id,
            name=self.name,
            description=self.description,
            mappings_sso=list(self.mappings_sso or []),
            root_role=self.root_role,
            created_at=self.created_at,
            created_by=self.created_by,
        )
