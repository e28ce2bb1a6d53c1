"""
Core group data models.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from flagadmin.core.uuid import UUID

from .user import UserData


class CreateGroupData(BaseModel):
    """
    Input for creating or updating a group. `user_ids` is the desired
    membership of the group; on update, users not listed are removed.
    """

    group_id: UUID | None = None
    name: str
    description: str | None = None
    mappings_sso: list[str] = Field(default_factory=list)
    root_role: UUID | None = None
    user_ids: list[UUID] = Field(default_factory=list)


class GroupData(BaseModel):
    group_id: UUID
    name: str
    description: str | None = None
    mappings_sso: list[str] = Field(default_factory=list)
    root_role: UUID | None = None
    created_at: datetime | None = None
    created_by: str | None = None


class GroupMembershipData(BaseModel):
    """
    A single (group, user) association as it is stored.
    """

    group_id: UUID
    user_id: UUID
    joined_at: datetime | None = None
    created_by: str | None = None


class GroupMemberData(BaseModel):
    """
    A resolved group member: the user record plus membership provenance.
    """

    user: UserData
    joined_at: datetime | None = None
    created_by: str | None = None


class GroupProjectData(BaseModel):
    group_id: UUID
    project: str


class GroupRoleData(BaseModel):
    group_id: UUID
    role_id: UUID
    project: str
    created_at: datetime | None = None
    created_by: str | None = None


class GroupModelData(GroupData):
    users: list[GroupMemberData] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)


class GroupWithProjectRoleData(GroupModelData):
    role_id: UUID
    added_at: datetime | None = None
