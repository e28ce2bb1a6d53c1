"""
Role ORM. Roles are either instance-wide (`root`) or scoped to a project.
"""

from sqlmodel import Field, SQLModel

from flagadmin.core.role import RoleData
from flagadmin.core.uuid import UUID, uuid7


class Role(SQLModel, table=True):
    role_id: UUID = Field(primary_key=True, default_factory=uuid7)

    name: str = Field(unique=True)
    type: str = Field(default="custom")
    description: str | None = None

    def to_core(self) -> RoleData:
        return RoleData(
            role_id=self.role_id,
            name=self.name,
            type=self.type,
            description=self.description,
        )
