"""
Core role data models.
"""

from typing import Literal

from pydantic import BaseModel

from flagadmin.core.uuid import UUID

RoleType = Literal["root", "project", "custom"]


class RoleData(BaseModel):
    role_id: UUID
    name: str
    type: RoleType
    description: str | None = None
