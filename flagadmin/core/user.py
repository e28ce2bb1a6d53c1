"""
A shared user (account) object.
"""

from datetime import datetime

from pydantic import BaseModel

from flagadmin.core.uuid import UUID


class UserData(BaseModel):
    user_id: UUID
    user_name: str
    name: str | None = None
    email: str | None = None
    created_at: datetime | None = None
