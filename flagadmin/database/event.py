"""
Append-only audit event log.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from flagadmin.core.event import EventData
from flagadmin.core.uuid import UUID, uuid7


class Event(SQLModel, table=True):
    event_id: UUID = Field(primary_key=True, default_factory=uuid7)

    type: str = Field(index=True)
    created_by: str | None = None
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True)))

    data: dict[str, Any] | None = Field(sa_column=Column(JSON), default=None)
    pre_data: dict[str, Any] | None = Field(sa_column=Column(JSON), default=None)

    def to_core(self) -> EventData:
        return EventData(
            type=self.type,
            created_by=self.created_by,
            data=self.data,
            pre_data=self.pre_data,
            created_at=self.created_at,
        )
