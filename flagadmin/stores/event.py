"""
SQL implementation of the append-only event store.
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flagadmin.core.event import EventData
from flagadmin.database.event import Event


class SQLEventStore:
    conn: AsyncSession

    def __init__(self, conn: AsyncSession):
        self.conn = conn

    async def store(self, event: EventData) -> EventData:
        record = Event(
            type=event.type,
            created_by=event.created_by,
            created_at=event.created_at or datetime.now(tz=timezone.utc),
            data=event.data,
            pre_data=event.pre_data,
        )

        self.conn.add(record)
        await self.conn.flush()

        return record.to_core()

    async def get_all(self, event_type: str | None = None) -> list[EventData]:
        # uuid7 keys are time ordered
        query = select(Event).order_by(Event.event_id)

        if event_type is not None:
            query = query.where(Event.type == event_type)

        result = await self.conn.execute(query)
        return [event.to_core() for event in result.scalars().all()]
