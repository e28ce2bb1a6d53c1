"""
SQL implementation of the account store.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flagadmin.core.user import UserData
from flagadmin.core.uuid import UUID
from flagadmin.database.user import User


class SQLAccountStore:
    conn: AsyncSession

    def __init__(self, conn: AsyncSession):
        self.conn = conn

    async def get_all_with_id(self, user_ids: list[UUID]) -> list[UserData]:
        """
        Bulk lookup of users. Unknown ids are skipped.
        """
        if not user_ids:
            return []

        result = await self.conn.execute(
            select(User).where(User.user_id.in_(set(user_ids))).order_by(User.user_name)
        )
        return [user.to_core() for user in result.scalars().all()]
