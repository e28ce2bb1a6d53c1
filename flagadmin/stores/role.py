"""
SQL implementation of the role store.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from flagadmin.core.role import RoleData
from flagadmin.core.uuid import UUID
from flagadmin.database.role import Role


class RoleNotFound(Exception):
    pass


class SQLRoleStore:
    conn: AsyncSession

    def __init__(self, conn: AsyncSession):
        self.conn = conn

    async def get(self, role_id: UUID) -> RoleData:
        role = await self.conn.get(Role, role_id)

        if role is None:
            raise RoleNotFound(f"Role with ID {role_id} not found in the database")

        return role.to_core()
