"""
Builds the SQL-backed store bundle for a session.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from .account import SQLAccountStore
from .base import Stores
from .event import SQLEventStore
from .group import SQLGroupStore
from .role import SQLRoleStore


def sql_stores(conn: AsyncSession) -> Stores:
    return Stores(
        groups=SQLGroupStore(conn=conn),
        events=SQLEventStore(conn=conn),
        accounts=SQLAccountStore(conn=conn),
        roles=SQLRoleStore(conn=conn),
    )
