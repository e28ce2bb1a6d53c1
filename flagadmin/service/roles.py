"""
Service layer for roles.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from flagadmin.core.role import RoleType
from flagadmin.core.uuid import UUID
from flagadmin.database.role import Role
from flagadmin.stores.role import RoleNotFound


class RoleExistsError(Exception):
    pass


async def create(
    name: str,
    type: RoleType,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    description: str | None = None,
) -> Role:
    """
    Create a new role.

    Raises
    ------
    RoleExistsError
        If a role with this name already exists.
    """
    log = log.bind(role_name=name, role_type=type)

    role = Role(name=name, type=type, description=description)

    try:
        conn.add(role)
        await conn.flush()
    except IntegrityError as e:
        log = log.bind(error=e)
        await log.ainfo("role.exists")
        raise RoleExistsError(f"Role {name} already exists")

    await log.ainfo("role.created", role_id=role.role_id)

    return role


async def read_by_id(role_id: UUID, conn: AsyncSession) -> Role:
    res = await conn.get(Role, role_id)

    if res is None:
        raise RoleNotFound(f"Role with ID {role_id} not found in the database")

    return res


async def get_role_list(
    conn: AsyncSession, role_type: RoleType | None = None
) -> list[Role]:
    query = select(Role).order_by(Role.name)

    if role_type is not None:
        query = query.where(Role.type == role_type)

    return (await conn.execute(query)).scalars().all()
