"""
Service layer for user accounts.
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from flagadmin.core.user import UserData
from flagadmin.core.uuid import UUID
from flagadmin.database.user import User


class UserNotFound(Exception):
    pass


class UserExistsError(Exception):
    pass


def normalize_user_name(user_name: str) -> str:
    return user_name.strip().lower().replace(" ", "_")


async def create(
    user_name: str,
    email: str | None,
    name: str | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> User:
    """
    Creates a user.

    Raises
    ------
    UserExistsError
        If a user with this (normalized) user name already exists.
    """
    user_name = normalize_user_name(user_name)

    log = log.bind(user_name=user_name, email=email)

    user = User(
        user_name=user_name,
        email=email,
        name=name,
        created_at=datetime.now(timezone.utc),
    )

    try:
        conn.add(user)
        await conn.flush()
    except IntegrityError as e:
        log = log.bind(error=e)
        await log.ainfo("user.create.exists")
        raise UserExistsError(f"User with user name {user_name} already exists")

    log = log.bind(user_id=user.user_id)
    await log.ainfo("user.created")

    return user


async def read_by_id(user_id: UUID, conn: AsyncSession) -> User:
    res = await conn.get(User, user_id)

    if res is None:
        raise UserNotFound(f"User with ID {user_id} not found in the database")

    return res


async def read_by_name(user_name: str, conn: AsyncSession) -> User:
    user_name = normalize_user_name(user_name)

    query = select(User).filter(User.user_name == user_name)
    res = (await conn.execute(query)).scalar_one_or_none()

    if res is None:
        raise UserNotFound(f"User with name {user_name} not found in the database")

    return res


async def get_user_list(conn: AsyncSession) -> list[UserData]:
    """
    Get a list of all users registered to the system.
    """
    query = select(User).order_by(User.user_name)
    res = (await conn.execute(query)).scalars().all()
    return [u.to_core() for u in res]


async def delete(user_name: str, conn: AsyncSession, log: FilteringBoundLogger):
    """
    Deletes the user. Their group memberships go with them.
    """
    user = await read_by_name(user_name=user_name, conn=conn)

    log = log.bind(user_id=user.user_id, user_name=user.user_name)

    await conn.delete(user)
    await conn.flush()

    await log.ainfo("user.deleted")
