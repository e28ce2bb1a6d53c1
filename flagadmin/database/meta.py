"""
Meta functionality for the database.
"""

from .event import Event
from .group import Group, GroupRole, GroupUser
from .role import Role
from .user import User

ALL_TABLES = (
    Event,
    Group,
    GroupRole,
    GroupUser,
    Role,
    User,
)
