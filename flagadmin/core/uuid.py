"""
Identifier creation. uuid7 is time-ordered, so rows sort by creation when
ordered on their primary key. It is not in the standard library before 3.14.
"""

from uuid import UUID as UUID

from uuid_extensions import uuid7 as uuid7

__all__ = ["UUID", "uuid7"]
