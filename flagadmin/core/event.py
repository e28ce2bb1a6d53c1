"""
Audit events emitted by the service layer.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

GROUP_CREATED = "group-created"
GROUP_UPDATED = "group-updated"


class EventData(BaseModel):
    type: str
    created_by: str | None
    data: dict[str, Any] | None = None
    pre_data: dict[str, Any] | None = None
    created_at: datetime | None = None
