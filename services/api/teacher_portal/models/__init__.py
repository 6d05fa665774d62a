"""Teacher portal database models."""

from teacher_portal.models.event import Event, EventStatus
from teacher_portal.models.user import User

__all__ = [
    "User",
    "Event",
    "EventStatus",
]
