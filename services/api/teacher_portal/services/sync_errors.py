"""Error taxonomy and result types for admin portal sync."""

import enum
from dataclasses import dataclass
from typing import Any


class SyncError(Exception):
    """Base class for everything that can go wrong while syncing an event."""


class MappingError(SyncError):
    """A local record cannot be expressed in the admin portal's schema."""


class NotFoundError(SyncError):
    """No local event matches the cross-reference id."""

    def __init__(self, teacher_portal_id: int) -> None:
        super().__init__(f"No local event with id {teacher_portal_id}")
        self.teacher_portal_id = teacher_portal_id


class TransportErrorKind(str, enum.Enum):
    CONNECTION_REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    REMOTE_REJECTED = "remote_rejected"
    UNEXPECTED = "unexpected"


class TransportError(SyncError):
    """A push or probe to the admin portal failed."""

    def __init__(
        self,
        kind: TransportErrorKind,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    @property
    def transient(self) -> bool:
        return self.kind in (TransportErrorKind.CONNECTION_REFUSED, TransportErrorKind.TIMEOUT)

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.kind.value} ({self.status_code}): {self.message}"
        return f"{self.kind.value}: {self.message}"


@dataclass
class SyncResult:
    """Tagged result of a push: either ``remote_event`` or ``error`` is set."""

    remote_event: dict[str, Any] | None = None
    error: TransportError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def remote_id(self) -> str | None:
        if not self.remote_event:
            return None
        value = self.remote_event.get("_id") or self.remote_event.get("id")
        return str(value) if value is not None else None
