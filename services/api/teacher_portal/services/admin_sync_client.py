"""HTTP client for the admin portal's event ingestion API."""

import logging
from typing import Any

import httpx

from teacher_portal.config import AdminEndpointConfig, Settings
from teacher_portal.services.sync_errors import SyncResult, TransportError, TransportErrorKind

logger = logging.getLogger(__name__)

SYNC_SOURCE_HEADER = "X-Sync-Source"


class AdminPortalClient:
    """Push events to the admin portal and probe its liveness.

    No method raises: pushes return a ``SyncResult`` and the health probe
    returns a bool.
    """

    def __init__(self, endpoint: AdminEndpointConfig) -> None:
        self._endpoint = endpoint

    @property
    def endpoint(self) -> AdminEndpointConfig:
        return self._endpoint

    async def push_event(self, payload: dict[str, Any]) -> SyncResult:
        """POST a mapped event to ``/api/events/sync``."""
        headers = {
            "Content-Type": "application/json",
            SYNC_SOURCE_HEADER: self._endpoint.source,
        }
        teacher_portal_id = payload.get("teacherPortalId")

        try:
            async with httpx.AsyncClient(timeout=self._endpoint.push_timeout) as client:
                response = await client.post(self._endpoint.sync_url, json=payload, headers=headers)
        except httpx.ConnectError as e:
            logger.warning(
                "Admin portal is not running; event %s kept locally (%s)",
                teacher_portal_id,
                e,
            )
            return SyncResult(error=TransportError(TransportErrorKind.CONNECTION_REFUSED, str(e) or "connection refused"))
        except httpx.TimeoutException as e:
            logger.error("Admin portal sync timed out for event %s", teacher_portal_id)
            return SyncResult(error=TransportError(TransportErrorKind.TIMEOUT, str(e) or "timed out"))
        except Exception as e:
            logger.error("Error sending event %s to admin portal: %s", teacher_portal_id, e)
            return SyncResult(error=TransportError(TransportErrorKind.UNEXPECTED, str(e)))

        return self._interpret_push_response(response, teacher_portal_id)

    def _interpret_push_response(self, response: httpx.Response, teacher_portal_id: Any) -> SyncResult:
        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or "success" not in body:
            logger.error(
                "Admin portal returned unstructured response %d for event %s: %s",
                response.status_code,
                teacher_portal_id,
                response.text[:200],
            )
            return SyncResult(
                error=TransportError(
                    TransportErrorKind.UNEXPECTED,
                    "Unstructured response from admin portal",
                    status_code=response.status_code,
                )
            )

        if not body.get("success"):
            message = body.get("message") or "rejected without a message"
            logger.error("Failed to send event %s to admin portal: %s", teacher_portal_id, message)
            return SyncResult(
                error=TransportError(
                    TransportErrorKind.REMOTE_REJECTED,
                    str(message),
                    status_code=response.status_code,
                )
            )

        if response.status_code >= 400:
            return SyncResult(
                error=TransportError(
                    TransportErrorKind.UNEXPECTED,
                    "Admin portal reported success with an error status",
                    status_code=response.status_code,
                )
            )

        data = body.get("data") or {}
        remote_event = data.get("event") if isinstance(data, dict) else None
        logger.info("Event %s sent to admin portal", teacher_portal_id)
        return SyncResult(remote_event=remote_event or {})

    async def check_health(self) -> bool:
        """Return True only when ``GET /health`` answers 2xx with ``status: healthy``."""
        try:
            async with httpx.AsyncClient(timeout=self._endpoint.health_timeout) as client:
                response = await client.get(self._endpoint.health_url)
            body = response.json()
        except Exception as e:
            logger.debug("Admin portal health probe failed: %s", e)
            return False

        return response.is_success and isinstance(body, dict) and body.get("status") == "healthy"


def get_admin_portal_client(settings: Settings) -> AdminPortalClient:
    return AdminPortalClient(settings.admin_endpoint)
