# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Notification client, pushes planning changes to the
notification-service so open dashboards can refresh.
"""

import httpx

from telework_planner.core.config import settings
from telework_planner.core.logging import get_logger
from telework_planner.metrics.prometheus import NOTIFICATIONS_SENT

logger = get_logger(__name__)


class NotificationClient:
    """Fire-and-forget change notifications via notification-service."""

    def __init__(self, enabled: bool | None = None) -> None:
        self._enabled = settings.NOTIFY_ON_CHANGE if enabled is None else enabled

    def send(
        self,
        message: str,
        week_key: str = "all",
        channel: str = "mock",
        recipient: str | None = None,
    ) -> None:
        """Send a notification. Failures are logged but never raised."""
        if not self._enabled:
            return
        target = recipient or settings.NOTIFICATION_RECIPIENT
        try:
            with httpx.Client(timeout=settings.NOTIFICATION_TIMEOUT) as client:
                resp = client.post(
                    f"{settings.NOTIFICATION_SERVICE_URL}/api/v1/notify",
                    json={
                        "channel": channel,
                        "recipient": target,
                        "message": message,
                        "incident_id": week_key,
                        "metadata": {"source": settings.SERVICE_NAME},
                    },
                )
            NOTIFICATIONS_SENT.labels(channel=channel).inc()
            logger.info(
                "Notification sent: week=%s, channel=%s, status=%d",
                week_key,
                channel,
                resp.status_code,
            )
        except Exception as exc:
            logger.warning("Notification failed: %s", exc)
