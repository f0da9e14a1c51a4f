"""HTTP implementation of NotificationClient."""

import asyncio
from typing import Any, Dict

import httpx
import structlog

from src.core.config import settings
from src.domain.interfaces import NotificationClient

logger = structlog.get_logger(__name__)


class HttpNotificationClient(NotificationClient):
    """
    HTTP client for the notification service.

    Sends fire-and-forget notifications with retry logic and exponential
    backoff. Never raises: delivery failure is reported as False.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        max_retries: int = 3,
    ):
        self._url = url or settings.notifications_url
        self._timeout = timeout or settings.notifications_timeout
        self._max_retries = max_retries

    async def notify(self, user_id: str, event: str, payload: Dict[str, Any]) -> bool:
        """
        Send a notification to a user.

        Uses exponential backoff: 0.1s, 0.2s, 0.4s
        """
        body = {"user_id": user_id, "event": event, "payload": payload}

        for attempt in range(self._max_retries):
            try:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._url, json=body)

                if response.status_code < 400:
                    logger.info(
                        "notification_sent",
                        notification_event=event,
                        user_id=user_id,
                        status_code=response.status_code,
                    )
                    return True

                logger.warning(
                    "notification_failed",
                    notification_event=event,
                    user_id=user_id,
                    status_code=response.status_code,
                    attempt=attempt + 1,
                    response=response.text[:200],
                )

            except httpx.TimeoutException:
                logger.warning(
                    "notification_timeout",
                    notification_event=event,
                    user_id=user_id,
                    attempt=attempt + 1,
                )
            except httpx.HTTPError as e:
                logger.error(
                    "notification_error",
                    notification_event=event,
                    user_id=user_id,
                    attempt=attempt + 1,
                    error=str(e),
                )

            if attempt < self._max_retries - 1:
                await asyncio.sleep(2 ** attempt * 0.1)

        logger.error(
            "notification_exhausted_retries",
            notification_event=event,
            user_id=user_id,
            max_retries=self._max_retries,
        )
        return False
