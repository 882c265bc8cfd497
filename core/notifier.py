"""
Failure notifications for pipeline stages.

Stages call ``notify(stage_name)`` when they give up. Delivery is a single
webhook POST; a notifier that cannot deliver only logs, so a broken channel
never masks the stage failure that triggered it.
"""

import asyncio
import httpx
from typing import Optional
from datetime import datetime, timezone
from core.config import settings
import logging

logger = logging.getLogger(__name__)


class FailureNotifier:
    """
    Post stage failure alerts to a webhook.
    
    Attributes:
        webhook_url: Target URL; when unset notifications are only logged
        timeout: Request timeout in seconds
    """
    
    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.webhook_url = webhook_url if webhook_url is not None else settings.NOTIFY_WEBHOOK_URL
        self.timeout = timeout if timeout is not None else settings.NOTIFY_TIMEOUT_SECONDS
    
    async def notify(self, stage_name: str, timestamp: Optional[datetime] = None) -> bool:
        """
        Send a failure alert for a stage.
        
        Args:
            stage_name: Label of the failed stage (Extraction, Transformation, Loading)
            timestamp: When the failure happened (defaults to now, UTC)
        
        Returns:
            True if the webhook accepted the alert, False otherwise
        """
        timestamp = timestamp or datetime.now(timezone.utc)
        payload = {
            "stage": stage_name,
            "timestamp": timestamp.isoformat(),
            "environment": settings.ENVIRONMENT,
            "text": f"ETL pipeline failed during {stage_name} at {timestamp.isoformat()}",
        }
        
        logger.error(f"ETL failure in stage '{stage_name}' at {timestamp.isoformat()}")
        
        if not self.webhook_url:
            logger.warning("NOTIFY_WEBHOOK_URL not configured; failure alert not delivered")
            return False
        
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
            logger.info(f"Failure alert for '{stage_name}' delivered")
            return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to deliver failure alert for '{stage_name}': {str(e)}")
            return False


notifier = FailureNotifier()

# Strong references so scheduled alerts are not garbage collected mid-flight
_pending_alerts = set()


async def notify(stage_name: str, timestamp: Optional[datetime] = None) -> bool:
    """Send a failure alert through the process-wide notifier"""
    return await notifier.notify(stage_name, timestamp)


def notify_nowait(stage_name: str, timestamp: Optional[datetime] = None) -> None:
    """
    Schedule a failure alert from synchronous code.

    Needs a running event loop; without one the failure is only logged.
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.error(f"ETL failure in stage '{stage_name}' at {timestamp.isoformat()} (no event loop, alert not sent)")
        return

    task = loop.create_task(notifier.notify(stage_name, timestamp))
    _pending_alerts.add(task)
    task.add_done_callback(_pending_alerts.discard)
