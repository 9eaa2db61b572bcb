"""
monitoring/alerts.py - Failure-to-alert pipeline.

Every pipeline failure is logged. When a routing key is configured, one
page is attempted as well; a failed page is logged once and dropped.
"""

from typing import Optional, Protocol

from config import AlertConfig
from core.exceptions import AlertDeliveryError
from core.logging import get_logger
from monitoring.pager_duty import PagerDutyClient

logger = get_logger(__name__)


class AlertSender(Protocol):
    async def send_alert(self, message: str, routing_key: str) -> None: ...


def format_failure_message(block_number: int, error: BaseException) -> str:
    return f"Error handling block {block_number}: {error}"


class FailureAlertDispatcher:
    """Routes per-block failures to the log and, optionally, the pager."""

    def __init__(self, config: AlertConfig, sender: Optional[AlertSender] = None):
        self.config = config
        self.sender = sender
        if config.enabled and sender is None:
            self.sender = PagerDutyClient(source=config.source)

    async def dispatch(self, block_number: int, error: BaseException) -> None:
        message = format_failure_message(block_number, error)
        context = {"block_number": block_number, "error": str(error)}
        code = getattr(error, "code", None)
        if code is not None:
            context["error_code"] = code.value
        logger.error(message, extra={"context": context})

        if not self.config.enabled:
            return

        try:
            await self.sender.send_alert(message, self.config.routing_key)
        except AlertDeliveryError as e:
            logger.error(
                f"Failed to send alert for block {block_number}: {e}",
                extra={"context": {"block_number": block_number}},
            )
        except Exception as e:
            logger.error(
                f"Failed to send alert for block {block_number}: {e!r}",
                extra={"context": {"block_number": block_number}},
            )

    async def close(self) -> None:
        close = getattr(self.sender, "close", None)
        if close is not None:
            await close()
