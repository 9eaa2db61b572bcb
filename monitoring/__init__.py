# PATH: monitoring/__init__.py
"""
Monitoring package: failure logging and paging.
"""

from monitoring.alerts import (
    AlertSender,
    FailureAlertDispatcher,
    format_failure_message,
)
from monitoring.pager_duty import PagerDutyClient

__all__ = [
    "AlertSender",
    "FailureAlertDispatcher",
    "PagerDutyClient",
    "format_failure_message",
]
