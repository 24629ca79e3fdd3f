"""Monitoring, notification and status helpers."""

from .logger import configure_logging
from .notifications import LAUNCH_DETECTED, LAUNCH_TRADE_EXECUTED, Notification, NotificationCenter
from .status import StatusBoard

__all__ = [
    'LAUNCH_DETECTED',
    'LAUNCH_TRADE_EXECUTED',
    'Notification',
    'NotificationCenter',
    'StatusBoard',
    'configure_logging',
]
