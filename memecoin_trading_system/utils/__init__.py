"""Utility helpers."""

from .clock import Clock, ManualClock, SystemClock
from .helpers import async_retry
from .indicators import mean, peak_to_trough, simple_return
from .scheduler import PeriodicTask, Scheduler

__all__ = [
    'Clock',
    'ManualClock',
    'PeriodicTask',
    'Scheduler',
    'SystemClock',
    'async_retry',
    'mean',
    'peak_to_trough',
    'simple_return',
]
