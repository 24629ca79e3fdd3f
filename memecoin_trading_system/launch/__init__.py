"""Launch detection and performance monitoring."""

from .analysis import LaunchOutcome, analyze_launch, first_quarter_momentum
from .detector import LaunchDetector
from .monitor import PerformanceMonitor
from .tracking import Snapshot, TrackedLaunch, TrackingArena

__all__ = [
    'LaunchDetector',
    'LaunchOutcome',
    'PerformanceMonitor',
    'Snapshot',
    'TrackedLaunch',
    'TrackingArena',
    'analyze_launch',
    'first_quarter_momentum',
]
