from .checker import SegmentChecker
from .dispatcher import start_playlist_checker
from .models import CheckResult, MonitorPhase, VariantMonitorState
from .monitor import VariantMonitor

__all__ = [
    "CheckResult",
    "MonitorPhase",
    "SegmentChecker",
    "VariantMonitor",
    "VariantMonitorState",
    "start_playlist_checker",
]
