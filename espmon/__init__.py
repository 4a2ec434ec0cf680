"""espmon package: interactive serial monitor with DTR/RTS or GPIO reset."""

from .state import MonitorState
from .monitor import SerialMonitor

__all__ = ["MonitorState", "SerialMonitor"]
