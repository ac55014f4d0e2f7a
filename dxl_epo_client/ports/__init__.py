"""Port interfaces for the ePO DXL client."""

from .fabric import EventHandler, FabricPort
from .logger import LoggerPort
from .metrics import MetricsPort

__all__ = [
    "EventHandler",
    "FabricPort",
    "LoggerPort",
    "MetricsPort",
]
