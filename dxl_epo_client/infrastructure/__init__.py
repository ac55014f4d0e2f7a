"""Infrastructure layer - fabric adapters, configuration and helpers."""

from .config import EpoClientConfig, NATSConnectionConfig
from .in_memory_fabric import InMemoryFabric
from .in_memory_metrics import InMemoryMetrics
from .nats_fabric import NATSFabricAdapter
from .simple_logger import SimpleLogger

__all__ = [
    "EpoClientConfig",
    "InMemoryFabric",
    "InMemoryMetrics",
    "NATSConnectionConfig",
    "NATSFabricAdapter",
    "SimpleLogger",
]
