"""
dxl-epo-client - ePO remote commands over the DXL fabric.

A high level asyncio client that discovers the ePO service registered on the
fabric, resolves the target server and invokes remote commands without
callers handling DXL topics or message formats.
"""

__version__ = "0.1.0"

from .application.client import EpoClient
from .domain.constants import EPO_THREAT_EVENT_TOPIC
from .domain.enums import OutputFormat, ServiceVariant
from .domain.exceptions import (
    AmbiguousServiceError,
    DecodeError,
    DiscoveryError,
    DispatchTransportError,
    EpoClientError,
    InvalidArgumentError,
    NoServiceError,
    NotFoundError,
)
from .infrastructure.config import EpoClientConfig, NATSConnectionConfig
from .infrastructure.nats_fabric import NATSFabricAdapter

__all__ = [
    "EPO_THREAT_EVENT_TOPIC",
    "AmbiguousServiceError",
    "DecodeError",
    "DiscoveryError",
    "DispatchTransportError",
    "EpoClient",
    "EpoClientConfig",
    "EpoClientError",
    "InvalidArgumentError",
    "NATSConnectionConfig",
    "NATSFabricAdapter",
    "NoServiceError",
    "NotFoundError",
    "OutputFormat",
    "ServiceVariant",
]
