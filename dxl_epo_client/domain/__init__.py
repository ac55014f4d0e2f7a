"""Domain layer - models, value types and pure services of the ePO client."""

from .enums import OutputFormat, ResolutionStatus, ServiceVariant
from .exceptions import (
    AmbiguousServiceError,
    DecodeError,
    DiscoveryError,
    DispatchTransportError,
    EpoClientError,
    FabricConnectionError,
    InvalidArgumentError,
    MessageBusError,
    NoRespondersError,
    NoServiceError,
    NotConnectedError,
    NotFoundError,
    RequestTimeoutError,
    ResolutionError,
    SerializationError,
)
from .models import (
    CommandInvocation,
    FabricEvent,
    FabricRequest,
    FabricResponse,
    IdentifierLookupResult,
    ResolutionState,
    ServiceDescriptor,
    ServiceRegistryResponse,
)
from .patterns import TopicPatterns

__all__ = [
    "AmbiguousServiceError",
    "CommandInvocation",
    "DecodeError",
    "DiscoveryError",
    "DispatchTransportError",
    "EpoClientError",
    "FabricConnectionError",
    "FabricEvent",
    "FabricRequest",
    "FabricResponse",
    "IdentifierLookupResult",
    "InvalidArgumentError",
    "MessageBusError",
    "NoRespondersError",
    "NoServiceError",
    "NotConnectedError",
    "NotFoundError",
    "OutputFormat",
    "RequestTimeoutError",
    "ResolutionError",
    "ResolutionState",
    "ResolutionStatus",
    "SerializationError",
    "ServiceDescriptor",
    "ServiceRegistryResponse",
    "ServiceVariant",
    "TopicPatterns",
]
