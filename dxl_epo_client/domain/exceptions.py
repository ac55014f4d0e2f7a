"""Domain-specific exceptions for the ePO DXL client."""


class EpoClientError(Exception):
    """Base exception for all ePO DXL client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DiscoveryError(EpoClientError):
    """Service registry query failed or returned an unreadable response."""

    def __init__(self, message: str, service_type: str | None = None):
        super().__init__(message)
        self.service_type = service_type
        if service_type:
            self.details["service_type"] = service_type


class ResolutionError(EpoClientError):
    """Base exception for failures to determine the target ePO server."""

    pass


class NoServiceError(ResolutionError):
    """No ePO services are registered with the fabric."""

    def __init__(self):
        super().__init__("No ePO DXL services are registered with the DXL fabric")


class AmbiguousServiceError(ResolutionError):
    """More than one ePO server is registered and none was specified."""

    def __init__(self, identifiers: list[str]):
        super().__init__(
            "Multiple ePO DXL services are registered with the DXL fabric "
            f"({', '.join(identifiers)}). "
            "A specific ePO unique identifier must be specified.",
            details={"identifiers": list(identifiers)},
        )
        self.identifiers = list(identifiers)


class NotFoundError(ResolutionError):
    """The requested ePO unique identifier is not registered with the fabric."""

    def __init__(self, identifier: str):
        super().__init__(
            f"No ePO DXL services are registered with the DXL fabric for id: {identifier}",
            details={"identifier": identifier},
        )
        self.identifier = identifier


class InvalidArgumentError(EpoClientError, TypeError):
    """An argument was rejected before any request was sent."""

    pass


class DecodeError(EpoClientError):
    """A response payload could not be decoded into the requested output."""

    pass


class MessageBusError(EpoClientError):
    """Fabric communication errors."""

    pass


class SerializationError(MessageBusError):
    """Serialization/deserialization errors."""

    pass


class FabricConnectionError(MessageBusError):
    """Connecting to the fabric failed."""

    pass


class DispatchTransportError(MessageBusError):
    """A request failed at the transport layer."""

    def __init__(self, message: str, code: int | None = None, topic: str | None = None):
        super().__init__(message)
        self.code = code
        self.topic = topic
        if code is not None:
            self.details["code"] = code
        if topic:
            self.details["topic"] = topic


class NotConnectedError(DispatchTransportError):
    """A request was attempted without a fabric connection."""

    def __init__(self, topic: str | None = None):
        super().__init__("Not connected to the DXL fabric", topic=topic)


class RequestTimeoutError(DispatchTransportError):
    """No response arrived before the transport timeout."""

    pass


class NoRespondersError(DispatchTransportError):
    """Nothing on the fabric is listening on the request topic."""

    pass
