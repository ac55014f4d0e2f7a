"""Fabric interface - Port definition for the DXL message fabric."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from ..domain.models import FabricEvent, FabricRequest, FabricResponse

EventHandler = Callable[[FabricEvent], Awaitable[None] | None]


class FabricPort(ABC):
    """Abstract interface for the publish/subscribe fabric.

    The client only needs single request/single response correlation and
    event callback registration; connection management is exposed so
    adapters can be driven from the same object.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the fabric."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from the fabric."""
        ...

    @abstractmethod
    async def is_connected(self) -> bool:
        """Check if connected to the fabric."""
        ...

    @abstractmethod
    async def request(
        self, request: FabricRequest, timeout: float | None = None
    ) -> FabricResponse:
        """Send a request and wait for its response.

        Args:
            request: Topic and encoded body to send
            timeout: Optional override of the transport's request timeout

        Returns:
            The correlated response

        Raises:
            DispatchTransportError: If the request fails at the transport layer
        """
        ...

    @abstractmethod
    async def add_event_callback(self, topic: str, handler: EventHandler) -> None:
        """Register a handler for events published to ``topic``."""
        ...

    @abstractmethod
    async def remove_event_callback(self, topic: str, handler: EventHandler) -> None:
        """Unregister a handler previously added for ``topic``."""
        ...
