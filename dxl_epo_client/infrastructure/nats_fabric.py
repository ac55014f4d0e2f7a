"""NATS adapter - Concrete implementation of FabricPort."""

from __future__ import annotations

import contextlib
import inspect

import nats
from nats.aio.client import Client as NATSClient
from nats.aio.msg import Msg
from nats.aio.subscription import Subscription
from nats.errors import Error as NATSError
from nats.errors import NoRespondersError as NATSNoRespondersError
from nats.errors import TimeoutError as NATSTimeoutError

from ..domain.exceptions import (
    DispatchTransportError,
    FabricConnectionError,
    NoRespondersError,
    NotConnectedError,
    RequestTimeoutError,
)
from ..domain.models import FabricEvent, FabricRequest, FabricResponse
from ..ports.fabric import EventHandler, FabricPort
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort
from .config import NATSConnectionConfig
from .in_memory_metrics import InMemoryMetrics

# Headers set by NATS micro services on error replies
SERVICE_ERROR_HEADER = "Nats-Service-Error"
SERVICE_ERROR_CODE_HEADER = "Nats-Service-Error-Code"


def charset_from_headers(headers: dict[str, str] | None, default: str = "utf-8") -> str:
    """Text encoding named by a ``Content-Type: ...; charset=...`` header."""
    if not headers:
        return default
    content_type = headers.get("Content-Type", "")
    for part in content_type.split(";")[1:]:
        key, _, value = part.strip().partition("=")
        if key.lower() == "charset" and value:
            return value.strip().strip('"')
    return default


class NATSFabricAdapter(FabricPort):
    """NATS implementation of the fabric port.

    DXL topics are used verbatim as NATS subjects.
    """

    def __init__(
        self,
        config: NATSConnectionConfig | None = None,
        metrics: MetricsPort | None = None,
        logger: LoggerPort | None = None,
    ):
        """Initialize the adapter.

        Args:
            config: Connection configuration. If not provided, uses defaults.
            metrics: Optional metrics port. If not provided, uses in-memory metrics.
            logger: Optional logger for connection diagnostics
        """
        self._config = config or NATSConnectionConfig()
        self._metrics = metrics or InMemoryMetrics()
        self._logger = logger
        self._nc: NATSClient | None = None
        self._subscriptions: dict[tuple[str, EventHandler], Subscription] = {}

    async def connect(self) -> None:
        """Connect to the configured NATS servers."""
        try:
            self._nc = await nats.connect(**self._config.to_connection_params())
        except Exception as e:
            raise FabricConnectionError(
                f"Failed to connect to fabric at {', '.join(self._config.servers)}: {e}"
            ) from e
        self._metrics.gauge("fabric.connected", 1)
        if self._logger:
            self._logger.info("Connected to fabric", servers=",".join(self._config.servers))

    async def disconnect(self) -> None:
        """Drop subscriptions and close the connection."""
        if self._nc is None:
            return
        for subscription in list(self._subscriptions.values()):
            # The connection may already be closed underneath us
            with contextlib.suppress(NATSError):
                await subscription.unsubscribe()
        self._subscriptions.clear()
        if not self._nc.is_closed:
            await self._nc.close()
        self._nc = None
        self._metrics.gauge("fabric.connected", 0)
        self._metrics.gauge("fabric.subscriptions", 0)

    async def is_connected(self) -> bool:
        """Check if connected to NATS."""
        return self._nc is not None and self._nc.is_connected

    def _connection(self, topic: str | None = None) -> NATSClient:
        if self._nc is None or not self._nc.is_connected:
            raise NotConnectedError(topic)
        return self._nc

    async def request(
        self, request: FabricRequest, timeout: float | None = None
    ) -> FabricResponse:
        """Send a request and wait for the single correlated reply."""
        nc = self._connection(request.topic)
        wait = timeout if timeout is not None else self._config.request_timeout

        with self._metrics.timer("fabric.request"):
            try:
                msg = await nc.request(request.topic, request.payload, timeout=wait)
            except NATSNoRespondersError as e:
                self._metrics.increment("fabric.request.no_responders")
                raise NoRespondersError(
                    f"No responders available for request: {request.topic}", topic=request.topic
                ) from e
            except NATSTimeoutError as e:
                self._metrics.increment("fabric.request.timeout")
                raise RequestTimeoutError(
                    f"Timeout waiting for response to request: {request.topic}",
                    topic=request.topic,
                ) from e
            except Exception as e:
                self._metrics.increment("fabric.request.error")
                raise DispatchTransportError(
                    f"Request to {request.topic} failed: {e}", topic=request.topic
                ) from e

        headers = dict(msg.headers or {})
        if SERVICE_ERROR_HEADER in headers:
            self._metrics.increment("fabric.request.error_reply")
            code = headers.get(SERVICE_ERROR_CODE_HEADER)
            raise DispatchTransportError(
                headers[SERVICE_ERROR_HEADER],
                code=int(code) if code and code.lstrip("-").isdigit() else None,
                topic=request.topic,
            )

        self._metrics.increment("fabric.request.success")
        return FabricResponse(
            topic=request.topic,
            payload=msg.data,
            encoding=charset_from_headers(headers),
            headers=headers,
        )

    async def add_event_callback(self, topic: str, handler: EventHandler) -> None:
        """Subscribe ``handler`` to events on ``topic``."""
        nc = self._connection(topic)
        key = (topic, handler)
        if key in self._subscriptions:
            return

        async def wrapper(msg: Msg) -> None:
            event = FabricEvent(
                destination_topic=msg.subject,
                payload=msg.data,
                encoding=charset_from_headers(msg.headers),
            )
            result = handler(event)
            if inspect.isawaitable(result):
                await result
            self._metrics.increment("fabric.events.delivered")

        try:
            self._subscriptions[key] = await nc.subscribe(topic, cb=wrapper)
        except Exception as e:
            raise DispatchTransportError(
                f"Failed to subscribe to {topic}: {e}", topic=topic
            ) from e
        self._metrics.gauge("fabric.subscriptions", len(self._subscriptions))

    async def remove_event_callback(self, topic: str, handler: EventHandler) -> None:
        """Unsubscribe ``handler`` from ``topic``; unknown handlers are ignored."""
        subscription = self._subscriptions.pop((topic, handler), None)
        if subscription is None:
            return
        try:
            await subscription.unsubscribe()
        except Exception as e:
            raise DispatchTransportError(
                f"Failed to unsubscribe from {topic}: {e}", topic=topic
            ) from e
        finally:
            self._metrics.gauge("fabric.subscriptions", len(self._subscriptions))
