"""In-memory fabric for tests and offline use.

Responders are registered per topic and answer requests synchronously in the
event loop; every request sent is recorded in order.
"""

from __future__ import annotations

import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from ..domain.exceptions import NoRespondersError, NotConnectedError
from ..domain.models import FabricEvent, FabricRequest, FabricResponse
from ..ports.fabric import EventHandler, FabricPort
from .serialization import object_to_json_payload

ResponderResult = FabricResponse | bytes | str | dict | list
Responder = Callable[[FabricRequest], ResponderResult | Awaitable[ResponderResult]]


class InMemoryFabric(FabricPort):
    """FabricPort backed by plain dictionaries."""

    def __init__(self, connected: bool = True):
        self._connected = connected
        self._responders: dict[str, Responder] = {}
        self._callbacks: dict[str, list[EventHandler]] = defaultdict(list)
        self.requests: list[FabricRequest] = []

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False
        self._callbacks.clear()

    async def is_connected(self) -> bool:
        return self._connected

    def register_responder(self, topic: str, responder: Responder) -> None:
        """Answer requests on ``topic`` with ``responder``.

        The responder may return a FabricResponse, raw bytes, text, or a
        JSON-compatible dict/list; it may also raise to simulate a failure.
        """
        self._responders[topic] = responder

    def unregister_responder(self, topic: str) -> None:
        self._responders.pop(topic, None)

    def requests_to(self, topic: str) -> list[FabricRequest]:
        """Requests sent to ``topic`` so far."""
        return [r for r in self.requests if r.topic == topic]

    @staticmethod
    def _to_response(topic: str, result: Any) -> FabricResponse:
        if isinstance(result, FabricResponse):
            return result
        if isinstance(result, bytes):
            return FabricResponse(topic=topic, payload=result)
        if isinstance(result, str):
            return FabricResponse(topic=topic, payload=result.encode("utf-8"))
        return FabricResponse(topic=topic, payload=object_to_json_payload(result))

    async def request(
        self, request: FabricRequest, timeout: float | None = None
    ) -> FabricResponse:
        if not self._connected:
            raise NotConnectedError(request.topic)
        self.requests.append(request)
        responder = self._responders.get(request.topic)
        if responder is None:
            raise NoRespondersError(
                f"No responders available for request: {request.topic}", topic=request.topic
            )
        result = responder(request)
        if inspect.isawaitable(result):
            result = await result
        return self._to_response(request.topic, result)

    async def add_event_callback(self, topic: str, handler: EventHandler) -> None:
        if not self._connected:
            raise NotConnectedError(topic)
        if handler not in self._callbacks[topic]:
            self._callbacks[topic].append(handler)

    async def remove_event_callback(self, topic: str, handler: EventHandler) -> None:
        handlers = self._callbacks.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)

    def callback_count(self, topic: str) -> int:
        return len(self._callbacks.get(topic, []))

    async def publish_event(self, topic: str, payload: Any) -> int:
        """Deliver an event to every callback on ``topic``.

        Returns:
            Number of callbacks invoked
        """
        if isinstance(payload, bytes):
            body = payload
        elif isinstance(payload, str):
            body = payload.encode("utf-8")
        else:
            body = object_to_json_payload(payload)
        event = FabricEvent(destination_topic=topic, payload=body)
        handlers = list(self._callbacks.get(topic, []))
        for handler in handlers:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        return len(handlers)
