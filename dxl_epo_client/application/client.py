"""High level client for invoking ePO remote commands over the DXL fabric."""

from __future__ import annotations

import inspect
import os
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from ..domain.constants import EPO_HELP_COMMAND
from ..domain.enums import OutputFormat, ServiceVariant
from ..domain.exceptions import DecodeError, EpoClientError, InvalidArgumentError
from ..domain.models import CommandInvocation, FabricEvent, ResolutionState
from ..infrastructure.config import EpoClientConfig
from ..infrastructure.serialization import json_payload_to_object
from ..ports.fabric import EventHandler, FabricPort
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort
from .command_dispatcher import CommandDispatcher
from .identifier_resolver import IdentifierResolver
from .registry_lookup import ServiceRegistryLookup

ResultCallback = Callable[[EpoClientError | None, Any], Awaitable[None] | None]
ReadyCallback = Callable[[EpoClientError | None], Awaitable[None] | None]
ThreatEventCallback = Callable[[Any, FabricEvent], Awaitable[None] | None]


async def _deliver(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class EpoClient:
    """Invokes ePO remote commands without exposing DXL topics or formats.

    **ePO unique identifier**

    Several ePO servers can share one fabric, but a client talks to exactly
    one. Pass ``epo_unique_id`` to choose it; when only one ePO server is
    registered the identifier may be omitted and is discovered on first use.
    :meth:`lookup_epo_unique_identifiers` lists the servers currently
    registered.

    Resolution also determines whether the server is reached through the
    "commands" service or the legacy "remote" service. It happens lazily on
    the first :meth:`run_command` or :meth:`help` call (or eagerly via
    :meth:`create`) and the outcome is kept for the life of the client.
    Calls made while a resolution is still in flight each perform their own
    lookup; a failed resolution is retried by the next call.

    Example:
        client = EpoClient(fabric)
        systems = await client.run_command("system.find", params={"searchText": "host"})
    """

    def __init__(
        self,
        fabric: FabricPort,
        epo_unique_id: str | None = None,
        *,
        config: EpoClientConfig | None = None,
        logger: LoggerPort | None = None,
        metrics: MetricsPort | None = None,
    ):
        """Initialize the client.

        Args:
            fabric: Fabric used for every request and event subscription
            epo_unique_id: ePO server to target; overrides ``config.epo_unique_id``
            config: Client settings (threat topic, request timeout)
            logger: Optional logger for debug traces
            metrics: Optional metrics collector
        """
        self._config = config or EpoClientConfig()
        self._fabric = fabric
        self._logger = logger
        self._requested_id = epo_unique_id or self._config.epo_unique_id
        self._state = ResolutionState(target_identifier=self._requested_id)

        registry = ServiceRegistryLookup(
            fabric, logger=logger, metrics=metrics, request_timeout=self._config.request_timeout
        )
        self._resolver = IdentifierResolver(registry, logger=logger, metrics=metrics)
        self._dispatcher = CommandDispatcher(
            fabric, logger=logger, metrics=metrics, request_timeout=self._config.request_timeout
        )
        self._threat_handlers: dict[tuple[str, ThreatEventCallback], EventHandler] = {}

    @classmethod
    async def create(
        cls,
        fabric: FabricPort,
        epo_unique_id: str | None = None,
        callback: ReadyCallback | None = None,
        **kwargs: Any,
    ) -> EpoClient:
        """Build a client and resolve its target before returning it.

        Args:
            fabric: Fabric used for every request and event subscription
            epo_unique_id: ePO server to target, or None to discover it
            callback: Invoked with the resolution error, or None once ready.
                When given, resolution errors are not raised.
            **kwargs: Passed to the constructor (config, logger, metrics)

        Raises:
            ResolutionError: If no callback is given and resolution fails
            DiscoveryError: If no callback is given and a registry query fails
        """
        client = cls(fabric, epo_unique_id, **kwargs)
        try:
            await client.resolve()
        except EpoClientError as e:
            if callback is None:
                raise
            await _deliver(callback, e)
        else:
            if callback is not None:
                await _deliver(callback, None)
        return client

    @property
    def epo_unique_id(self) -> str | None:
        """Resolved identifier, or the requested one until resolution succeeds."""
        return self._state.target_identifier or self._requested_id

    @property
    def variant(self) -> ServiceVariant | None:
        return self._state.variant

    @property
    def resolution_state(self) -> ResolutionState:
        return self._state

    @property
    def epo_id_search_status(self) -> str:
        """Human readable outcome of the latest identifier lookup."""
        return self._state.last_error

    async def resolve(self) -> tuple[str, ServiceVariant]:
        """Determine the target identifier and service variant if not yet known.

        Raises:
            ResolutionError: If the target cannot be determined
            DiscoveryError: If a registry query fails
        """
        if not self._state.is_resolved:
            self._state = self._state.begin()
            try:
                if self._requested_id:
                    identifier = self._requested_id
                    variant = await self._resolver.resolve_by_identifier(identifier)
                else:
                    identifier, variant = await self._resolver.resolve_automatic()
            except EpoClientError as e:
                self._state = self._state.fail(e)
                raise
            self._state = self._state.succeed(identifier, variant)

        return self._state.target_identifier, self._state.variant

    @staticmethod
    def _invocation(command_name: str, params: Any, output_format: Any) -> CommandInvocation:
        output_format = (
            OutputFormat.OBJECT if output_format is None else OutputFormat.validate(output_format)
        )
        try:
            return CommandInvocation(
                command_name=command_name, params=params, output_format=output_format
            )
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid remote command invocation: {e}") from e

    async def run_command(
        self,
        command_name: str,
        params: dict[str, Any] | None = None,
        output_format: OutputFormat | str | None = OutputFormat.OBJECT,
        response_callback: ResultCallback | None = None,
    ) -> Any:
        """Invoke an ePO remote command on the server this client targets.

        Args:
            command_name: Name of the remote command (e.g. "system.find")
            params: Parameters for the command
            output_format: How to hand back the response (binary, string or object)
            response_callback: Invoked as ``callback(error, result)``. When
                given, command errors are delivered to it instead of raised.

        Returns:
            The command output in the requested format (None when the
            callback receives an error)

        Raises:
            InvalidArgumentError: Before any request, if an argument is invalid
            EpoClientError: Resolution, transport or decode failures when no
                callback is given

        Example:
            systems = await client.run_command(
                "system.find", params={"searchText": "mySystem"}
            )
        """
        invocation = self._invocation(command_name, params, output_format)
        try:
            identifier, variant = await self.resolve()
            result = await self._dispatcher.invoke(variant, identifier, invocation)
        except EpoClientError as e:
            if response_callback is None:
                raise
            await _deliver(response_callback, e, None)
            return None

        if response_callback is not None:
            await _deliver(response_callback, None, result)
        return result

    async def help(self, callback: ResultCallback | None = None) -> str | None:
        """The remote commands supported by the ePO server, one per line.

        Args:
            callback: Invoked as ``callback(error, help_text)``; when given,
                errors are delivered to it instead of raised.
        """
        try:
            commands = await self.run_command(EPO_HELP_COMMAND, output_format=OutputFormat.OBJECT)
            if not isinstance(commands, list):
                raise DecodeError(
                    f"Expected a list of commands from {EPO_HELP_COMMAND}, "
                    f"got {type(commands).__name__}"
                )
            help_text = os.linesep.join(str(line) for line in commands)
        except EpoClientError as e:
            if callback is None:
                raise
            await _deliver(callback, e, None)
            return None

        if callback is not None:
            await _deliver(callback, None, help_text)
        return help_text

    async def add_threat_event_callback(
        self, callback: ThreatEventCallback, topic: str | None = None
    ) -> None:
        """Receive ePO threat events.

        ``callback`` is invoked with the event body decoded from JSON and the
        original :class:`FabricEvent`.

        Args:
            callback: Receives ``(threat_event, original_event)``
            topic: Threat event topic; defaults to the configured topic
        """
        topic = topic or self._config.threat_event_topic
        key = (topic, callback)
        if key in self._threat_handlers:
            return

        async def handler(event: FabricEvent) -> None:
            payload = json_payload_to_object(event.payload, event.encoding)
            await _deliver(callback, payload, event)

        self._threat_handlers[key] = handler
        await self._fabric.add_event_callback(topic, handler)

    async def remove_threat_event_callback(
        self, callback: ThreatEventCallback, topic: str | None = None
    ) -> None:
        """Stop delivering threat events to ``callback``."""
        topic = topic or self._config.threat_event_topic
        handler = self._threat_handlers.pop((topic, callback), None)
        if handler is not None:
            await self._fabric.remove_event_callback(topic, handler)

    @staticmethod
    async def lookup_epo_unique_identifiers(
        fabric: FabricPort,
        callback: ResultCallback | None = None,
        logger: LoggerPort | None = None,
    ) -> list[str] | None:
        """Unique identifiers of the ePO servers registered with the fabric.

        Args:
            fabric: Fabric to query
            callback: Invoked as ``callback(error, identifiers)``; when given,
                errors are delivered to it instead of raised.
            logger: Optional logger for debug traces

        Returns:
            Sorted identifiers across both service variants

        Raises:
            DiscoveryError: If no callback is given and a registry query fails
        """
        resolver = IdentifierResolver(ServiceRegistryLookup(fabric, logger=logger), logger=logger)
        try:
            result = await resolver.lookup_all_identifiers()
        except EpoClientError as e:
            if callback is None:
                raise
            await _deliver(callback, e, None)
            return None

        if callback is not None:
            await _deliver(callback, None, result.identifiers)
        return result.identifiers
