"""Routing of remote command invocations to the resolved ePO service."""

from __future__ import annotations

from typing import Any

from ..domain.constants import REMOTE_OUTPUT_FORMAT_JSON
from ..domain.enums import OutputFormat, ServiceVariant
from ..domain.exceptions import DecodeError, DispatchTransportError, SerializationError
from ..domain.models import CommandInvocation, FabricRequest, FabricResponse
from ..domain.patterns import TopicPatterns
from ..infrastructure.serialization import (
    decode_payload,
    json_payload_to_object,
    object_to_json_payload,
)
from ..ports.fabric import FabricPort
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort


def build_request(
    variant: ServiceVariant, epo_unique_id: str, invocation: CommandInvocation
) -> FabricRequest:
    """Topic and payload for ``invocation`` in the shape ``variant`` expects.

    The "commands" service takes the parameters as the whole body; the
    legacy "remote" service takes an envelope and is always asked for JSON.
    """
    if variant == ServiceVariant.COMMANDS:
        return FabricRequest(
            topic=TopicPatterns.commands_request(epo_unique_id, invocation.command_name),
            payload=object_to_json_payload(invocation.params),
        )
    if variant == ServiceVariant.REMOTE:
        return FabricRequest(
            topic=TopicPatterns.remote_request(epo_unique_id),
            payload=object_to_json_payload(
                {
                    "command": invocation.command_name,
                    "output": REMOTE_OUTPUT_FORMAT_JSON,
                    "params": invocation.params,
                }
            ),
        )
    raise ValueError(f"Unsupported service variant: {variant}")


def decode_response(response: FabricResponse, output_format: OutputFormat) -> Any:
    """Hand back a response body in the caller's requested output format.

    Raises:
        DecodeError: If the body cannot be decoded as text or parsed as JSON
    """
    try:
        if output_format == OutputFormat.BINARY:
            return response.payload
        if output_format == OutputFormat.STRING:
            return decode_payload(response.payload, response.encoding)
        if output_format == OutputFormat.OBJECT:
            return json_payload_to_object(response.payload, response.encoding)
    except SerializationError as e:
        raise DecodeError(
            f"Failed to decode response from {response.topic or 'ePO'} as "
            f"{output_format.value}: {e}",
            details={"topic": response.topic, "output_format": output_format.value},
        ) from e
    raise ValueError(f"Unsupported output format: {output_format}")


class CommandDispatcher:
    """Sends remote commands to an already resolved ePO server.

    Each invocation is independent; the dispatcher holds no session state.
    """

    def __init__(
        self,
        fabric: FabricPort,
        logger: LoggerPort | None = None,
        metrics: MetricsPort | None = None,
        request_timeout: float | None = None,
    ):
        self._fabric = fabric
        self._logger = logger
        self._metrics = metrics
        self._request_timeout = request_timeout

    async def invoke(
        self,
        variant: ServiceVariant,
        epo_unique_id: str,
        invocation: CommandInvocation,
    ) -> Any:
        """Run ``invocation`` on ``epo_unique_id`` and decode the response.

        Raises:
            DispatchTransportError: Passed through unchanged from the fabric
            DecodeError: If the response does not decode to the requested format
        """
        request = build_request(variant, epo_unique_id, invocation)
        if self._logger:
            self._logger.debug(
                "Dispatching ePO command",
                command=invocation.command_name,
                topic=request.topic,
                variant=variant.value,
            )
        try:
            response = await self._fabric.request(request, timeout=self._request_timeout)
        except DispatchTransportError:
            self._count(f"dispatch.{variant.value}.transport_error")
            raise

        try:
            result = decode_response(response, invocation.output_format)
        except DecodeError:
            self._count(f"dispatch.{variant.value}.decode_error")
            raise
        self._count(f"dispatch.{variant.value}.success")
        return result

    def _count(self, name: str) -> None:
        if self._metrics:
            self._metrics.increment(name)
