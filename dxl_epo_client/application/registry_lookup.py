"""Service registry queries for ePO service registrations."""

from __future__ import annotations

from ..domain.exceptions import DiscoveryError, MessageBusError, SerializationError
from ..domain.models import FabricRequest, ServiceDescriptor, ServiceRegistryResponse
from ..domain.patterns import TopicPatterns
from ..domain.services import IdentifierExtractionService
from ..infrastructure.serialization import json_payload_to_model, object_to_json_payload
from ..ports.fabric import FabricPort
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort


class ServiceRegistryLookup:
    """Queries the fabric's service registry.

    Every call sends one request; nothing is cached, so callers always see
    the live registry.
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

    async def query_services(self, service_type: str) -> list[ServiceDescriptor]:
        """Registered service instances of ``service_type``.

        Returns:
            Descriptors in registry order; empty when none are registered

        Raises:
            DiscoveryError: If the query fails or its response cannot be read
        """
        request = FabricRequest(
            topic=TopicPatterns.registry_query(),
            payload=object_to_json_payload({"serviceType": service_type}),
        )
        try:
            response = await self._fabric.request(request, timeout=self._request_timeout)
        except MessageBusError as e:
            self._count("registry.query.transport_error")
            raise DiscoveryError(
                f"Service registry query failed for {service_type}: {e}",
                service_type=service_type,
            ) from e

        try:
            body = json_payload_to_model(
                response.payload, ServiceRegistryResponse, encoding=response.encoding
            )
        except SerializationError as e:
            self._count("registry.query.decode_error")
            raise DiscoveryError(
                f"Unreadable service registry response for {service_type}: {e}",
                service_type=service_type,
            ) from e

        descriptors = body.descriptors()
        self._count("registry.query.success")
        if self._logger:
            self._logger.debug(
                "Queried service registry",
                service_type=service_type,
                count=len(descriptors),
            )
        return descriptors

    async def lookup_service_ids(self, service_type: str) -> list[str]:
        """Unique ePO identifiers advertised by services of ``service_type``.

        Raises:
            DiscoveryError: If the query fails or its response cannot be read
        """
        descriptors = await self.query_services(service_type)
        return IdentifierExtractionService.extract(service_type, descriptors)

    def _count(self, name: str) -> None:
        if self._metrics:
            self._metrics.increment(name)
