"""Resolution of the target ePO server and its service variant."""

from __future__ import annotations

from ..domain.enums import ServiceVariant
from ..domain.exceptions import AmbiguousServiceError, NoServiceError, NotFoundError
from ..domain.models import IdentifierLookupResult
from ..domain.services import IdentifierExtractionService
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort
from .registry_lookup import ServiceRegistryLookup


class IdentifierResolver:
    """Combines registry lookups across the "remote" and "commands" variants.

    The legacy "remote" service is always queried first and takes precedence
    when both variants advertise the same server.
    """

    def __init__(
        self,
        registry: ServiceRegistryLookup,
        logger: LoggerPort | None = None,
        metrics: MetricsPort | None = None,
    ):
        self._registry = registry
        self._logger = logger
        self._metrics = metrics

    async def _ids(self, variant: ServiceVariant) -> list[str]:
        service_type = IdentifierExtractionService.service_type_for(variant)
        return await self._registry.lookup_service_ids(service_type)

    async def lookup_all_identifiers(self) -> IdentifierLookupResult:
        """All ePO identifiers on the fabric, sorted, with the variant hint.

        A failed "remote" lookup is raised straight away without querying
        the "commands" variant.

        Raises:
            DiscoveryError: If either registry query fails
        """
        remote_ids = await self._ids(ServiceVariant.REMOTE)
        commands_ids = await self._ids(ServiceVariant.COMMANDS)
        result = IdentifierExtractionService.merge(remote_ids, commands_ids)
        if self._logger:
            self._logger.debug(
                "Looked up ePO identifiers",
                remote=len(remote_ids),
                commands=len(commands_ids),
                variant=result.variant.value,
            )
        return result

    async def resolve_by_identifier(self, identifier: str) -> ServiceVariant:
        """The service variant registered for a caller supplied identifier.

        Raises:
            DiscoveryError: If a registry query fails
            NotFoundError: If neither variant advertises ``identifier``
        """
        for variant in (ServiceVariant.REMOTE, ServiceVariant.COMMANDS):
            if identifier in await self._ids(variant):
                self._resolved(identifier, variant)
                return variant
        self._count("resolution.not_found")
        raise NotFoundError(identifier)

    async def resolve_automatic(self) -> tuple[str, ServiceVariant]:
        """The only ePO server on the fabric and its variant.

        Raises:
            DiscoveryError: If a registry query fails
            NoServiceError: If no ePO service is registered
            AmbiguousServiceError: If more than one ePO server is registered
        """
        result = await self.lookup_all_identifiers()
        if not result.identifiers:
            self._count("resolution.no_service")
            raise NoServiceError()
        if len(result.identifiers) > 1:
            self._count("resolution.ambiguous")
            raise AmbiguousServiceError(result.identifiers)
        identifier = result.identifiers[0]
        self._resolved(identifier, result.variant)
        return identifier, result.variant

    def _resolved(self, identifier: str, variant: ServiceVariant) -> None:
        self._count("resolution.success")
        if self._logger:
            self._logger.debug(
                "Resolved ePO service", epo_unique_id=identifier, variant=variant.value
            )

    def _count(self, name: str) -> None:
        if self._metrics:
            self._metrics.increment(name)
