"""Domain services for turning registry descriptors into ePO identifiers.

These are pure functions with no I/O; the application layer feeds them the
descriptors returned by a registry query.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from .constants import (
    EPO_COMMANDS_SERVICE_TYPE,
    EPO_GUID_METADATA_KEY,
    EPO_REMOTE_SERVICE_TYPE,
)
from .enums import ServiceVariant
from .models import IdentifierLookupResult, ServiceDescriptor
from .patterns import TopicPatterns

IdentifierExtractor = Callable[[ServiceDescriptor], list[str]]


def unique_identifiers(identifiers: Iterable[str]) -> list[str]:
    """Drop duplicates and empty values, keeping first-seen order."""
    return list(dict.fromkeys(i for i in identifiers if i))


def commands_identifiers(descriptor: ServiceDescriptor) -> list[str]:
    """The ePO GUID advertised in a "commands" service's metadata."""
    guid = descriptor.metadata.get(EPO_GUID_METADATA_KEY)
    if isinstance(guid, str) and guid:
        return [guid]
    return []


def remote_identifiers(descriptor: ServiceDescriptor) -> list[str]:
    """Identifiers taken from a "remote" service's request channel suffixes."""
    found = []
    for channel in descriptor.request_channels:
        epo_id = TopicPatterns.remote_id_from_channel(channel)
        if epo_id:
            found.append(epo_id)
    return found


class IdentifierExtractionService:
    """Selects and applies the extraction strategy for a service type."""

    _EXTRACTORS: dict[str, IdentifierExtractor] = {
        EPO_COMMANDS_SERVICE_TYPE: commands_identifiers,
        EPO_REMOTE_SERVICE_TYPE: remote_identifiers,
    }

    _SERVICE_TYPES: dict[ServiceVariant, str] = {
        ServiceVariant.COMMANDS: EPO_COMMANDS_SERVICE_TYPE,
        ServiceVariant.REMOTE: EPO_REMOTE_SERVICE_TYPE,
    }

    @classmethod
    def service_type_for(cls, variant: ServiceVariant) -> str:
        return cls._SERVICE_TYPES[variant]

    @classmethod
    def extract(
        cls, service_type: str, descriptors: Iterable[ServiceDescriptor]
    ) -> list[str]:
        """Unique identifiers advertised by ``descriptors`` of ``service_type``.

        Raises:
            ValueError: If no strategy exists for the service type
        """
        extractor = cls._EXTRACTORS.get(service_type)
        if extractor is None:
            raise ValueError(f"Unsupported service type: {service_type}")
        return unique_identifiers(
            epo_id for descriptor in descriptors for epo_id in extractor(descriptor)
        )

    @staticmethod
    def merge(remote_ids: list[str], commands_ids: list[str]) -> IdentifierLookupResult:
        """Union both variants' identifiers, sorted, with the variant hint.

        The legacy "remote" service wins whenever it is present so it is never
        shadowed by a "commands" registration for the same server.
        """
        merged = sorted(set(remote_ids) | set(commands_ids))
        variant = ServiceVariant.REMOTE if remote_ids else ServiceVariant.COMMANDS
        return IdentifierLookupResult(identifiers=merged, variant=variant)
