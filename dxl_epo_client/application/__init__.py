"""Application layer - registry lookup, resolution, dispatch and the client."""

from .client import EpoClient
from .command_dispatcher import CommandDispatcher, build_request, decode_response
from .identifier_resolver import IdentifierResolver
from .registry_lookup import ServiceRegistryLookup

__all__ = [
    "CommandDispatcher",
    "EpoClient",
    "IdentifierResolver",
    "ServiceRegistryLookup",
    "build_request",
    "decode_response",
]
