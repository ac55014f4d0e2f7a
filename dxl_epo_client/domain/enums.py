"""Domain enums for type safety and consistency.

This module centralizes the enumeration types used across the client,
ensuring type safety and preventing string literal errors.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from .exceptions import InvalidArgumentError


class OutputFormat(str, Enum):
    """How a remote command response payload is handed back to the caller.

    The legacy "remote" service is always asked for JSON; the output format
    only controls how this client decodes the response body.
    """

    BINARY = "binary"  # Raw payload bytes
    STRING = "string"  # Payload decoded to text
    OBJECT = "object"  # Payload decoded to text and parsed as JSON

    @classmethod
    def validate(cls, value: Any) -> OutputFormat:
        """Return the member for ``value`` or raise if it is not recognized.

        Raises:
            InvalidArgumentError: If the format is not binary, string or object
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgumentError(f"Invalid output format: {value}") from None


class ServiceVariant(str, Enum):
    """Wire protocol shapes for reaching the ePO command execution service."""

    COMMANDS = "commands"  # /mcafee/service/epo/commands
    REMOTE = "remote"  # Legacy /mcafee/service/epo/remote


class ResolutionStatus(str, Enum):
    """State of the target ePO resolution held by a client."""

    UNRESOLVED = "UNRESOLVED"  # Nothing known yet
    RESOLVING = "RESOLVING"  # A lookup is in flight
    RESOLVED = "RESOLVED"  # Identifier and variant cached
    FAILED = "FAILED"  # Last attempt failed, next call retries
