"""Configuration objects for the fabric adapter and the ePO client."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.constants import EPO_THREAT_EVENT_TOPIC


class NATSConnectionConfig(BaseModel):
    """Strongly-typed configuration for the NATS fabric connection."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        strict=True,
        validate_assignment=True,
    )

    servers: list[str] = Field(
        default_factory=lambda: ["nats://localhost:4222"],
        min_length=1,
        description="List of NATS server URLs",
    )
    name: str | None = Field(
        default="dxl-epo-client",
        description="Client connection name reported to the server",
    )
    max_reconnect_attempts: int = Field(
        default=10,
        ge=0,
        description="Maximum reconnection attempts",
    )
    reconnect_time_wait: float = Field(
        default=2.0,
        gt=0,
        description="Time to wait between reconnection attempts in seconds",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for a response to a request",
    )

    @field_validator("servers")
    @classmethod
    def validate_servers(cls, v: list[str]) -> list[str]:
        """Validate server URLs format."""
        for server in v:
            if not server.startswith(("nats://", "tls://", "ws://", "wss://")):
                raise ValueError(
                    f"Invalid server URL: {server}. "
                    "Must start with nats://, tls://, ws://, or wss://"
                )
        return v

    @classmethod
    def from_env(cls, **overrides: Any) -> NATSConnectionConfig:
        """Build from ``NATS_URL`` (comma separated) and ``NATS_REQUEST_TIMEOUT``."""
        values: dict[str, Any] = {}
        if servers := os.getenv("NATS_URL"):
            values["servers"] = [s.strip() for s in servers.split(",") if s.strip()]
        if timeout := os.getenv("NATS_REQUEST_TIMEOUT"):
            values["request_timeout"] = float(timeout)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def to_connection_params(self) -> dict[str, Any]:
        """Convert to parameters for ``nats.connect``."""
        params: dict[str, Any] = {
            "servers": self.servers,
            "max_reconnect_attempts": self.max_reconnect_attempts,
            "reconnect_time_wait": self.reconnect_time_wait,
        }
        if self.name:
            params["name"] = self.name
        return params


class EpoClientConfig(BaseModel):
    """Settings for an EpoClient."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    epo_unique_id: str | None = Field(
        default=None,
        description="ePO server to target; discovered when only one is registered",
    )
    threat_event_topic: str = Field(
        default=EPO_THREAT_EVENT_TOPIC,
        min_length=1,
        description="Topic ePO threat events are published to",
    )
    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-request timeout override; None defers to the fabric",
    )

    @field_validator("epo_unique_id", mode="before")
    @classmethod
    def blank_as_none(cls, v: Any) -> Any:
        """An empty identifier means "discover it"."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_env(cls, **overrides: Any) -> EpoClientConfig:
        """Build from ``EPO_UNIQUE_ID``, ``EPO_THREAT_EVENT_TOPIC`` and ``EPO_REQUEST_TIMEOUT``."""
        values: dict[str, Any] = {}
        if epo_id := os.getenv("EPO_UNIQUE_ID"):
            values["epo_unique_id"] = epo_id
        if topic := os.getenv("EPO_THREAT_EVENT_TOPIC"):
            values["threat_event_topic"] = topic
        if timeout := os.getenv("EPO_REQUEST_TIMEOUT"):
            values["request_timeout"] = float(timeout)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
