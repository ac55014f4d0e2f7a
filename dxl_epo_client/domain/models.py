"""Domain models using Pydantic for validation."""

from __future__ import annotations

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .constants import EPO_ID_FOUND, EPO_ID_NOT_DETERMINED
from .enums import OutputFormat, ResolutionStatus, ServiceVariant
from .patterns import TopicPatterns


class FabricRequest(BaseModel):
    """A single request message addressed to a fabric topic."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    topic: str = Field(..., min_length=1, description="Request topic")
    payload: bytes = Field(default=b"", description="Encoded request body")


class FabricResponse(BaseModel):
    """The response correlated with a FabricRequest."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    topic: str = Field(default="", description="Topic the request was sent to")
    payload: bytes = Field(default=b"", description="Raw response body")
    encoding: str = Field(default="utf-8", min_length=1, description="Payload text encoding")
    headers: dict[str, str] = Field(default_factory=dict, description="Transport headers")


class FabricEvent(BaseModel):
    """An event message received from the fabric."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    destination_topic: str = Field(..., min_length=1, description="Topic the event arrived on")
    payload: bytes = Field(default=b"", description="Raw event body")
    encoding: str = Field(default="utf-8", min_length=1, description="Payload text encoding")


class ServiceDescriptor(BaseModel):
    """One registered service instance as reported by the service registry.

    Field aliases follow the registry's JSON shape (``metaData``,
    ``requestChannels``); anything else the registry reports is ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    service_type: str = Field(default="", alias="serviceType")
    service_guid: str | None = Field(default=None, alias="serviceGuid")
    metadata: dict[str, Any] = Field(default_factory=dict, alias="metaData")
    request_channels: list[str] = Field(default_factory=list, alias="requestChannels")

    @field_validator("metadata", "request_channels", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any, info: ValidationInfo) -> Any:
        """Registry entries may carry explicit nulls for optional fields."""
        if v is None:
            return {} if info.field_name == "metadata" else []
        return v


class ServiceRegistryResponse(BaseModel):
    """Body of a service registry query response."""

    model_config = ConfigDict(extra="ignore")

    services: dict[str, ServiceDescriptor] | None = Field(default=None)

    def descriptors(self) -> list[ServiceDescriptor]:
        """Descriptors in registry order, each tagged with its registry key."""
        if not self.services:
            return []
        return [
            descriptor
            if descriptor.service_guid
            else descriptor.model_copy(update={"service_guid": guid})
            for guid, descriptor in self.services.items()
        ]


class IdentifierLookupResult(BaseModel):
    """Merged identifiers across both service variants plus the variant hint."""

    model_config = ConfigDict(frozen=True)

    identifiers: list[str] = Field(default_factory=list, description="Sorted unique identifiers")
    variant: ServiceVariant = Field(
        default=ServiceVariant.COMMANDS,
        description="REMOTE when any remote identifier exists, otherwise COMMANDS",
    )


class CommandInvocation(BaseModel):
    """One remote command call, valid for the duration of a dispatch."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=False)

    command_name: str = Field(..., min_length=1, description="Dot separated command name")
    params: dict[str, Any] = Field(default_factory=dict, description="Command parameters")
    output_format: OutputFormat = Field(default=OutputFormat.OBJECT)

    @field_validator("command_name")
    @classmethod
    def validate_command_name(cls, v: str) -> str:
        """Validate command name format."""
        if not TopicPatterns.is_valid_command_name(v):
            raise ValueError(f"Invalid command name: {v!r}")
        return v

    @field_validator("params", mode="before")
    @classmethod
    def default_params(cls, v: Any) -> Any:
        """Treat a missing parameter mapping as empty."""
        return {} if v is None else v

    @field_validator("output_format", mode="before")
    @classmethod
    def validate_output_format(cls, v: Any) -> OutputFormat:
        """Reject unknown formats with the client's own argument error."""
        return OutputFormat.validate(v)


class ResolutionState(BaseModel):
    """Which ePO server a client targets and over which service variant.

    Instances are immutable; each transition returns a new state.
    """

    model_config = ConfigDict(frozen=True)

    target_identifier: str | None = Field(default=None)
    variant: ServiceVariant | None = Field(default=None)
    status: ResolutionStatus = Field(default=ResolutionStatus.UNRESOLVED)
    last_error: str = Field(default=EPO_ID_NOT_DETERMINED)

    @model_validator(mode="after")
    def validate_resolved(self) -> ResolutionState:
        """A resolved state always names its identifier and variant."""
        if self.status == ResolutionStatus.RESOLVED and (
            not self.target_identifier or self.variant is None
        ):
            raise ValueError("Resolved state requires a target identifier and variant")
        return self

    @property
    def is_resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED

    def begin(self) -> ResolutionState:
        """Enter RESOLVING, keeping any caller supplied identifier."""
        if self.is_resolved:
            return self
        return ResolutionState(
            target_identifier=self.target_identifier,
            status=ResolutionStatus.RESOLVING,
            last_error=self.last_error,
        )

    def succeed(self, identifier: str, variant: ServiceVariant) -> ResolutionState:
        """Enter RESOLVED; an already resolved state is never overwritten."""
        if self.is_resolved:
            return self
        return ResolutionState(
            target_identifier=identifier,
            variant=variant,
            status=ResolutionStatus.RESOLVED,
            last_error=EPO_ID_FOUND,
        )

    def fail(self, error: Exception) -> ResolutionState:
        """Enter FAILED; the next call starts a fresh attempt."""
        if self.is_resolved:
            return self
        return ResolutionState(
            target_identifier=self.target_identifier,
            status=ResolutionStatus.FAILED,
            last_error=str(error),
        )
