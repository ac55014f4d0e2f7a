"""JSON payload helpers for DXL request, response and event bodies."""

import json
from typing import Any, TypeVar

from pydantic import BaseModel

from ..domain.exceptions import SerializationError

T = TypeVar("T", bound=BaseModel)


def object_to_json_payload(obj: Any) -> bytes:
    """Serialize a JSON-compatible object to UTF-8 payload bytes."""
    try:
        return json.dumps(obj, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to serialize payload to JSON: {e}") from e


def decode_payload(payload: bytes, encoding: str = "utf-8") -> str:
    """Decode payload bytes to text."""
    try:
        return payload.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise SerializationError(f"Failed to decode payload as {encoding}: {e}") from e


def json_payload_to_object(payload: bytes, encoding: str = "utf-8") -> Any:
    """Decode payload bytes and parse them as JSON."""
    text = decode_payload(payload, encoding)
    if not text or text.isspace():
        raise SerializationError("Empty or whitespace-only JSON payload")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Invalid JSON format: {e}") from e


def json_payload_to_model(payload: bytes, model_class: type[T], encoding: str = "utf-8") -> T:
    """Decode a JSON payload into a Pydantic model."""
    data = json_payload_to_object(payload, encoding)
    if not isinstance(data, dict):
        raise SerializationError(
            f"Expected a JSON object for {model_class.__name__}, got {type(data).__name__}"
        )
    try:
        return model_class.model_validate(data)
    except Exception as e:
        raise SerializationError(f"Failed to deserialize {model_class.__name__}: {e}") from e
