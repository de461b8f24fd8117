"""Upload response models and tolerant decoding."""

import json
import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from mediauploader.models.color import ColorWeight
from mediauploader.exceptions import MalformedResponseError

logger = logging.getLogger(__name__)


class _ResponseModel(BaseModel):
    """Base for service responses: immutable, unknown fields ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # JSON null means "absent": fall back to the field default.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Breakpoint(_ResponseModel):
    """A single generated responsive image width."""

    width: int = 0
    height: int = 0
    size_bytes: int = Field(0, alias="bytes")
    url: str = ""
    secure_url: str = ""


class ResponsiveBreakpoint(_ResponseModel):
    """Breakpoints generated for one requested transformation."""

    breakpoints: list[Breakpoint] = Field(default_factory=list)
    transformation: str = ""


class UploadResult(_ResponseModel):
    """
    Result of a completed upload.

    Built once from the final response body. Every field except
    ``public_id`` falls back to its empty value when the service omits it.
    """

    asset_id: str = ""
    public_id: str
    version: int = 0
    version_id: str = ""
    signature: str = ""
    etag: str = ""

    width: int = 0
    height: int = 0
    format: str = ""
    resource_type: str = ""
    type: str = ""
    pages: int = 0
    size_bytes: int = Field(0, alias="bytes")
    created_at: Optional[datetime] = None
    original_filename: str = ""
    phash: str = ""
    placeholder: bool = False
    access_mode: str = ""
    tags: list[str] = Field(default_factory=list)

    url: str = ""
    secure_url: str = ""

    colors: list[ColorWeight] = Field(default_factory=list)
    predominant: dict[str, list[ColorWeight]] = Field(default_factory=dict)
    responsive_breakpoints: list[ResponsiveBreakpoint] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the wire-form dictionary, palettes as [label, weight] arrays."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        """Encode the result back to its JSON wire form."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class ChunkAck(_ResponseModel):
    """Intermediate response acknowledging one chunk of a large upload."""

    upload_id: Optional[str] = None
    received_bytes: Optional[int] = Field(None, alias="bytes")
    done: bool = False


def _load_object(body: bytes | str) -> dict[str, Any]:
    try:
        payload = json.loads(body) if body else {}
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedResponseError(f"Response body is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Expected a JSON object in response, got {type(payload).__name__}"
        )
    return payload


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"{location}: {first['msg']}"


def decode_upload_result(body: bytes | str) -> UploadResult:
    """Decode a final upload response into an UploadResult.

    Args:
        body: Raw response body

    Returns:
        Decoded UploadResult

    Raises:
        MalformedResponseError: If the body is not a JSON object, lacks
            ``public_id``, or has a field of the wrong shape
    """
    payload = _load_object(body)
    try:
        return UploadResult.model_validate(payload)
    except ValidationError as e:
        logger.warning(
            "Upload response failed validation",
            extra={"error_count": e.error_count(), "first_error": _describe(e)},
        )
        raise MalformedResponseError(f"Malformed upload response: {_describe(e)}") from e


def decode_chunk_ack(body: bytes | str) -> ChunkAck:
    """Decode an intermediate chunk response."""
    payload = _load_object(body)
    try:
        return ChunkAck.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponseError(f"Malformed chunk response: {_describe(e)}") from e


def extract_service_error(body: bytes | str) -> str | None:
    """Return the service's ``error.message`` from an error body, if any."""
    try:
        payload = json.loads(body) if body else None
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None

    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return None
