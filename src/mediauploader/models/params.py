"""Upload request parameters and their form-field encoding."""

import json
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class ResponsiveBreakpointParams(BaseModel):
    """Request for responsive breakpoint generation on one transformation."""

    create_derived: bool = False
    transformation: Optional[str] = None
    format: Optional[str] = None
    max_width: Optional[int] = Field(None, gt=0)
    min_width: Optional[int] = Field(None, gt=0)
    bytes_step: Optional[int] = Field(None, gt=0)
    max_images: Optional[int] = Field(None, gt=0)


class UploadParams(BaseModel):
    """Per-asset upload options sent as form fields with every request."""

    public_id: Optional[str] = None
    folder: Optional[str] = None
    overwrite: Optional[bool] = None
    unique_filename: Optional[bool] = None
    invalidate: Optional[bool] = None
    resource_type: Literal["image", "video", "raw", "auto"] = "auto"
    type: Optional[Literal["upload", "private", "authenticated"]] = None
    upload_preset: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    context: dict[str, str] = Field(default_factory=dict)
    responsive_breakpoints: list[ResponsiveBreakpointParams] = Field(default_factory=list)

    # Analysis flags
    colors: Optional[bool] = None
    phash: Optional[bool] = None
    quality_analysis: Optional[bool] = None
    accessibility_analysis: Optional[bool] = None
    cinemagraph_analysis: Optional[bool] = None

    def to_form_fields(self) -> dict[str, str]:
        """Serialize the set parameters to string form fields.

        ``resource_type`` is part of the upload URL, not a form field.

        Returns:
            Mapping of form field name to string value
        """
        fields: dict[str, str] = {}
        for name, value in self:
            if name == "resource_type" or value is None:
                continue
            if name == "tags":
                if value:
                    fields[name] = ",".join(value)
            elif name == "context":
                if value:
                    fields[name] = encode_context(value)
            elif name == "responsive_breakpoints":
                if value:
                    fields[name] = json.dumps(
                        [bp.model_dump(exclude_none=True) for bp in value],
                        separators=(",", ":"),
                    )
            elif isinstance(value, bool):
                fields[name] = "true" if value else "false"
            else:
                fields[name] = str(value)
        return fields


def _escape_context_part(text: str) -> str:
    return text.replace("=", r"\=").replace("|", r"\|")


def encode_context(context: dict[str, Any]) -> str:
    """Encode contextual metadata as ``key=value|key=value``.

    Literal ``=`` and ``|`` inside keys or values are backslash-escaped.
    """
    return "|".join(
        f"{_escape_context_part(str(key))}={_escape_context_part(str(value))}"
        for key, value in context.items()
    )
