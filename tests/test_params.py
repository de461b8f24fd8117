"""Tests for upload parameter encoding."""

import json

import pytest
from pydantic import ValidationError

from mediauploader.models.params import ResponsiveBreakpointParams, UploadParams, encode_context


def test_unset_fields_omitted():
    """Test only explicitly set options become form fields."""
    assert UploadParams().to_form_fields() == {}


def test_scalar_and_boolean_fields():
    """Test strings pass through and booleans encode as true/false."""
    params = UploadParams(
        public_id="sample",
        overwrite=True,
        unique_filename=False,
        type="authenticated",
        quality_analysis=True,
        resource_type="video",
    )

    fields = params.to_form_fields()

    assert fields == {
        "public_id": "sample",
        "overwrite": "true",
        "unique_filename": "false",
        "type": "authenticated",
        "quality_analysis": "true",
    }


def test_tags_joined():
    """Test tags are sent comma-separated."""
    assert UploadParams(tags=["a", "b"]).to_form_fields() == {"tags": "a,b"}


def test_context_encoding():
    """Test context is pipe-separated with separators escaped."""
    params = UploadParams(context={"caption": "a=b", "alt": "x|y"})

    assert params.to_form_fields()["context"] == r"caption=a\=b|alt=x\|y"
    assert encode_context({"k": 1}) == "k=1"


def test_responsive_breakpoints_encoded_as_json():
    """Test breakpoint requests are sent as a JSON array."""
    params = UploadParams(
        responsive_breakpoints=[ResponsiveBreakpointParams(create_derived=False, transformation="a_90")]
    )

    encoded = json.loads(params.to_form_fields()["responsive_breakpoints"])

    assert encoded == [{"create_derived": False, "transformation": "a_90"}]


def test_invalid_resource_type():
    """Test unknown resource types are refused."""
    with pytest.raises(ValidationError):
        UploadParams(resource_type="document")


def test_breakpoint_limits_must_be_positive():
    """Test breakpoint size limits reject zero."""
    with pytest.raises(ValidationError):
        ResponsiveBreakpointParams(max_width=0)
