"""Tests for the [label, weight] color pair codec."""

import json

import pytest
from pydantic import BaseModel, ValidationError

from mediauploader.exceptions import MalformedPairError, MalformedResponseError
from mediauploader.models.color import (
    ColorWeight,
    decode_color_weight,
    dumps_color_weight,
    encode_color_weight,
    encode_weight,
    loads_color_weight,
)


@pytest.mark.parametrize(
    "text,expected",
    [
        ('["#E4E4A8",71]', ColorWeight(color="#E4E4A8", weight=71.0)),
        ('["#2F2F2F",8.7]', ColorWeight(color="#2F2F2F", weight=8.7)),
        ('["brown",7.4]', ColorWeight(color="brown", weight=7.4)),
    ],
)
def test_pair_round_trip(text, expected):
    """Test decoding and re-encoding keeps the original number form."""
    decoded = loads_color_weight(text)

    assert decoded == expected
    assert dumps_color_weight(decoded) == text
    assert dumps_color_weight(expected) == text


def test_whole_weight_encodes_as_integer():
    """Test a whole-valued float weight is emitted without a fraction."""
    assert encode_color_weight(ColorWeight(color="#E4E4A8", weight=71.0)) == ["#E4E4A8", 71]
    assert isinstance(encode_weight(71.0), int)
    assert encode_weight(8.7) == 8.7


def test_decode_brown():
    """Test decoding a named color with a decimal weight."""
    cw = decode_color_weight(["brown", 7.4])

    assert cw.color == "brown"
    assert cw.weight == 7.4


@pytest.mark.parametrize(
    "value",
    [
        ["onlyOneField"],
        [71, "#E4E4A8"],
        ["#E4E4A8", 71, 3],
        [],
        ["#E4E4A8", "71"],
        ["#E4E4A8", True],
        ["#E4E4A8", None],
        {"color": "#E4E4A8", "weight": 71},
        "#E4E4A8",
    ],
)
def test_malformed_pairs_rejected(value):
    """Test wrong arity and wrong element types raise MalformedPairError."""
    with pytest.raises(MalformedPairError):
        decode_color_weight(value)


def test_malformed_pair_is_malformed_response():
    """Test pair errors can be caught as MalformedResponseError."""
    with pytest.raises(MalformedResponseError):
        loads_color_weight('["onlyOneField"]')


def test_invalid_json_text():
    """Test non-JSON input raises MalformedPairError."""
    with pytest.raises(MalformedPairError):
        loads_color_weight("[not json")


def test_non_finite_weight_cannot_be_encoded():
    """Test NaN weights are refused on encode."""
    with pytest.raises(ValueError):
        encode_weight(float("nan"))


def test_color_weight_as_model_field():
    """Test the codec applies to any field typed with ColorWeight."""

    class Palette(BaseModel):
        colors: list[ColorWeight]
        by_provider: dict[str, list[ColorWeight]]

    palette = Palette.model_validate(
        {"colors": [["#E4E4A8", 71]], "by_provider": {"google": [["black", 8.7]]}}
    )

    assert palette.colors == [ColorWeight(color="#E4E4A8", weight=71)]
    assert palette.by_provider["google"][0].weight == 8.7
    assert json.loads(palette.model_dump_json()) == {
        "colors": [["#E4E4A8", 71]],
        "by_provider": {"google": [["black", 8.7]]},
    }


def test_model_field_rejects_malformed_pair():
    """Test a malformed pair fails model validation."""

    class Palette(BaseModel):
        colors: list[ColorWeight]

    with pytest.raises(ValidationError):
        Palette.model_validate({"colors": [[71, "#E4E4A8"]]})


def test_color_weight_is_immutable():
    """Test ColorWeight instances are frozen and hashable."""
    cw = ColorWeight(color="brown", weight=7.4)

    with pytest.raises(ValidationError):
        cw.weight = 1.0
    assert {cw, ColorWeight(color="brown", weight=7.4)} == {cw}
