"""Color palette entries and their ``[label, weight]`` wire codec.

The asset service reports palettes as two-element JSON arrays such as
``["#E4E4A8", 71]`` or ``["brown", 7.4]``. Weights that are whole numbers
are sent without a fractional part, and re-encoding must keep that form.
"""

import json
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, model_serializer, model_validator

from mediauploader.exceptions import MalformedPairError


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def encode_weight(weight: float) -> int | float:
    """Return the shortest JSON number form of a weight.

    Args:
        weight: Numeric weight

    Returns:
        ``int`` for whole-valued weights, the float itself otherwise

    Raises:
        ValueError: If the weight is NaN or infinite
    """
    if not math.isfinite(weight):
        raise ValueError(f"Weight is not a finite number: {weight!r}")
    if float(weight).is_integer():
        return int(weight)
    return float(weight)


def decode_color_weight(value: Any) -> "ColorWeight":
    """Decode a ``[label, weight]`` array.

    Args:
        value: Decoded JSON value

    Returns:
        ColorWeight instance

    Raises:
        MalformedPairError: If the value is not a 2-element array of
            a string followed by a number
    """
    if not isinstance(value, (list, tuple)):
        raise MalformedPairError(f"Expected a [label, weight] array, got {type(value).__name__}")
    if len(value) != 2:
        raise MalformedPairError(f"Expected 2 elements in color pair, got {len(value)}")

    label, weight = value
    if not isinstance(label, str):
        raise MalformedPairError(f"Color label must be a string, got {type(label).__name__}")
    if not _is_number(weight):
        raise MalformedPairError(f"Color weight must be a number, got {type(weight).__name__}")

    return ColorWeight.model_construct(color=label, weight=float(weight))


def encode_color_weight(color_weight: "ColorWeight") -> list[Any]:
    """Encode a ColorWeight as its ``[label, weight]`` wire array."""
    return [color_weight.color, encode_weight(color_weight.weight)]


def loads_color_weight(text: str | bytes) -> "ColorWeight":
    """Decode a ColorWeight from JSON text."""
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedPairError(f"Invalid JSON for color pair: {e}") from e
    return decode_color_weight(value)


def dumps_color_weight(color_weight: "ColorWeight") -> str:
    """Encode a ColorWeight as compact JSON text."""
    return json.dumps(encode_color_weight(color_weight), separators=(",", ":"))


class ColorWeight(BaseModel):
    """A palette entry: color label and its weight in the image."""

    model_config = ConfigDict(frozen=True)

    color: str
    weight: float

    @model_validator(mode="before")
    @classmethod
    def parse_pair(cls, data: Any) -> Any:
        if isinstance(data, (ColorWeight, dict)):
            return data
        pair = decode_color_weight(data)
        return {"color": pair.color, "weight": pair.weight}

    @model_serializer(mode="plain")
    def serialize_pair(self) -> list[Any]:
        return encode_color_weight(self)
