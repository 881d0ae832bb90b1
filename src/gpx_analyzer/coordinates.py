#!/usr/bin/env python3
"""
Decoding of reference coordinates given on the command line.

Accepted forms for a single value:
    52.518611                 decimal degrees (negative for S/W)
    N 52° 31.1166             hemisphere, degrees, decimal minutes
    N 52° 31' 7"              hemisphere, degrees, minutes, seconds
    52° 31.1166' N            hemisphere letter may also trail

A coordinate pair is either two decimal numbers ("52.5186, 13.4083") or a
latitude followed by a longitude in any of the forms above.
"""

from typing import Optional
import logging
import math
import re

from .errors import CoordinateParseError
from .geometry import Position

logger = logging.getLogger(__name__)

_NUMBER = r"\d+(?:\.\d+)?"

_DMS_PATTERN = re.compile(
    rf"""^\s*
    (?P<lead>[NSEW])?\s*
    (?P<deg>{_NUMBER})\s*(?:°|º)?\s*
    (?:(?P<min>{_NUMBER})\s*(?:'|′)?\s*)?
    (?:(?P<sec>{_NUMBER})\s*(?:"|″|'')?\s*)?
    (?P<trail>[NSEW])?
    \s*$""",
    re.VERBOSE | re.IGNORECASE,
)

_LEADING_PAIR = re.compile(r"^\s*([NS][^EW]*?)[\s,;]*([EW].*)$", re.IGNORECASE)
_TRAILING_PAIR = re.compile(r"^\s*(.*?[NS])[\s,;]*(.*?[EW])\s*$", re.IGNORECASE)

_HEMISPHERES = {
    "latitude": ("N", "S"),
    "longitude": ("E", "W"),
}
_LIMITS = {"latitude": 90.0, "longitude": 180.0}


def _parse_decimal(text: str) -> Optional[float]:
    try:
        value = float(text.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _check_range(value: float, axis: str, text: str) -> float:
    if abs(value) > _LIMITS[axis]:
        raise CoordinateParseError(
            f"{axis.capitalize()} {text!r} is outside ±{_LIMITS[axis]:.0f}°"
        )
    return value


def parse_coordinate_value(text: str, axis: str) -> float:
    """
    Decode a latitude or longitude given in decimal or sexagesimal notation.

    Args:
        text: Coordinate text
        axis: "latitude" or "longitude"

    Returns:
        Signed decimal degrees (S and W negative)

    Raises:
        CoordinateParseError: If the text cannot be decoded, uses a hemisphere
            letter that does not belong to the axis, or is out of range
    """
    if axis not in _HEMISPHERES:
        raise ValueError(f"Unknown axis: {axis}")

    decimal = _parse_decimal(text)
    if decimal is not None:
        return _check_range(decimal, axis, text)

    match = _DMS_PATTERN.match(text)
    if match is None:
        raise CoordinateParseError(f"Cannot decode {axis} {text!r}")

    lead, trail = match.group("lead"), match.group("trail")
    if lead and trail:
        raise CoordinateParseError(f"{axis.capitalize()} {text!r} has two hemispheres")
    hemisphere = (lead or trail or "").upper()
    positive, negative = _HEMISPHERES[axis]
    if hemisphere and hemisphere not in (positive, negative):
        raise CoordinateParseError(
            f"Hemisphere {hemisphere!r} does not belong to a {axis}: {text!r}"
        )

    minutes = float(match.group("min") or 0.0)
    seconds = float(match.group("sec") or 0.0)
    if minutes >= 60.0 or seconds >= 60.0:
        raise CoordinateParseError(f"Minutes and seconds must be below 60: {text!r}")

    value = float(match.group("deg")) + minutes / 60.0 + seconds / 3600.0
    if hemisphere == negative:
        value = -value
    return _check_range(value, axis, text)


def parse_coordinate_pair(text: str) -> Position:
    """
    Decode a "latitude longitude" pair.

    Args:
        text: Two decimal numbers separated by a comma and/or whitespace, or a
            latitude and a longitude each carrying a hemisphere letter

    Returns:
        Position for the pair

    Raises:
        CoordinateParseError: If the text is not a recognizable pair
    """
    parts = [p for p in re.split(r"[\s,;]+", text.strip()) if p]
    if len(parts) == 2:
        latitude, longitude = (_parse_decimal(p) for p in parts)
        if latitude is not None and longitude is not None:
            return Position(
                latitude=_check_range(latitude, "latitude", parts[0]),
                longitude=_check_range(longitude, "longitude", parts[1]),
            )

    for pattern in (_LEADING_PAIR, _TRAILING_PAIR):
        match = pattern.match(text)
        if match is None:
            continue
        try:
            return Position(
                latitude=parse_coordinate_value(match.group(1), "latitude"),
                longitude=parse_coordinate_value(match.group(2), "longitude"),
            )
        except CoordinateParseError as e:
            logger.debug(f"Coordinate pair {text!r} rejected by {pattern.pattern}: {e}")

    raise CoordinateParseError(f"Cannot decode coordinate pair {text!r}")


def format_dms(position: Position) -> str:
    """Render a position as hemisphere, degrees and decimal minutes."""

    def _axis(value: float, positive: str, negative: str) -> str:
        hemisphere = negative if value < 0 else positive
        degrees, fraction = divmod(abs(value), 1.0)
        return f"{hemisphere} {int(degrees)}° {fraction * 60.0:.6f}"

    return (
        f"{_axis(position.latitude, 'N', 'S')} "
        f"{_axis(position.longitude, 'E', 'W')}"
    )


def resolve_reference(
    coordinate: Optional[str],
    latitude: Optional[str],
    longitude: Optional[str],
) -> Position:
    """
    Build the reference position from either a pair or separate values.

    Raises:
        CoordinateParseError: If neither form is given or decoding fails
    """
    if coordinate is not None:
        return parse_coordinate_pair(coordinate)
    if latitude is not None and longitude is not None:
        return Position(
            latitude=parse_coordinate_value(latitude, "latitude"),
            longitude=parse_coordinate_value(longitude, "longitude"),
        )
    raise CoordinateParseError(
        "Specify either --coordinate or both --latitude and --longitude"
    )
