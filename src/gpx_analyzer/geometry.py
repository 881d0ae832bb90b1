#!/usr/bin/env python3
"""
Local planar projection and segment distance calculations.

Coordinates are projected onto a flat plane centered on the reference
position using WGS84 radii of curvature evaluated at the reference. The
approximation is accurate for the short distances a proximity search is
concerned with and keeps per-point work to a couple of multiplications.
"""

from typing import NamedTuple, Optional
import logging
import math

import pyproj

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

WGS84 = pyproj.Geod(ellps="WGS84")


class Position(NamedTuple):
    """Represents a geographic position with latitude and longitude."""

    latitude: float
    longitude: float


class PlanarPoint(NamedTuple):
    """A point in meters relative to a projector's reference position."""

    x: float
    y: float

    def norm(self) -> float:
        return math.hypot(self.x, self.y)


def validate_position(position: Position) -> None:
    """
    Check that a reference position is a usable coordinate.

    Args:
        position: Position to validate

    Raises:
        InvalidInputError: If latitude or longitude is not finite or out of range
    """
    if not (math.isfinite(position.latitude) and math.isfinite(position.longitude)):
        raise InvalidInputError(f"Reference coordinate is not finite: {position}")
    if abs(position.latitude) > 90.0:
        raise InvalidInputError(
            f"Reference latitude {position.latitude} is outside [-90, 90]"
        )
    if abs(position.longitude) > 180.0:
        raise InvalidInputError(
            f"Reference longitude {position.longitude} is outside [-180, 180]"
        )


def meridional_radius(angle: float) -> float:
    """Radius of curvature in the meridian at the given angle (radians)."""
    sin_sq = math.sin(angle) ** 2
    return WGS84.a * (1.0 - WGS84.es) / (1.0 - WGS84.es * sin_sq) ** 1.5


def prime_vertical_radius(angle: float) -> float:
    """Radius of curvature in the prime vertical at the given angle (radians)."""
    sin_sq = math.sin(angle) ** 2
    return WGS84.a / math.sqrt(1.0 - WGS84.es * sin_sq)


class CoordinateProjector:
    """Projects geographic positions to planar meters around a reference."""

    def __init__(self, reference: Position, legacy_scale_factors: bool = False):
        """Initializes a CoordinateProjector.

        Args:
            reference: Position that becomes the origin of the plane.
            legacy_scale_factors: Evaluate the scale factors with latitude and
                longitude swapped, reproducing output of older releases.
        """
        self.reference = reference
        lat = math.radians(reference.latitude)
        lon = math.radians(reference.longitude)
        degree = math.pi / 180.0

        if legacy_scale_factors:
            self.lat_factor = meridional_radius(lon) * degree
            self.lon_factor = prime_vertical_radius(lat) * math.cos(lon) * degree
        else:
            self.lat_factor = meridional_radius(lat) * degree
            self.lon_factor = prime_vertical_radius(lat) * math.cos(lat) * degree

        logger.debug(
            f"Projection around {reference.latitude}, {reference.longitude}: "
            f"{self.lat_factor:.3f} m/deg latitude, {self.lon_factor:.3f} m/deg longitude"
        )

    def project(self, position: Position) -> PlanarPoint:
        return PlanarPoint(
            x=(position.longitude - self.reference.longitude) * self.lon_factor,
            y=(position.latitude - self.reference.latitude) * self.lat_factor,
        )


def segment_distance(
    previous: Optional[PlanarPoint],
    current: PlanarPoint,
    legacy_fallback_sqrt: bool = False,
) -> float:
    """
    Distance from the origin to the track segment ending at the current point.

    The frame is rotated so the segment runs along the x axis. When the
    origin's projection falls strictly between the two endpoints (their
    rotated x coordinates have opposite signs) the perpendicular offset is
    returned. Otherwise the straight-line distance to the current point is used.

    Args:
        previous: Previous planar point of the track, or None for the first point
        current: Current planar point
        legacy_fallback_sqrt: Take the square root of the fallback distance,
            as older releases did

    Returns:
        Distance in meters
    """
    if previous is None:
        return current.norm()

    dx = current.x - previous.x
    dy = current.y - previous.y
    length = math.hypot(dx, dy)

    if length > 0.0:
        # Rotated x coordinates of the endpoints, reference at the origin
        start = (previous.x * dx + previous.y * dy) / length
        end = (current.x * dx + current.y * dy) / length
        if start < 0.0 < end:
            return abs(previous.x * dy - previous.y * dx) / length

    if legacy_fallback_sqrt:
        return math.sqrt(current.norm())
    return current.norm()
