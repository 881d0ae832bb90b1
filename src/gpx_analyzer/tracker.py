#!/usr/bin/env python3
"""
Nearest-approach tracking for a single track log.

The tracker is a fold over the track points of one file. Its state is an
immutable TrackerState value; each point produces a new state and at most
one emitted CandidateResult.

Points within the threshold form zones: maximal runs of consecutive points
whose distance is at or below the threshold. Each zone collapses to its
closest member when it ends. Points beyond the threshold feed a running
"nearest miss" that is reported only when the file yields no zone at all.
"""

from dataclasses import dataclass, replace
from typing import Iterable, List, NamedTuple, Optional, Tuple
import logging

from .geometry import CoordinateProjector, PlanarPoint, segment_distance
from .gpx_stream import TrackPoint

logger = logging.getLogger(__name__)


class CandidateResult(NamedTuple):
    """A reportable track point and its distance to the reference."""

    distance: float  # Meters from the reference position
    path: str  # GPX file the point came from
    time: Optional[str] = None  # Timestamp text of the point, if any


@dataclass(frozen=True)
class TrackerState:
    """Per-file tracker state.

    Attributes:
        previous: Planar position of the previous point, None before the first.
        zone_best: Closest member of the open zone, None when no zone is open.
        nearest: Closest point beyond the threshold seen so far.
        zones_closed: Number of zones emitted so far.
    """

    previous: Optional[PlanarPoint] = None
    zone_best: Optional[CandidateResult] = None
    nearest: Optional[CandidateResult] = None
    zones_closed: int = 0

    @property
    def zone_open(self) -> bool:
        return self.zone_best is not None


def advance(
    state: TrackerState,
    distance: float,
    path: str,
    time: Optional[str],
    threshold: float,
) -> Tuple[TrackerState, Optional[CandidateResult]]:
    """
    Apply one point's distance to the zone and nearest-miss bookkeeping.

    The point's timestamp travels with whichever slot the point updates: the
    open zone when it is within the threshold, the nearest miss when it beats
    the previous one. A zone keeps its first minimal member on ties.

    Args:
        state: Current tracker state
        distance: Distance of the point to the reference in meters
        path: GPX file the point belongs to
        time: Timestamp of the point, if any
        threshold: Maximum distance in meters for a point to join a zone

    Returns:
        Tuple of (new state, result emitted by a closing zone or None)
    """
    candidate = CandidateResult(distance=distance, path=path, time=time)

    if distance <= threshold:
        if state.zone_best is None or distance < state.zone_best.distance:
            state = replace(state, zone_best=candidate)
        return state, None

    emitted = None
    if state.zone_best is not None:
        emitted = state.zone_best
        state = replace(state, zone_best=None, zones_closed=state.zones_closed + 1)

    if state.nearest is None or distance < state.nearest.distance:
        state = replace(state, nearest=candidate)

    return state, emitted


def step(
    state: TrackerState,
    planar: PlanarPoint,
    path: str,
    time: Optional[str],
    threshold: float,
    legacy_fallback_sqrt: bool = False,
) -> Tuple[TrackerState, Optional[CandidateResult]]:
    """Measure a projected point against the previous one and advance."""
    distance = segment_distance(state.previous, planar, legacy_fallback_sqrt)
    state, emitted = advance(state, distance, path, time, threshold)
    return replace(state, previous=planar), emitted


def finish(state: TrackerState) -> List[CandidateResult]:
    """
    Results produced when a file's point stream ends.

    Args:
        state: Final tracker state of the file

    Returns:
        The still-open zone's closest member, or the nearest miss if the file
        never produced a zone, or nothing for a file without points
    """
    if state.zone_best is not None:
        return [state.zone_best]
    if state.zones_closed == 0 and state.nearest is not None:
        return [state.nearest]
    return []


class NearestApproachTracker:
    """Tracks the nearest approaches to a reference within one GPX file."""

    def __init__(
        self,
        path: str,
        projector: CoordinateProjector,
        threshold: float,
        legacy_fallback_sqrt: bool = False,
    ):
        self.path = path
        self.projector = projector
        self.threshold = threshold
        self.legacy_fallback_sqrt = legacy_fallback_sqrt
        self.state = TrackerState()
        self.results: List[CandidateResult] = []

    def feed(self, point: TrackPoint) -> None:
        planar = self.projector.project(point.position)
        self.state, emitted = step(
            self.state,
            planar,
            self.path,
            point.time,
            self.threshold,
            self.legacy_fallback_sqrt,
        )
        if emitted is not None:
            self.results.append(emitted)

    def close(self) -> List[CandidateResult]:
        """Finish the file and return all of its results in discovery order."""
        results = self.results + finish(self.state)
        logger.debug(f"{self.path}: {len(results)} result(s)")
        return results

    def track(self, points: Iterable[TrackPoint]) -> List[CandidateResult]:
        for point in points:
            self.feed(point)
        return self.close()
