#!/usr/bin/env python3
"""
Streaming GPX track point reader.

Track logs can be large, so points are pulled from the file one at a time
with lxml's incremental parser instead of loading the whole document. The
parser runs in recovery mode: malformed markup is logged and skipped and the
points around it are still delivered.
"""

from typing import Iterator, NamedTuple, Optional
import logging
import math
import re

from lxml import etree

from .errors import FileAnalysisError
from .geometry import Position

logger = logging.getLogger(__name__)

_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


class TrackPoint(NamedTuple):
    """A single GPS fix from a track log."""

    position: Position
    time: Optional[str] = None


def _localname(element) -> Optional[str]:
    if not isinstance(element.tag, str):
        return None  # comments and processing instructions
    return etree.QName(element).localname


def _parse_degrees(value: Optional[str]) -> Optional[float]:
    if value is None or not _DECIMAL.fullmatch(value.strip()):
        return None
    degrees = float(value)
    return degrees if math.isfinite(degrees) else None


def _release(element) -> None:
    """Free an element and its already-processed siblings."""
    element.clear()
    parent = element.getparent()
    if parent is None:
        return
    while element.getprevious() is not None:
        del parent[0]


class TrackPointReader:
    """Lazily yields the track points of one GPX file in document order.

    A point is delivered when its closing tag arrives, or earlier when the
    next point opens before it was closed. The second case only happens when
    recovery nested the next point inside a broken one.

    Iterating again re-reads the file from the start. The counters describe
    the most recent pass.
    """

    def __init__(self, path: str):
        self.path = path
        self.points = 0
        self.skipped_points = 0
        self.syntax_errors = 0

    def __iter__(self) -> Iterator[TrackPoint]:
        self.points = 0
        self.skipped_points = 0
        self.syntax_errors = 0

        try:
            handle = open(self.path, "rb")
        except OSError as e:
            raise FileAnalysisError(self.path, e.strerror or str(e)) from e

        with handle:
            context = etree.iterparse(
                handle, events=("start", "end"), recover=True, huge_tree=True
            )
            reported_lines = set()
            # trkpt element opened but not delivered yet, and its position
            current = None
            position = None
            try:
                for event, element in context:
                    if _localname(element) != "trkpt":
                        continue
                    if event == "start":
                        if current is not None:
                            point = self._complete(current, position)
                            if point is not None:
                                yield point
                        current = element
                        position = self._read_position(element)
                        continue
                    if element is current:
                        point = self._complete(current, position)
                        current = position = None
                        if point is not None:
                            yield point
                    _release(element)
            except etree.XMLSyntaxError as e:
                # Unrecoverable: keep what was read so far
                line, column = e.position
                self._log_syntax_error(line, column, e.msg)
                reported_lines.add(line)
            except OSError as e:
                raise FileAnalysisError(self.path, e.strerror or str(e)) from e

            if current is not None:
                point = self._complete(current, position)
                if point is not None:
                    yield point

            for entry in context.error_log.filter_from_errors():
                if entry.line not in reported_lines:
                    self._log_syntax_error(entry.line, entry.column, entry.message)

    def _read_position(self, element) -> Optional[Position]:
        longitude = _parse_degrees(element.get("lon"))
        latitude = _parse_degrees(element.get("lat"))
        if longitude is None or latitude is None:
            self.skipped_points += 1
            axis = "longitude" if longitude is None else "latitude"
            logger.warning(
                f"Invalid {axis} in file: {self.path} (line {element.sourceline}), "
                f"skipping point"
            )
            return None
        return Position(latitude=latitude, longitude=longitude)

    def _complete(self, element, position: Optional[Position]) -> Optional[TrackPoint]:
        if position is None:
            return None

        time = None
        for child in element:
            if _localname(child) == "time":
                time = (child.text or "").strip() or None
                break

        self.points += 1
        return TrackPoint(position, time)

    def _log_syntax_error(self, line: int, column: int, message: str) -> None:
        self.syntax_errors += 1
        logger.warning(
            f"Malformed GPX in file: {self.path}; line {line}, column {column}: "
            f"{(message or '').strip()}"
        )
