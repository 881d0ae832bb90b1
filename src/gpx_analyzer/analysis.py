#!/usr/bin/env python3
"""
Corpus-wide analysis: runs the per-file pipeline in parallel and merges the
results into a single report ordered by distance.

Each file is parsed and tracked independently on a worker thread; nothing is
shared between files. Results are merged only after every file has finished.
The merge flattens results in input-file order and sorts them with a stable
sort, so exact distance ties keep file-list order. That order is whatever
order the caller discovered the files in, and is not a portable guarantee.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from itertools import chain
from operator import attrgetter
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple
import logging

from .config import AnalyzerConfig
from .errors import FileAnalysisError
from .geometry import CoordinateProjector, Position, validate_position
from .gpx_stream import TrackPointReader
from .tracker import CandidateResult, NearestApproachTracker

logger = logging.getLogger(__name__)


class FileFailure(NamedTuple):
    """A file that could not be analyzed."""

    path: str
    message: str


@dataclass(frozen=True)
class FileAnalysis:
    """Outcome of analyzing one GPX file."""

    path: str
    results: Tuple[CandidateResult, ...] = ()
    points: int = 0
    skipped_points: int = 0
    syntax_errors: int = 0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


ProgressCallback = Callable[[int, int, FileAnalysis], None]


@dataclass(frozen=True)
class AnalysisReport:
    """Merged, distance-ordered results of a whole corpus.

    Attributes:
        distance: Threshold in meters the report was built with.
        results: Every per-file result, sorted by distance.
        within: Leading results whose distance is within the threshold.
        nearest_outside: Result directly after `within` when `within` is not
            empty and some result lies beyond the threshold.
        closest: Overall closest result when nothing is within the threshold.
        files: Per-file outcomes in input order.
    """

    distance: float
    results: Tuple[CandidateResult, ...]
    within: Tuple[CandidateResult, ...]
    nearest_outside: Optional[CandidateResult]
    closest: Optional[CandidateResult]
    files: Tuple[FileAnalysis, ...] = ()

    @property
    def failures(self) -> List[FileFailure]:
        return [
            FileFailure(path=f.path, message=f.error)
            for f in self.files
            if f.error is not None
        ]

    @property
    def found_any(self) -> bool:
        return bool(self.results)


def merge_results(outcomes: Sequence[FileAnalysis]) -> List[CandidateResult]:
    """
    Flatten per-file results and sort them by distance.

    Args:
        outcomes: Per-file outcomes, in input-file order

    Returns:
        All results in ascending distance order; ties keep input order
    """
    flattened = chain.from_iterable(outcome.results for outcome in outcomes)
    return sorted(flattened, key=attrgetter("distance"))


def partition_results(
    results: Sequence[CandidateResult], distance: float
) -> Tuple[
    Tuple[CandidateResult, ...], Optional[CandidateResult], Optional[CandidateResult]
]:
    """
    Split sorted results at the threshold.

    Args:
        results: Results sorted by ascending distance
        distance: Threshold in meters

    Returns:
        Tuple of (within, nearest_outside, closest). `nearest_outside` is the
        positional successor of the within-threshold prefix and is only set
        when that prefix is not empty; `closest` is only set when it is.
    """
    boundary = next(
        (i for i, result in enumerate(results) if result.distance > distance),
        len(results),
    )
    within = tuple(results[:boundary])

    if within:
        nearest_outside = results[boundary] if boundary < len(results) else None
        return within, nearest_outside, None
    if results:
        return within, None, results[0]
    return within, None, None


def build_report(outcomes: Sequence[FileAnalysis], distance: float) -> AnalysisReport:
    results = merge_results(outcomes)
    within, nearest_outside, closest = partition_results(results, distance)
    return AnalysisReport(
        distance=distance,
        results=tuple(results),
        within=within,
        nearest_outside=nearest_outside,
        closest=closest,
        files=tuple(outcomes),
    )


def analyze_file(
    path: str, projector: CoordinateProjector, config: AnalyzerConfig
) -> FileAnalysis:
    """
    Parse one GPX file and track its nearest approaches to the reference.

    Point-level and markup problems are logged and absorbed by the reader. A
    file that cannot be read at all is reported through `FileAnalysis.error`.

    Args:
        path: GPX file to analyze
        projector: Projector centered on the reference position
        config: Run configuration (threshold and legacy flags)

    Returns:
        FileAnalysis with the file's results in discovery order
    """
    reader = TrackPointReader(path)
    tracker = NearestApproachTracker(
        path, projector, config.distance, config.legacy_fallback_sqrt
    )
    try:
        results = tracker.track(reader)
    except FileAnalysisError as e:
        logger.warning(f"Skipping unreadable file {e.path}: {e.message}")
        return FileAnalysis(path=path, error=e.message)

    return FileAnalysis(
        path=path,
        results=tuple(results),
        points=reader.points,
        skipped_points=reader.skipped_points,
        syntax_errors=reader.syntax_errors,
    )


def analyze_files(
    paths: Sequence[str],
    reference: Position,
    config: AnalyzerConfig,
    progress: Optional[ProgressCallback] = None,
) -> AnalysisReport:
    """
    Analyze a corpus of GPX files in parallel and merge the results.

    Args:
        paths: GPX files to analyze; their order decides how ties are ordered
        reference: Position to measure distances from
        config: Run configuration
        progress: Optional callback invoked on the calling thread as
            `progress(completed, total, outcome)` after each file finishes

    Returns:
        AnalysisReport over all files

    Raises:
        InvalidInputError: If the reference or the configuration is invalid;
            raised before any file is read
    """
    validate_position(reference)
    config.validate()

    projector = CoordinateProjector(reference, config.legacy_scale_factors)
    outcomes: List[Optional[FileAnalysis]] = [None] * len(paths)

    if paths:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            futures = {
                executor.submit(analyze_file, path, projector, config): index
                for index, path in enumerate(paths)
            }
            try:
                for completed, future in enumerate(as_completed(futures), start=1):
                    outcome = future.result()
                    outcomes[futures[future]] = outcome
                    if progress is not None:
                        progress(completed, len(paths), outcome)
            except KeyboardInterrupt:
                logger.warning("Analysis interrupted; discarding unfinished files")
                executor.shutdown(wait=False, cancel_futures=True)
                raise
            except Exception:
                executor.shutdown(wait=False, cancel_futures=True)
                raise

    report = build_report([o for o in outcomes if o is not None], config.distance)
    failures = report.failures
    if failures:
        logger.warning(f"{len(failures)} of {len(paths)} file(s) could not be read")
    return report
