"""
Module for collecting and logging metrics about an analysis run.
"""

import argparse
import logging
from typing import NamedTuple

from .analysis import AnalysisReport

logger = logging.getLogger(__name__)


class AnalysisMetrics(NamedTuple):
    """Container for analysis metrics data."""

    files_total: int
    files_failed: int
    points_parsed: int
    points_skipped: int
    syntax_errors: int
    results_total: int
    results_within: int


def collect_metrics(report: AnalysisReport) -> AnalysisMetrics:
    """
    Collect metrics from a finished report.

    Counts come from the per-file outcomes after all workers have joined, so
    no counter is shared between worker threads.

    Args:
        report: AnalysisReport to summarize

    Returns:
        AnalysisMetrics containing all collected metrics
    """
    return AnalysisMetrics(
        files_total=len(report.files),
        files_failed=sum(1 for f in report.files if f.failed),
        points_parsed=sum(f.points for f in report.files),
        points_skipped=sum(f.skipped_points for f in report.files),
        syntax_errors=sum(f.syntax_errors for f in report.files),
        results_total=len(report.results),
        results_within=len(report.within),
    )


def log_metrics(metrics: AnalysisMetrics, args: argparse.Namespace) -> None:
    """
    Log detailed metrics after the report has been printed.

    Args:
        metrics: AnalysisMetrics containing collected metrics
        args: argparse.Namespace object containing settings like metrics flag
    """
    if not args.metrics:
        return

    logger.debug("=== GPX_ANALYZER_METRICS ===")
    for key, value in metrics._asdict().items():
        logger.debug(f"{key}={value}")
    logger.debug("=== END_GPX_ANALYZER_METRICS ===")
