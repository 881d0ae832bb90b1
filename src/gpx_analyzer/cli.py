#!/usr/bin/env python3
"""
GPX proximity search tool
This script scans GPX track logs for points within a given distance of a
reference coordinate and prints them sorted by distance, together with the
nearest point just outside that distance.

Requirements:
    pip install gpxpy lxml pyproj

"""

from typing import Optional, Tuple
import argparse
import logging
import sys
from gpxpy import gpx, gpxfield

from . import __version__
from .analysis import AnalysisReport, FileAnalysis, analyze_files
from .config import AnalyzerConfig
from .coordinates import format_dms, resolve_reference
from .errors import InvalidInputError
from .file_utils import find_gpx_files
from .metrics import collect_metrics, log_metrics
from .tracker import CandidateResult

# Configure logging
logger = logging.getLogger("gpx_analyzer")

NO_TIME = "00:00:00"
NO_DATE = "0000-00-00"


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="gpx-analyzer",
        description="Find GPX track points near a coordinate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "path",
        type=str,
        nargs="?",
        default=".",
        help="GPX file or directory to search (default: current directory)",
    )
    parser.add_argument(
        "-c",
        "--coordinate",
        type=str,
        default=None,
        help='Reference as "lat, lon" or "N 52° 31.116 E 13° 24.498"',
    )
    parser.add_argument(
        "--latitude",
        type=str,
        default=None,
        help="Reference latitude (decimal or degrees/minutes)",
    )
    parser.add_argument(
        "--longitude",
        type=str,
        default=None,
        help="Reference longitude (decimal or degrees/minutes)",
    )
    parser.add_argument(
        "-d",
        "--distance",
        type=float,
        required=True,
        help="Search distance around the reference in meters",
    )
    parser.add_argument(
        "-j",
        "--threads",
        type=int,
        default=None,
        help="Number of worker threads (default: chosen by Python)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum directory depth to descend into (default: unlimited)",
    )
    parser.add_argument(
        "--legacy-scale-factors",
        action="store_true",
        help="Reproduce the swapped latitude/longitude scale factors of older releases",
    )
    parser.add_argument(
        "--legacy-fallback-sqrt",
        action="store_true",
        help="Reproduce the square-rooted endpoint distance of older releases",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Output structured metrics after processing",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"gpx-analyzer {__version__}",
    )
    return parser


def setup_logging(args: argparse.Namespace) -> None:
    """Setup logging configuration."""
    if hasattr(sys.stdout, "reconfigure") and sys.stdout.encoding != "utf-8":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            if hasattr(sys.stderr, "reconfigure") and sys.stderr.encoding != "utf-8":
                sys.stderr.reconfigure(encoding="utf-8")
            logger.debug("Reconfigured stdout and stderr to UTF-8 encoding.")
        except Exception as e:
            logger.debug(f"Could not reconfigure stdout/stderr to UTF-8: {e}")
    level = getattr(logging, args.log_level)

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    # Create console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)


def format_time(time: Optional[str]) -> Tuple[str, str]:
    """
    Convert a GPX timestamp to local time and date strings.

    Args:
        time: Timestamp text from the GPX file, or None

    Returns:
        Tuple of ("HH:MM:SS", "YYYY-MM-DD"); placeholders when the timestamp is
        missing or cannot be parsed
    """
    if time is None:
        return NO_TIME, NO_DATE
    try:
        parsed = gpxfield.parse_time(time)
    except (gpx.GPXException, ValueError) as e:
        logger.warning(f"Cannot parse timestamp {time!r}: {e}")
        return NO_TIME, NO_DATE
    if parsed is None:
        return NO_TIME, NO_DATE

    local = parsed.astimezone()
    return local.strftime("%H:%M:%S"), local.strftime("%Y-%m-%d")


def format_result(result: CandidateResult) -> str:
    time, date = format_time(result.time)
    return f"{result.distance:.1f};{time};{date};{result.path}"


def print_report(report: AnalysisReport) -> None:
    """
    Print the report in the semicolon-separated result format.

    Args:
        report: AnalysisReport to print
    """
    if report.within:
        print(
            f"Found {len(report.within)} point(s) in your defined minimum distance "
            f"({report.distance:.15g}m):\n"
            f"dist;time;date;path"
        )
        for result in report.within:
            print(format_result(result))
        if report.nearest_outside is not None:
            print("Nearest point out of distance was:")
            print(format_result(report.nearest_outside))
    elif report.closest is not None:
        print(
            "Did not find any point in your defined minimum distance.\n"
            "Closest was:\n"
            "dist;time;date;path"
        )
        print(format_result(report.closest))
    else:
        print("Did not find any points.")

    for failure in report.failures:
        print(f"Could not read {failure.path}: {failure.message}", file=sys.stderr)


def log_progress(completed: int, total: int, outcome: FileAnalysis) -> None:
    logger.info(
        f"[{completed}/{total}] {outcome.path}: {len(outcome.results)} result(s)"
    )


def main(argv: Optional[list] = None) -> int:
    """
    Parses command-line arguments, scans the GPX files and prints the points
    closest to the reference coordinate.
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.coordinate is not None and (
        args.latitude is not None or args.longitude is not None
    ):
        parser.error("--coordinate cannot be combined with --latitude/--longitude")

    # Setup logging
    setup_logging(args)

    try:
        reference = resolve_reference(args.coordinate, args.latitude, args.longitude)
        config = AnalyzerConfig.from_args(args)
        config.validate()
    except InvalidInputError as e:
        logger.error(str(e))
        return 1

    print(f"{reference.latitude}, {reference.longitude}")
    print(format_dms(reference))

    try:
        files = find_gpx_files(args.path, config.max_depth)
    except InvalidInputError as e:
        logger.error(str(e))
        return 1

    print(f"Found {len(files)} gpx file(s).\nSearching...")

    try:
        report = analyze_files(files, reference, config, progress=log_progress)
    except InvalidInputError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130

    print_report(report)

    metrics = collect_metrics(report)
    log_metrics(metrics, args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
