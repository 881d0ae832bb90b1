#!/usr/bin/env python3
"""
gpx-analyzer - find GPS track points close to a reference coordinate.

This package scans GPX track logs in parallel, tracks each file's closest
approaches to a reference position and merges them into one report ordered
by distance.
"""
import importlib.metadata

__version__ = importlib.metadata.version("gpx-analyzer")

# Import main classes for public API
from .geometry import CoordinateProjector, PlanarPoint, Position
from .gpx_stream import TrackPoint, TrackPointReader
from .tracker import CandidateResult, NearestApproachTracker, TrackerState
from .analysis import AnalysisReport, FileAnalysis, analyze_file, analyze_files
from .config import AnalyzerConfig

__all__ = [
    "AnalysisReport",
    "AnalyzerConfig",
    "CandidateResult",
    "CoordinateProjector",
    "FileAnalysis",
    "NearestApproachTracker",
    "PlanarPoint",
    "Position",
    "TrackPoint",
    "TrackPointReader",
    "TrackerState",
    "analyze_file",
    "analyze_files",
]
