#!/usr/bin/env python3
"""Error types raised across gpx-analyzer."""


class GpxAnalyzerError(RuntimeError):
    """Base error for gpx-analyzer failures."""


class InvalidInputError(GpxAnalyzerError, ValueError):
    """Raised when the reference, threshold or input path cannot be used."""


class CoordinateParseError(InvalidInputError):
    """Raised when a coordinate string cannot be decoded."""


class FileAnalysisError(GpxAnalyzerError):
    """Raised when a single GPX file cannot be read."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


__all__ = [
    "GpxAnalyzerError",
    "InvalidInputError",
    "CoordinateParseError",
    "FileAnalysisError",
]
