#!/usr/bin/env python3
"""
GPX file discovery.
"""

from typing import List, Optional, Tuple
import os
import logging

from .errors import InvalidInputError

logger = logging.getLogger(__name__)


def is_gpx_file(filename: str) -> bool:
    return filename.lower().endswith(".gpx")


def find_gpx_files(path: str, max_depth: Optional[int] = None) -> List[str]:
    """
    Collects GPX files below a directory, or returns a single GPX file.

    Strategy:
    1. A path to a .gpx file (case-insensitive) is returned as is
    2. A directory is walked with an explicit stack rather than recursion
    3. Entries are visited in sorted order, so the result order is stable
       between runs on an unchanged tree
    4. Subdirectories deeper than max_depth are not entered (0 = only the
       given directory)
    5. Unreadable subdirectories are logged and skipped

    Args:
        path: Directory or GPX file to scan
        max_depth: Optional maximum directory depth to descend into

    Returns:
        List of GPX file paths in discovery order

    Raises:
        InvalidInputError: If path does not exist, or is neither a directory
            nor a GPX file, or the top-level directory cannot be read
    """
    if os.path.isfile(path):
        if is_gpx_file(path):
            return [path]
        raise InvalidInputError(f"{path} is neither a directory nor a gpx file")
    if not os.path.isdir(path):
        raise InvalidInputError(f"{path} does not exist")

    found: List[str] = []
    stack: List[Tuple[str, int]] = [(path, 0)]

    while stack:
        directory, depth = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            if directory == path:
                raise InvalidInputError(f"Cannot read directory {path}: {e}") from e
            logger.warning(f"Skipping unreadable directory {directory}: {e}")
            continue

        subdirectories = []
        for entry in entries:
            try:
                if entry.is_dir():
                    if max_depth is None or depth < max_depth:
                        subdirectories.append(entry.path)
                elif entry.is_file() and is_gpx_file(entry.name):
                    found.append(entry.path)
            except OSError as e:
                logger.warning(f"Skipping {entry.path}: {e}")

        # Reversed so the first subdirectory is popped next (depth-first, sorted)
        stack.extend((sub, depth + 1) for sub in reversed(subdirectories))

    logger.debug(f"Found {len(found)} gpx file(s) below {path}")
    return found
