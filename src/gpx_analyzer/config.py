import argparse
import math
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidInputError


@dataclass
class AnalyzerConfig:
    """Configuration for a gpx-analyzer run."""

    distance: float = 0.0
    workers: Optional[int] = None
    max_depth: Optional[int] = None
    legacy_scale_factors: bool = False
    legacy_fallback_sqrt: bool = False
    log_level: str = "WARNING"
    metrics: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "AnalyzerConfig":
        return cls(
            distance=args.distance,
            workers=args.threads,
            max_depth=args.max_depth,
            legacy_scale_factors=args.legacy_scale_factors,
            legacy_fallback_sqrt=args.legacy_fallback_sqrt,
            log_level=args.log_level,
            metrics=args.metrics,
        )

    def validate(self) -> None:
        """
        Check the run parameters before any file is touched.

        Raises:
            InvalidInputError: If the distance, worker count or depth is unusable
        """
        if not math.isfinite(self.distance) or self.distance < 0:
            raise InvalidInputError(
                f"Distance must be a non-negative number of meters, got {self.distance}"
            )
        if self.workers is not None and self.workers < 1:
            raise InvalidInputError(
                f"Thread count must be at least 1, got {self.workers}"
            )
        if self.max_depth is not None and self.max_depth < 0:
            raise InvalidInputError(
                f"Maximum depth must be non-negative, got {self.max_depth}"
            )
