from typing import Optional, Sequence

import pytest

from helpers import gpx_document


@pytest.fixture
def write_gpx(tmp_path):
    """Factory writing a GPX document into tmp_path and returning its path."""

    def _write(name: str, points: Sequence[str] = (), raw: Optional[str] = None) -> str:
        path = tmp_path / name
        path.write_text(raw if raw is not None else gpx_document(points), encoding="utf-8")
        return str(path)

    return _write
