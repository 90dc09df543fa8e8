import os
import sys
import tempfile
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

# Ensure the repo root is on sys.path for direct pytest runs
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Keep log files out of the working tree; must be set before facegrid is imported.
os.environ.setdefault("FACEGRID_LOG_DIR", tempfile.mkdtemp(prefix="facegrid-logs-"))

from facegrid.s2_align.utils.detector import DetectedFace  # noqa: E402
from facegrid.s2_align.utils.geometry import Rect  # noqa: E402


class FakeDetector:
    """Returns canned faces keyed by image (width, height)."""

    def __init__(self, faces_by_size):
        self.faces_by_size = faces_by_size
        self.calls = 0

    def detect(self, rgb):
        self.calls += 1
        h, w = rgb.shape[:2]
        return list(self.faces_by_size.get((w, h), []))


def face(x, y, w, h, confidence=0.9):
    return DetectedFace(Rect(float(x), float(y), float(w), float(h)), confidence)


def write_image(path, size, color=(128, 128, 128), blocks=()):
    """Write a solid PNG of size (w, h) with optional red (x0, y0, x1, y1) blocks."""
    arr = np.zeros((size[1], size[0], 3), dtype=np.uint8)
    arr[...] = color
    for x0, y0, x1, y1 in blocks:
        arr[y0:y1, x0:x1] = (255, 0, 0)
    Image.fromarray(arr).save(path)
    return str(path)


@pytest.fixture
def report_dirs(tmp_path, monkeypatch):
    tables = tmp_path / "tables"
    monkeypatch.setenv("FACEGRID_TABLES_DIR", str(tables))
    return tables
