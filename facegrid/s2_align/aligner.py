# facegrid/s2_align/aligner.py

"""
Face aligner: rescales a photograph so its detected face fills a fixed target
box, and works out where the rescaled photograph must be pasted so the face
lands on the centre of its grid cell.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from facegrid.s2_align.utils.detector import DetectedFace
from facegrid.s2_align.utils.geometry import (
    Rect,
    Size,
    fit_inside,
    point_to_int,
    size_to_int,
)

# Typical face bounding box proportions (0.75 aspect ratio).
TYPICAL_FACE_SIZE: Tuple[float, float] = (75.0, 100.0)
FACE_FILL = 0.6


@dataclass
class AlignedImage:
    pixels: np.ndarray  # HxWx3 uint8, already rescaled
    offset: Tuple[int, int]  # cell-local paste position of the top-left pixel
    scale: float

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


def target_face_box(
    cell_size: Tuple[int, int],
    face_scale: float = 1.0,
    typical_face_size: Size = TYPICAL_FACE_SIZE,
    face_fill: float = FACE_FILL,
) -> Tuple[float, float]:
    """Box inside a cell that every face is scaled to fit into."""
    inside = fit_inside((float(cell_size[0]), float(cell_size[1])), typical_face_size)
    factor = face_fill * face_scale
    return inside[0] * factor, inside[1] * factor


def face_scale_factor(face: Rect, target_box: Size) -> Optional[float]:
    """Uniform scale that fits the face box inside target_box, or None if degenerate."""
    if face.width <= 0 or face.height <= 0:
        return None
    target_w, _ = fit_inside(target_box, face.size)
    return target_w / face.width


def paste_offset(face: Rect, scale: float, cell_size: Tuple[int, int]) -> Tuple[int, int]:
    """Cell-local offset that puts the scaled face centre on the cell centre."""
    cx, cy = face.center
    return point_to_int((
        cell_size[0] / 2.0 - cx * scale,
        cell_size[1] / 2.0 - cy * scale,
    ))


def align_face(
    image: Image.Image,
    faces: Sequence[DetectedFace],
    cell_size: Tuple[int, int],
    target_box: Size,
) -> Optional[AlignedImage]:
    """
    Rescale image around its single detected face.

    Returns None when there is not exactly one face or the face box is
    degenerate; the caller treats that as a skipped image.
    """
    if len(faces) != 1:
        return None

    face = faces[0].rect
    scale = face_scale_factor(face, target_box)
    if scale is None:
        return None

    new_w, new_h = size_to_int((image.width * scale, image.height * scale))
    new_w, new_h = max(1, new_w), max(1, new_h)

    resized = image.convert("RGB").resize((new_w, new_h), Image.LANCZOS)

    return AlignedImage(
        pixels=np.asarray(resized, dtype=np.uint8),
        offset=paste_offset(face, scale, cell_size),
        scale=scale,
    )
