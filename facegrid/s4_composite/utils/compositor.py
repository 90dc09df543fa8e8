# facegrid/s4_composite/utils/compositor.py

from typing import Tuple

import numpy as np

from facegrid.s2_align.aligner import AlignedImage
from facegrid.s2_align.utils.geometry import Rect, intersect


class NoOverlapError(RuntimeError):
    """An aligned image does not touch its cell at all."""


def new_canvas(width: int, height: int) -> np.ndarray:
    """Fully transparent HxWx4 RGBA canvas."""
    return np.zeros((height, width, 4), dtype=np.uint8)


def paste_aligned(
    canvas: np.ndarray,
    aligned: AlignedImage,
    cell_origin: Tuple[int, int],
    cell_size: Tuple[int, int],
) -> Rect:
    """
    Copy the part of aligned that falls inside its cell onto canvas.

    RGB is overwritten and alpha forced to 255 over the overlap; the rest of
    the cell is left untouched. Returns the overlap in cell-local coordinates.
    Raises NoOverlapError if the image and the cell do not intersect.
    """
    dx, dy = aligned.offset
    cell_rect = Rect(0, 0, cell_size[0], cell_size[1])
    image_rect = Rect(dx, dy, aligned.width, aligned.height)

    overlap = intersect(cell_rect, image_rect)
    if overlap is None:
        raise NoOverlapError(
            f"Cannot paste {aligned.width}x{aligned.height} image at offset ({dx}, {dy}); "
            f"no intersection with {cell_size[0]}x{cell_size[1]} cell."
        )

    x0 = cell_origin[0] + overlap.x
    y0 = cell_origin[1] + overlap.y
    sx = overlap.x - dx
    sy = overlap.y - dy

    dst = canvas[y0:y0 + overlap.height, x0:x0 + overlap.width]
    dst[..., :3] = aligned.pixels[sy:sy + overlap.height, sx:sx + overlap.width, :3]
    dst[..., 3] = 255
    return overlap
