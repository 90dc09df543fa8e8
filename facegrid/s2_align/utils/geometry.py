# facegrid/s2_align/utils/geometry.py

"""
Rectangle and size arithmetic shared by the aligner and the compositor.

Sizes are (width, height) tuples, points are (x, y) tuples, rectangles are
Rect(x, y, width, height). Components may be float (face/image space) or int
(pixel space); which frame a Rect lives in is up to the caller.
"""

import math
from typing import NamedTuple, Optional, Tuple, Union

Number = Union[int, float]
Size = Tuple[Number, Number]
Point = Tuple[Number, Number]


class Rect(NamedTuple):
    x: Number
    y: Number
    width: Number
    height: Number

    @property
    def size(self) -> Size:
        return self.width, self.height

    @property
    def center(self) -> Point:
        return self.x + self.width / 2.0, self.y + self.height / 2.0


def fit_inside(container: Size, content: Size) -> Tuple[float, float]:
    """Largest size with content's aspect ratio that fits inside container.

    content must have non-zero width and height.
    """
    scale = min(container[0] / content[0], container[1] / content[1])
    return content[0] * scale, content[1] * scale


def intersect(a: Rect, b: Rect) -> Optional[Rect]:
    """Overlap of two rectangles in the same frame, expressed relative to a.

    The returned x/y are offsets from a's top-left corner. Returns None when
    the rectangles do not overlap or only touch along an edge.
    """
    x1 = max(a.x, b.x)
    y1 = max(a.y, b.y)
    x2 = min(a.x + a.width, b.x + b.width)
    y2 = min(a.y + a.height, b.y + b.height)

    if x2 <= x1 or y2 <= y1:
        return None

    return Rect(x1 - a.x, y1 - a.y, x2 - x1, y2 - y1)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def size_to_int(size: Size) -> Tuple[int, int]:
    return round_half_away(size[0]), round_half_away(size[1])


def point_to_int(point: Point) -> Tuple[int, int]:
    return round_half_away(point[0]), round_half_away(point[1])
