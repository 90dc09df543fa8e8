# facegrid/s3_layout/stage.py

import math
from typing import NamedTuple, Tuple

from facegrid.utils.logging import get_logger


class GridLayout(NamedTuple):
    columns: int
    rows: int
    cell_width: int
    cell_height: int
    canvas_width: int
    canvas_height: int

    @property
    def canvas_size(self) -> Tuple[int, int]:
        return self.canvas_width, self.canvas_height

    def cell_origin(self, index: int) -> Tuple[int, int]:
        """Canvas-absolute top-left of the index-th cell, row-major."""
        col = index % self.columns
        row = index // self.columns
        return col * self.cell_width, row * self.cell_height


def _ceil_sqrt(n: int) -> int:
    root = math.isqrt(n)
    return root if root * root == n else root + 1


def plan_grid(count: int, preferred_columns: int, cell_size: Tuple[int, int]) -> GridLayout:
    """Columns/rows and canvas size for count cells.

    preferred_columns == 0 picks the smallest square-ish grid. count == 0
    yields an empty 0x0 layout.
    """
    cell_w, cell_h = cell_size
    if count <= 0:
        return GridLayout(0, 0, cell_w, cell_h, 0, 0)

    columns = preferred_columns if preferred_columns > 0 else _ceil_sqrt(count)
    rows = -(-count // columns)
    return GridLayout(columns, rows, cell_w, cell_h, columns * cell_w, rows * cell_h)


def run(config, count: int) -> GridLayout:
    logger = get_logger("S3")
    grid_cfg = config["grid"]
    layout = plan_grid(count, grid_cfg["columns"], tuple(grid_cfg["cell_size"]))
    logger.info(
        "S3: The output size will be %dx%d, with %d rows and %d columns of images.",
        layout.canvas_width,
        layout.canvas_height,
        layout.rows,
        layout.columns,
    )
    return layout
