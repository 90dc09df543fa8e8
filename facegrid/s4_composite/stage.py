# facegrid/s4_composite/stage.py

from typing import Optional, Sequence

import numpy as np

from facegrid.utils.logging import get_logger
from facegrid.s1_inputs.utils.io import save_canvas
from facegrid.s2_align.aligner import AlignedImage
from facegrid.s3_layout.stage import GridLayout
from facegrid.s4_composite.utils.compositor import NoOverlapError, new_canvas, paste_aligned

logger = get_logger("S4")


def composite(layout: GridLayout, aligned: Sequence[AlignedImage]) -> np.ndarray:
    """Paste aligned images into their row-major cells on a fresh canvas.

    Raises NoOverlapError if any image misses its cell entirely.
    """
    canvas = new_canvas(layout.canvas_width, layout.canvas_height)
    cell_size = (layout.cell_width, layout.cell_height)
    total = len(aligned)

    for i, item in enumerate(aligned):
        origin = layout.cell_origin(i)
        overlap = paste_aligned(canvas, item, origin, cell_size)
        logger.debug(
            "S4: (%d/%d) Pasted %dx%d region into cell at (%d, %d).",
            i + 1,
            total,
            overlap.width,
            overlap.height,
            origin[0],
            origin[1],
        )

    return canvas


def run(config, layout: GridLayout, aligned: Sequence[AlignedImage]) -> Optional[np.ndarray]:
    output_path = config["output"]["path"]
    logger.info("S4: Compositing %d images.", len(aligned))

    if not aligned:
        logger.warning("S4: No aligned images; the grid is empty and '%s' will not be written.", output_path)
        return None

    try:
        canvas = composite(layout, aligned)
    except NoOverlapError as e:
        logger.error("S4: %s", e)
        raise SystemExit(1)

    logger.info("S4: Done. %d images blended.", len(aligned))

    try:
        save_canvas(canvas, output_path)
    except (OSError, ValueError) as e:
        logger.error("S4: Failed to save output image '%s': %s", output_path, e)
        raise SystemExit(1)

    logger.info("S4: Wrote %dx%d grid to '%s'.", layout.canvas_width, layout.canvas_height, output_path)
    return canvas
