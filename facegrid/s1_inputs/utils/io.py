# facegrid/s1_inputs/utils/io.py

import os

import numpy as np
from PIL import Image, UnidentifiedImageError

from facegrid.utils.logging import get_logger

logger = get_logger("S1_IO")

# Pillow format names that can store an alpha channel.
ALPHA_FORMATS = {"PNG", "WEBP", "TIFF", "GIF", "TGA"}


def ensure_dir(path: str) -> None:
    if path:
        os.makedirs(path, exist_ok=True)


def load_image_rgb(path: str) -> Image.Image:
    """Decode an input photograph to RGB. Raises RuntimeError if it cannot be read."""
    try:
        with Image.open(path) as im:
            img = im.convert("RGB")
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise RuntimeError(f"S1: Cannot read image '{path}': {e}") from e

    if img.width <= 0 or img.height <= 0:
        raise RuntimeError(f"S1: Image '{path}' decodes to {img.width}x{img.height}")
    return img


def output_format(path: str) -> str:
    """Writable Pillow format name inferred from the output path suffix."""
    ext = os.path.splitext(path)[1].lower()
    if not ext:
        raise ValueError(f"S1: Output path has no extension to infer a format from: {path}")
    Image.init()
    fmt = Image.EXTENSION.get(ext)
    if fmt is None:
        raise ValueError(f"S1: Unsupported output extension '{ext}': {path}")
    if fmt not in Image.SAVE:
        raise ValueError(f"S1: Pillow cannot write {fmt} files: {path}")
    return fmt


def save_canvas(canvas: np.ndarray, path: str) -> None:
    """Encode an HxWx4 uint8 canvas to path, in the format its suffix names.

    Formats without an alpha channel get the canvas flattened to RGB.
    """
    fmt = output_format(path)
    img = Image.fromarray(canvas)
    if fmt not in ALPHA_FORMATS:
        logger.warning(
            "S1: Output format %s has no alpha channel; transparent cells will be written as black.",
            fmt,
        )
        img = img.convert("RGB")

    ensure_dir(os.path.dirname(path))
    tmp = path + ".tmp"
    try:
        img.save(tmp, format=fmt)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
    os.replace(tmp, path)
