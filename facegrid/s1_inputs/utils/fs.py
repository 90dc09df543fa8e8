# facegrid/s1_inputs/utils/fs.py

import glob
import os
from typing import List

from facegrid.utils.logging import get_logger


logger = get_logger("S1_FS")


def list_input_paths(pattern: str) -> List[str]:
    """Return regular files matching pattern, sorted lexicographically.

    Filesystem enumeration order is not stable across platforms; grid placement
    depends on order, so the result is always sorted.
    """
    try:
        matches = glob.glob(os.path.expanduser(pattern), recursive=True)
    except (OSError, ValueError) as e:
        logger.error("S1: Failed to expand pattern '%s': %s", pattern, e)
        raise SystemExit(1)

    paths = sorted(p for p in matches if os.path.isfile(p))

    if paths:
        sample = [os.path.basename(p) for p in paths[:5]]
        logger.info("S1: Sample input filenames: %s", ", ".join(sample))

    return paths
