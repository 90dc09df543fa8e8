# facegrid/s1_inputs/stage.py

from typing import List

from facegrid.utils.logging import get_logger
from facegrid.s1_inputs.utils.fs import list_input_paths


def run(config) -> List[str]:
    logger = get_logger("S1")
    pattern = config["input"]["pattern"]
    logger.info("S1: Collecting input files from '%s'.", pattern)

    paths = list_input_paths(pattern)
    if not paths:
        logger.warning("S1: No files match '%s'.", pattern)
    else:
        logger.info("S1: Found %d candidate files.", len(paths))

    return paths
