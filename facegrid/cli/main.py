import argparse
import os
import sys

from facegrid import __version__
from facegrid.utils.config import (
    DETECTOR_BACKENDS,
    apply_overrides,
    default_config,
    load_config,
    validate_config,
)
from facegrid.utils.logging import get_logger, set_verbosity
from facegrid.cli.environment import check_environment
from facegrid.s1_inputs import stage as s1_inputs
from facegrid.s2_align import stage as s2_align
from facegrid.s3_layout import stage as s3_layout
from facegrid.s4_composite import stage as s4_composite
from facegrid.s5_report import stage as s5_report

DEFAULT_CONFIG_PATH = "config.json"

STAGE_LABELS = {
    "s1": "S1 — Input enumeration",
    "s2": "S2 — Face detection and alignment",
    "s3": "S3 — Grid layout",
    "s4": "S4 — Compositing",
    "s5": "S5 — Run report",
}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="face-grid",
        description="Creates a grid of face-aligned images.",
    )
    parser.add_argument(
        "--config",
        help=(
            "JSON configuration file. Defaults to ./config.json when present, "
            "otherwise built-in defaults are used."
        ),
    )
    parser.add_argument("--input", help='File mask (e.g., "images/*.jpg").')
    parser.add_argument("--cell-size", help='Cell dimensions (e.g., "800x600").')
    parser.add_argument("--face-scale", type=float, help='Scale of the face (e.g., "0.5").')
    parser.add_argument("--output", help='Output file name (e.g., "output.png").')
    parser.add_argument(
        "--columns",
        type=int,
        help="Number of columns. If 0, get as close as possible to a square.",
    )
    parser.add_argument(
        "--max-images",
        type=int,
        help="Maximum number of valid images to use (0 = unlimited).",
    )
    parser.add_argument("--workers", type=int, help="Threads used for detection and alignment.")
    parser.add_argument("--detector", choices=DETECTOR_BACKENDS, help="Face detector backend.")
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Do not write the per-image table and run manifest.",
    )
    parser.add_argument(
        "--check-env",
        action="store_true",
        help="Check the interpreter and dependencies, then exit.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log per-cell debug output.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def build_config(args):
    if args.config:
        config = load_config(args.config)
    elif os.path.isfile(DEFAULT_CONFIG_PATH):
        config = load_config(DEFAULT_CONFIG_PATH)
    else:
        config = default_config()

    overrides = {
        "input": {"pattern": args.input},
        "grid": {
            "cell_size": args.cell_size,
            "columns": args.columns,
            "max_images": args.max_images,
        },
        "alignment": {"face_scale": args.face_scale},
        "detector": {"backend": args.detector},
        "runtime": {"workers": args.workers},
        "output": {
            "path": args.output,
            "report": False if args.no_report else None,
        },
    }
    return validate_config(apply_overrides(config, overrides))


def run_pipeline(config, detector=None) -> int:
    logger = get_logger("CLI")
    logger.info(
        "Will get files from '%s', and output at '%s'.",
        config["input"]["pattern"],
        config["output"]["path"],
    )

    logger.info("=== START %s ===", STAGE_LABELS["s1"])
    paths = s1_inputs.run(config)

    logger.info("=== START %s ===", STAGE_LABELS["s2"])
    result = s2_align.run(config, paths, detector=detector)

    logger.info("=== START %s ===", STAGE_LABELS["s3"])
    layout = s3_layout.run(config, len(result.aligned))

    logger.info("=== START %s ===", STAGE_LABELS["s4"])
    canvas = s4_composite.run(config, layout, result.aligned)
    written = canvas is not None

    logger.info("=== START %s ===", STAGE_LABELS["s5"])
    s5_report.run(
        config,
        result,
        layout,
        composited=len(result.aligned) if written else 0,
        output_written=written,
    )

    logger.info("Pipeline execution completed.")
    return 0


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]

    args = parse_args(argv)
    config = build_config(args)
    set_verbosity(args.verbose)

    if args.check_env:
        ok, lines = check_environment(config)
        print("\n--- Environment check ---")
        for line in lines:
            print(line)
        return 0 if ok else 1

    return run_pipeline(config)


if __name__ == "__main__":
    raise SystemExit(main())
