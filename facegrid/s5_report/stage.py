# facegrid/s5_report/stage.py

import json
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pandas as pd

from facegrid.utils.logging import get_logger, log_dir
from facegrid.s2_align.stage import STATUS_ALIGNED, AlignmentResult
from facegrid.s3_layout.stage import GridLayout

IMAGE_TABLE_COLUMNS = [
    "index",
    "path",
    "status",
    "width",
    "height",
    "faces",
    "confidence",
    "scale",
    "offset_x",
    "offset_y",
    "cell_column",
    "cell_row",
]


def tables_dir() -> str:
    return os.environ.get("FACEGRID_TABLES_DIR", os.path.join("results", "tables"))


def build_image_rows(result: AlignmentResult, layout: GridLayout) -> List[Dict]:
    """Per-image rows with the grid cell each aligned image went to."""
    rows = []
    cell = 0
    for record in result.records:
        row = dict(record)
        row["cell_column"] = None
        row["cell_row"] = None
        if record["status"] == STATUS_ALIGNED and layout.columns > 0:
            row["cell_column"] = cell % layout.columns
            row["cell_row"] = cell // layout.columns
            cell += 1
        rows.append(row)
    return rows


def build_manifest(config, result: AlignmentResult, layout: GridLayout, composited: int,
                   output_written: bool) -> Dict:
    cell_w, cell_h = config["grid"]["cell_size"]
    return {
        "project_name": config.get("project_name", "face-grid"),
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "settings": {
            "input": config["input"]["pattern"],
            "cell_size": f"{cell_w}x{cell_h}",
            "face_scale": config["alignment"]["face_scale"],
            "columns": config["grid"]["columns"],
            "max_images": config["grid"]["max_images"],
            "detector": config["detector"]["backend"],
            "workers": config["runtime"]["workers"],
        },
        "counts": {
            "processed": result.processed,
            "aligned": len(result.aligned),
            "composited": composited,
            "skipped": dict(sorted(result.skipped.items())),
        },
        "grid": {
            "columns": layout.columns,
            "rows": layout.rows,
            "width": layout.canvas_width,
            "height": layout.canvas_height,
        },
        "output": config["output"]["path"] if output_written else None,
    }


def run(config, result: AlignmentResult, layout: GridLayout, composited: int,
        output_written: bool) -> Optional[Dict]:
    logger = get_logger("S5")

    skipped_total = sum(result.skipped.values())
    logger.info(
        "S5: %d images processed, %d skipped, %d composited.",
        result.processed,
        skipped_total,
        composited,
    )
    for reason, n in sorted(result.skipped.items()):
        logger.info("S5:   skipped (%s): %d", reason, n)

    if not config["output"].get("report", True):
        return None

    tables_root = tables_dir()
    logs_root = log_dir()
    os.makedirs(tables_root, exist_ok=True)
    os.makedirs(logs_root, exist_ok=True)

    table_path = os.path.join(tables_root, "facegrid_images.csv")
    rows = build_image_rows(result, layout)
    pd.DataFrame(rows, columns=IMAGE_TABLE_COLUMNS).to_csv(table_path, index=False)
    logger.info("S5: Wrote per-image table: %s (rows=%d)", table_path, len(rows))

    manifest = build_manifest(config, result, layout, composited, output_written)
    manifest_path = os.path.join(logs_root, "run_manifest.json")
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)
    logger.info("S5: Wrote run manifest to '%s'.", manifest_path)

    return manifest
