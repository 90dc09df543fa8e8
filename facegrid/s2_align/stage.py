# facegrid/s2_align/stage.py

import os
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from facegrid.utils.logging import get_logger
from facegrid.s1_inputs.utils.io import load_image_rgb
from facegrid.s2_align.aligner import AlignedImage, align_face, target_face_box
from facegrid.s2_align.utils.detector import load_detector

logger = get_logger("S2")

STATUS_ALIGNED = "aligned"
STATUS_INVALID_IMAGE = "invalid_image"
STATUS_NO_FACE = "no_face"
STATUS_MULTIPLE_FACES = "multiple_faces"
STATUS_DEGENERATE_FACE = "degenerate_face"
STATUS_DETECTOR_ERROR = "detector_error"


@dataclass
class AlignmentResult:
    aligned: List[AlignedImage] = field(default_factory=list)
    records: List[Dict] = field(default_factory=list)
    skipped: Counter = field(default_factory=Counter)

    @property
    def processed(self) -> int:
        return len(self.records)


def _new_record(index: int, path: str) -> Dict:
    return {
        "index": index,
        "path": path,
        "status": None,
        "width": None,
        "height": None,
        "faces": None,
        "confidence": None,
        "scale": None,
        "offset_x": None,
        "offset_y": None,
    }


def process_image(
    index: int,
    path: str,
    detector,
    cell_size: Tuple[int, int],
    target_box: Tuple[float, float],
) -> Tuple[Dict, Optional[AlignedImage]]:
    """Decode, detect and align one input. Never raises for per-image problems."""
    record = _new_record(index, path)
    name = os.path.basename(path)

    try:
        img = load_image_rgb(path)
    except RuntimeError as e:
        logger.warning("S2: %s; invalid image, skipping.", e)
        record["status"] = STATUS_INVALID_IMAGE
        return record, None

    record["width"], record["height"] = img.size

    try:
        faces = detector.detect(np.asarray(img))
    except (RuntimeError, cv2.error) as e:
        logger.error("S2: Face detection failed on '%s': %s", name, e)
        record["status"] = STATUS_DETECTOR_ERROR
        return record, None

    record["faces"] = len(faces)
    if len(faces) == 0:
        logger.info("S2: '%s' %dx%d, no faces; skipping.", name, img.width, img.height)
        record["status"] = STATUS_NO_FACE
        return record, None
    if len(faces) > 1:
        logger.info("S2: '%s' %dx%d, %d faces; skipping.", name, img.width, img.height, len(faces))
        record["status"] = STATUS_MULTIPLE_FACES
        return record, None

    record["confidence"] = faces[0].confidence
    aligned = align_face(img, faces, cell_size, target_box)
    if aligned is None:
        logger.warning("S2: '%s' has a zero-sized face box; skipping.", name)
        record["status"] = STATUS_DEGENERATE_FACE
        return record, None

    record["status"] = STATUS_ALIGNED
    record["scale"] = aligned.scale
    record["offset_x"], record["offset_y"] = aligned.offset
    logger.info(
        "S2: '%s' %dx%d, 1 face, confidence %.3f -> %dx%d at offset (%d, %d).",
        name,
        img.width,
        img.height,
        faces[0].confidence,
        aligned.width,
        aligned.height,
        aligned.offset[0],
        aligned.offset[1],
    )
    return record, aligned


def _collect(result: AlignmentResult, record: Dict, aligned: Optional[AlignedImage]) -> None:
    result.records.append(record)
    if aligned is None:
        result.skipped[record["status"]] += 1
    else:
        result.aligned.append(aligned)


def _limit_reached(result: AlignmentResult, max_images: int) -> bool:
    return max_images > 0 and len(result.aligned) >= max_images


def align_inputs(
    paths: Sequence[str],
    detector,
    cell_size: Tuple[int, int],
    target_box: Tuple[float, float],
    max_images: int = 0,
    workers: int = 1,
) -> AlignmentResult:
    """
    Align every input in order, stopping once max_images results exist.

    With workers > 1 inputs are handled in batches on a thread pool; each
    worker fills the slot of its input index so results keep input order and
    the outcome is identical to a sequential run.
    """
    result = AlignmentResult()
    total = len(paths)

    if workers <= 1:
        for i, path in enumerate(paths):
            logger.debug("S2: (%d/%d) Reading '%s'", i + 1, total, path)
            _collect(result, *process_image(i, path, detector, cell_size, target_box))
            if _limit_reached(result, max_images):
                break
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            start = 0
            while start < total:
                # Each input aligns at most once, so never take more than is still missing.
                batch_size = workers * 2
                if max_images > 0:
                    batch_size = min(batch_size, max_images - len(result.aligned))
                batch = list(enumerate(paths[start:start + batch_size], start=start))
                start += len(batch)
                slots: List[Optional[Tuple[Dict, Optional[AlignedImage]]]] = [None] * len(batch)
                futures = {
                    pool.submit(process_image, i, path, detector, cell_size, target_box): slot
                    for slot, (i, path) in enumerate(batch)
                }
                for fut in as_completed(futures):
                    slots[futures[fut]] = fut.result()

                for outcome in slots:
                    _collect(result, *outcome)
                    if _limit_reached(result, max_images):
                        break

                logger.info(
                    "S2: Processed %d / %d files, %d aligned so far.",
                    result.processed,
                    total,
                    len(result.aligned),
                )
                if _limit_reached(result, max_images):
                    break

    if _limit_reached(result, max_images) and result.processed < total:
        logger.info(
            "S2: Reached the maximum of %d aligned images; skipping %d remaining files.",
            max_images,
            total - result.processed,
        )

    return result


def run(config, paths: Sequence[str], detector=None) -> AlignmentResult:
    logger.info("S2: Face detection and alignment started.")

    grid_cfg = config["grid"]
    align_cfg = config["alignment"]
    cell_size = tuple(grid_cfg["cell_size"])

    if detector is None:
        try:
            detector = load_detector(config["detector"])
        except RuntimeError as e:
            logger.error("%s", e)
            raise SystemExit(1)

    target_box = target_face_box(
        cell_size,
        face_scale=align_cfg["face_scale"],
        typical_face_size=align_cfg["typical_face_size"],
        face_fill=align_cfg["face_fill"],
    )
    logger.info(
        "S2: Cell %dx%d, target face box %.1fx%.1f (face_scale=%.2f).",
        cell_size[0],
        cell_size[1],
        target_box[0],
        target_box[1],
        align_cfg["face_scale"],
    )

    result = align_inputs(
        paths,
        detector,
        cell_size,
        target_box,
        max_images=grid_cfg["max_images"],
        workers=config["runtime"]["workers"],
    )

    skipped = ", ".join(f"{k}={v}" for k, v in sorted(result.skipped.items())) or "none"
    logger.info(
        "S2: Done. %d files processed, %d aligned, skipped: %s.",
        result.processed,
        len(result.aligned),
        skipped,
    )
    return result
