# facegrid/s2_align/utils/detector.py

import os
import threading
from pathlib import Path
from typing import List, NamedTuple, Optional

import cv2
import numpy as np

from facegrid.utils.logging import get_logger
from facegrid.s2_align.utils.geometry import Rect

logger = get_logger("S2_DETECT")

YUNET_URL = (
    "https://github.com/opencv/opencv_zoo/raw/main/models/"
    "face_detection_yunet/{name}.onnx"
)
HAAR_CASCADE = "haarcascade_frontalface_default.xml"


class DetectedFace(NamedTuple):
    rect: Rect  # image-local, float
    confidence: float


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _model_filename(model_name: str) -> str:
    return model_name if model_name.endswith(".onnx") else f"{model_name}.onnx"


def _candidate_weight_paths(model_name: str) -> List[Path]:
    fn = _model_filename(model_name)
    env_dir = os.environ.get("FACEGRID_WEIGHTS")
    paths: List[Path] = []
    if env_dir:
        paths.append(Path(env_dir) / fn)
    paths.extend(
        [
            _project_root() / "weights" / fn,
            Path.home() / ".cache" / "facegrid" / fn,
        ]
    )
    return paths


def _try_download(model_name: str) -> Optional[Path]:
    fn = _model_filename(model_name)
    url = YUNET_URL.format(name=fn[: -len(".onnx")])
    target = Path.home() / ".cache" / "facegrid" / fn
    tmp = target.with_suffix(".onnx.part")
    try:
        import requests

        target.parent.mkdir(parents=True, exist_ok=True)
        logger.info("S2: Downloading face detector weights from %s", url)
        with requests.get(url, stream=True, timeout=60) as r:
            r.raise_for_status()
            with tmp.open("wb") as f:
                for chunk in r.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
        os.replace(tmp, target)
        return target
    except Exception as e:
        logger.warning("S2: Download of face detector weights failed: %s", e)
        return None


def _resolve_weights(model_name: str) -> Path:
    for p in _candidate_weight_paths(model_name):
        if p.is_file():
            return p

    dl = _try_download(model_name)
    if dl and dl.is_file():
        return dl

    hint = _project_root() / "weights" / _model_filename(model_name)
    raise FileNotFoundError(
        f"Face detector weights not found: '{model_name}'. "
        f"Place file at '{hint}' or set FACEGRID_WEIGHTS=/path/to/dir"
    )


def _downscale_for_detection(rgb: np.ndarray, max_side: int):
    """Shrink rgb so its longer side is at most max_side. Returns (bgr, factor)."""
    h, w = rgb.shape[:2]
    bgr = cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
    longest = max(w, h)
    if not max_side or longest <= max_side:
        return bgr, 1.0
    factor = max_side / float(longest)
    new_size = (max(1, int(round(w * factor))), max(1, int(round(h * factor))))
    return cv2.resize(bgr, new_size, interpolation=cv2.INTER_AREA), factor


def _validate_rgb(rgb: np.ndarray) -> None:
    if rgb is None or rgb.size == 0:
        raise RuntimeError("S2: Empty image array passed to face detector.")
    if rgb.ndim != 3 or rgb.shape[2] != 3:
        raise RuntimeError(f"S2: Unexpected image array shape {rgb.shape}; expected HxWx3.")


class YuNetDetector:
    """OpenCV YuNet face detector. detect() is serialised; the model is stateful."""

    def __init__(self, model_path: Path, score_threshold: float = 0.6,
                 nms_threshold: float = 0.3, max_side: int = 640):
        self.model_path = model_path
        self.max_side = int(max_side)
        self._lock = threading.Lock()
        self._net = cv2.FaceDetectorYN.create(str(model_path), "", (0, 0))
        self._net.setScoreThreshold(float(score_threshold))
        self._net.setNMSThreshold(float(nms_threshold))

    def detect(self, rgb: np.ndarray) -> List[DetectedFace]:
        _validate_rgb(rgb)
        bgr, factor = _downscale_for_detection(rgb, self.max_side)
        h, w = bgr.shape[:2]

        with self._lock:
            self._net.setInputSize((w, h))
            _, found = self._net.detect(bgr)

        if found is None:
            return []

        faces = []
        for row in found:
            x, y, fw, fh = (float(v) / factor for v in row[:4])
            faces.append(DetectedFace(Rect(x, y, fw, fh), float(row[14])))
        return faces


class HaarDetector:
    """OpenCV's bundled frontal-face cascade; level weights stand in for confidence."""

    def __init__(self, max_side: int = 640, scale_factor: float = 1.1,
                 min_neighbors: int = 5, min_size: int = 30):
        path = os.path.join(cv2.data.haarcascades, HAAR_CASCADE)
        self._cascade = cv2.CascadeClassifier(path)
        if self._cascade.empty():
            raise RuntimeError(f"S2: Could not load Haar cascade from {path}")
        self.max_side = int(max_side)
        self.scale_factor = scale_factor
        self.min_neighbors = min_neighbors
        self.min_size = min_size
        self._lock = threading.Lock()

    def detect(self, rgb: np.ndarray) -> List[DetectedFace]:
        _validate_rgb(rgb)
        bgr, factor = _downscale_for_detection(rgb, self.max_side)
        gray = cv2.cvtColor(bgr, cv2.COLOR_BGR2GRAY)

        with self._lock:
            rects, _, weights = self._cascade.detectMultiScale3(
                gray,
                scaleFactor=self.scale_factor,
                minNeighbors=self.min_neighbors,
                minSize=(self.min_size, self.min_size),
                outputRejectLevels=True,
            )

        faces = []
        for (x, y, fw, fh), weight in zip(rects, weights):
            faces.append(
                DetectedFace(
                    Rect(x / factor, y / factor, fw / factor, fh / factor),
                    float(np.ravel(weight)[0]),
                )
            )
        return faces


def load_detector(detector_cfg):
    """
    Build the configured face detector.

    Raises RuntimeError if the backend cannot be initialised.
    """
    backend = detector_cfg.get("backend", "yunet")
    max_side = int(detector_cfg.get("max_side", 640))

    if backend == "haar":
        detector = HaarDetector(max_side=max_side)
        logger.info("S2: Loaded Haar cascade face detector (max_side=%d).", max_side)
        return detector

    if backend == "yunet":
        model_name = detector_cfg.get("model", "face_detection_yunet_2023mar")
        try:
            model_path = _resolve_weights(model_name)
            detector = YuNetDetector(
                model_path,
                score_threshold=detector_cfg.get("score_threshold", 0.6),
                nms_threshold=detector_cfg.get("nms_threshold", 0.3),
                max_side=max_side,
            )
        except (FileNotFoundError, cv2.error) as e:
            raise RuntimeError(f"S2: Failed to load YuNet face detector: {e}") from e
        logger.info(
            "S2: Loaded YuNet face detector '%s' from %s (max_side=%d).",
            model_name,
            model_path,
            max_side,
        )
        return detector

    raise RuntimeError(f"S2: Unknown face detector backend '{backend}'")
