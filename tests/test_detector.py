import numpy as np
import pytest

from facegrid.s2_align.utils import detector as det
from facegrid.s2_align.utils.detector import HaarDetector, _downscale_for_detection, load_detector


def test_downscale_keeps_small_images():
    rgb = np.zeros((100, 80, 3), dtype=np.uint8)
    bgr, factor = _downscale_for_detection(rgb, 640)
    assert factor == 1.0
    assert bgr.shape == (100, 80, 3)


def test_downscale_limits_longest_side():
    rgb = np.zeros((1000, 2000, 3), dtype=np.uint8)
    bgr, factor = _downscale_for_detection(rgb, 500)
    assert factor == pytest.approx(0.25)
    assert bgr.shape == (250, 500, 3)


def test_haar_detector_finds_nothing_on_blank_image():
    detector = load_detector({"backend": "haar", "max_side": 320})
    assert isinstance(detector, HaarDetector)
    assert detector.detect(np.full((200, 200, 3), 127, dtype=np.uint8)) == []


def test_detector_rejects_bad_arrays():
    detector = HaarDetector()
    with pytest.raises(RuntimeError):
        detector.detect(np.zeros((0, 0, 3), dtype=np.uint8))
    with pytest.raises(RuntimeError):
        detector.detect(np.zeros((10, 10), dtype=np.uint8))


def test_unknown_backend():
    with pytest.raises(RuntimeError):
        load_detector({"backend": "nope"})


def test_yunet_without_weights_fails_cleanly(tmp_path, monkeypatch):
    monkeypatch.setattr(det, "_candidate_weight_paths", lambda name: [tmp_path / "missing.onnx"])
    monkeypatch.setattr(det, "_try_download", lambda name: None)
    with pytest.raises(RuntimeError):
        load_detector({"backend": "yunet"})


def test_weight_paths_honour_env(tmp_path, monkeypatch):
    monkeypatch.setenv("FACEGRID_WEIGHTS", str(tmp_path))
    paths = det._candidate_weight_paths("face_detection_yunet_2023mar")
    assert paths[0] == tmp_path / "face_detection_yunet_2023mar.onnx"
