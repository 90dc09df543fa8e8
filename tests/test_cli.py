import json

import pytest

from conftest import FakeDetector
from facegrid.cli import main as cli
from facegrid.cli.environment import _check_python_version, _map_pkg, check_environment


def test_build_config_flags_override_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"grid": {"columns": 2, "cell_size": "50x40"}}), encoding="utf-8")

    args = cli.parse_args([
        "--config", str(path),
        "--cell-size", "80x60",
        "--face-scale", "0.5",
        "--max-images", "7",
        "--workers", "4",
        "--detector", "haar",
        "--no-report",
    ])
    cfg = cli.build_config(args)

    assert cfg["grid"]["cell_size"] == (80, 60)
    assert cfg["grid"]["columns"] == 2
    assert cfg["grid"]["max_images"] == 7
    assert cfg["alignment"]["face_scale"] == 0.5
    assert cfg["runtime"]["workers"] == 4
    assert cfg["detector"]["backend"] == "haar"
    assert cfg["output"]["report"] is False


def test_build_config_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = cli.build_config(cli.parse_args([]))
    assert cfg["input"]["pattern"] == "*.jpg"
    assert cfg["grid"]["cell_size"] == (100, 100)
    assert cfg["output"]["path"] == "face-grid-output.png"


def test_invalid_cell_size_flag_exits(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit):
        cli.build_config(cli.parse_args(["--cell-size", "0x10"]))


def test_main_runs_pipeline_with_loaded_detector(tmp_path, monkeypatch, report_dirs):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli.s2_align, "load_detector", lambda cfg: FakeDetector({}))

    assert cli.main(["--input", str(tmp_path / "*.jpg"), "--output", str(tmp_path / "g.png")]) == 0


def test_check_env_flag(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert cli.main(["--check-env"]) == 0
    assert "Environment check PASSED." in capsys.readouterr().out


def test_check_environment_reports_missing_module():
    ok, lines = check_environment({"env": {"dependencies": {"surely-not-installed-pkg": ""}}})
    assert not ok
    assert any(line.startswith("FAIL - import surely_not_installed_pkg") for line in lines)


def test_python_version_bounds():
    assert _check_python_version({"min": "3.0"})[0]
    assert not _check_python_version({"min": "99.0"})[0]
    assert not _check_python_version({"max": "2.7"})[0]


def test_map_pkg():
    assert _map_pkg("opencv-python") == "cv2"
    assert _map_pkg("pillow") == "PIL"
    assert _map_pkg("Pillow") == "PIL"
    assert _map_pkg("some-pkg") == "some_pkg"
