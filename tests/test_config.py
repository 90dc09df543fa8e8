import json

import pytest

from facegrid.utils.config import (
    apply_overrides,
    default_config,
    load_config,
    parse_dimensions,
    validate_config,
)


def test_parse_dimensions():
    assert parse_dimensions("800x600") == (800, 600)
    assert parse_dimensions(" 100X80 ") == (100, 80)


@pytest.mark.parametrize("src", ["800", "800x600x3", "axb", "10x"])
def test_parse_dimensions_rejects_bad_input(src):
    with pytest.raises(ValueError):
        parse_dimensions(src)


def test_load_config_missing_file(tmp_path):
    with pytest.raises(SystemExit):
        load_config(str(tmp_path / "nope.json"))


def test_load_config_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SystemExit):
        load_config(str(path))


def test_load_config_merges_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"grid": {"columns": 5}}), encoding="utf-8")

    cfg = load_config(str(path))

    assert cfg["grid"]["columns"] == 5
    assert cfg["grid"]["cell_size"] == "100x100"
    assert cfg["detector"]["backend"] == "yunet"


def test_apply_overrides_ignores_none():
    cfg = apply_overrides(
        default_config(),
        {"grid": {"columns": None, "max_images": 3}, "output": {"path": None}},
    )
    assert cfg["grid"]["columns"] == 0
    assert cfg["grid"]["max_images"] == 3
    assert cfg["output"]["path"] == "face-grid-output.png"


def test_validate_config_normalises_cell_size():
    cfg = validate_config(default_config())
    assert cfg["grid"]["cell_size"] == (100, 100)
    assert cfg["alignment"]["typical_face_size"] == (75.0, 100.0)


def test_validate_config_accepts_list_cell_size():
    cfg = default_config()
    cfg["grid"]["cell_size"] = [64, 32]
    assert validate_config(cfg)["grid"]["cell_size"] == (64, 32)


@pytest.mark.parametrize(
    "section, key, value",
    [
        ("grid", "cell_size", "0x100"),
        ("grid", "cell_size", "100x-1"),
        ("grid", "cell_size", "wide"),
        ("grid", "columns", -1),
        ("grid", "max_images", -5),
        ("alignment", "face_scale", 0),
        ("alignment", "face_fill", -0.1),
        ("alignment", "typical_face_size", [75.0]),
        ("runtime", "workers", 0),
        ("detector", "backend", "mtcnn"),
    ],
)
def test_validate_config_rejects(section, key, value):
    cfg = default_config()
    cfg[section][key] = value
    with pytest.raises(SystemExit):
        validate_config(cfg)
