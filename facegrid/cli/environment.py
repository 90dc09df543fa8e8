import importlib
import sys
from typing import Dict, List, Optional, Tuple

from facegrid.utils.logging import get_logger

LOGGER = get_logger("ENV")

MODULE_NAME_OVERRIDES: Dict[str, str] = {
    "opencv-python": "cv2",
    "opencv-python-headless": "cv2",
    "pillow": "PIL",
}

DEFAULT_DEPENDENCIES: Dict[str, str] = {
    "numpy": "",
    "pillow": "",
    "opencv-python": "",
    "pandas": "",
    "requests": "",
}


# ---------------------------------------------------------------------------
# Version checks
# ---------------------------------------------------------------------------

def _parse_version(v: Optional[str]):
    if not v:
        return None
    parts = str(v).split(".")
    if len(parts) < 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


def _check_python_version(python_cfg: Dict[str, str]) -> Tuple[bool, str]:
    major, minor = sys.version_info[:2]
    current = (major, minor)
    cur_str = f"{major}.{minor}"

    min_v = _parse_version(python_cfg.get("min"))
    max_v = _parse_version(python_cfg.get("max"))

    if min_v and current < min_v:
        return False, f"Python {cur_str} < min required {min_v[0]}.{min_v[1]}"
    if max_v and current > max_v:
        return False, f"Python {cur_str} > supported max {max_v[0]}.{max_v[1]}"

    return True, f"Python {cur_str} OK"


# ---------------------------------------------------------------------------
# Module import checks
# ---------------------------------------------------------------------------

def _map_pkg(pkg: str) -> str:
    return MODULE_NAME_OVERRIDES.get(pkg, MODULE_NAME_OVERRIDES.get(pkg.lower(), pkg.replace("-", "_")))


def _check_imports(deps: Dict[str, str]) -> Tuple[bool, List[str]]:
    msgs = []
    ok = True
    for pkg in deps.keys():
        mod = _map_pkg(pkg)
        try:
            imported = importlib.import_module(mod)
            version = getattr(imported, "__version__", "")
            msgs.append(f"OK - import {mod} {version}".rstrip())
        except Exception as e:
            ok = False
            msgs.append(f"FAIL - import {mod}: {e}")
    return ok, msgs


# ---------------------------------------------------------------------------
# Environment check
# ---------------------------------------------------------------------------

def check_environment(config=None) -> Tuple[bool, List[str]]:
    env_cfg = (config or {}).get("env", {}) or {}
    py_cfg = env_cfg.get("python", {}) or {}
    deps = env_cfg.get("dependencies") or DEFAULT_DEPENDENCIES

    lines = [f"Interpreter: {sys.executable}"]

    ok_py, msg_py = _check_python_version(py_cfg)
    (LOGGER.info if ok_py else LOGGER.error)(msg_py)
    lines.append(msg_py)

    ok_mod, mod_lines = _check_imports(deps)
    lines.extend(mod_lines)

    ok = ok_py and ok_mod
    lines.append("Environment check PASSED." if ok else "Environment check FAILED.")
    return ok, lines
