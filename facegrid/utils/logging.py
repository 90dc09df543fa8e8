import logging
import os
from typing import Dict

_LOGGERS: Dict[str, logging.Logger] = {}
_LEVEL = logging.INFO

LOG_FILENAME = "facegrid.log"


def log_dir() -> str:
    return os.environ.get("FACEGRID_LOG_DIR", os.path.join("results", "logs"))


def _ensure_log_dir() -> str:
    path = log_dir()
    os.makedirs(path, exist_ok=True)
    return path


def get_logger(name: str) -> logging.Logger:
    """Return a logger with console + file handlers attached.

    All logs go to results/logs/facegrid.log plus stdout.
    Handlers are attached only once per logger name.
    """
    if name in _LOGGERS:
        return _LOGGERS[name]

    path = _ensure_log_dir()
    logger = logging.getLogger(f"facegrid.{name}")
    logger.setLevel(_LEVEL)
    logger.propagate = False

    if not logger.handlers:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

        file_path = os.path.join(path, LOG_FILENAME)
        file_handler = logging.FileHandler(file_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _LOGGERS[name] = logger
    return logger


def set_verbosity(verbose: bool) -> None:
    """Switch between INFO and DEBUG, for existing loggers and those created later."""
    global _LEVEL
    _LEVEL = logging.DEBUG if verbose else logging.INFO
    for logger in _LOGGERS.values():
        logger.setLevel(_LEVEL)
