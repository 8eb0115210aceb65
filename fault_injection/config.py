import copy
import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    "fault_injection": {},
    "logging": {
        "level": "WARNING",
        "log_path": None,
    },
}

LOGGER_NAME = "fault_injection"

_CONFIG_CACHE: Dict[str, Any] | None = None
_LOGGER: logging.Logger | None = None
_LOGGER_LOCK = threading.Lock()


def load_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    with open(config_path, "r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{config_path}: expected a mapping at top level")
    return set_config(loaded)


def set_config(config: Dict[str, Any]) -> Dict[str, Any]:
    global _CONFIG_CACHE, _LOGGER
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in config.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values

    # An unusable log_path fails here, never inside a guarded call.
    with _LOGGER_LOCK:
        logger = _build_logger(merged.get("logging") or {})
        _CONFIG_CACHE = merged
        _LOGGER = logger
    return merged


def get_config() -> Dict[str, Any]:
    # never touches the filesystem; a file is read only via load_config()
    if _CONFIG_CACHE is None:
        return copy.deepcopy(DEFAULT_CONFIG)
    return _CONFIG_CACHE


def clear_config() -> None:
    global _CONFIG_CACHE, _LOGGER
    with _LOGGER_LOCK:
        _CONFIG_CACHE = None
        _LOGGER = None


def _build_logger(settings: Dict[str, Any]) -> logging.Logger:
    level = getattr(logging, str(settings.get("level", "WARNING")).upper(), logging.WARNING)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_path = settings.get("log_path")
    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.propagate = False

    formatter = logging.Formatter("%(message)s")
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def get_logger() -> logging.Logger:
    global _LOGGER
    with _LOGGER_LOCK:
        if _LOGGER is None:
            # only reached without a loaded config: stream handler, no files
            _LOGGER = _build_logger(DEFAULT_CONFIG["logging"])
        return _LOGGER


def log_event(level: str, stage: str, **fields: Any) -> None:
    logger = get_logger()
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    if not logger.isEnabledFor(numeric_level):
        return
    payload = {
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "level": level,
        "stage": stage,
        **fields,
    }
    message = json.dumps(payload, separators=(",", ":"), default=str)
    logger.log(numeric_level, message)
