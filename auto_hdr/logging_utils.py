from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

LOGGER_NAME = "mpv.AutoHDR"
LOG_TAG = "Auto HDR/Refresh"
LOG_LEVEL_ENV = "MPV_AUTO_HDR_LOG_LEVEL"
LOG_FILENAME = "auto_hdr.log"
LOG_MAX_BYTES = 512 * 1024

DEFAULT_LOG_LEVEL = logging.INFO
_LEVEL_NAME_MAP = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": logging.DEBUG,
}
# libmpv message levels.
_MPV_LEVEL_MAP = {
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "v": logging.DEBUG,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def _coerce_level(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        token = raw.strip().upper()
        if token.isdigit():
            return int(token)
        return _LEVEL_NAME_MAP.get(token)
    return None


def resolve_log_level(verbose: bool = False) -> int:
    """Environment override first, then the verbose preference."""
    level = _coerce_level(os.environ.get(LOG_LEVEL_ENV))
    if level is not None and level != logging.NOTSET:
        return level
    return logging.DEBUG if verbose else DEFAULT_LOG_LEVEL


def build_rotating_log_handler(
    log_dir: Path,
    filename: str = LOG_FILENAME,
    *,
    retention: int,
    max_bytes: int = LOG_MAX_BYTES,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Rotating handler for the manager log, ``auto_hdr.log`` by default.

    Files roll over at ``LOG_MAX_BYTES`` (512 KiB). ``retention`` counts the
    live file plus its backups, so the minimum of one keeps no backups.
    """
    retention = max(1, retention)
    backup_count = max(0, retention - 1)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    handler.setLevel(logging.DEBUG)
    return handler


def configure_logger(
    *,
    verbose: bool = False,
    log_dir: Optional[Path] = None,
    retention: int = 5,
) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_log_level(verbose))
    formatter = logging.Formatter(f"[%(asctime)s] [{LOG_TAG}] %(message)s", "%H:%M:%S")
    if not any(getattr(handler, "_auto_hdr_handler", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler._auto_hdr_handler = True  # type: ignore[attr-defined]
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    if log_dir is not None and not any(getattr(handler, "_auto_hdr_file", False) for handler in logger.handlers):
        file_handler = build_rotating_log_handler(log_dir, retention=retention, formatter=formatter)
        file_handler._auto_hdr_file = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)
    logger.propagate = False
    return logger


def mpv_log_handler(logger: logging.Logger) -> Callable[[str, str, str], None]:
    """Build a python-mpv ``log_handler`` that forwards libmpv messages."""

    def _forward(loglevel: str, component: str, message: str) -> None:
        level = _MPV_LEVEL_MAP.get(str(loglevel).lower(), logging.DEBUG)
        logger.log(level, "mpv/%s: %s", component, str(message).rstrip())

    return _forward
