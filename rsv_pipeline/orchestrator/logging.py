from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import os


_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
_configured = False


def _ensure_base_logger() -> None:
    global _configured
    if _configured:
        return
    level = os.getenv("RSV_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(format=_FORMAT)
    # basicConfig is a no-op when the host already configured handlers
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))
    _configured = True


def _file_handlers(logger: logging.Logger, log_file: Path) -> list[RotatingFileHandler]:
    target = os.path.abspath(log_file)
    return [
        h
        for h in logger.handlers
        if isinstance(h, RotatingFileHandler) and h.baseFilename == target
    ]


def get_logger(name: str, log_file: Path | None = None) -> logging.Logger:
    """Named logger; with `log_file`, its records (and its children's) also go to that file."""
    _ensure_base_logger()
    logger = logging.getLogger(name)
    if log_file and not _file_handlers(logger, log_file):
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    return logger


def release_log_file(logger: logging.Logger, log_file: Path) -> None:
    """Detach and close the handlers `get_logger` attached for `log_file`."""
    for h in _file_handlers(logger, log_file):
        logger.removeHandler(h)
        h.close()
