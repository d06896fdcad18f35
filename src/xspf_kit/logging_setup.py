"""Logging for the ``xspf-kit`` command.

Library modules only create loggers. Handlers are attached here, once, when
the CLI starts: a rotating log file at the level named by
``XSPF_KIT_LOG_LEVEL`` and a stderr handler that shows warnings, or
informational messages too with ``-v``.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os
from pathlib import Path
from typing import Optional

LOG_LEVEL_ENV = "XSPF_KIT_LOG_LEVEL"
LOG_FILE_NAME = "xspf-kit.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _default_log_dir() -> Path:
    local_appdata = os.getenv("LOCALAPPDATA")
    if local_appdata:
        return Path(local_appdata) / "XSPFKit" / "logs"
    return Path.home() / ".xspf_kit" / "logs"


def _level_from_env(default: int = logging.INFO) -> int:
    level = logging.getLevelName(os.getenv(LOG_LEVEL_ENV, "").upper())
    return level if isinstance(level, int) else default


def _is_console(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and not isinstance(
        handler, logging.FileHandler
    )


def _file_handler(path: Path, level: int) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def init_logging(*, verbose: bool = False, log_dir: Optional[Path] = None) -> Path:
    """Attach the file and stderr handlers and return the log file path.

    Calling it again does not add duplicate handlers; it only updates the
    stderr level, so a later ``verbose=True`` still takes effect.
    """
    log_path = (log_dir or _default_log_dir()) / LOG_FILE_NAME
    file_level = _level_from_env()
    console_level = logging.INFO if verbose else logging.WARNING
    root = logging.getLogger()
    root.setLevel(min(file_level, console_level))

    if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        try:
            root.addHandler(_file_handler(log_path, file_level))
        except OSError as exc:
            logging.basicConfig(format=LOG_FORMAT)
            logging.getLogger(__name__).warning(
                "Cannot write log file %s: %s", log_path, exc
            )

    consoles = [h for h in root.handlers if _is_console(h)]
    if not consoles:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(console)
        consoles = [console]
    for handler in consoles:
        handler.setLevel(console_level)

    logging.getLogger(__name__).debug("Logging initialized at %s", log_path)
    return log_path
