"""Runtime logging helpers for the ROM library importer."""

from __future__ import annotations

import logging
import sys
import threading
import traceback
from datetime import date
from pathlib import Path
from typing import Optional

LOGGER_NAME = "romlibrary"

_INITIALIZED = False
_SESSION_LOG_DATE: Optional[date] = None

_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _default_log_path(log_dir: Optional[str] = None) -> Path:
    from .shared_config import LOGS_DIR

    base = Path(log_dir or LOGS_DIR)
    base.mkdir(parents=True, exist_ok=True)
    session_day = _SESSION_LOG_DATE or date.today()
    return base / f"runtime-{session_day.isoformat()}.log"


def get_log_path(log_dir: Optional[str] = None) -> Path:
    """Return the active runtime log path for this session."""
    return _default_log_path(log_dir)


def setup_runtime_monitor(log_dir: Optional[str] = None, *, echo: bool = False,
                          level: int = logging.INFO) -> logging.Logger:
    """Initialize process logging once; later calls return the same logger."""
    global _INITIALIZED, _SESSION_LOG_DATE
    logger = logging.getLogger(LOGGER_NAME)

    if _INITIALIZED:
        return logger

    logger.setLevel(level)
    logger.propagate = False

    if _SESSION_LOG_DATE is None:
        _SESSION_LOG_DATE = date.today()

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    log_path = _default_log_path(log_dir)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if echo:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    logger.info("Runtime monitor initialized")
    logger.info("Log file: %s", log_path)

    _install_exception_hooks(logger)

    _INITIALIZED = True
    return logger


def reset_runtime_monitor() -> None:
    """Detach and close handlers so the next setup starts fresh."""
    global _INITIALIZED
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    sys.excepthook = sys.__excepthook__
    threading.excepthook = threading.__excepthook__
    _INITIALIZED = False


def _install_exception_hooks(logger: logging.Logger) -> None:
    def _print_to_terminal(exc_type, exc_value, exc_tb, *, prefix: str | None = None) -> None:
        stream = getattr(sys, "__stderr__", None) or sys.stderr
        if stream is None:
            return
        if prefix:
            print(prefix, file=stream)
        traceback.print_exception(exc_type, exc_value, exc_tb, file=stream)
        stream.flush()

    def _sys_hook(exc_type, exc_value, exc_tb):
        if exc_type and issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logger.critical("Unhandled exception", exc_info=(exc_type, exc_value, exc_tb))
        _print_to_terminal(exc_type, exc_value, exc_tb, prefix="[romlibrary] Unhandled exception")

    def _thread_hook(args: threading.ExceptHookArgs):
        thread_name = args.thread.name if args.thread else "<unknown>"
        logger.critical(
            "Unhandled thread exception in %s",
            thread_name,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        _print_to_terminal(
            args.exc_type,
            args.exc_value,
            args.exc_traceback,
            prefix=f"[romlibrary] Unhandled thread exception ({thread_name})",
        )

    sys.excepthook = _sys_hook
    threading.excepthook = _thread_hook


def monitor_action(action: str, *, logger: Optional[logging.Logger] = None) -> None:
    """Emit a user-action event."""
    (logger or logging.getLogger(LOGGER_NAME)).info("action: %s", action)
