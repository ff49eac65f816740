from __future__ import annotations

"""
Logging Core Orchestrator.

Configures the root logger once per process. Records are pushed through a
QueueHandler and written by a QueueListener thread, so that a slow log file
never stalls the thread that mutates the selection state.
"""

import atexit
import logging
import os
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import List, Optional

from repocontext.infra.fs import LOG_SUBDIR, get_user_data_dir
from repocontext.infra.logging.config import LoggingConfig, parse_level

# Markers stored on the root logger and on our own handlers
_CONFIGURED_FLAG_ATTR: str = "_repocontext_configured"
_QUEUE_LISTENER_ATTR: str = "_repocontext_queue_listener"
_HANDLER_TAG_ATTR: str = "_repocontext_handler"

LOG_FILENAME = "repocontext.log"


# ==============================================================================
# PUBLIC API
# ==============================================================================

def get_default_log_path(file_name: str = LOG_FILENAME) -> str:
    """Return the log file location inside the user data directory."""
    return os.path.join(get_user_data_dir(), LOG_SUBDIR, file_name)


def configure_logging(cfg: LoggingConfig, *, force: bool = False) -> logging.Logger:
    """
    Configure the root logger with queue-based, non-blocking output.

    Repeated calls are no-ops unless force is set, in which case the handlers
    and listener installed by a previous call are torn down first. Handlers
    added by third parties are left untouched.

    Args:
        cfg: Logging settings.
        force: Re-initialize even if already configured.

    Returns:
        logging.Logger: The root logger.
    """
    root = logging.getLogger()

    try:
        if getattr(root, _CONFIGURED_FLAG_ATTR, False) and not force:
            return root

        level = parse_level(cfg.level)
        root.setLevel(level)
        shutdown_logging()

        sinks: List[logging.Handler] = []

        if cfg.console:
            console = logging.StreamHandler(sys.stderr)
            console.setLevel(level)
            console.setFormatter(logging.Formatter(cfg.console_fmt))
            sinks.append(_tag(console))

        if cfg.log_file:
            file_handler = _open_log_file(cfg, level)
            if file_handler is not None:
                sinks.append(file_handler)

        if not sinks:
            return root

        log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)
        listener = QueueListener(log_queue, *sinks, respect_handler_level=True)
        listener.start()

        root.addHandler(_tag(QueueHandler(log_queue)))
        setattr(root, _QUEUE_LISTENER_ATTR, listener)
        setattr(root, _CONFIGURED_FLAG_ATTR, True)
        atexit.register(_stop_listener, listener)

        return root

    except Exception:
        # Emergency console so diagnostics are never silently lost
        _detach_handlers(root)
        fallback = logging.StreamHandler(sys.stderr)
        fallback.setFormatter(logging.Formatter("CRITICAL FALLBACK | %(levelname)s | %(message)s"))
        root.addHandler(_tag(fallback))
        root.warning("Logging setup failed. Switched to emergency console.")
        return root


def shutdown_logging() -> None:
    """Stop the listener and detach every handler installed by this module."""
    root = logging.getLogger()
    listener = getattr(root, _QUEUE_LISTENER_ATTR, None)
    if listener is not None:
        _stop_listener(listener)
        setattr(root, _QUEUE_LISTENER_ATTR, None)
    _detach_handlers(root)
    setattr(root, _CONFIGURED_FLAG_ATTR, False)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_recent_logs(n_lines: int = 100, log_path: Optional[str] = None) -> str:
    """
    Return the last lines of the log file.

    Args:
        n_lines: Maximum number of lines to return.
        log_path: Log file to read; defaults to the standard location.

    Returns:
        str: Log tail, or a short explanation when unavailable.
    """
    path = log_path or get_default_log_path()
    if not os.path.exists(path):
        return "Log file not found."

    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return "".join(f.readlines()[-n_lines:])
    except OSError as e:
        return f"Error retrieving logs: {e}"


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _tag(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG_ATTR, True)
    return handler


def _detach_handlers(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG_ATTR, False):
            root.removeHandler(handler)
            handler.close()


def _open_log_file(cfg: LoggingConfig, level: int) -> Optional[RotatingFileHandler]:
    """Create the rotating file sink; returns None when the file cannot be opened."""
    try:
        os.makedirs(os.path.dirname(os.path.abspath(cfg.log_file)), exist_ok=True)
        handler = RotatingFileHandler(
            cfg.log_file,
            maxBytes=int(cfg.max_bytes),
            backupCount=int(cfg.backup_count),
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"WARNING: Cannot open log file '{cfg.log_file}': {e}\n")
        return None

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(cfg.file_fmt, datefmt=cfg.datefmt))
    return _tag(handler)


def _stop_listener(listener: QueueListener) -> None:
    """Stop a listener, tolerating double stops (atexit after explicit shutdown)."""
    if getattr(listener, "_thread", None) is not None:
        listener.stop()
