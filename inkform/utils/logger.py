"""Logging setup shared by the API server, the CLI and the batch pipeline.

Every module obtains its logger through :func:`get_logger` so that the
format configured here applies uniformly.
"""

import logging
import sys

_NOISY_LOGGERS = ("PIL", "urllib3", "google", "multipart")


def setup_logging(level: str = "INFO") -> None:
    """Attach a stdout handler to the root logger once.

    Calling this more than once is a no-op so that the API factory and the
    CLI can both invoke it.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # Third-party debug output drowns per-document progress lines.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, usually called with ``__name__``."""
    return logging.getLogger(name)
