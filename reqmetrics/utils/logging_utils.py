"""Logging setup for scripts and demo servers."""
from __future__ import annotations

import logging
import sys

from .env_flags import is_truthy_env

DEFAULT_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'
MINIMAL_CONSOLE_FORMAT = '%(levelname)s %(name)s: %(message)s'

SUPPRESSED_LOGGERS = [
    'urllib3', 'requests',
]


def setup_logging(level: str = 'INFO', fmt: str | None = None) -> logging.Logger:
    """Configure root logging with a single stdout handler.

    The console uses the minimal format unless REQMETRICS_VERBOSE_CONSOLE is
    truthy or an explicit fmt is passed. Chatty HTTP client loggers are capped
    at WARNING so push ticks do not flood the console.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)
    # Remove existing handlers to avoid duplication on re-init
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()

    if fmt is None:
        fmt = DEFAULT_FORMAT if is_truthy_env('REQMETRICS_VERBOSE_CONSOLE') else MINIMAL_CONSOLE_FORMAT

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)
    console.setFormatter(logging.Formatter(fmt))
    root.addHandler(console)

    for name in SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return root


__all__ = ["setup_logging", "DEFAULT_FORMAT", "MINIMAL_CONSOLE_FORMAT"]
