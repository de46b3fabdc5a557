"""Logging set-up shared by the rate feed, cache and refresh task modules."""

from __future__ import annotations

import logging

PACKAGE_LOGGER_NAME = "cbrf_exchange"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def get_logger(name: str = PACKAGE_LOGGER_NAME) -> logging.Logger:
    """Return the logger for ``name``, usually a module's ``__name__``.

    The first call gives the root logger an INFO handler so a cron-driven
    refresh prints its outcome without any host set-up. A host application
    that configured logging before importing the package keeps its own
    handlers, since ``basicConfig`` does nothing once the root has one.
    """

    global _configured
    if not _configured:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        _configured = True
    return logging.getLogger(name)
