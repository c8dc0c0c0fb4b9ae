"""Shared service helpers and base classes.

Gives services and background workers consistent logging without coupling
them to HTTP or FastAPI layers.
"""

from __future__ import annotations

import logging


class BaseService:
    """Base class that provides a logger for derived services."""

    def __init__(self, logger: logging.Logger | None = None):
        # Use module-qualified name so loggers stay readable when subclassed
        self.logger = logger or logging.getLogger(self.__class__.__module__)
