"""Logging setup shared by the API and service layers.

Modules log dotted event names (``task.created``, ``team.create.failed``) and
pass identifiers in ``extra``.
"""

from __future__ import annotations

import logging
import sys

from teamdesk.core.config import settings


def configure_logging() -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger("teamdesk")
    root.handlers[:] = [handler]
    root.setLevel(settings.log_level.upper())
    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
