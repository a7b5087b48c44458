"""
Process-wide logging setup.

Modules log through `logging.getLogger(__name__)` with `event key=value`
messages; this only decides level and format per environment.
"""

from __future__ import annotations

import logging
import sys

from .settings import ENV_DEV, ENV_LOCAL, ENV_PROD

_LEVELS = {
    ENV_LOCAL: logging.DEBUG,
    ENV_DEV: logging.DEBUG,
    ENV_PROD: logging.INFO,
}

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(env: str) -> int:
    level = _LEVELS.get(env, logging.INFO)
    logging.basicConfig(level=level, format=_FORMAT, stream=sys.stdout, force=True)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return level
