from __future__ import annotations

import logging
import os
import sys

from pythonjsonlogger.json import JsonFormatter

JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"
TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Marks the handler we install so repeated calls replace only our own.
_HANDLER_NAME = "movie_watchlist.stdout"


def configure_logging(*, level: str | None = None, fmt: str | None = None) -> logging.Handler:
    """Install one stdout handler on the root logger.

    Format and level come from MOVIE_WATCHLIST_LOG_FORMAT (json|text) and
    MOVIE_WATCHLIST_LOG_LEVEL unless passed explicitly. Handlers installed by
    anyone else are left in place.
    """

    level = (level or os.environ.get("MOVIE_WATCHLIST_LOG_LEVEL", "INFO")).upper()
    fmt = (fmt or os.environ.get("MOVIE_WATCHLIST_LOG_FORMAT", "json")).lower()

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        if h.get_name() == _HANDLER_NAME:
            root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JsonFormatter(JSON_FIELDS))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
    return handler
