"""Logging setup for the prepare entrypoint."""

import logging
from typing import Optional

from authgate.core.config import settings

_LOGGER_NAME = "authgate"
_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: Optional[str] = None, *, force: bool = False) -> None:
    """Attach a single stream handler to the root logger.

    Does nothing when the root logger already has handlers, unless ``force``
    is set (pytest's log capture installs its own).
    """
    root = logging.getLogger()
    if root.handlers and not force:
        return

    level_name = (level or settings.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric_level)
    logging.getLogger(_LOGGER_NAME).setLevel(numeric_level)

    # httpx logs every request at INFO, which would drown the decision log
    logging.getLogger("httpx").setLevel(logging.WARNING)
