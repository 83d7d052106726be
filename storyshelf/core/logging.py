from __future__ import annotations

import logging

from storyshelf.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    resolved = str(level or settings.LOG_LEVEL or "INFO").strip().upper()
    root = logging.getLogger("storyshelf")
    root.setLevel(getattr(logging, resolved, logging.INFO))
    if root.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
