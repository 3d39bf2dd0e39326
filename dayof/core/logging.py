"""Logging setup shared by the API entry point and scripts."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the ``dayof`` logger tree.

    Safe to call more than once; the handler is only added the first time.
    """
    root = logging.getLogger("dayof")
    root.setLevel(level.upper())
    if not any(getattr(h, "_dayof", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._dayof = True  # type: ignore[attr-defined]
        root.addHandler(handler)
