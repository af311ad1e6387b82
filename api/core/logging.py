from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Install one stream handler on the root logger (idempotent).
    """
    root = logging.getLogger()
    root.setLevel((level or "INFO").upper())
    if any(getattr(h, "_gateway_handler", False) for h in root.handlers):
        return None

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._gateway_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
