from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_HANDLER_FLAG = "_tuition_center_handler"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach one stream handler to the package logger; safe to call repeatedly."""
    logger = logging.getLogger("tuition_center")
    logger.setLevel(level if isinstance(level, int) else str(level).upper())

    if not any(getattr(h, _HANDLER_FLAG, False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        setattr(handler, _HANDLER_FLAG, True)
        logger.addHandler(handler)
    return logger
