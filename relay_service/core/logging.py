import logging
from typing import Any, Dict, Optional

LOGGER_NAME = "relay_service"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

logger = logging.getLogger(LOGGER_NAME)


def configure_logging(settings: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """Attach a stream handler to the package logger using the `logging` config section."""
    cfg = (settings or {}).get("logging", {}) or {}
    level = str(cfg.get("level", "INFO")).upper()
    fmt = cfg.get("format", DEFAULT_FORMAT)

    logger.setLevel(level)
    if not any(getattr(h, "_relay_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        handler._relay_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
