"""Structured logging helpers for the propview core.

The library only emits to the "propview" logger. Handlers are left to the
host application; the propview CLI attaches one through configure_logging().
"""

import json
import logging


LOG = logging.getLogger("propview")
_handler: logging.Handler | None = None


def configure_logging(level: str | int = logging.INFO) -> None:
    """Attach a stderr handler to the propview logger (once) and set its level."""
    global _handler
    if _handler is None:
        _handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        _handler.setFormatter(formatter)
        LOG.addHandler(_handler)
    set_log_level(level)


def set_log_level(level: str | int) -> None:
    """Set the propview logger level from a name ("DEBUG") or a number."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    LOG.setLevel(level)


def log_debug(event: str, **kwargs: object) -> None:
    """Log a debug event as structured JSON."""
    if LOG.isEnabledFor(logging.DEBUG):
        log = {"level": "debug", "event": event, **kwargs}
        LOG.debug(json.dumps(log, default=str))


def log_info(event: str, **kwargs: object) -> None:
    """Log an informational event as structured JSON."""
    log = {"level": "info", "event": event, **kwargs}
    LOG.info(json.dumps(log, default=str))


def log_warning(event: str, **kwargs: object) -> None:
    """Log a warning event as structured JSON."""
    log = {"level": "warning", "event": event, **kwargs}
    LOG.warning(json.dumps(log, default=str))

