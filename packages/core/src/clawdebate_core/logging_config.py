"""
Logging configuration.

Modules log through ``logging.getLogger(__name__)``; entry points (the API
lifespan and the CLI) call ``configure_logging`` once.
"""

from __future__ import annotations

import json
import logging
import sys

from clawdebate_core.clock import utcnow
from clawdebate_core.settings import settings


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Install a single stderr handler on the root logger."""
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    use_json = (fmt or settings.log_format).lower() == "json"

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if use_json else TextFormatter())
    handler.setLevel(log_level)
    root.addHandler(handler)

    # SQLAlchemy echoes every statement at INFO.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
