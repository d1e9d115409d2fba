"""Structured logging for limiter decisions.

Limiters emit short event names (``rate_limit.allowed``, ``rate_limit.leak``,
...) with flat numeric fields in ``extra``. This module renders those events
as one JSON object per line and tags them with the hashed key of the
``KeyedRateLimiter`` entry that made the decision.

Nothing here runs on import. Hosts call ``configure_logging()`` to attach a
handler to the ``admission`` logger, or route that logger themselves.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from admission.core.config import LogSettings, get_settings

LIBRARY_LOGGER = "admission"

_limiter_key_var: ContextVar[str | None] = ContextVar("limiter_key", default=None)

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def bind_limiter_key(key_hash: str) -> Token[str | None]:
    """Tag log records from the current context with a hashed limiter key.

    Returns:
        Token to hand back to ``unbind_limiter_key()``.
    """

    return _limiter_key_var.set(key_hash)


def unbind_limiter_key(token: Token[str | None]) -> None:
    """Restore whatever key was bound before the matching ``bind_limiter_key()``."""

    _limiter_key_var.reset(token)


def current_limiter_key() -> str | None:
    return _limiter_key_var.get()


def _event_fields(record: LogRecord) -> dict[str, Any]:
    return {
        name: value
        for name, value in vars(record).items()
        if name not in _RECORD_ATTRS and not name.startswith("_")
    }


class LimiterKeyFilter(logging.Filter):
    """Copy the bound limiter key onto records that don't set one."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "key_hash", None) is None:
            key_hash = current_limiter_key()
            if key_hash is not None:
                record.key_hash = key_hash
        return True


class JsonFormatter(logging.Formatter):
    """Render a record as ``{"ts", "level", "logger", "event", ...fields}``."""

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        for name, value in _event_fields(record).items():
            # Event fields never shadow the envelope
            payload.setdefault(name, value)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output != "file":
        return logging.StreamHandler(sys.stdout)

    path = Path(log_settings.file_path or "logs/admission.log")
    path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes > 0:
        return RotatingFileHandler(
            path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(path, encoding="utf-8")


def configure_logging(log_settings: LogSettings | None = None) -> logging.Logger:
    """Attach a single handler to the ``admission`` logger.

    Handlers previously installed by this function are replaced, so calling it
    again with new settings is safe. The library logger stops propagating to
    the root logger to avoid duplicate lines in hosts that log to stdout too.

    Args:
        log_settings: Optional log settings; read from the environment if omitted.

    Returns:
        The configured ``admission`` logger.
    """

    cfg = log_settings or get_settings().log

    handler = _build_handler(cfg)
    handler.addFilter(LimiterKeyFilter())
    if cfg.format == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    for old in library_logger.handlers[:]:
        library_logger.removeHandler(old)
        old.close()
    library_logger.addHandler(handler)
    library_logger.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))
    library_logger.propagate = False
    return library_logger
