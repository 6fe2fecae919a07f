"""
Hindustan Founders Network - Logging

One "hfn" logger for the whole backend. Every record carries the request id
and, once a request is authenticated, the member id and role, so a member's
trail through feed, messaging and admin actions can be followed in the logs.

Development logs are plain text; production logs are one JSON object per line.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from app.core.config import settings


LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5
SLOW_REQUEST_MS = 1000.0

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(request_id)s %(member)s | %(message)s"

# request_id, member_id, member_role for the request being served
_log_context: ContextVar[Optional[Dict[str, str]]] = ContextVar("hfn_log_context", default=None)

_CONTEXT_FIELDS = ("request_id", "member_id", "member_role")
_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "member", *_CONTEXT_FIELDS}


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def current_log_context() -> Dict[str, str]:
    return dict(_log_context.get() or {})


def bind_log_context(**fields: Optional[str]) -> None:
    """Add fields to the context of the current request; None values are ignored"""
    context = current_log_context()
    context.update({k: str(v) for k, v in fields.items() if v is not None})
    _log_context.set(context)


def bind_member(member_id: str, role: Optional[str] = None) -> None:
    bind_log_context(member_id=member_id, member_role=role)


def clear_log_context() -> None:
    _log_context.set(None)


class ContextFilter(logging.Filter):
    """Copies the request context onto each record"""

    def filter(self, record: logging.LogRecord) -> bool:
        context = current_log_context()
        for name in _CONTEXT_FIELDS:
            setattr(record, name, context.get(name, ""))
        member = context.get("member_id")
        if member and context.get("member_role"):
            member = f"{member}({context['member_role']})"
        record.member = member or "anonymous"
        record.request_id = record.request_id or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Single-line JSON; fields passed through `extra` are kept as top-level keys"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.utcfromtimestamp(record.created).isoformat() + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        for name in _CONTEXT_FIELDS:
            value = getattr(record, name, "")
            if value and value != "-":
                entry[name] = value
        entry.update({k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS and not k.startswith("_")})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class FoundersLogger(logging.Logger):

    def log_request(self, method: str, path: str, status_code: int, duration_ms: float) -> None:
        """One line per finished request: 5xx error, 4xx or slow warning, else info"""
        slow = duration_ms > SLOW_REQUEST_MS
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400 or slow:
            level = logging.WARNING
        else:
            level = logging.INFO
        self.log(
            level,
            f"{method} {path} -> {status_code} in {duration_ms:.1f}ms" + (" (slow)" if slow else ""),
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
                "slow": slow,
            },
        )

    def log_auth_event(self, event: str, success: bool, username: Optional[str] = None,
                       reason: Optional[str] = None, **kwargs) -> None:
        """Register, login, logout and password changes; failures are warnings"""
        outcome = "ok" if success else f"failed ({reason or 'unknown'})"
        self.log(
            logging.INFO if success else logging.WARNING,
            f"Auth {event} {outcome}" + (f" for {username}" if username else ""),
            extra={"event_type": "auth", "auth_event": event, "auth_success": success,
                   "auth_username": username, **kwargs},
        )


def _build_handlers() -> List[logging.Handler]:
    formatter = JSONFormatter() if settings.is_production else logging.Formatter(TEXT_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    handlers: List[logging.Handler] = [console]

    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS)
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(ContextFilter())
    return handlers


def setup_logging() -> FoundersLogger:
    logging.setLoggerClass(FoundersLogger)
    hfn_logger = logging.getLogger("hfn")
    hfn_logger.__class__ = FoundersLogger
    hfn_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    hfn_logger.propagate = False
    hfn_logger.handlers.clear()
    for handler in _build_handlers():
        hfn_logger.addHandler(handler)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    hfn_logger.info(f"Logging ready ({settings.ENVIRONMENT}, level {settings.LOG_LEVEL})")
    return hfn_logger


logger: FoundersLogger = setup_logging()


__all__ = [
    "logger",
    "setup_logging",
    "new_request_id",
    "current_log_context",
    "bind_log_context",
    "bind_member",
    "clear_log_context",
    "ContextFilter",
    "FoundersLogger",
    "JSONFormatter",
]
