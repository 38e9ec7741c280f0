# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Structured Logging

A Tequila key is a bearer credential until it has been exchanged, and it
travels in URLs (``?key=``, ``?requestkey=``). Everything that leaves this
module is scrubbed of those keys, whether they arrive as ``extra=`` fields
or inside the message text.

Two output formats:
- json: one object per line, for log collectors
- human: single line with request context, for the console
"""

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

REDACTED = "[REDACTED]"

# ============================================================
# REQUEST CONTEXT
# ============================================================

_request_id: ContextVar[str | None] = ContextVar("tequila_request_id", default=None)
_user_id: ContextVar[str | None] = ContextVar("tequila_user_id", default=None)


def set_request_context(request_id: str | None = None, user_id: str | None = None):
    """Attach a request id and/or the logged-in user to log lines of this task."""
    if request_id:
        _request_id.set(request_id)
    if user_id:
        _user_id.set(user_id)


def clear_request_context():
    _request_id.set(None)
    _user_id.set(None)


def get_request_context() -> dict[str, str | None]:
    return {"request_id": _request_id.get(), "user_id": _user_id.get()}


# ============================================================
# KEY MASKING
# ============================================================

# Matched exactly, case-insensitively, against field names
SENSITIVE_FIELDS = frozenset(
    {
        "key",
        "requestkey",
        "secret_key",
        "authorization",
        "cookie",
        "set-cookie",
        "session",
    }
)

_KEY_IN_TEXT = re.compile(r"\b(requestkey|key)=[^&\s\"'#]*")


def mask_text(text: str) -> str:
    """
    Hide handshake keys embedded in URLs or messages.

        >>> mask_text("GET /private?foo=1&key=abc")
        'GET /private?foo=1&key=[REDACTED]'
    """
    return _KEY_IN_TEXT.sub(lambda m: f"{m.group(1)}={REDACTED}", text)


def mask_sensitive_data(data: Any) -> Any:
    """
    Return a copy of ``data`` with credentials hidden.

    Mapping entries named in SENSITIVE_FIELDS are replaced wholesale;
    strings anywhere in the structure go through ``mask_text``.
    """
    if isinstance(data, dict):
        return {
            name: REDACTED if str(name).lower() in SENSITIVE_FIELDS else mask_sensitive_data(value)
            for name, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [mask_sensitive_data(item) for item in data]
    if isinstance(data, str):
        return mask_text(data)
    return data


# ============================================================
# FORMATTERS
# ============================================================

# Anything on a record that a bare LogRecord does not have came in via extra=
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {name: value for name, value in vars(record).items() if name not in _STANDARD_ATTRS}


class JSONFormatter(logging.Formatter):
    """One JSON object per line; request context and extras are inlined."""

    def __init__(self, mask_sensitive: bool = True):
        super().__init__()
        self.mask_sensitive = mask_sensitive

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        extra = _extras(record)
        if self.mask_sensitive:
            message = mask_text(message)
            extra = mask_sensitive_data(extra)

        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update({k: v for k, v in get_request_context().items() if v})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """``time LEVEL logger [req=... user=...] message`` for terminals."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(datefmt="%H:%M:%S")
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors and record.levelno in self.COLORS:
            level = f"{self.COLORS[record.levelno]}{level:8}{self.RESET}"
        else:
            level = f"{level:8}"

        ctx = get_request_context()
        tags = []
        if ctx["request_id"]:
            tags.append(f"req={ctx['request_id'][:8]}")
        if ctx["user_id"]:
            tags.append(f"user={ctx['user_id']}")
        prefix = f"[{' '.join(tags)}] " if tags else ""

        line = (
            f"{self.formatTime(record, self.datefmt)} {level} {record.name} "
            f"{prefix}{mask_text(record.getMessage())}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(
    level: str = "INFO",
    format: str = "json",  # "json" or "human"
    mask_sensitive: bool = True,
    use_colors: bool = True,
):
    """
    Install a single stdout handler on the root logger.

    Masking can only be turned off for the json format; the human format
    always scrubs keys from message text.
    """
    if format == "json":
        formatter: logging.Formatter = JSONFormatter(mask_sensitive=mask_sensitive)
    else:
        formatter = HumanFormatter(use_colors=use_colors and sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level.upper())

    # These log full request URLs, handshake keys included
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root_logger


# ============================================================
# AUDIT LOGGING
# ============================================================


class AuditLogger:
    """
    Login and logout events.

    Always emitted at INFO with ``audit_event=True`` so they can be
    filtered out of the general stream.
    """

    def __init__(self, name: str = "audit"):
        self._logger = logging.getLogger(name)

    def log(
        self,
        action: str,
        user_id: str | None = None,
        details: dict[str, Any] | None = None,
        success: bool = True,
    ):
        self._logger.info(
            f"AUDIT: {action} {'ok' if success else 'failed'}",
            extra={
                "audit_event": True,
                "action": action,
                "subject": user_id,
                "success": success,
                "details": mask_sensitive_data(details) if details else None,
            },
        )

    def login(self, user_id: str | None, success: bool, details: dict | None = None):
        self.log("login", user_id, details, success)

    def logout(self, user_id: str | None, scope: str):
        """``scope`` is ``local`` or ``global``."""
        self.log("logout", user_id, {"scope": scope})


audit_logger = AuditLogger()


__all__ = [
    "set_request_context",
    "clear_request_context",
    "get_request_context",
    "SENSITIVE_FIELDS",
    "mask_text",
    "mask_sensitive_data",
    "JSONFormatter",
    "HumanFormatter",
    "configure_logging",
    "AuditLogger",
    "audit_logger",
]
