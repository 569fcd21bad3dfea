"""
Structured Logging Configuration

Features:
  - JSON-formatted logs for centralized log collection in production
  - Request ID, caller email and release ID tracked across the request lifecycle
  - Rollout fields (platform, concept release, percentage) carried as JSON keys
  - PII masking (email, password, bearer token)
  - Environment-aware: JSON in production, human-readable in dev
"""

import json
import logging
import re
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

from app.config import settings

# ── Context variables for request tracking ──
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")
user_email_ctx: ContextVar[str] = ContextVar("user_email", default="-")
release_id_ctx: ContextVar[str] = ContextVar("release_id", default="-")

# Keys passed through ``extra=`` that end up in JSON log entries
ROLLOUT_FIELDS = ("platform", "concept_release_id", "old_percentage", "new_percentage")


def generate_request_id() -> str:
    return uuid.uuid4().hex[:12]


@contextmanager
def release_context(release_id: str) -> Iterator[None]:
    """Tag every log record emitted inside the block with *release_id*."""
    token = release_id_ctx.set(release_id or "-")
    try:
        yield
    finally:
        release_id_ctx.reset(token)


# ═══════════════════════════════════════════
#  PII Masking
# ═══════════════════════════════════════════

_EMAIL_PATTERN = re.compile(r'([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})')
_BEARER_PATTERN = re.compile(r'(Bearer\s+)[A-Za-z0-9._~+/=-]+')

_REDACT_PATTERNS = [
    (re.compile(r'("?(?:password|token|secret|authorization)"?\s*[:=]\s*)"[^"]*"', re.I), r'\1"***"'),
    (_BEARER_PATTERN, r'\1***'),
]


def _mask_email(match: re.Match) -> str:
    local, domain = match.group(1), match.group(2)
    if len(local) <= 2:
        return f"{local[0]}***@{domain}"
    return f"{local[0]}***{local[-1]}@{domain}"


def mask_pii(text: str) -> str:
    """Mask sensitive data in log messages."""
    for pattern, replacement in _REDACT_PATTERNS:
        text = pattern.sub(replacement, text)
    return _EMAIL_PATTERN.sub(_mask_email, text)


# ═══════════════════════════════════════════
#  Formatters
# ═══════════════════════════════════════════

class JSONFormatter(logging.Formatter):
    """One JSON object per line; empty context keys are left out."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": mask_pii(record.getMessage()),
            "request_id": request_id_ctx.get(),
            "user": mask_pii(user_email_ctx.get()),
            "release_id": release_id_ctx.get(),
        }
        for key in ROLLOUT_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        entry = {k: v for k, v in entry.items() if v is not None and v != "" and v != "-"}
        return json.dumps(entry, ensure_ascii=False, default=str)


class HumanFormatter(logging.Formatter):
    """Readable formatter for development."""

    FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-26s | [%(request_id)s %(release_id)s] %(message)s"

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = request_id_ctx.get()
        record.release_id = release_id_ctx.get()
        return super().format(record)


# ═══════════════════════════════════════════
#  Setup
# ═══════════════════════════════════════════

def setup_logging() -> None:
    """Configure application-wide logging."""
    root = logging.getLogger()
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_JSON or settings.is_production or settings.is_staging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(HumanFormatter(HumanFormatter.FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(handler)

    default_level = "DEBUG" if settings.is_development else "INFO"
    root.setLevel((settings.LOG_LEVEL or default_level).upper())

    # Quiet noisy third-party loggers
    for name in ("uvicorn.access", "httpcore", "httpx", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DB_ECHO else logging.WARNING)
