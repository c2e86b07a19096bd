"""
Structured JSON logging.

Every record is one JSON object on stdout. Request-scoped identifiers
(correlation id, event id, tenant) come from context variables set by the
tracing middleware and the routers; ``extra={"extra_data": {...}}`` merges
additional fields into the object.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
event_id_ctx: ContextVar[Optional[str]] = ContextVar("event_id", default=None)
tenant_id_ctx: ContextVar[Optional[str]] = ContextVar("tenant_id", default=None)

SERVICE_NAME = "netmap-backend"

_CONTEXT_FIELDS = (
    ("correlation_id", correlation_id_ctx),
    ("event_id", event_id_ctx),
    ("tenant_id", tenant_id_ctx),
)


def _span_ids() -> Dict[str, str]:
    try:
        from opentelemetry import trace
    except ImportError:
        return {}
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
            "service": SERVICE_NAME,
        }
        for key, ctx in _CONTEXT_FIELDS:
            value = ctx.get()
            if value:
                entry[key] = value
        entry.update(_span_ids())

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, dict):
            entry.update(extra_data)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Route the root logger to stdout through the JSON formatter."""
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    # Access lines come from TracingMiddleware
    logging.getLogger("uvicorn.access").disabled = True
    for noisy in ("httpx", "aiosqlite", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
