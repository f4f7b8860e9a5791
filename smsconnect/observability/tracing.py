"""Per-event log context."""

import uuid
from typing import Any

import structlog


def generate_trace_id() -> str:
    """Generate a new trace ID."""
    return uuid.uuid4().hex[:16]


class TraceContext:
    """Bind a trace ID and extra fields to every log line inside the block.

    Usage:
        with TraceContext(event.event_id, status_key=event.status_key):
            ...
    """

    def __init__(self, trace_id: str | None = None, **fields: Any):
        self._trace_id = trace_id or generate_trace_id()
        self._fields = fields
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> str:
        self._tokens = structlog.contextvars.bind_contextvars(
            trace_id=self._trace_id,
            **self._fields,
        )
        return self._trace_id

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
