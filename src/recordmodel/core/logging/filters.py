"""
Logging filters

Operation id filter and helpers for logging.

A single model call can fan out into many store requests (one update per record,
for instance). Each batch operation opens an `operation_scope`, which stores a short
operation id in a contextvar; `OperationIdFilter` stamps it on every LogRecord emitted
while the operation runs, including from the concurrently gathered tasks, because
asyncio tasks copy the current context when they are created.

Formatters can then reference `%(operation_id)s` without risking a KeyError: records
emitted outside any operation get the sentinel "-".
"""

import logging
import contextvars
import uuid
from contextlib import contextmanager
from logging import LogRecord

_operation_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation_id", default=None
)


def set_operation_id(operation_id: str | None):
    """
    Set the operation id in the current context and return the token to allow reset.
    """
    return _operation_id_ctx.set(operation_id)


def reset_operation_id(token):
    _operation_id_ctx.reset(token)


def get_operation_id() -> str | None:
    return _operation_id_ctx.get()


@contextmanager
def operation_scope(name: str):
    """
    Run a block under a fresh operation id, e.g. "store-3f9a1c2b7d10".

    Scopes nest: the inner scope's id is active inside it and the outer id is
    restored on exit.
    """
    token = set_operation_id(f"{name}-{uuid.uuid4().hex[:12]}")
    try:
        yield get_operation_id()
    finally:
        reset_operation_id(token)


class OperationIdFilter(logging.Filter):
    """
    Logging filter that guarantees every LogRecord has an `operation_id` attribute.

    Sets `record.operation_id` to:
      * record.operation_id (if already passed via extra)
      * OR the contextvar value (inside an operation_scope)
      * OR the sentinel "-".
    Always returns True.
    """

    def filter(self, record: LogRecord) -> bool:
        record.operation_id = (
            getattr(record, "operation_id", None) or get_operation_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "ssn", "authorization"}

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = "***REDACTED***"
        return True
