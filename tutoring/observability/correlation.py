"""
Correlation ID context.

Every HTTP request and every background sweep runs under one correlation ID
so the log lines of a booking operation can be grouped. The ID lives in a
contextvar and follows the task across awaits.

Dependencies: contextvars
System role: Request and sweep tracing
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator
import uuid

CORRELATION_HEADER = "X-Correlation-ID"

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def new_correlation_id(prefix: str | None = None) -> str:
    value = str(uuid.uuid4())
    return f"{prefix}-{value}" if prefix else value


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set correlation ID in context.

    Args:
        correlation_id: Caller-supplied ID (a new UUID when empty)

    Returns:
        str: The correlation ID that was set
    """
    value = correlation_id or new_correlation_id()
    correlation_id_ctx.set(value)
    return value


def get_correlation_id() -> str:
    return correlation_id_ctx.get()


def clear_correlation_id() -> None:
    correlation_id_ctx.set("")


@contextmanager
def correlation_scope(correlation_id: str | None = None, prefix: str | None = None) -> Iterator[str]:
    """
    Bind a correlation ID for the block and restore the previous one after.

    Usage:
        with correlation_scope(prefix="sweep") as sweep_id:
            await sweeper.run_sweep()
    """
    value = correlation_id or new_correlation_id(prefix)
    token = correlation_id_ctx.set(value)
    try:
        yield value
    finally:
        correlation_id_ctx.reset(token)
