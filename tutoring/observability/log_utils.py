"""
Logging utilities for safe structured logging.

Converts booking values (UUIDs, enums, datetimes, Decimals, collections) into
plain strings for `extra=`, and builds the standard context attached to
session log lines.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import enum
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Safely convert any value to a string for logging.

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, enum.Enum):
            val_str = str(value.value)
        elif isinstance(value, str):
            val_str = value
        elif isinstance(value, datetime):
            val_str = value.isoformat()
        elif isinstance(value, (UUID, Decimal)):
            val_str = str(value)
        elif isinstance(value, (list, tuple, set, frozenset)):
            val_str = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            val_str = f"dict({len(value)} keys)"
        else:
            val_str = str(value)

        if len(val_str) > max_length:
            return val_str[:max_length] + f"... (truncated, {len(val_str)} total)"
        return val_str
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def session_log_context(session: Any) -> dict[str, str]:
    """Standard log context for a session: id, participants, status and start."""
    return {
        "session_id": safe_log_value(session.id),
        "tutor_id": safe_log_value(session.tutor_id),
        "student_id": safe_log_value(session.student_id),
        "status": safe_log_value(session.status),
        "date_time": safe_log_value(session.date_time),
    }


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context,
) -> None:
    """
    Log a message with structured context, safely converting all values.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Arbitrary key-value pairs
    """
    logger.log(level, message, extra={key: safe_log_value(val) for key, val in context.items()})


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    **context,
) -> None:
    """
    Log a failed booking action with its traceback and context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional context (session_id, lead_minutes, ...)
    """
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    safe_context["error_type"] = type(exc).__name__
    safe_context["error_msg"] = str(exc)
    logger.error(message, exc_info=exc, extra=safe_context)
