"""
Observability module.

Provides logging configuration, correlation ID tracking and HTTP request
logging middleware.
"""

from tutoring.observability.logger import configure_logging

__all__ = ["configure_logging"]
