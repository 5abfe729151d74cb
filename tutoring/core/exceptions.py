"""
Exception hierarchy for the booking core.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class BookingException(Exception):
    """Base exception for all booking domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class NotFoundError(BookingException):
    """Raised when a session or session request cannot be found."""

    def __init__(
        self,
        entity: str,
        entity_id: Any,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize not found error.

        Args:
            entity: Entity kind ("session", "session_request")
            entity_id: ID of the missing record
            details: Additional context
        """
        details = details or {}
        details["entity"] = entity
        details["entity_id"] = str(entity_id)
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.replace('_', ' ').capitalize()} not found: {entity_id}", details)


class ValidationError(BookingException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        self.field = field
        super().__init__(message, details)


class InvalidStateTransitionError(BookingException):
    """Raised when an operation is not allowed from the record's current status."""

    def __init__(
        self,
        entity: str,
        entity_id: Any,
        current_status: str,
        operation: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize invalid state transition error.

        Args:
            entity: Entity kind ("session", "session_request")
            entity_id: ID of the record
            current_status: Status the record is in
            operation: Operation that was attempted
            details: Additional context
        """
        details = details or {}
        details.update({
            "entity": entity,
            "entity_id": str(entity_id),
            "current_status": current_status,
            "operation": operation,
        })
        self.entity = entity
        self.entity_id = entity_id
        self.current_status = current_status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} {entity.replace('_', ' ')} {entity_id} in status '{current_status}'",
            details,
        )


class ConflictError(BookingException):
    """Raised when a booking window overlaps an active session of a participant."""

    def __init__(
        self,
        message: str,
        conflicts: list | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize conflict error.

        Args:
            message: Error message
            conflicts: SchedulingConflict entries that caused the rejection
            details: Additional context
        """
        self.conflicts = list(conflicts or [])
        details = details or {}
        details["conflicts"] = [
            {"reason": c.reason.value, "session_id": str(c.session_id)}
            for c in self.conflicts
        ]
        super().__init__(message, details)
