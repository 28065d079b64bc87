"""Error Hierarchy — typed, categorized exceptions for all Pulse failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) surface synchronously to the caller; none is fatal
    - Infrastructure errors (500-level) never leak driver details to clients
    - to_response() produces the REST envelope

Design Decisions:
    - Single hierarchy with PulseError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - AuthorizationError raised explicitly instead of silently ignoring the command
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    STATE = "state"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    academy_id: str | None = None
    actor_id: str | None = None
    record_id: str | None = None
    collection: str | None = None
    debug_info: dict[str, Any] | None = None


class PulseError(Exception):
    """Base exception for all Pulse errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "academy_id": self.context.academy_id,
                    "record_id": self.context.record_id,
                    "collection": self.context.collection,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(PulseError):
    """Input rejected: non-positive amount, invalid date, bad trigger days."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class AuthorizationError(PulseError):
    """Actor lacks the capability required by the command."""
    def __init__(
        self, command: str, actor_id: str | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.actor_id = actor_id
        super().__init__(
            f"Actor is not allowed to run '{command}'",
            "NOT_AUTHORIZED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, ctx, 403,
        )
        self.command = command


class StateError(PulseError):
    """Illegal ledger status transition."""
    def __init__(
        self, record_id: str, current: str, attempted: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.record_id = record_id
        super().__init__(
            f"Cannot {attempted} record '{record_id}' in state '{current}'",
            "ILLEGAL_TRANSITION", ErrorCategory.STATE,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.current = current
        self.attempted = attempted


class ResourceNotFoundError(PulseError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(PulseError):
    """Store operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class StoreTimeoutError(PulseError):
    """Store call exceeded its deadline after all retries."""
    def __init__(self, operation: str, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} timed out after {timeout_seconds}s",
            "STORE_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.CRITICAL, context, 504,
        )
        self.operation = operation
