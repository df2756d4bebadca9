"""Error Hierarchy — typed, categorized exceptions for every catalog failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - message and http_status are fixed at construction (read-only properties)
    - Domain errors (400-level) come from explicit checks; infrastructure errors are 500-level
    - to_response() produces the REST error envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with CatalogError base: one FastAPI handler catches all (ADR: uniform error shape)
    - Not-found status chosen by the caller: endpoints answer 400 or 404 as historically observed
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context attached to an error for logs and the response body."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resource_id: str | None = None
    debug_info: dict[str, Any] | None = None


class CatalogError(Exception):
    """Base exception for all catalog errors."""

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
        self._message = message
        self._http_status = http_status
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    @property
    def message(self) -> str:
        return self._message

    @property
    def http_status(self) -> int:
        return self._http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "status": "fail",
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "resource_id": self.context.resource_id,
            },
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ResourceNotFoundError(CatalogError):
    """Requested resource does not exist."""
    def __init__(
        self, message: str, http_status: int = 404,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, http_status,
        )


class DuplicateNameError(CatalogError):
    """A product with the same name already exists."""
    def __init__(self, name: str | None, context: ErrorContext | None = None):
        if name is None:
            message = "A product with that name already exists."
        else:
            message = f"A product with the name '{name}' already exists."
        super().__init__(
            message, "DUPLICATE_NAME", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.name = name


class InvalidReferenceError(CatalogError):
    """Referenced category does not exist."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_REFERENCE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class PersistenceError(CatalogError):
    """A create/update/delete statement did not touch the expected row."""
    def __init__(
        self, message: str, http_status: int = 400,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "PERSISTENCE_FAILED", ErrorCategory.DATABASE,
            ErrorSeverity.ERROR, context, http_status,
        )


class QueryParameterError(CatalogError):
    """A list query carried an operator or value that cannot be translated."""
    def __init__(
        self, message: str, code: str = "INVALID_QUERY_PARAMETER",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class ConstraintViolationError(CatalogError):
    """A write was rejected by a store-level constraint."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONSTRAINT_VIOLATION", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(CatalogError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
