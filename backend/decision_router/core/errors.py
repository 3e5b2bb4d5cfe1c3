"""Error Hierarchy: typed, categorized exceptions for the shell's failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages
    - Routing anomalies (bad rules, LLM failures) are NOT raised: they are
      logged and recovered inside the evaluator

Design Decisions:
    - Single hierarchy with DecisionRouterError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


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
    SPEC_INTEGRITY = "spec_integrity"
    CONFLICT = "conflict"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    spec_id: str | None = None
    trait_key: str | None = None
    debug_info: dict[str, Any] | None = None


class DecisionRouterError(Exception):
    """Base exception for all decision-router errors."""

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
                    "session_id": self.context.session_id,
                    "spec_id": self.context.spec_id,
                    "trait_key": self.context.trait_key,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InputTooLargeError(DecisionRouterError):
    """User input exceeds the configured size limit."""
    def __init__(self, max_size: int, context: ErrorContext | None = None):
        super().__init__(
            f"Input exceeds maximum length of {max_size} characters.",
            "INPUT_TOO_LARGE", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 413,
        )
        self.max_size = max_size


class SessionNotFoundError(DecisionRouterError):
    """Conversation session does not exist."""
    def __init__(self, session_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.session_id = session_id
        super().__init__(
            f"Session '{session_id}' not found",
            "SESSION_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class SessionStateError(DecisionRouterError):
    """Session cannot accept the request in its current state."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "SESSION_STATE_INVALID", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class SpecNotFoundError(DecisionRouterError):
    """No active spec document exists for the requested id."""
    def __init__(self, spec_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.spec_id = spec_id
        super().__init__(
            f"No active spec found for '{spec_id}'",
            "SPEC_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class SpecValidationError(DecisionRouterError):
    """Spec document failed schema or structural validation."""
    def __init__(
        self, spec_id: str, problems: list[str], context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.spec_id = spec_id
        super().__init__(
            f"Spec '{spec_id}' is invalid: {'; '.join(problems)}",
            "SPEC_VALIDATION_FAILED", ErrorCategory.SPEC_INTEGRITY,
            ErrorSeverity.CRITICAL, ctx, 422,
        )
        self.problems = problems
