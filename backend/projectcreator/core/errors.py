"""Error Hierarchy - typed, categorized exceptions for every Project Creator failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors map to 4xx; infrastructure errors (database, platform) map to 5xx
    - to_response() produces the REST envelope used by the global handler

Design Decisions:
    - Single hierarchy rooted at ProjectCreatorError: one FastAPI handler catches all
    - ErrorContext as dataclass: project/board/user ids ride along for logging
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
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Identifiers attached to an error for logs and responses."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    project_id: int | None = None
    board_id: int | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None


class ProjectCreatorError(Exception):
    """Base exception for all Project Creator errors."""

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
                    "project_id": self.context.project_id,
                    "board_id": self.context.board_id,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(ProjectCreatorError):
    """Request data is syntactically valid but semantically wrong."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class AuthenticationRequiredError(ProjectCreatorError):
    """No authenticated user on the request."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Authentication required", "AUTHENTICATION_REQUIRED",
            ErrorCategory.AUTHENTICATION, ErrorSeverity.WARNING, context, 401,
        )


class PermissionDeniedError(ProjectCreatorError):
    """Authenticated user lacks the role needed for the operation."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "PERMISSION_DENIED", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(ProjectCreatorError):
    """Requested resource does not exist (or is hidden from the caller)."""
    def __init__(
        self, resource_type: str, resource_id: str | int | None = None,
        context: ErrorContext | None = None, message: str | None = None,
    ):
        if message is None:
            message = (
                f"{resource_type} '{resource_id}' not found"
                if resource_id is not None else f"{resource_type} not found"
            )
        super().__init__(
            message, "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type


class ConflictError(ProjectCreatorError):
    """Uniqueness or state conflict (duplicate template name, ...)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class OrganizationError(ProjectCreatorError):
    """Caller's organization cannot be resolved or does not match."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "ORGANIZATION_ERROR", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class PlanLimitExceededError(ProjectCreatorError):
    """Organization reached the plan's project limit."""
    def __init__(self, max_projects: int, current: int, context: ErrorContext | None = None):
        super().__init__(
            f"The maximum number of projects allowed for this plan ({max_projects}) "
            f"has been reached. You currently have {current} projects. "
            "Please upgrade your plan to create additional projects.",
            "PLAN_LIMIT_EXCEEDED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.max_projects = max_projects
        self.current = current


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(ProjectCreatorError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class PlatformError(ProjectCreatorError):
    """A Nextcloud API call (OCS, Deck, WebDAV, group folders) failed."""
    def __init__(
        self,
        message: str,
        service: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Platform error ({service}): {message}",
            "PLATFORM_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.service = service
        self.status_code = status_code


class ProvisioningError(ProjectCreatorError):
    """A step of the create-project saga produced an unusable result."""
    def __init__(self, message: str, step: str, context: ErrorContext | None = None):
        super().__init__(
            message, "PROVISIONING_FAILED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.step = step
