"""
Service-layer error taxonomy.

Services raise these; the HTTP adapter maps them to status codes in one place
(see ``clubhub.main``). All of them are deterministic, caller-correctable
failures except ``TransientConflictError``, which the persistence store
retries internally and never lets escape.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "SERVICE_ERROR"
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)


class ValidationError(ServiceError):
    """A mandatory input is missing or malformed."""

    def __init__(self, message: str, field: str = None, value: Any = None):
        super().__init__(message, "VALIDATION_ERROR", {"field": field, "value": value})
        self.field = field
        self.value = value


class NotFoundError(ServiceError):
    """Referenced resource does not exist."""

    def __init__(self, resource_type: str, identifier: Optional[str]):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, "NOT_FOUND", {"resource_type": resource_type, "identifier": identifier})
        self.resource_type = resource_type
        self.identifier = identifier


class ConflictError(ServiceError):
    """The change would violate an organizational invariant."""

    def __init__(self, message: str, conflicting_resource: str = None):
        super().__init__(message, "CONFLICT", {"conflicting_resource": conflicting_resource})


class ForbiddenError(ServiceError):
    """Caller lacks the required role or division scope."""

    def __init__(self, message: str, required_permission: str = None):
        super().__init__(message, "FORBIDDEN", {"required_permission": required_permission})


class TransientConflictError(ServiceError):
    """A concurrent writer won an optimistic check; re-run the whole unit."""

    def __init__(self, message: str = "Concurrent update detected"):
        super().__init__(message, "TRANSIENT_CONFLICT")
