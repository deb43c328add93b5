"""
SnipStash Backend - Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by stores, services and dependencies; caught by global handlers.

Exception Hierarchy:
    SnipStashError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    │   ├── AccountExistsError   → 400 (duplicate email, store message)
    │   └── WeakPasswordError    → 400 (store password policy)
    ├── AuthenticationError      → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden (not the owner)
    ├── NotFoundError            → 404 Not Found
    ├── StoreError               → 500 (generic message + raw detail)
    └── ConfigurationError       → 500 (store credentials missing)
"""

from typing import Any, Dict, Optional


class SnipStashError(Exception):
    """
    Base exception for all SnipStash application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where noted)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SnipStashError):
    """
    Raised when client input fails validation.

    HTTP:    400 Bad Request
    When:    Missing title/code, no fields in a PATCH, malformed JSON body.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AccountExistsError(ValidationError):
    """An account with this email already exists in the credential store."""

    def __init__(self, message: str = "User already registered"):
        super().__init__(message=message, field="email")


class WeakPasswordError(ValidationError):
    """Password rejected by the credential store's policy."""

    def __init__(self, min_length: int):
        super().__init__(
            message=f"Password should be at least {min_length} characters",
            field="password",
            context={"min_length": min_length},
        )


class AuthenticationError(SnipStashError):
    """
    Raised when a request carries no valid session, or sign-in fails.

    HTTP:    401 Unauthorized
    The `code` distinguishes a missing session ("unauthorized") from bad
    credentials ("invalid_credentials") so the UI can word its toast.
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        code: str = "unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.code = code


class ForbiddenError(SnipStashError):
    """
    Raised when an authenticated account acts on a record it does not own.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You do not have access to this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SnipStashError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StoreError(SnipStashError):
    """
    Raised when the record or credential store fails.

    HTTP:    500 Internal Server Error
    The response carries the generic message plus `detail`, the raw
    string of the underlying driver error, for diagnosis.
    """

    def __init__(
        self,
        message: str = "A store error occurred. Please try again later.",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.detail = detail


class ConfigurationError(SnipStashError):
    """
    Raised when the store credentials are not configured.

    HTTP:    500 Internal Server Error
    `context` holds the masked set/missing status map, never the values.
    """

    def __init__(
        self,
        message: str = "The server is not properly configured. Please contact the administrator.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
