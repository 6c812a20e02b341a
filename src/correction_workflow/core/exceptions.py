class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a correction request or attendance record does not exist."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class ConflictError(DomainError):
    """Raised when the current state forbids the operation.

    Covers duplicate pending requests, already processed requests and
    attendance records changed since the request was submitted.
    """
