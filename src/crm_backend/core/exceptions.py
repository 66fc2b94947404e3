class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(DomainError):
    """Raised when a natural uniqueness rule would be broken (duplicate check-in, double conversion)."""


class AuthenticationError(DomainError):
    """Raised when the caller's credential is missing, invalid or stale."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class UpstreamError(DomainError):
    """Raised when an external collaborator (object storage) fails."""

    status_code = 500
