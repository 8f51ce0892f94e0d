class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced student, payment or record does not exist."""


class ConflictError(DomainError):
    """Raised when a write collides with existing state (duplicate key, dependent rows)."""
