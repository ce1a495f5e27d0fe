class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConfigurationError(DomainError):
    """Raised when no shift can be resolved for an employee."""


class CollaboratorUnavailable(DomainError):
    """Raised when a holiday/leave/overtime lookup keeps failing after retries."""

    def __init__(self, collaborator: str, cause: BaseException | None = None):
        super().__init__(f"{collaborator} unavailable: {cause}" if cause else f"{collaborator} unavailable")
        self.collaborator = collaborator
        self.cause = cause


class ConcurrencyConflict(DomainError):
    """Raised when two requests race on the same employee-day. Safe to retry."""

    retryable = True
