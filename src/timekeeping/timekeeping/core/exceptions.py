class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when an actor lacks the role or department binding for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class InsufficientBalanceError(DomainError):
    """Raised when a with-pay leave exceeds the remaining bank balance."""

    def __init__(self, message: str, *, requested=None, remaining=None):
        super().__init__(message)
        self.requested = requested
        self.remaining = remaining


class StateConflictError(DomainError):
    """Raised when a record is no longer in the state the caller expected."""
