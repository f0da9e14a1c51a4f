"""Base domain exceptions."""


class DomainException(Exception):
    """
    Base exception for all domain-level errors.

    Domain exceptions represent business rule violations or
    domain-specific error conditions.
    """

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationException(DomainException):
    """Malformed or out-of-range input. Always recoverable by the caller."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message=message, code=code)


class NotFoundException(DomainException):
    """A referenced ledger record does not exist."""

    def __init__(self, message: str, code: str = "NOT_FOUND"):
        super().__init__(message=message, code=code)


class StateConflictException(DomainException):
    """
    The request conflicts with the current ledger state.

    Never retried automatically: repeating the request without new
    information repeats the conflict.
    """

    def __init__(self, message: str, code: str = "STATE_CONFLICT"):
        super().__init__(message=message, code=code)
