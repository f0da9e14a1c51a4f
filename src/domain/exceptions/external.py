"""Settlement-network and collaborator exceptions."""

from .base import DomainException


class SettlementNetworkException(DomainException):
    """Raised when the settlement network returns an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            code="SETTLEMENT_NETWORK_ERROR",
        )
        self.status_code = status_code


class SettlementNetworkTimeoutException(SettlementNetworkException):
    """Raised when the settlement network times out."""

    def __init__(self):
        super().__init__(
            message="Settlement network request timed out",
            status_code=None,
        )
        self.code = "SETTLEMENT_NETWORK_TIMEOUT"


class DocumentServiceException(DomainException):
    """Raised when the document collaborator cannot answer."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            code="DOCUMENT_SERVICE_ERROR",
        )
        self.status_code = status_code


class ExternalReconciliationPendingException(DomainException):
    """
    Local state is committed but the matching settlement call failed.

    Converted into a persisted reconciliation task; never surfaced to
    the caller as a failure.
    """

    def __init__(self, operation: str, idempotency_key: str, cause: str):
        super().__init__(
            message=f"{operation} pending reconciliation ({idempotency_key}): {cause}",
            code="RECONCILIATION_PENDING",
        )
        self.operation = operation
        self.idempotency_key = idempotency_key
        self.cause = cause
