"""External API client implementations."""

from .document_client import HttpDocumentClient
from .notification_client import HttpNotificationClient
from .settlement_client import HttpSettlementNetworkClient

__all__ = [
    "HttpDocumentClient",
    "HttpNotificationClient",
    "HttpSettlementNetworkClient",
]
