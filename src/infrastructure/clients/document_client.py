"""HTTP implementation of DocumentClient."""

from uuid import UUID

import httpx
import structlog

from src.core.config import settings
from src.domain.exceptions import DocumentServiceException
from src.domain.interfaces import DocumentClient

logger = structlog.get_logger(__name__)


class HttpDocumentClient(DocumentClient):
    """HTTP client for the document/KYC service. Single attempt, no retries."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self._base_url = base_url or settings.documents_api_url
        self._timeout = timeout or settings.documents_api_timeout

    async def has_required_documents(self, invoice_id: UUID) -> bool:
        url = f"{self._base_url}/invoices/{invoice_id}/documents"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.error("document_service_error", invoice_id=str(invoice_id), error=str(e))
            raise DocumentServiceException(f"Document service unavailable: {str(e)}")

        if response.status_code == 404:
            return False

        if response.status_code >= 400:
            raise DocumentServiceException(
                message=f"Document service error: {response.text[:200]}",
                status_code=response.status_code,
            )

        return bool(response.json().get("complete", False))
