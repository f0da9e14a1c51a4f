"""External collaborator interfaces."""

from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID


class DocumentClient(ABC):
    """
    Abstract client for the document/KYC collaborator.

    Consulted before an invoice leaves draft.
    """

    @abstractmethod
    async def has_required_documents(self, invoice_id: UUID) -> bool:
        """
        Check whether the minimal document set is attached to an invoice.

        Args:
            invoice_id: The invoice's unique identifier

        Returns:
            True if the required documents are present

        Raises:
            DocumentServiceException: If the collaborator cannot answer
        """
        ...


class SettlementNetworkClient(ABC):
    """
    Abstract client for the external settlement network.

    Every call carries an idempotency key so that retries and
    reconciliation re-attempts are safe.
    """

    @abstractmethod
    async def mint_ownership_token(
        self,
        invoice_id: UUID,
        funding_goal_cents: int,
        idempotency_key: str,
    ) -> str:
        """
        Mint the fractional-ownership token for an approved invoice.

        Args:
            invoice_id: The invoice being approved
            funding_goal_cents: Funding goal represented by the token supply
            idempotency_key: Key identifying this mint request

        Returns:
            Token reference

        Raises:
            SettlementNetworkException: If the network rejects or fails the call
            SettlementNetworkTimeoutException: If the request times out
        """
        ...

    @abstractmethod
    async def record_investment(
        self,
        invoice_id: UUID,
        investor_id: str,
        amount_cents: int,
        idempotency_key: str,
    ) -> str:
        """
        Anchor a committed investment on the network.

        Returns:
            Receipt reference
        """
        ...

    @abstractmethod
    async def record_buyer_payment(
        self,
        invoice_id: UUID,
        amount_cents: int,
        reference: str,
        idempotency_key: str,
    ) -> str:
        """
        Anchor a buyer payment on the network.

        Returns:
            Receipt reference
        """
        ...

    @abstractmethod
    async def settle(
        self,
        invoice_id: UUID,
        payout_cents: int,
        idempotency_key: str,
    ) -> str:
        """
        Execute value transfer of a settled payout.

        Returns:
            Receipt reference
        """
        ...


class NotificationClient(ABC):
    """
    Abstract client for outbound notifications.

    Fire-and-forget: implementations report failure by returning False.
    """

    @abstractmethod
    async def notify(self, user_id: str, event: str, payload: dict[str, Any]) -> bool:
        """
        Send a notification to a user.

        Args:
            user_id: Recipient
            event: Event name (e.g. invoice_funded)
            payload: Event details

        Returns:
            True if delivered
        """
        ...
