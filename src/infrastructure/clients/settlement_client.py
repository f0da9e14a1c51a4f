"""HTTP implementation of SettlementNetworkClient."""

import asyncio
from typing import Any, Dict
from uuid import UUID

import httpx
import structlog

from src.core.config import settings
from src.core.metrics import (
    track_settlement_latency,
    record_settlement_success,
    record_settlement_failure,
)
from src.domain.exceptions import (
    SettlementNetworkException,
    SettlementNetworkTimeoutException,
)
from src.domain.interfaces import SettlementNetworkClient

logger = structlog.get_logger(__name__)


def _parse_body(operation: str, response: httpx.Response) -> Dict[str, Any]:
    """
    Decode a 2xx reply.

    The network may already have applied the call, so a malformed reply is
    not retried here; it surfaces as SettlementNetworkException and the
    same idempotency key is re-sent by reconciliation.
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if not isinstance(data, dict):
        record_settlement_failure(operation, "malformed")
        raise SettlementNetworkException(
            message=f"Malformed settlement reply: {response.text[:200]}",
            status_code=response.status_code,
        )
    return data


def _require(data: Dict[str, Any], field: str, operation: str) -> str:
    value = data.get(field)
    if value is None or value == "":
        record_settlement_failure(operation, "malformed")
        raise SettlementNetworkException(f"Settlement reply for {operation} is missing {field}")
    return str(value)


class HttpSettlementNetworkClient(SettlementNetworkClient):
    """
    HTTP client for the settlement network.

    Every request carries an Idempotency-Key header, so retrying a call
    that may already have been applied is safe. 4xx responses are final;
    timeouts, transport errors and 5xx responses are retried with
    exponential backoff.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url or settings.settlement_api_url
        self._timeout = timeout or settings.settlement_api_timeout
        self._max_retries = max_retries or settings.settlement_max_retries
        self._transport = transport

    async def mint_ownership_token(
        self,
        invoice_id: UUID,
        funding_goal_cents: int,
        idempotency_key: str,
    ) -> str:
        """Mint the fractional-ownership token for an approved invoice."""
        data = await self._post(
            "mint_ownership_token",
            "/tokens",
            {"invoice_id": str(invoice_id), "supply_cents": funding_goal_cents},
            idempotency_key,
        )
        return _require(data, "token_ref", "mint_ownership_token")

    async def record_investment(
        self,
        invoice_id: UUID,
        investor_id: str,
        amount_cents: int,
        idempotency_key: str,
    ) -> str:
        """Anchor a committed investment."""
        data = await self._post(
            "record_investment",
            "/investments",
            {
                "invoice_id": str(invoice_id),
                "investor_id": investor_id,
                "amount_cents": amount_cents,
            },
            idempotency_key,
        )
        return _require(data, "receipt_ref", "record_investment")

    async def record_buyer_payment(
        self,
        invoice_id: UUID,
        amount_cents: int,
        reference: str,
        idempotency_key: str,
    ) -> str:
        """Anchor a buyer payment."""
        data = await self._post(
            "record_buyer_payment",
            "/payments",
            {
                "invoice_id": str(invoice_id),
                "amount_cents": amount_cents,
                "reference": reference,
            },
            idempotency_key,
        )
        return _require(data, "receipt_ref", "record_buyer_payment")

    async def settle(
        self,
        invoice_id: UUID,
        payout_cents: int,
        idempotency_key: str,
    ) -> str:
        """Transfer a settled payout."""
        data = await self._post(
            "settle",
            "/settlements",
            {"invoice_id": str(invoice_id), "payout_cents": payout_cents},
            idempotency_key,
        )
        return _require(data, "receipt_ref", "settle")

    async def _post(
        self,
        operation: str,
        path: str,
        payload: Dict[str, Any],
        idempotency_key: str,
    ) -> Dict[str, Any]:
        """
        POST to the network with retry logic.

        Uses exponential backoff: 0.1s, 0.2s, 0.4s, ...
        """
        url = f"{self._base_url}{path}"
        headers = {"Idempotency-Key": idempotency_key}

        last_exception: SettlementNetworkException | None = None

        for attempt in range(self._max_retries):
            try:
                with track_settlement_latency(operation):
                    async with httpx.AsyncClient(
                        timeout=self._timeout, transport=self._transport
                    ) as client:
                        response = await client.post(url, json=payload, headers=headers)

                if response.status_code < 400:
                    data = _parse_body(operation, response)
                    record_settlement_success(operation)
                    logger.info(
                        "settlement_call_succeeded",
                        operation=operation,
                        idempotency_key=idempotency_key,
                        status_code=response.status_code,
                    )
                    return data

                record_settlement_failure(operation, "error")
                last_exception = SettlementNetworkException(
                    message=f"Settlement network error: {response.text[:200]}",
                    status_code=response.status_code,
                )
                if response.status_code < 500:
                    raise last_exception

                logger.warning(
                    "settlement_call_failed",
                    operation=operation,
                    idempotency_key=idempotency_key,
                    status_code=response.status_code,
                    attempt=attempt + 1,
                )

            except httpx.TimeoutException:
                record_settlement_failure(operation, "timeout")
                last_exception = SettlementNetworkTimeoutException()
                logger.warning(
                    "settlement_call_timeout",
                    operation=operation,
                    idempotency_key=idempotency_key,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                )
            except SettlementNetworkException:
                raise
            except httpx.HTTPError as e:
                record_settlement_failure(operation, "error")
                last_exception = SettlementNetworkException(
                    message=f"Transport error: {str(e)}",
                )
                logger.error(
                    "settlement_call_error",
                    operation=operation,
                    idempotency_key=idempotency_key,
                    attempt=attempt + 1,
                    error=str(e),
                )

            # Exponential backoff
            if attempt < self._max_retries - 1:
                await asyncio.sleep(2**attempt * 0.1)

        raise last_exception or SettlementNetworkException(f"{operation} failed")
