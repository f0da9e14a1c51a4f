"""Optimistic-concurrency retry loop around a unit of work."""

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from src.core.metrics import record_cas_exhausted, record_cas_retry
from src.domain.exceptions import ConcurrentModificationException, StaleVersionException
from src.domain.interfaces import UnitOfWork, UnitOfWorkFactory
from src.service.ledger import LedgerSettings

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def run_with_cas_retry(
    uow_factory: UnitOfWorkFactory,
    operation: str,
    work: Callable[[UnitOfWork], Awaitable[T]],
    settings: LedgerSettings,
) -> T:
    """
    Run `work` in a fresh unit of work, retrying when an invoice write loses a race.

    Each attempt re-reads everything it needs, so preconditions are
    re-validated against the state that actually wins. Domain errors raised
    by `work` propagate immediately and are never retried.

    Args:
        uow_factory: Produces a new unit of work per attempt
        operation: Operation name for logs and metrics
        work: Coroutine function doing reads, validation and writes
        settings: Ledger settings (retry budget and backoff)

    Returns:
        Whatever `work` returned on the attempt that committed

    Raises:
        ConcurrentModificationException: If every attempt lost the race
    """
    stale: StaleVersionException | None = None

    for attempt in range(settings.max_cas_retries):
        try:
            async with uow_factory() as uow:
                return await work(uow)
        except StaleVersionException as exc:
            stale = exc
            record_cas_retry(operation)
            logger.debug(
                "cas_conflict",
                operation=operation,
                invoice_id=exc.invoice_id,
                attempt=attempt + 1,
            )

        if attempt < settings.max_cas_retries - 1:
            await asyncio.sleep(settings.cas_backoff_seconds * (attempt + 1))

    record_cas_exhausted(operation)
    logger.warning(
        "cas_retries_exhausted",
        operation=operation,
        invoice_id=stale.invoice_id,
        attempts=settings.max_cas_retries,
    )
    raise ConcurrentModificationException(stale.invoice_id, settings.max_cas_retries)
