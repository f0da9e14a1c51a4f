"""Reconciliation service - re-attempts settlement calls that failed after commit."""

from dataclasses import dataclass

import structlog

from src.core.metrics import record_reconciliation_attempt, set_reconciliation_pending
from src.domain.exceptions import SettlementNetworkException
from src.domain.interfaces import SettlementNetworkClient, UnitOfWorkFactory

from .command_dispatcher import send_settlement

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ReconciliationRunResult:
    """Outcome of one reconciliation pass."""

    attempted: int
    resolved: int
    still_pending: int


class ReconciliationService:
    """
    Application service for the out-of-band reconciliation runner.

    Invoked by an external scheduler or the admin endpoint; there is no
    background timer in the service itself.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        settlement_client: SettlementNetworkClient,
    ):
        self._uow_factory = uow_factory
        self._settlement_client = settlement_client

    async def run_pending(self, limit: int = 100) -> ReconciliationRunResult:
        """
        Re-send every unresolved settlement call with its original idempotency key.

        Args:
            limit: Maximum number of tasks to process in this pass

        Returns:
            Counts of attempted and resolved tasks plus the remaining backlog
        """
        async with self._uow_factory() as uow:
            tasks = await uow.reconciliations.get_pending(limit=limit)

        resolved = 0
        for task in tasks:
            log = logger.bind(
                task_id=str(task.id),
                operation=task.operation.value,
                idempotency_key=task.idempotency_key,
            )

            try:
                receipt = await send_settlement(
                    self._settlement_client,
                    task.operation,
                    task.payload,
                    task.idempotency_key,
                )
            except SettlementNetworkException as e:
                task.mark_retrying(e.message)
                record_reconciliation_attempt(resolved=False)
                log.warning("reconciliation_attempt_failed", attempts=task.attempts, error=e.message)
            else:
                task.mark_resolved(receipt)
                resolved += 1
                record_reconciliation_attempt(resolved=True)
                log.info("reconciliation_resolved", receipt_ref=receipt)

            async with self._uow_factory() as uow:
                await uow.reconciliations.update(task)

        async with self._uow_factory() as uow:
            still_pending = await uow.reconciliations.count_pending()

        set_reconciliation_pending(still_pending)
        logger.info(
            "reconciliation_run_completed",
            attempted=len(tasks),
            resolved=resolved,
            still_pending=still_pending,
        )

        return ReconciliationRunResult(
            attempted=len(tasks),
            resolved=resolved,
            still_pending=still_pending,
        )
