"""Executes post-commit commands against external collaborators."""

from typing import Any, Dict, Iterable

import structlog

from src.core.metrics import record_notification, set_reconciliation_pending
from src.domain.entities import ReconciliationTask, SettlementOperation
from src.domain.exceptions import (
    ExternalReconciliationPendingException,
    SettlementNetworkException,
)
from src.domain.interfaces import (
    NotificationClient,
    SettlementNetworkClient,
    UnitOfWorkFactory,
)
from src.service.lifecycle import Command, Notify, SettlementCommand

logger = structlog.get_logger(__name__)


async def send_settlement(
    client: SettlementNetworkClient,
    operation: SettlementOperation,
    payload: Dict[str, Any],
    idempotency_key: str,
) -> str:
    """
    Issue one settlement-network call from its persisted payload.

    Shared by the dispatcher and the reconciliation runner so both send
    exactly the same request for the same idempotency key.
    """
    if operation == SettlementOperation.RECORD_INVESTMENT:
        return await client.record_investment(
            invoice_id=payload["invoice_id"],
            investor_id=payload["investor_id"],
            amount_cents=payload["amount_cents"],
            idempotency_key=idempotency_key,
        )
    if operation == SettlementOperation.RECORD_BUYER_PAYMENT:
        return await client.record_buyer_payment(
            invoice_id=payload["invoice_id"],
            amount_cents=payload["amount_cents"],
            reference=payload["reference"],
            idempotency_key=idempotency_key,
        )
    if operation == SettlementOperation.SETTLE:
        return await client.settle(
            invoice_id=payload["invoice_id"],
            payout_cents=payload["payout_cents"],
            idempotency_key=idempotency_key,
        )
    raise ValueError(f"Unknown settlement operation: {operation}")


class CommandDispatcher:
    """
    Runs the commands returned by ledger transitions once they have committed.

    Notifications are fire-and-forget. A failed settlement call cannot be
    rolled back, so it is persisted as a ReconciliationTask for the
    reconciliation runner instead.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        settlement_client: SettlementNetworkClient,
        notification_client: NotificationClient,
    ):
        self._uow_factory = uow_factory
        self._settlement_client = settlement_client
        self._notification_client = notification_client

    async def dispatch(self, commands: Iterable[Command]) -> bool:
        """
        Execute commands in order.

        Args:
            commands: Commands emitted by a committed transition

        Returns:
            True if any settlement call was deferred to reconciliation
        """
        pending = False

        for command in commands:
            if isinstance(command, Notify):
                await self._notify(command)
                continue

            try:
                await self._settle(command)
            except ExternalReconciliationPendingException as exc:
                pending = True
                await self._enqueue(command, exc)

        return pending

    async def _notify(self, command: Notify) -> None:
        try:
            sent = await self._notification_client.notify(
                command.user_id, command.event, command.payload
            )
        except Exception as e:
            logger.error(
                "notification_dispatch_error",
                notification_event=command.event,
                user_id=command.user_id,
                error=str(e),
            )
            sent = False

        record_notification(sent)
        if not sent:
            logger.warning(
                "notification_not_delivered",
                notification_event=command.event,
                user_id=command.user_id,
            )

    async def _settle(self, command: SettlementCommand) -> None:
        """
        Raises:
            ExternalReconciliationPendingException: If the network call failed
        """
        try:
            receipt = await send_settlement(
                self._settlement_client,
                command.operation,
                command.to_payload(),
                command.idempotency_key,
            )
        except SettlementNetworkException as e:
            raise ExternalReconciliationPendingException(
                command.operation.value, command.idempotency_key, e.message
            ) from e

        logger.info(
            "settlement_recorded",
            operation=command.operation.value,
            idempotency_key=command.idempotency_key,
            receipt_ref=receipt,
        )

    async def _enqueue(
        self,
        command: SettlementCommand,
        exc: ExternalReconciliationPendingException,
    ) -> None:
        task = ReconciliationTask(
            operation=command.operation,
            idempotency_key=command.idempotency_key,
            payload=command.to_payload(),
            last_error=exc.cause,
        )

        async with self._uow_factory() as uow:
            await uow.reconciliations.save(task)
            pending = await uow.reconciliations.count_pending()

        set_reconciliation_pending(pending)
        logger.warning(
            "settlement_reconciliation_pending",
            operation=command.operation.value,
            idempotency_key=command.idempotency_key,
            task_id=str(task.id),
            error=exc.cause,
        )
