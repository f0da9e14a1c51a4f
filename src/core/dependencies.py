"""Dependency injection for FastAPI."""

from typing import Annotated

from fastapi import Depends

from src.application.services import (
    CommandDispatcher,
    InvestmentLedgerService,
    InvoiceLifecycleService,
    PayoutDistributorService,
    ReconciliationService,
    RiskAssessmentService,
)
from src.core.clock import Clock, utcnow
from src.domain.interfaces import (
    DocumentClient,
    NotificationClient,
    SettlementNetworkClient,
    UnitOfWorkFactory,
)
from src.infrastructure.clients import (
    HttpDocumentClient,
    HttpNotificationClient,
    HttpSettlementNetworkClient,
)
from src.infrastructure.database import db_manager
from src.infrastructure.unit_of_work import build_unit_of_work_factory
from src.service.ledger import LedgerSettings, ledger_settings
from src.service.risk import RiskEngine, risk_settings


# Persistence
def get_uow_factory() -> UnitOfWorkFactory:
    """Get a factory producing one unit of work per ledger attempt."""
    return build_unit_of_work_factory(db_manager.sessionmaker)


# Policy and time
def get_clock() -> Clock:
    """Get the clock used for maturity, window and grace checks."""
    return utcnow


def get_ledger_settings() -> LedgerSettings:
    """Get the ledger policy settings."""
    return ledger_settings


def get_risk_engine() -> RiskEngine:
    """Get a RiskEngine instance."""
    return RiskEngine(risk_settings)


# External client dependencies
def get_settlement_client() -> SettlementNetworkClient:
    """Get a SettlementNetworkClient instance."""
    return HttpSettlementNetworkClient()


def get_document_client() -> DocumentClient:
    """Get a DocumentClient instance."""
    return HttpDocumentClient()


def get_notification_client() -> NotificationClient:
    """Get a NotificationClient instance."""
    return HttpNotificationClient()


# Service dependencies
def get_command_dispatcher(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    settlement_client: Annotated[SettlementNetworkClient, Depends(get_settlement_client)],
    notification_client: Annotated[NotificationClient, Depends(get_notification_client)],
) -> CommandDispatcher:
    """Get a CommandDispatcher for post-commit side effects."""
    return CommandDispatcher(
        uow_factory=uow_factory,
        settlement_client=settlement_client,
        notification_client=notification_client,
    )


def get_risk_service(
    risk_engine: Annotated[RiskEngine, Depends(get_risk_engine)],
) -> RiskAssessmentService:
    """Get a RiskAssessmentService instance."""
    return RiskAssessmentService(risk_engine)


def get_invoice_service(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    risk_service: Annotated[RiskAssessmentService, Depends(get_risk_service)],
    document_client: Annotated[DocumentClient, Depends(get_document_client)],
    settlement_client: Annotated[SettlementNetworkClient, Depends(get_settlement_client)],
    dispatcher: Annotated[CommandDispatcher, Depends(get_command_dispatcher)],
    clock: Annotated[Clock, Depends(get_clock)],
    settings: Annotated[LedgerSettings, Depends(get_ledger_settings)],
) -> InvoiceLifecycleService:
    """Get an InvoiceLifecycleService instance with all dependencies."""
    return InvoiceLifecycleService(
        uow_factory=uow_factory,
        risk_service=risk_service,
        document_client=document_client,
        settlement_client=settlement_client,
        dispatcher=dispatcher,
        clock=clock,
        settings=settings,
    )


def get_investment_service(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    dispatcher: Annotated[CommandDispatcher, Depends(get_command_dispatcher)],
    clock: Annotated[Clock, Depends(get_clock)],
    settings: Annotated[LedgerSettings, Depends(get_ledger_settings)],
) -> InvestmentLedgerService:
    """Get an InvestmentLedgerService instance."""
    return InvestmentLedgerService(
        uow_factory=uow_factory,
        dispatcher=dispatcher,
        clock=clock,
        settings=settings,
    )


def get_payout_service(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    dispatcher: Annotated[CommandDispatcher, Depends(get_command_dispatcher)],
    clock: Annotated[Clock, Depends(get_clock)],
    settings: Annotated[LedgerSettings, Depends(get_ledger_settings)],
) -> PayoutDistributorService:
    """Get a PayoutDistributorService instance."""
    return PayoutDistributorService(
        uow_factory=uow_factory,
        dispatcher=dispatcher,
        clock=clock,
        settings=settings,
    )


def get_reconciliation_service(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    settlement_client: Annotated[SettlementNetworkClient, Depends(get_settlement_client)],
) -> ReconciliationService:
    """Get a ReconciliationService instance."""
    return ReconciliationService(
        uow_factory=uow_factory,
        settlement_client=settlement_client,
    )
