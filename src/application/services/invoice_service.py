"""Invoice lifecycle service - orchestrates invoice creation and transitions."""

from dataclasses import replace
from datetime import timedelta
from typing import List
from uuid import UUID

import structlog

from src.application.dto import (
    CreateInvoiceRequest,
    DefaultCandidatesResponse,
    InvoicePageResponse,
    InvoiceResponse,
    UpdateInvoiceRequest,
    validate_invoice_terms,
)
from src.core.clock import Clock, utcnow
from src.core.metrics import record_transition, track_ledger_operation
from src.domain.entities import (
    ASSESSABLE_STATUSES,
    EDITABLE_STATUSES,
    MARKETPLACE_STATUSES,
    Invoice,
    InvoiceFilters,
    InvoiceSort,
    PageRequest,
)
from src.domain.exceptions import (
    InvalidInvoiceRequestException,
    InvalidListingQueryException,
    InvoiceNotEditableException,
    InvoiceNotFoundException,
    MissingDocumentsException,
)
from src.domain.interfaces import (
    DocumentClient,
    SettlementNetworkClient,
    UnitOfWork,
    UnitOfWorkFactory,
)
from src.service.ledger import LedgerSettings, ledger_settings
from src.service.lifecycle import (
    LifecycleEvent,
    TransitionResult,
    can_transition,
    ensure_user_event,
    transition,
)

from .command_dispatcher import CommandDispatcher
from .concurrency import run_with_cas_retry
from .risk_service import RiskAssessmentService

logger = structlog.get_logger(__name__)


async def load_invoice(uow: UnitOfWork, invoice_id: UUID) -> Invoice:
    """
    Read an invoice inside a unit of work.

    Raises:
        InvoiceNotFoundException: If the invoice does not exist
    """
    invoice = await uow.invoices.get_by_id(invoice_id)
    if invoice is None:
        raise InvoiceNotFoundException(str(invoice_id))
    return invoice


class InvoiceLifecycleService:
    """
    Application service for invoice lifecycle use cases.

    Collaborator calls that must succeed before a change (document check,
    token mint) run before the unit of work opens; everything else runs
    after commit through the command dispatcher.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        risk_service: RiskAssessmentService,
        document_client: DocumentClient,
        settlement_client: SettlementNetworkClient,
        dispatcher: CommandDispatcher,
        clock: Clock = utcnow,
        settings: LedgerSettings = ledger_settings,
    ):
        self._uow_factory = uow_factory
        self._risk_service = risk_service
        self._document_client = document_client
        self._settlement_client = settlement_client
        self._dispatcher = dispatcher
        self._clock = clock
        self._settings = settings

    async def create_invoice(self, request: CreateInvoiceRequest) -> InvoiceResponse:
        """
        Create a draft invoice and run its initial risk assessment.

        Args:
            request: Invoice terms

        Returns:
            InvoiceResponse for the new draft

        Raises:
            InvalidInvoiceRequestException: If request validation fails
        """
        errors = request.validate()
        if errors:
            raise InvalidInvoiceRequestException("; ".join(errors))

        now = self._clock()
        invoice = Invoice(
            seller_id=request.seller_id.strip(),
            buyer_name=request.buyer_name.strip(),
            principal_cents=request.principal_cents,
            currency=request.currency.strip().upper(),
            tenor_days=request.tenor_days,
            yield_bps=request.yield_bps,
            funding_goal_cents=request.funding_goal_cents or request.principal_cents,
            invoice_number=request.invoice_number,
            description=request.description,
            industry=request.industry,
            bond_cents=request.bond_cents,
            created_at=now,
            updated_at=now,
        )

        async with self._uow_factory() as uow:
            invoice = await self._risk_service.assess_invoice(uow, invoice, now)
            await uow.invoices.add(invoice)

        logger.info(
            "invoice_created",
            invoice_id=str(invoice.id),
            seller_id=invoice.seller_id,
            principal_cents=invoice.principal_cents,
            risk_grade=invoice.risk_grade,
        )

        return InvoiceResponse.from_entity(invoice)

    async def get_invoice(self, invoice_id: UUID) -> InvoiceResponse:
        """
        Get an invoice by ID.

        Raises:
            InvoiceNotFoundException: If invoice not found
        """
        async with self._uow_factory() as uow:
            invoice = await load_invoice(uow, invoice_id)
        return InvoiceResponse.from_entity(invoice)

    async def list_invoices(
        self,
        filters: InvoiceFilters,
        page: PageRequest,
        sort: InvoiceSort = InvoiceSort(),
    ) -> InvoicePageResponse:
        """
        List invoices one page at a time.

        Without a status or seller filter the listing is the marketplace:
        listed, funding and funded invoices.

        Raises:
            InvalidListingQueryException: If the principal range is inverted
        """
        if (
            filters.min_principal_cents is not None
            and filters.max_principal_cents is not None
            and filters.min_principal_cents > filters.max_principal_cents
        ):
            raise InvalidListingQueryException(
                "min_principal_cents cannot exceed max_principal_cents"
            )

        if not filters.statuses and not filters.seller_id:
            filters = replace(filters, statuses=MARKETPLACE_STATUSES)

        async with self._uow_factory() as uow:
            result = await uow.invoices.list(filters, page, sort)

        return InvoicePageResponse.from_page(result)

    async def update_invoice(
        self,
        invoice_id: UUID,
        request: UpdateInvoiceRequest,
    ) -> InvoiceResponse:
        """
        Change the terms of a draft invoice.

        The risk assessment is recomputed when a risk-relevant field changes.

        Raises:
            InvoiceNotFoundException: If invoice not found
            InvoiceNotEditableException: If the invoice is not a draft
            InvalidInvoiceRequestException: If the merged terms are invalid
        """
        changes = request.changes()

        async def work(uow: UnitOfWork) -> Invoice:
            invoice = await load_invoice(uow, invoice_id)
            if invoice.status not in EDITABLE_STATUSES:
                raise InvoiceNotEditableException(str(invoice.id), invoice.status.value)

            now = self._clock()
            updated = replace(invoice, **changes, updated_at=now)
            if "currency" in changes:
                updated.currency = updated.currency.strip().upper()
            if "principal_cents" in changes and "funding_goal_cents" not in changes:
                if invoice.funding_goal_cents == invoice.principal_cents:
                    updated.funding_goal_cents = updated.principal_cents
            if "tenor_days" in changes:
                updated.maturity_date = invoice.created_at + timedelta(days=updated.tenor_days)

            errors = validate_invoice_terms(updated)
            if errors:
                raise InvalidInvoiceRequestException("; ".join(errors))

            if request.touches_risk():
                updated = await self._risk_service.assess_invoice(uow, updated, now)

            return await uow.invoices.update(updated)

        with track_ledger_operation("update_invoice"):
            invoice = await run_with_cas_retry(
                self._uow_factory, "update_invoice", work, self._settings
            )

        logger.info("invoice_updated", invoice_id=str(invoice_id), fields=sorted(changes))
        return InvoiceResponse.from_entity(invoice)

    async def reassess(self, invoice_id: UUID) -> InvoiceResponse:
        """
        Recompute the risk assessment of a draft or pending_review invoice.

        Raises:
            InvoiceNotFoundException: If invoice not found
            InvoiceNotEditableException: If the invoice is past review
        """

        async def work(uow: UnitOfWork) -> Invoice:
            invoice = await load_invoice(uow, invoice_id)
            if invoice.status not in ASSESSABLE_STATUSES:
                raise InvoiceNotEditableException(str(invoice.id), invoice.status.value)

            now = self._clock()
            updated = await self._risk_service.assess_invoice(uow, invoice, now)
            updated.updated_at = now
            return await uow.invoices.update(updated)

        invoice = await run_with_cas_retry(self._uow_factory, "reassess", work, self._settings)
        return InvoiceResponse.from_entity(invoice)

    async def transition(self, invoice_id: UUID, event: LifecycleEvent) -> InvoiceResponse:
        """
        Apply a user-requested lifecycle event.

        Args:
            invoice_id: The invoice to transition
            event: A user event (submit, approve, reject, revise, list, cancel)

        Returns:
            InvoiceResponse after the transition

        Raises:
            InvoiceNotFoundException: If invoice not found
            InvalidTransitionException: If the event is automatic or illegal now
            MissingDocumentsException: If submitting without required documents
            SettlementNetworkException: If the ownership token cannot be minted
        """
        log = logger.bind(invoice_id=str(invoice_id), lifecycle_event=event.value)

        async with self._uow_factory() as uow:
            invoice = await load_invoice(uow, invoice_id)

        ensure_user_event(invoice, event)

        if event == LifecycleEvent.SUBMIT and can_transition(invoice, event):
            if not await self._document_client.has_required_documents(invoice.id):
                raise MissingDocumentsException(
                    str(invoice.id), "required documents are not attached"
                )

        token_ref = None
        if event == LifecycleEvent.APPROVE and can_transition(invoice, event):
            # Idempotent on the network side, so a lost race below is harmless.
            token_ref = await self._settlement_client.mint_ownership_token(
                invoice.id,
                invoice.funding_goal_cents,
                idempotency_key=f"{invoice.id}:mint",
            )
            log.info("ownership_token_minted", token_ref=token_ref)

        async def work(uow: UnitOfWork) -> TransitionResult:
            current = await load_invoice(uow, invoice_id)
            result = transition(current, event, self._clock())
            if not result.changed:
                return result

            updated = result.invoice
            if token_ref is not None:
                updated = replace(updated, token_ref=token_ref)
            updated = await uow.invoices.update(updated)
            return replace(result, invoice=updated)

        with track_ledger_operation("transition"):
            result = await run_with_cas_retry(
                self._uow_factory, "transition", work, self._settings
            )

        if not result.changed:
            log.info("transition_noop", status=result.invoice.status.value)
            return InvoiceResponse.from_entity(result.invoice)

        record_transition(event.value)
        log.info("invoice_transitioned", status=result.invoice.status.value)

        pending = await self._dispatcher.dispatch(result.commands)
        return InvoiceResponse.from_entity(result.invoice, reconciliation_pending=pending)

    async def find_default_candidates(self, limit: int = 100) -> DefaultCandidatesResponse:
        """
        List invoices at least the default grace period past maturity.

        Read-only; the external sweep decides whether to record each default.
        """
        now = self._clock()
        cutoff = now - timedelta(days=self._settings.default_grace_days)

        async with self._uow_factory() as uow:
            invoices: List[Invoice] = await uow.invoices.list_default_candidates(
                matured_before=cutoff, limit=limit
            )

        return DefaultCandidatesResponse(
            as_of=now.isoformat() + "Z",
            invoices=[InvoiceResponse.from_entity(inv) for inv in invoices],
        )
