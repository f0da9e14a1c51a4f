"""Data transfer objects for invoice operations."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MIN_TENOR_DAYS = 1
MAX_TENOR_DAYS = 365
MIN_YIELD_BPS = 100
MAX_YIELD_BPS = 5000


def _iso(value) -> Optional[str]:
    return value.isoformat() + "Z" if value is not None else None


@dataclass(frozen=True)
class CreateInvoiceRequest:
    """Input data for raising a new invoice."""
    seller_id: str
    buyer_name: str
    principal_cents: int
    currency: str
    tenor_days: int
    yield_bps: int
    invoice_number: str = ""
    description: str = ""
    industry: Optional[str] = None
    funding_goal_cents: Optional[int] = None
    bond_cents: int = 0

    def validate(self) -> List[str]:
        errors = []

        if not self.seller_id or not self.seller_id.strip():
            errors.append("seller_id is required")

        if not self.buyer_name or not self.buyer_name.strip():
            errors.append("buyer_name is required")

        errors.extend(
            _validate_terms(
                self.principal_cents,
                self.currency,
                self.tenor_days,
                self.yield_bps,
                self.funding_goal_cents,
            )
        )

        if self.bond_cents < 0:
            errors.append("bond_cents must not be negative")

        return errors


@dataclass(frozen=True)
class UpdateInvoiceRequest:
    """Partial update of a draft invoice. None leaves a field unchanged."""
    buyer_name: Optional[str] = None
    principal_cents: Optional[int] = None
    currency: Optional[str] = None
    tenor_days: Optional[int] = None
    yield_bps: Optional[int] = None
    invoice_number: Optional[str] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    funding_goal_cents: Optional[int] = None
    bond_cents: Optional[int] = None

    # Changing any of these invalidates the stored risk assessment.
    RISK_FIELDS = ("buyer_name", "principal_cents", "currency", "tenor_days", "industry")

    def changes(self) -> Dict[str, Any]:
        return {
            name: value
            for name, value in self.__dict__.items()
            if value is not None
        }

    def touches_risk(self) -> bool:
        return any(getattr(self, name) is not None for name in self.RISK_FIELDS)


def _validate_terms(
    principal_cents: int,
    currency: str,
    tenor_days: int,
    yield_bps: int,
    funding_goal_cents: Optional[int],
) -> List[str]:
    """Validation shared by create and update, applied to the merged terms."""
    errors = []

    if principal_cents <= 0:
        errors.append("principal_cents must be positive")

    if not currency or len(currency.strip()) != 3 or not currency.strip().isalpha():
        errors.append("currency must be a three-letter code")

    if not MIN_TENOR_DAYS <= tenor_days <= MAX_TENOR_DAYS:
        errors.append(f"tenor_days must be between {MIN_TENOR_DAYS} and {MAX_TENOR_DAYS}")

    if not MIN_YIELD_BPS <= yield_bps <= MAX_YIELD_BPS:
        errors.append(f"yield_bps must be between {MIN_YIELD_BPS} and {MAX_YIELD_BPS}")

    if funding_goal_cents is not None:
        if funding_goal_cents <= 0:
            errors.append("funding_goal_cents must be positive")
        elif principal_cents > 0 and funding_goal_cents > principal_cents:
            errors.append("funding_goal_cents cannot exceed principal_cents")

    return errors


def validate_invoice_terms(invoice) -> List[str]:
    """Re-check the terms of an invoice after a partial update."""
    return _validate_terms(
        invoice.principal_cents,
        invoice.currency,
        invoice.tenor_days,
        invoice.yield_bps,
        invoice.funding_goal_cents,
    )


@dataclass(frozen=True)
class InvoiceResponse:
    """Response data for an invoice."""

    invoice_id: str
    seller_id: str
    buyer_name: str
    invoice_number: str
    description: str
    industry: Optional[str]
    principal_cents: int
    currency: str
    tenor_days: int
    yield_bps: int
    funding_goal_cents: int
    total_invested_cents: int
    remaining_capacity_cents: int
    status: str
    risk_score: Optional[int]
    risk_grade: Optional[str]
    risk_factors: List[Dict[str, Any]]
    yield_adjustment_bps: Optional[int]
    paid_amount_cents: int
    payment_status: str
    bond_cents: int
    token_ref: Optional[str]
    maturity_date: Optional[str]
    version: int
    created_at: str
    updated_at: str
    listed_at: Optional[str] = None
    funded_at: Optional[str] = None
    paid_at: Optional[str] = None
    defaulted_at: Optional[str] = None
    reconciliation_pending: bool = False

    @classmethod
    def from_entity(cls, invoice, reconciliation_pending: bool = False) -> "InvoiceResponse":
        return cls(
            invoice_id=str(invoice.id),
            seller_id=invoice.seller_id,
            buyer_name=invoice.buyer_name,
            invoice_number=invoice.invoice_number,
            description=invoice.description,
            industry=invoice.industry,
            principal_cents=invoice.principal_cents,
            currency=invoice.currency,
            tenor_days=invoice.tenor_days,
            yield_bps=invoice.yield_bps,
            funding_goal_cents=invoice.funding_goal_cents,
            total_invested_cents=invoice.total_invested_cents,
            remaining_capacity_cents=invoice.remaining_capacity_cents,
            status=invoice.status.value,
            risk_score=invoice.risk_score,
            risk_grade=invoice.risk_grade,
            risk_factors=list(invoice.risk_factors),
            yield_adjustment_bps=invoice.yield_adjustment_bps,
            paid_amount_cents=invoice.paid_amount_cents,
            payment_status=invoice.payment_status.value,
            bond_cents=invoice.bond_cents,
            token_ref=invoice.token_ref,
            maturity_date=_iso(invoice.maturity_date),
            version=invoice.version,
            created_at=_iso(invoice.created_at),
            updated_at=_iso(invoice.updated_at),
            listed_at=_iso(invoice.listed_at),
            funded_at=_iso(invoice.funded_at),
            paid_at=_iso(invoice.paid_at),
            defaulted_at=_iso(invoice.defaulted_at),
            reconciliation_pending=reconciliation_pending,
        )


@dataclass(frozen=True)
class DefaultCandidatesResponse:
    """Invoices past maturity plus grace, for the external default sweep."""

    as_of: str
    invoices: List[InvoiceResponse] = field(default_factory=list)


@dataclass(frozen=True)
class Pagination:
    """Position of a page within a listing."""

    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_page(cls, page) -> "Pagination":
        return cls(
            page=page.request.page,
            limit=page.request.limit,
            total_items=page.total,
            total_pages=page.total_pages,
            has_next=page.has_next,
            has_prev=page.has_prev,
        )


@dataclass(frozen=True)
class InvoicePageResponse:
    """One page of a marketplace or seller listing."""

    invoices: List[InvoiceResponse]
    pagination: Pagination

    @classmethod
    def from_page(cls, page) -> "InvoicePageResponse":
        return cls(
            invoices=[InvoiceResponse.from_entity(inv) for inv in page.items],
            pagination=Pagination.from_page(page),
        )
