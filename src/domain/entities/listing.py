"""Query and aggregate types for marketplace listings and investor portfolios."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, List, Optional, Tuple, TypeVar

from .investment import InvestmentStatus
from .invoice import InvoiceStatus

T = TypeVar("T")


class InvoiceSortField(str, Enum):
    """Columns a marketplace listing can be ordered by."""

    CREATED_AT = "created_at"
    PRINCIPAL = "principal_cents"
    YIELD = "yield_bps"
    MATURITY = "maturity_date"
    RISK_SCORE = "risk_score"


@dataclass(frozen=True)
class InvoiceFilters:
    """
    Criteria for listing invoices.

    Attributes:
        statuses: Allowed statuses (empty means any)
        seller_id: Only this seller's invoices
        currency: ISO currency code, compared case-insensitively
        min_principal_cents: Inclusive lower bound on principal
        max_principal_cents: Inclusive upper bound on principal
        search: Substring of the buyer name or description, case-insensitive
    """

    statuses: Tuple[InvoiceStatus, ...] = ()
    seller_id: Optional[str] = None
    currency: Optional[str] = None
    min_principal_cents: Optional[int] = None
    max_principal_cents: Optional[int] = None
    search: Optional[str] = None


@dataclass(frozen=True)
class InvoiceSort:
    field: InvoiceSortField = InvoiceSortField.CREATED_AT
    descending: bool = True


@dataclass(frozen=True)
class PageRequest:
    """One-based page number and page size."""

    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    """A page of results plus the total number of matches."""

    items: List[T]
    total: int
    request: PageRequest

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return -(-self.total // self.request.limit)

    @property
    def has_next(self) -> bool:
        return self.request.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.request.page > 1


@dataclass(frozen=True)
class PortfolioBucket:
    """
    An investor's positions grouped by investment status and invoice risk grade.

    Attributes:
        status: Status shared by the grouped investments
        risk_grade: Risk grade of their invoices (None if never assessed)
        count: Number of investments
        invested_cents: Sum of invested amounts
        expected_return_cents: Sum of expected returns
        actual_return_cents: Sum of claimed returns (0 where unclaimed)
        yield_bps_total: Sum of invoice yields, for averaging
    """

    status: InvestmentStatus
    risk_grade: Optional[str]
    count: int
    invested_cents: int
    expected_return_cents: int
    actual_return_cents: int
    yield_bps_total: int
