"""
Unit Tests for Investment Funding Rules.

These tests verify:
1. Minimum investment and expected return arithmetic
2. Reservation preconditions, in their fixed order
3. Automatic funding transitions driven by reservations
4. Cancellation rules and the revert to listed
"""

from datetime import datetime, timedelta

import pytest

from src.domain.entities import Investment, InvestmentStatus, Invoice, InvoiceStatus
from src.domain.exceptions import (
    BelowMinimumInvestmentException,
    CancellationWindowExpiredException,
    CapacityExceededException,
    DuplicateInvestmentException,
    InvalidAmountException,
    InvestmentNotActiveException,
    InvoiceAlreadyFundedException,
    InvoiceMaturedException,
    InvoiceNotInvestableException,
)
from src.service.ledger import (
    LedgerSettings,
    calculate_expected_return_cents,
    calculate_share_percentage,
    cancel,
    minimum_investment_cents,
    reserve,
)
from src.service.lifecycle import LifecycleEvent, Notify, RecordInvestment

NOW = datetime(2025, 3, 3, 12, 0, 0)


def make_invoice(status: InvoiceStatus = InvoiceStatus.LISTED, **overrides) -> Invoice:
    values = {
        "seller_id": "seller_acme",
        "buyer_name": "Globex Corporation",
        "principal_cents": 1_000_000,
        "currency": "USD",
        "tenor_days": 60,
        "yield_bps": 800,
        "funding_goal_cents": 1_000_000,
        "description": "Q1 widget delivery",
        "status": status,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return Invoice(**values)


def make_investment(invoice: Invoice, **overrides) -> Investment:
    values = {
        "invoice_id": invoice.id,
        "investor_id": "investor_a",
        "amount_cents": 400_000,
        "share_percentage": 0.4,
        "expected_return_cents": 405_260,
        "created_at": NOW,
    }
    values.update(overrides)
    return Investment(**values)


# =============================================================================
# Arithmetic
# =============================================================================

class TestFundingArithmetic:
    """Tests for minimum, share and expected return."""

    @pytest.mark.parametrize(
        "principal_cents,expected",
        [
            (100_000, 10_000),
            (1_000_000, 10_000),
            (1_000_001, 10_001),
            (5_000_000, 50_000),
        ],
    )
    def test_minimum_is_greater_of_floor_and_percentage(self, principal_cents, expected):
        assert minimum_investment_cents(principal_cents, LedgerSettings()) == expected

    def test_share_percentage(self):
        assert calculate_share_percentage(250_000, 1_000_000) == 0.25

    def test_expected_return_is_simple_interest_floored(self):
        """400_000 * 800 * 60 / 3_650_000 = 5260.27 -> 5260."""
        assert calculate_expected_return_cents(400_000, 800, 60) == 405_260

    def test_zero_yield_returns_principal(self):
        assert calculate_expected_return_cents(400_000, 0, 60) == 400_000


# =============================================================================
# Reservations
# =============================================================================

class TestReserve:
    """Tests for reservation preconditions and effects."""

    def test_first_reservation_starts_funding(self):
        invoice = make_invoice()

        result = reserve(invoice, "investor_a", 400_000, None, NOW, LedgerSettings())

        assert result.invoice.status == InvoiceStatus.FUNDING
        assert result.invoice.total_invested_cents == 400_000
        assert result.events == (LifecycleEvent.START_FUNDING,)
        assert result.investment.status == InvestmentStatus.ACTIVE
        assert result.investment.share_percentage == 0.4
        assert result.investment.expected_return_cents == 405_260

    def test_reservation_that_fills_goal_completes_funding(self):
        invoice = make_invoice(InvoiceStatus.FUNDING, total_invested_cents=400_000)

        result = reserve(invoice, "investor_b", 600_000, None, NOW, LedgerSettings())

        assert result.invoice.status == InvoiceStatus.FUNDED
        assert result.invoice.funded_at == NOW
        assert result.invoice.remaining_capacity_cents == 0
        assert result.events == (LifecycleEvent.COMPLETE_FUNDING,)
        funded_notices = [
            c for c in result.commands if isinstance(c, Notify) and c.event == "invoice_funded"
        ]
        assert len(funded_notices) == 1

    def test_single_reservation_can_fund_listed_invoice(self):
        result = reserve(make_invoice(), "investor_a", 1_000_000, None, NOW, LedgerSettings())

        assert result.invoice.status == InvoiceStatus.FUNDED
        assert result.events == (LifecycleEvent.COMPLETE_FUNDING,)

    def test_reservation_emits_settlement_and_confirmation(self):
        result = reserve(make_invoice(), "investor_a", 400_000, None, NOW, LedgerSettings())

        record = result.commands[0]
        assert isinstance(record, RecordInvestment)
        assert record.investment_id == result.investment.id
        assert record.idempotency_key == (
            f"{result.invoice.id}:investment:{result.investment.id}"
        )
        confirmation = result.commands[1]
        assert isinstance(confirmation, Notify)
        assert confirmation.user_id == "investor_a"
        assert confirmation.event == "investment_confirmed"

    def test_input_invoice_is_not_mutated(self):
        invoice = make_invoice()

        reserve(invoice, "investor_a", 400_000, None, NOW, LedgerSettings())

        assert invoice.total_invested_cents == 0
        assert invoice.status == InvoiceStatus.LISTED

    @pytest.mark.parametrize(
        "status",
        [InvoiceStatus.DRAFT, InvoiceStatus.APPROVED, InvoiceStatus.PAID, InvoiceStatus.DEFAULTED],
    )
    def test_not_investable_statuses(self, status):
        with pytest.raises(InvoiceNotInvestableException):
            reserve(make_invoice(status), "investor_a", 400_000, None, NOW, LedgerSettings())

    def test_funded_invoice_reports_no_capacity(self):
        invoice = make_invoice(InvoiceStatus.FUNDED, total_invested_cents=1_000_000)

        with pytest.raises(CapacityExceededException) as exc_info:
            reserve(invoice, "investor_c", 10_000, None, NOW, LedgerSettings())

        assert exc_info.value.remaining_cents == 0

    def test_one_cent_on_funded_invoice_is_a_capacity_error(self):
        invoice = make_invoice(InvoiceStatus.FUNDED, total_invested_cents=1_000_000)

        with pytest.raises(CapacityExceededException):
            reserve(invoice, "investor_c", 1, None, NOW, LedgerSettings())

    def test_matured_invoice_is_rejected(self):
        invoice = make_invoice()
        at_maturity = NOW + timedelta(days=60)

        with pytest.raises(InvoiceMaturedException):
            reserve(invoice, "investor_a", 400_000, None, at_maturity, LedgerSettings())

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount(self, amount):
        with pytest.raises(InvalidAmountException):
            reserve(make_invoice(), "investor_a", amount, None, NOW, LedgerSettings())

    def test_below_minimum(self):
        with pytest.raises(BelowMinimumInvestmentException) as exc_info:
            reserve(make_invoice(), "investor_a", 9_999, None, NOW, LedgerSettings())

        assert exc_info.value.minimum_cents == 10_000

    def test_duplicate_position(self):
        invoice = make_invoice(InvoiceStatus.FUNDING, total_invested_cents=400_000)
        existing = make_investment(invoice)

        with pytest.raises(DuplicateInvestmentException):
            reserve(invoice, "investor_a", 100_000, existing, NOW, LedgerSettings())

    def test_capacity_exceeded(self):
        invoice = make_invoice(InvoiceStatus.FUNDING, total_invested_cents=400_000)

        with pytest.raises(CapacityExceededException) as exc_info:
            reserve(invoice, "investor_b", 600_001, None, NOW, LedgerSettings())

        assert exc_info.value.remaining_cents == 600_000

    def test_minimum_is_checked_before_capacity(self):
        invoice = make_invoice(InvoiceStatus.FUNDING, total_invested_cents=995_000)

        with pytest.raises(BelowMinimumInvestmentException):
            reserve(invoice, "investor_b", 5_000, None, NOW, LedgerSettings())


# =============================================================================
# Cancellations
# =============================================================================

class TestCancel:
    """Tests for cancellation rules."""

    def test_cancel_releases_capacity(self):
        invoice = make_invoice(InvoiceStatus.FUNDING, total_invested_cents=700_000)
        investment = make_investment(invoice)

        result = cancel(invoice, investment, NOW + timedelta(hours=1), LedgerSettings())

        assert result.invoice.total_invested_cents == 300_000
        assert result.invoice.status == InvoiceStatus.FUNDING
        assert result.investment.status == InvestmentStatus.CANCELLED
        assert result.investment.cancelled_at == NOW + timedelta(hours=1)
        assert result.events == ()

    def test_cancelling_last_investment_reverts_to_listed(self):
        invoice = make_invoice(InvoiceStatus.FUNDING, total_invested_cents=400_000)
        investment = make_investment(invoice)

        result = cancel(invoice, investment, NOW, LedgerSettings())

        assert result.invoice.total_invested_cents == 0
        assert result.invoice.status == InvoiceStatus.LISTED
        assert result.events == (LifecycleEvent.REVERT_TO_LISTED,)

    def test_window_boundary_is_inclusive(self):
        invoice = make_invoice(InvoiceStatus.FUNDING, total_invested_cents=400_000)
        investment = make_investment(invoice)

        result = cancel(invoice, investment, NOW + timedelta(hours=24), LedgerSettings())

        assert result.investment.status == InvestmentStatus.CANCELLED

    def test_window_expired(self):
        invoice = make_invoice(InvoiceStatus.FUNDING, total_invested_cents=400_000)
        investment = make_investment(invoice)

        with pytest.raises(CancellationWindowExpiredException):
            cancel(invoice, investment, NOW + timedelta(hours=24, seconds=1), LedgerSettings())

    def test_funded_invoice_cannot_be_cancelled(self):
        invoice = make_invoice(InvoiceStatus.FUNDED, total_invested_cents=1_000_000)
        investment = make_investment(invoice)

        with pytest.raises(InvoiceAlreadyFundedException):
            cancel(invoice, investment, NOW, LedgerSettings())

    def test_already_cancelled(self):
        invoice = make_invoice(InvoiceStatus.LISTED)
        investment = make_investment(invoice, status=InvestmentStatus.CANCELLED)

        with pytest.raises(InvestmentNotActiveException):
            cancel(invoice, investment, NOW, LedgerSettings())
