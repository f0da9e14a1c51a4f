"""
Integration tests for the SQL repositories and unit of work.

These tests verify:
1. Invoices and investments round-trip through the database
2. Version compare-and-swap rejects stale invoice writes
3. The payout_claimed flag flips exactly once
4. Seller and buyer history aggregates
5. Rolled-back units of work leave nothing behind
6. Invoice listings and investor portfolio aggregates
"""

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from src.domain.entities import (
    Investment,
    InvestmentStatus,
    Invoice,
    InvoiceFilters,
    InvoiceSort,
    InvoiceSortField,
    InvoiceStatus,
    PageRequest,
)
from src.domain.exceptions import StaleVersionException

NOW = datetime(2025, 3, 3, 12, 0, 0)


def make_invoice(**overrides) -> Invoice:
    values = {
        "seller_id": "seller_acme",
        "buyer_name": "Globex Corporation",
        "principal_cents": 1_000_000,
        "currency": "USD",
        "tenor_days": 60,
        "yield_bps": 800,
        "funding_goal_cents": 1_000_000,
        "description": "Q1 widget delivery",
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
# Invoice Repository
# =============================================================================

class TestInvoicePersistence:
    """Tests for PostgresInvoiceRepository over SQLite."""

    @pytest.mark.asyncio
    async def test_invoice_round_trip(self, uow_factory):
        invoice = make_invoice(
            risk_score=85,
            risk_grade="HIGH",
            risk_factors=[{"name": "amount", "level": "medium", "score": 10}],
            industry="technology",
        )

        async with uow_factory() as uow:
            await uow.invoices.add(invoice)

        async with uow_factory() as uow:
            stored = await uow.invoices.get_by_id(invoice.id)

        assert stored == invoice
        assert stored.maturity_date == NOW + timedelta(days=60)

    @pytest.mark.asyncio
    async def test_update_bumps_version(self, uow_factory):
        invoice = make_invoice()
        async with uow_factory() as uow:
            await uow.invoices.add(invoice)

        async with uow_factory() as uow:
            updated = await uow.invoices.update(
                replace(invoice, status=InvoiceStatus.PENDING_REVIEW)
            )

        async with uow_factory() as uow:
            stored = await uow.invoices.get_by_id(invoice.id)

        assert updated.version == 1
        assert stored.version == 1
        assert stored.status == InvoiceStatus.PENDING_REVIEW

    @pytest.mark.asyncio
    async def test_stale_write_is_rejected(self, uow_factory):
        invoice = make_invoice()
        async with uow_factory() as uow:
            await uow.invoices.add(invoice)
        async with uow_factory() as uow:
            await uow.invoices.update(replace(invoice, total_invested_cents=400_000))

        with pytest.raises(StaleVersionException):
            async with uow_factory() as uow:
                await uow.invoices.update(replace(invoice, total_invested_cents=600_000))

        async with uow_factory() as uow:
            stored = await uow.invoices.get_by_id(invoice.id)

        assert stored.total_invested_cents == 400_000
        assert stored.version == 1

    @pytest.mark.asyncio
    async def test_rolled_back_unit_of_work_discards_writes(self, uow_factory):
        invoice = make_invoice()

        with pytest.raises(RuntimeError):
            async with uow_factory() as uow:
                await uow.invoices.add(invoice)
                raise RuntimeError("abort")

        async with uow_factory() as uow:
            assert await uow.invoices.get_by_id(invoice.id) is None


class TestPartyHistory:
    """Tests for the seller and buyer history aggregates."""

    @pytest.mark.asyncio
    async def test_seller_history_counts_outcomes_and_delay(self, uow_factory):
        paid = make_invoice(status=InvoiceStatus.PAID)
        paid.paid_at = paid.maturity_date + timedelta(days=4)
        defaulted = make_invoice(status=InvoiceStatus.DEFAULTED)
        draft = make_invoice(created_at=NOW + timedelta(days=1))

        async with uow_factory() as uow:
            for invoice in (paid, defaulted, draft):
                await uow.invoices.add(invoice)

        async with uow_factory() as uow:
            history = await uow.invoices.get_seller_history(
                "seller_acme", exclude_invoice_id=draft.id
            )

        assert history.invoice_count == 2
        assert history.paid_count == 1
        assert history.defaulted_count == 1
        assert history.avg_settlement_delay_days == 4.0

    @pytest.mark.asyncio
    async def test_buyer_history_matches_name_case_insensitively(self, uow_factory):
        async with uow_factory() as uow:
            await uow.invoices.add(make_invoice(buyer_name="GLOBEX CORPORATION"))
            await uow.invoices.add(make_invoice(seller_id="seller_other"))
            await uow.invoices.add(make_invoice(buyer_name="Initech"))

        async with uow_factory() as uow:
            history = await uow.invoices.get_buyer_history(" globex corporation ")

        assert history.invoice_count == 2
        assert history.paid_count == 0

    @pytest.mark.asyncio
    async def test_unknown_party_has_empty_history(self, uow_factory):
        async with uow_factory() as uow:
            history = await uow.invoices.get_seller_history("seller_nobody")

        assert history.invoice_count == 0
        assert history.avg_settlement_delay_days == 0.0


# =============================================================================
# Investment Repository
# =============================================================================

class TestInvestmentPersistence:
    """Tests for PostgresInvestmentRepository over SQLite."""

    @pytest.mark.asyncio
    async def test_list_by_invoice_is_oldest_first(self, uow_factory):
        invoice = make_invoice()
        later = make_investment(
            invoice, investor_id="investor_b", created_at=NOW + timedelta(minutes=5)
        )
        earlier = make_investment(invoice, investor_id="investor_a")

        async with uow_factory() as uow:
            await uow.invoices.add(invoice)
            await uow.investments.add(later)
            await uow.investments.add(earlier)

        async with uow_factory() as uow:
            listed = await uow.investments.list_by_invoice(invoice.id)

        assert [i.investor_id for i in listed] == ["investor_a", "investor_b"]

    @pytest.mark.asyncio
    async def test_open_position_ignores_cancelled(self, uow_factory):
        invoice = make_invoice()
        cancelled = make_investment(
            invoice, status=InvestmentStatus.CANCELLED, cancelled_at=NOW
        )

        async with uow_factory() as uow:
            await uow.invoices.add(invoice)
            await uow.investments.add(cancelled)

        async with uow_factory() as uow:
            assert await uow.investments.get_open_position(invoice.id, "investor_a") is None
            only_active = await uow.investments.list_by_invoice(
                invoice.id, statuses=[InvestmentStatus.ACTIVE]
            )

        assert only_active == []

    @pytest.mark.asyncio
    async def test_mark_claimed_succeeds_once(self, uow_factory):
        invoice = make_invoice()
        investment = make_investment(invoice)
        async with uow_factory() as uow:
            await uow.invoices.add(invoice)
            await uow.investments.add(investment)

        async with uow_factory() as uow:
            first = await uow.investments.mark_claimed(
                investment.id, 392_000, InvestmentStatus.COMPLETED, NOW
            )
        async with uow_factory() as uow:
            second = await uow.investments.mark_claimed(
                investment.id, 392_000, InvestmentStatus.COMPLETED, NOW
            )
        async with uow_factory() as uow:
            stored = await uow.investments.get_by_id(investment.id)

        assert first is True
        assert second is False
        assert stored.payout_claimed is True
        assert stored.actual_return_cents == 392_000
        assert stored.status == InvestmentStatus.COMPLETED


# =============================================================================
# Listings and Portfolios
# =============================================================================

async def seed_listing(uow_factory):
    """Four invoices from two sellers, one hour apart."""
    invoices = [
        make_invoice(
            status=InvoiceStatus.LISTED,
            principal_cents=500_000,
            funding_goal_cents=500_000,
        ),
        make_invoice(
            status=InvoiceStatus.FUNDING,
            principal_cents=2_000_000,
            funding_goal_cents=2_000_000,
            currency="EUR",
            created_at=NOW + timedelta(hours=1),
        ),
        make_invoice(
            buyer_name="Initech",
            created_at=NOW + timedelta(hours=2),
        ),
        make_invoice(
            status=InvoiceStatus.LISTED,
            seller_id="seller_other",
            buyer_name="Initech",
            description="Server racks",
            principal_cents=1_500_000,
            funding_goal_cents=1_500_000,
            created_at=NOW + timedelta(hours=3),
        ),
    ]
    async with uow_factory() as uow:
        for invoice in invoices:
            await uow.invoices.add(invoice)
    return invoices


class TestInvoiceListing:
    """Tests for filtered, sorted and paginated invoice listings."""

    @pytest.mark.asyncio
    async def test_status_filter_newest_first(self, uow_factory):
        listed, funding, _, other = await seed_listing(uow_factory)

        async with uow_factory() as uow:
            page = await uow.invoices.list(
                InvoiceFilters(statuses=(InvoiceStatus.LISTED, InvoiceStatus.FUNDING)),
                PageRequest(),
            )

        assert [inv.id for inv in page.items] == [other.id, funding.id, listed.id]
        assert page.total == 3

    @pytest.mark.asyncio
    async def test_currency_and_seller_filters(self, uow_factory):
        _, funding, draft, _ = await seed_listing(uow_factory)

        async with uow_factory() as uow:
            by_currency = await uow.invoices.list(InvoiceFilters(currency="eur"), PageRequest())
            by_seller = await uow.invoices.list(
                InvoiceFilters(seller_id="seller_acme", statuses=(InvoiceStatus.DRAFT,)),
                PageRequest(),
            )

        assert [inv.id for inv in by_currency.items] == [funding.id]
        assert [inv.id for inv in by_seller.items] == [draft.id]

    @pytest.mark.asyncio
    async def test_principal_range_sorted_by_principal(self, uow_factory):
        _, funding, draft, other = await seed_listing(uow_factory)

        async with uow_factory() as uow:
            page = await uow.invoices.list(
                InvoiceFilters(min_principal_cents=1_000_000, max_principal_cents=2_000_000),
                PageRequest(),
                InvoiceSort(field=InvoiceSortField.PRINCIPAL, descending=False),
            )

        assert [inv.id for inv in page.items] == [draft.id, other.id, funding.id]

    @pytest.mark.asyncio
    async def test_search_matches_buyer_or_description(self, uow_factory):
        _, _, draft, other = await seed_listing(uow_factory)

        async with uow_factory() as uow:
            by_buyer = await uow.invoices.list(InvoiceFilters(search="INITECH"), PageRequest())
            by_description = await uow.invoices.list(InvoiceFilters(search="racks"), PageRequest())

        assert {inv.id for inv in by_buyer.items} == {draft.id, other.id}
        assert [inv.id for inv in by_description.items] == [other.id]

    @pytest.mark.asyncio
    async def test_second_page(self, uow_factory):
        _, _, draft, other = await seed_listing(uow_factory)

        async with uow_factory() as uow:
            page = await uow.invoices.list(
                InvoiceFilters(),
                PageRequest(page=2, limit=2),
                InvoiceSort(descending=False),
            )

        assert [inv.id for inv in page.items] == [draft.id, other.id]
        assert page.total == 4
        assert page.total_pages == 2
        assert page.has_prev is True
        assert page.has_next is False


class TestInvestorPortfolio:
    """Tests for listing and summarizing one investor's positions."""

    @pytest.mark.asyncio
    async def test_positions_newest_first_and_grouped(self, uow_factory):
        low = make_invoice(risk_grade="LOW", yield_bps=800)
        high = make_invoice(risk_grade="HIGH", yield_bps=1_200)
        on_low = make_investment(low)
        withdrawn = make_investment(
            high,
            amount_cents=100_000,
            status=InvestmentStatus.CANCELLED,
            created_at=NOW + timedelta(hours=1),
            cancelled_at=NOW + timedelta(hours=2),
        )
        on_high = make_investment(
            high,
            amount_cents=250_000,
            expected_return_cents=254_931,
            created_at=NOW + timedelta(hours=3),
        )
        someone_else = make_investment(low, investor_id="investor_b")

        async with uow_factory() as uow:
            await uow.invoices.add(low)
            await uow.invoices.add(high)
            for investment in (on_low, withdrawn, on_high, someone_else):
                await uow.investments.add(investment)

        async with uow_factory() as uow:
            everything = await uow.investments.list_by_investor("investor_a", PageRequest())
            active = await uow.investments.list_by_investor(
                "investor_a", PageRequest(), statuses=[InvestmentStatus.ACTIVE]
            )
            buckets = await uow.investments.summarize_by_investor("investor_a")
            recent = await uow.investments.summarize_by_investor(
                "investor_a", since=NOW + timedelta(hours=1)
            )

        assert [inv.id for inv in everything.items] == [on_high.id, withdrawn.id, on_low.id]
        assert everything.total == 3
        assert [inv.id for inv in active.items] == [on_high.id, on_low.id]

        grouped = {(b.status, b.risk_grade): b for b in buckets}
        assert set(grouped) == {
            (InvestmentStatus.ACTIVE, "LOW"),
            (InvestmentStatus.ACTIVE, "HIGH"),
            (InvestmentStatus.CANCELLED, "HIGH"),
        }
        active_high = grouped[(InvestmentStatus.ACTIVE, "HIGH")]
        assert active_high.count == 1
        assert active_high.invested_cents == 250_000
        assert active_high.expected_return_cents == 254_931
        assert active_high.actual_return_cents == 0
        assert active_high.yield_bps_total == 1_200

        assert {(b.status, b.risk_grade) for b in recent} == {
            (InvestmentStatus.ACTIVE, "HIGH"),
            (InvestmentStatus.CANCELLED, "HIGH"),
        }
