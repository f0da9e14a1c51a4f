"""
Integration tests for the marketplace and investor portfolio API.

These tests verify:
1. GET /v1/invoices lists the marketplace with filters, sorting and pages
2. GET /v1/investors/{id}/investments returns positions with active totals
3. GET /v1/investors/{id}/analytics breaks positions down by status and grade
"""

import pytest
from httpx import AsyncClient

from tests.integration.conftest import create_invoice, reserve


async def seed_marketplace(client: AsyncClient, listed_invoice, invoice_payload) -> dict:
    """A listed USD invoice, a listed EUR invoice and a draft; returns their ids."""
    usd = await listed_invoice()
    eur = await listed_invoice(principal_cents=2_000_000, currency="EUR")
    draft = await create_invoice(client, invoice_payload)
    return {
        "usd": usd["invoice_id"],
        "eur": eur["invoice_id"],
        "draft": draft["invoice_id"],
    }


def ids(response) -> list:
    return [inv["invoice_id"] for inv in response.json()["invoices"]]


# =============================================================================
# Marketplace
# =============================================================================

class TestInvoiceListing:
    """Tests for GET /v1/invoices."""

    @pytest.mark.asyncio
    async def test_default_listing_hides_drafts(
        self,
        client: AsyncClient,
        listed_invoice,
        invoice_payload,
    ):
        seeded = await seed_marketplace(client, listed_invoice, invoice_payload)

        response = await client.get("/v1/invoices")

        assert response.status_code == 200
        assert set(ids(response)) == {seeded["usd"], seeded["eur"]}
        assert response.json()["pagination"]["total_items"] == 2

    @pytest.mark.asyncio
    async def test_filters(self, client: AsyncClient, listed_invoice, invoice_payload):
        seeded = await seed_marketplace(client, listed_invoice, invoice_payload)

        by_currency = await client.get("/v1/invoices", params={"currency": "EUR"})
        by_status = await client.get(
            "/v1/invoices", params={"status": "draft", "seller_id": "seller_acme"}
        )
        by_amount = await client.get(
            "/v1/invoices", params={"min_principal_cents": 1_500_000}
        )

        assert ids(by_currency) == [seeded["eur"]]
        assert ids(by_status) == [seeded["draft"]]
        assert ids(by_amount) == [seeded["eur"]]

    @pytest.mark.asyncio
    async def test_sorted_pages(self, client: AsyncClient, listed_invoice, invoice_payload):
        seeded = await seed_marketplace(client, listed_invoice, invoice_payload)
        params = {"sort_by": "principal_cents", "sort_order": "asc"}

        everything = await client.get("/v1/invoices", params=params)
        second_page = await client.get("/v1/invoices", params={**params, "limit": 1, "page": 2})

        assert ids(everything) == [seeded["usd"], seeded["eur"]]
        assert ids(second_page) == [seeded["eur"]]
        assert second_page.json()["pagination"] == {
            "page": 2,
            "limit": 1,
            "total_items": 2,
            "total_pages": 2,
            "has_next": False,
            "has_prev": True,
        }

    @pytest.mark.asyncio
    async def test_inverted_principal_range(self, client: AsyncClient):
        response = await client.get(
            "/v1/invoices",
            params={"min_principal_cents": 2_000_000, "max_principal_cents": 1_000_000},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_LISTING_QUERY"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [{"limit": 500}, {"page": 0}, {"sort_by": "seller_id"}, {"status": "settled"}],
    )
    async def test_malformed_query(self, client: AsyncClient, params):
        response = await client.get("/v1/invoices", params=params)

        assert response.status_code == 422
        assert response.json()["error"] == "REQUEST_VALIDATION_ERROR"


# =============================================================================
# Portfolios
# =============================================================================

class TestPortfolio:
    """Tests for GET /v1/investors/{id}/investments and /analytics."""

    @pytest.mark.asyncio
    async def test_positions_and_totals(self, client: AsyncClient, listed_invoice):
        invoice = await listed_invoice()
        reserved = await reserve(client, invoice["invoice_id"], "investor_a", 400_000)
        assert reserved.status_code == 201

        response = await client.get("/v1/investors/investor_a/investments")

        assert response.status_code == 200
        data = response.json()
        assert [inv["investment_id"] for inv in data["investments"]] == [
            reserved.json()["investment_id"]
        ]
        assert data["totals"] == {
            "total_invested_cents": 400_000,
            "total_expected_return_cents": 405_260,
            "active_investments": 1,
            "avg_yield_bps": 800.0,
        }

    @pytest.mark.asyncio
    async def test_status_filter_keeps_active_totals(self, client: AsyncClient, listed_invoice):
        invoice = await listed_invoice()
        await reserve(client, invoice["invoice_id"], "investor_a", 400_000)

        response = await client.get(
            "/v1/investors/investor_a/investments", params={"status": "cancelled"}
        )

        data = response.json()
        assert data["investments"] == []
        assert data["pagination"]["total_items"] == 0
        assert data["totals"]["active_investments"] == 1

    @pytest.mark.asyncio
    async def test_analytics(self, client: AsyncClient, listed_invoice):
        invoice = await listed_invoice()
        await reserve(client, invoice["invoice_id"], "investor_a", 400_000)

        windowed = await client.get("/v1/investors/investor_a/analytics")
        overall = await client.get(
            "/v1/investors/investor_a/analytics", params={"timeframe": "all"}
        )

        assert windowed.status_code == 200
        assert windowed.json()["since"] == "2025-02-01T12:00:00Z"
        data = overall.json()
        assert data["since"] is None
        assert [(b["key"], b["count"]) for b in data["by_status"]] == [("active", 1)]
        (grade,) = data["by_risk_grade"]
        assert grade["key"] == "HIGH"
        assert grade["invested_cents"] == 400_000
        assert grade["expected_return_cents"] == 405_260

    @pytest.mark.asyncio
    async def test_unknown_timeframe(self, client: AsyncClient):
        response = await client.get(
            "/v1/investors/investor_a/analytics", params={"timeframe": "2w"}
        )

        assert response.status_code == 422
