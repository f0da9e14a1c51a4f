"""SQLAlchemy ORM models for ledger entities."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.clock import utcnow


class Base(DeclarativeBase):
    pass


class InvoiceModel(Base):
    """Persisted invoice record. `version` guards every update."""

    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    seller_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    buyer_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    invoice_number: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)
    principal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    tenor_days: Mapped[int] = mapped_column(Integer, nullable=False)
    yield_bps: Mapped[int] = mapped_column(Integer, nullable=False)
    funding_goal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_invested_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft", index=True)
    risk_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    risk_grade: Mapped[str | None] = mapped_column(String(20), nullable=True)
    risk_factors: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    yield_adjustment_bps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    paid_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False, default="unpaid")
    bond_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    token_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)
    maturity_date: Mapped[datetime] = mapped_column(DateTime(), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False, default=utcnow)
    listed_at: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)
    funded_at: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)
    defaulted_at: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)


class InvestmentModel(Base):
    """Persisted investment record."""

    __tablename__ = "investments"
    __table_args__ = (
        # One open position per investor and invoice; cancelled rows are history.
        Index(
            "uq_investments_open_position",
            "invoice_id",
            "investor_id",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
    )

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    invoice_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    investor_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    share_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    expected_return_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    actual_return_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    payout_claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False, default=utcnow)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)


class PayoutRecordModel(Base):
    """Persisted payout record, at most one per invoice."""

    __tablename__ = "payout_records"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    invoice_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    gross_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    platform_fee_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_payout_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    retained_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    claimable: Mapped[dict] = mapped_column(JSON, nullable=False)
    settled_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False, default=utcnow)


class ReconciliationTaskModel(Base):
    """Persisted settlement call awaiting reconciliation."""

    __tablename__ = "reconciliation_tasks"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    operation: Mapped[str] = mapped_column(String(50), nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="pending",
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)
    resolved_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False, default=utcnow)
