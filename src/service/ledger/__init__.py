"""
Investment Ledger and Payout Distribution Rules
"""

from .settings import LedgerSettings, ledger_settings
from .funding import (
    CancellationResult,
    ReservationResult,
    calculate_expected_return_cents,
    calculate_share_percentage,
    cancel,
    minimum_investment_cents,
    reserve,
)
from .payouts import (
    ClaimDecision,
    SettlementResult,
    allocate_pro_rata,
    calculate_platform_fee_cents,
    decide_claim,
    record_default,
    record_payment,
)

__all__ = [
    # Settings
    "LedgerSettings",
    "ledger_settings",
    # Funding
    "CancellationResult",
    "ReservationResult",
    "calculate_expected_return_cents",
    "calculate_share_percentage",
    "cancel",
    "minimum_investment_cents",
    "reserve",
    # Payouts
    "ClaimDecision",
    "SettlementResult",
    "allocate_pro_rata",
    "calculate_platform_fee_cents",
    "decide_claim",
    "record_default",
    "record_payment",
]
