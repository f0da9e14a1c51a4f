"""
Invoice Lifecycle State Machine and post-commit commands
"""

from .commands import (
    Command,
    Notify,
    RecordBuyerPayment,
    RecordInvestment,
    Settle,
    SettlementCommand,
)
from .machine import (
    TRANSITIONS,
    USER_EVENTS,
    LifecycleEvent,
    TransitionResult,
    can_transition,
    ensure_user_event,
    transition,
)

__all__ = [
    "Command",
    "Notify",
    "RecordBuyerPayment",
    "RecordInvestment",
    "Settle",
    "SettlementCommand",
    "TRANSITIONS",
    "USER_EVENTS",
    "LifecycleEvent",
    "TransitionResult",
    "can_transition",
    "ensure_user_event",
    "transition",
]
