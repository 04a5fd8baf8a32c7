"""
Computex Swap

Native/credit pool estimates and settlement transactions.
"""

from .estimator import (
    MatchCost,
    SwapQuote,
    check_swap_enabled,
    estimate_deposit_credit_to_receive,
    estimate_deposit_native_to_spend,
    estimate_withdraw_credit_to_spend,
    estimate_withdraw_native_to_receive,
    estimate_match_order_native_to_spend,
    quote_deposit,
    quote_withdraw,
)
from .settlement import (
    SettlementResult,
    SettlementStage,
    SettlementTracker,
    deposit_eth,
    withdraw_eth,
    match_orders_with_eth,
)

__all__ = [
    "MatchCost",
    "SwapQuote",
    "check_swap_enabled",
    "estimate_deposit_credit_to_receive",
    "estimate_deposit_native_to_spend",
    "estimate_withdraw_credit_to_spend",
    "estimate_withdraw_native_to_receive",
    "estimate_match_order_native_to_spend",
    "quote_deposit",
    "quote_withdraw",
    "SettlementResult",
    "SettlementStage",
    "SettlementTracker",
    "deposit_eth",
    "withdraw_eth",
    "match_orders_with_eth",
]
