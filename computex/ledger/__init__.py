"""
Computex Ledger Layer

Collaborator contracts, the explicit ledger context and the event
reconciliation helpers used to prove what a confirmed transaction did.
"""

from .client import (
    AccountBalance,
    AccountReader,
    LedgerContext,
    LedgerFacade,
    LogEvent,
    MarketplaceEvent,
    MarketplaceMethod,
    PendingTx,
    TxOptions,
    TxReceipt,
    WalletBalance,
    WalletReader,
)
from .events import (
    EventProbe,
    SWAP_EVENT_ABI,
    SWAP_PROBE,
    check_event,
    decode_foreign_event,
    find_event,
    find_pool_swap,
    find_transfer,
    same_address,
)

__all__ = [
    "AccountBalance",
    "AccountReader",
    "LedgerContext",
    "LedgerFacade",
    "LogEvent",
    "MarketplaceEvent",
    "MarketplaceMethod",
    "PendingTx",
    "TxOptions",
    "TxReceipt",
    "WalletBalance",
    "WalletReader",
    "EventProbe",
    "SWAP_EVENT_ABI",
    "SWAP_PROBE",
    "check_event",
    "decode_foreign_event",
    "find_event",
    "find_pool_swap",
    "find_transfer",
    "same_address",
]
