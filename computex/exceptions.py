"""
Computex Exceptions

Error taxonomy for the matching and settlement engine.

Pre-flight rejections (amount, volume, stake, balance) are raised before any
transaction is broadcast. Settlement errors are raised after confirmation and
always carry the transaction hash for manual inspection. Ledger transport
errors are never wrapped.
"""

from typing import Optional


class ComputexError(Exception):
    """Base exception for computex."""
    pass


class ConfigurationError(ComputexError):
    """Configuration error."""
    pass


class InvalidAmount(ComputexError, ValueError):
    """Amount is negative, non-positive where required, or of the wrong unit."""
    pass


class SwapDisabled(ComputexError):
    """Native/credit swap is not available on the current chain."""
    def __init__(self, message: str = None):
        super().__init__(message or "Native/credit swap is not enabled on current chain")


class IncompatibleOrders(ComputexError):
    """The marketplace reports the orders cannot be matched together."""
    pass


class InsufficientVolume(ComputexError):
    """Jointly matchable volume is below the requested minimum."""
    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient matchable volume: {available} (required: {required})"
        )


class InsufficientStake(ComputexError):
    """Posted stake does not cover the required collateral."""
    def __init__(self, required, actual, owner: Optional[str] = None):
        self.required = required
        self.actual = actual
        self.owner = owner
        who = f" for {owner}" if owner else ""
        super().__init__(
            f"Insufficient stake{who}: {actual} (required: {required})"
        )


class InsufficientBalance(ComputexError):
    """Wallet or account balance does not cover the amount to spend."""
    def __init__(self, required, actual, message: str = None):
        self.required = required
        self.actual = actual
        super().__init__(
            message or f"Insufficient balance: {actual} (required: {required})"
        )


class SettlementError(ComputexError):
    """A confirmed transaction did not produce the expected proof."""
    action = "Settlement"

    def __init__(self, tx_hash: str, reason: str = None):
        self.tx_hash = tx_hash
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"{self.action} transaction failed (txHash: {tx_hash}){detail}")


class DepositFailed(SettlementError):
    """No mint transfer to the caller in the deposit receipt."""
    action = "Deposit ether"


class WithdrawFailed(SettlementError):
    """Credit transfer or pool swap missing from the withdraw receipt."""
    action = "Withdraw ether"


class MatchNotConfirmed(SettlementError):
    """No OrdersMatched event in the match receipt."""
    action = "Match orders"
