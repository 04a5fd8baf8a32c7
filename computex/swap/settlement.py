"""
Computex Settlement Executor

State-changing operations of the swap and matching pipeline:

  - deposit_eth: native -> credit through the pool
  - withdraw_eth: credit -> native through the pool
  - match_orders_with_eth: deposit and match four orders in one transaction

Each call walks the stages

    VALIDATED -> SUBMITTED -> CONFIRMED -> RECONCILED

or ends in FAILED. Every local precondition is checked before the
transaction is broadcast. Once broadcast, nothing is retried: the outcome
is rebuilt from the receipt events and a missing proof raises a
SettlementError carrying the transaction hash.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from eth_utils import encode_hex, to_checksum_address

from ..constants import NULL_ADDRESS
from ..engine.collateral import check_workerpool_stake
from ..engine.matching import compute_matchable_volume
from ..exceptions import (
    DepositFailed,
    InsufficientBalance,
    InsufficientVolume,
    MatchNotConfirmed,
    WithdrawFailed,
)
from ..ledger.client import LedgerContext, MarketplaceEvent, MarketplaceMethod, TxReceipt
from ..ledger.events import find_event, find_pool_swap, find_transfer, same_address
from ..logger import get_logger
from ..market.amount import Amount, Unit, coerce_amount, from_ledger, require_positive, to_ledger
from ..market.orders import MatchCandidate
from .estimator import check_swap_enabled

logger = get_logger(__name__)

AmountLike = Union[Amount, int, str]


# ============================================================================
# Result model
# ============================================================================

class SettlementStage(Enum):
    VALIDATED = "validated"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    RECONCILED = "reconciled"
    FAILED = "failed"


@dataclass(frozen=True)
class SettlementResult:
    """
    Outcome of a confirmed and reconciled transaction.

    Spent and received amounts are read back from the receipt, never copied
    from the request.

    Attributes:
        tx_hash: Transaction hash
        spent: Native or credit amount spent
        received: Amount actually received
        deal_id: Deal identifier (order matches only)
        volume: Executed volume (order matches only)
        requested_volume: Volume expected at pre-flight (order matches only)
    """
    tx_hash: str
    spent: Amount
    received: Amount
    deal_id: Optional[str] = None
    volume: Optional[int] = None
    requested_volume: Optional[int] = None

    @property
    def under_executed(self) -> bool:
        """Concurrent consumption shrank the volume between pre-flight and execution."""
        if self.volume is None or self.requested_volume is None:
            return False
        return self.volume < self.requested_volume

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "txHash": self.tx_hash,
            "spentAmount": self.spent.value,
            "receivedAmount": self.received.value,
        }
        if self.deal_id is not None:
            data["dealid"] = self.deal_id
            data["volume"] = self.volume
        return data


class SettlementTracker:
    """
    Logs the stage transitions of one settlement call.

    Used as a context manager: any exception escaping the block moves the
    tracker to FAILED, is logged with the last known stage and tx hash, and
    propagates unchanged.
    """

    def __init__(self, operation: str):
        self.operation = operation
        self.stage: Optional[SettlementStage] = None
        self.tx_hash: Optional[str] = None

    def advance(self, stage: SettlementStage, tx_hash: Optional[str] = None) -> None:
        if tx_hash is not None:
            self.tx_hash = tx_hash
        self.stage = stage
        if self.tx_hash:
            logger.info("%s [%s] txHash: %s", self.operation, stage.value, self.tx_hash)
        else:
            logger.info("%s [%s]", self.operation, stage.value)

    def __enter__(self) -> "SettlementTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            previous = self.stage.value if self.stage else "pending"
            self.stage = SettlementStage.FAILED
            if self.tx_hash:
                logger.error(
                    "%s [failed] after %s (txHash: %s): %s",
                    self.operation, previous, self.tx_hash, exc,
                )
            else:
                logger.warning("%s [failed] before broadcast: %s", self.operation, exc)
        return False


async def _submit(
    ctx: LedgerContext,
    tracker: SettlementTracker,
    method: str,
    args: list,
    value: Optional[Amount] = None,
) -> TxReceipt:
    tx = await ctx.ledger.send(method, args, ctx.send_options(value))
    tracker.advance(SettlementStage.SUBMITTED, tx.hash)
    receipt = await tx.wait()
    tracker.advance(SettlementStage.CONFIRMED)
    return receipt


async def _check_wallet_covers(ctx: LedgerContext, address: str, spend: Amount, message: str) -> None:
    balances = await ctx.wallet.check_balances(address)
    if balances.native < spend:
        raise InsufficientBalance(required=spend, actual=balances.native, message=message)


# ============================================================================
# Deposit
# ============================================================================

async def deposit_eth(
    ctx: LedgerContext,
    native_to_spend: AmountLike,
    credit_wanted: AmountLike,
) -> SettlementResult:
    """
    Swap `native_to_spend` for at least `credit_wanted` credit.

    Raises:
        SwapDisabled: native-asset-only chain
        InvalidAmount: bad amounts
        InsufficientBalance: wallet balance below the spend
        DepositFailed: confirmed without a mint transfer to the caller
    """
    with SettlementTracker("depositEth") as tracker:
        await check_swap_enabled(ctx)
        spend = require_positive(native_to_spend, Unit.NATIVE)
        wanted = coerce_amount(credit_wanted, Unit.CREDIT)
        user = to_checksum_address(await ctx.wallet.get_address())
        await _check_wallet_covers(ctx, user, spend, "Deposit amount exceed wallet balance")
        tracker.advance(SettlementStage.VALIDATED)

        receipt = await _submit(
            ctx, tracker, MarketplaceMethod.SAFE_DEPOSIT_ETH, [to_ledger(wanted)], value=spend,
        )

        mint = find_transfer(
            receipt.events, emitter=ctx.marketplace_address, sender=NULL_ADDRESS, recipient=user,
        )
        if mint is None:
            raise DepositFailed(tracker.tx_hash, "no mint transfer to the caller")
        if mint.args.get("value") is None:
            raise DepositFailed(tracker.tx_hash, "mint transfer carries no value")
        received = from_ledger(mint.args["value"], Unit.CREDIT)
        tracker.advance(SettlementStage.RECONCILED)
        return SettlementResult(tx_hash=tracker.tx_hash, spent=spend, received=received)


# ============================================================================
# Withdraw
# ============================================================================

async def withdraw_eth(
    ctx: LedgerContext,
    credit_to_spend: AmountLike,
    native_wanted: AmountLike,
) -> SettlementResult:
    """
    Swap `credit_to_spend` of account stake for at least `native_wanted`.

    The pool address is not configured: it is read from the credit
    transfer the marketplace emits toward it.

    Raises:
        SwapDisabled: native-asset-only chain
        InvalidAmount: bad amounts
        InsufficientBalance: account stake below the spend
        WithdrawFailed: credit transfer or pool swap missing, or no native output
    """
    with SettlementTracker("withdrawEth") as tracker:
        await check_swap_enabled(ctx)
        spend = require_positive(credit_to_spend, Unit.CREDIT)
        wanted = coerce_amount(native_wanted, Unit.NATIVE)
        user = to_checksum_address(await ctx.wallet.get_address())
        balance = await ctx.account.check_balance(user)
        if balance.stake < spend:
            raise InsufficientBalance(
                required=spend, actual=balance.stake,
                message="Withdraw amount exceed account balance",
            )
        token = await ctx.fetch_token_address()
        tracker.advance(SettlementStage.VALIDATED)

        receipt = await _submit(
            ctx, tracker, MarketplaceMethod.SAFE_WITHDRAW_ETH,
            [to_ledger(spend), to_ledger(wanted)],
        )

        transfer = find_transfer(receipt.events, emitter=token, sender=ctx.marketplace_address)
        if transfer is None:
            raise WithdrawFailed(tracker.tx_hash, "no credit transfer to the pool")
        pool = to_checksum_address(transfer.args["to"])
        swap = find_pool_swap(receipt.events, pool)
        if swap is None or not swap.get("amount0Out"):
            raise WithdrawFailed(tracker.tx_hash, f"no native output swapped by pool {pool}")
        received = Amount.native(swap["amount0Out"])
        tracker.advance(SettlementStage.RECONCILED)
        return SettlementResult(tx_hash=tracker.tx_hash, spent=spend, received=received)


# ============================================================================
# Match with deposit
# ============================================================================

def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _deal_id(raw) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return encode_hex(bytes(raw))
    return str(raw)


async def match_orders_with_eth(
    ctx: LedgerContext,
    candidate: MatchCandidate,
    native_to_spend: AmountLike,
    min_volume_to_execute: int = 1,
) -> SettlementResult:
    """
    Deposit `native_to_spend` and match `candidate` in one transaction.

    The executed volume can be lower than the pre-flight volume when other
    matches consumed the orders meanwhile; that is reported through
    `SettlementResult.under_executed`, not raised.

    Raises:
        SwapDisabled: native-asset-only chain
        InvalidAmount: bad amount
        IncompatibleOrders: the marketplace rejects the combination
        InsufficientVolume: matchable volume below `min_volume_to_execute`
        InsufficientStake: workerpool owner collateral too low
        InsufficientBalance: wallet balance below the spend
        MatchNotConfirmed: confirmed without an OrdersMatched event
    """
    with SettlementTracker("matchOrdersWithEth") as tracker:
        await check_swap_enabled(ctx)
        spend = coerce_amount(native_to_spend, Unit.NATIVE)
        if not _is_positive_int(min_volume_to_execute):
            raise ValueError(f"min_volume_to_execute must be a positive integer, got {min_volume_to_execute!r}")

        volume = await compute_matchable_volume(ctx, candidate)
        if volume < min_volume_to_execute:
            raise InsufficientVolume(required=min_volume_to_execute, available=volume)
        await check_workerpool_stake(ctx, candidate.workerpool_order, volume)
        user = to_checksum_address(await ctx.wallet.get_address())
        await _check_wallet_covers(ctx, user, spend, "Match amount exceed wallet balance")
        tracker.advance(SettlementStage.VALIDATED)

        receipt = await _submit(
            ctx, tracker, MarketplaceMethod.MATCH_ORDERS_WITH_ETH,
            list(candidate.to_structs()), value=spend,
        )

        matched = find_event(
            MarketplaceEvent.ORDERS_MATCHED, receipt.events,
            lambda e: same_address(e.address, ctx.marketplace_address),
        )
        if matched is None:
            raise MatchNotConfirmed(tracker.tx_hash, "no OrdersMatched event")
        executed = int(matched.args["volume"])
        if executed < volume:
            logger.warning(
                "Executed volume %d lower than pre-flight volume %d (txHash: %s)",
                executed, volume, tracker.tx_hash,
            )

        mint = find_transfer(
            receipt.events, emitter=ctx.marketplace_address, sender=NULL_ADDRESS, recipient=user,
        )
        received = Amount.zero(Unit.CREDIT)
        if mint is not None:
            if mint.args.get("value") is None:
                raise MatchNotConfirmed(tracker.tx_hash, "mint transfer carries no value")
            received = from_ledger(mint.args["value"], Unit.CREDIT)
        tracker.advance(SettlementStage.RECONCILED)
        return SettlementResult(
            tx_hash=tracker.tx_hash,
            spent=spend,
            received=received,
            deal_id=_deal_id(matched.args["dealid"]),
            volume=executed,
            requested_volume=volume,
        )
