"""
Computex Swap Rate Estimator

Read-only pool queries converting between native currency and credit
tokens. Every entry point follows the same template:

  1. validate the input amount (unit and > 0) before any ledger access
  2. check the swap is enabled on the current chain
  3. issue one read-only marketplace query and tag the result with the
     opposite unit

Estimates are never cached: the pool rate can move between two calls.
"""

from dataclasses import dataclass
from typing import Optional, Union

from ..exceptions import InvalidAmount, SwapDisabled
from ..engine.matching import compute_matchable_volume
from ..ledger.client import LedgerContext, MarketplaceMethod
from ..logger import get_logger
from ..market.amount import (
    Amount,
    Unit,
    format_credit,
    format_native,
    from_ledger,
    require_positive,
    to_ledger,
)
from ..market.orders import MatchCandidate

logger = get_logger(__name__)

AmountLike = Union[Amount, int, str]


@dataclass(frozen=True)
class SwapQuote:
    """Amounts spent and received by a prospective swap."""
    spend: Amount
    receive: Amount


@dataclass(frozen=True)
class MatchCost:
    """
    Price of a match candidate.

    Attributes:
        volume: Matchable volume the price was computed for
        credit_cost: volume * (app + dataset + workerpool price)
        native_cost: Native amount to spend to obtain `credit_cost`
    """
    volume: int
    credit_cost: Amount
    native_cost: Amount


async def check_swap_enabled(ctx: LedgerContext, strict: bool = True) -> bool:
    """
    Native-asset-only chains have no native/credit pool.

    Raises:
        SwapDisabled: swap unavailable and `strict`
    """
    if ctx.is_native:
        if strict:
            raise SwapDisabled()
        return False
    return True


async def _estimate(
    ctx: LedgerContext,
    method: str,
    value: AmountLike,
    in_unit: Unit,
    strict: bool,
) -> Optional[Amount]:
    amount = require_positive(value, in_unit)
    if not await check_swap_enabled(ctx, strict):
        return None
    out_unit = Unit.CREDIT if in_unit is Unit.NATIVE else Unit.NATIVE
    raw = await ctx.ledger.call(method, [to_ledger(amount)])
    estimate = from_ledger(raw, out_unit)
    logger.debug("%s(%s) -> %s", method, amount, estimate)
    return estimate


async def estimate_deposit_credit_to_receive(
    ctx: LedgerContext, native_to_spend: AmountLike, strict: bool = True,
) -> Optional[Amount]:
    """Credit received when depositing `native_to_spend`."""
    return await _estimate(
        ctx, MarketplaceMethod.ESTIMATE_DEPOSIT_ETH_SENT, native_to_spend, Unit.NATIVE, strict,
    )


async def estimate_deposit_native_to_spend(
    ctx: LedgerContext, credit_to_receive: AmountLike, strict: bool = True,
) -> Optional[Amount]:
    """Native amount to deposit to receive `credit_to_receive`."""
    return await _estimate(
        ctx, MarketplaceMethod.ESTIMATE_DEPOSIT_TOKEN_WANTED, credit_to_receive, Unit.CREDIT, strict,
    )


async def estimate_withdraw_credit_to_spend(
    ctx: LedgerContext, native_to_receive: AmountLike, strict: bool = True,
) -> Optional[Amount]:
    """Credit to withdraw to receive `native_to_receive`."""
    return await _estimate(
        ctx, MarketplaceMethod.ESTIMATE_WITHDRAW_ETH_WANTED, native_to_receive, Unit.NATIVE, strict,
    )


async def estimate_withdraw_native_to_receive(
    ctx: LedgerContext, credit_to_spend: AmountLike, strict: bool = True,
) -> Optional[Amount]:
    """Native amount received when withdrawing `credit_to_spend`."""
    return await _estimate(
        ctx, MarketplaceMethod.ESTIMATE_WITHDRAW_TOKEN_SENT, credit_to_spend, Unit.CREDIT, strict,
    )


async def estimate_match_order_native_to_spend(
    ctx: LedgerContext, candidate: MatchCandidate,
) -> MatchCost:
    """
    Native cost of matching `candidate` at its current matchable volume.

    A free match costs zero native without querying the pool.
    """
    await check_swap_enabled(ctx)
    volume = await compute_matchable_volume(ctx, candidate)
    credit_cost = candidate.unit_price() * volume
    if credit_cost.is_zero:
        return MatchCost(volume=volume, credit_cost=credit_cost, native_cost=Amount.zero(Unit.NATIVE))
    native_cost = await estimate_deposit_native_to_spend(ctx, credit_cost)
    return MatchCost(volume=volume, credit_cost=credit_cost, native_cost=native_cost)


async def quote_deposit(ctx: LedgerContext, amount: Amount) -> SwapQuote:
    """
    Complete a deposit given either side.

    A native amount is the amount to spend; a credit amount is the amount
    wanted.

    Raises:
        InvalidAmount: the native amount buys nothing at the current rate
    """
    if not isinstance(amount, Amount):
        raise InvalidAmount("quote_deposit() needs an Amount with a unit")
    if amount.unit is Unit.NATIVE:
        receive = await estimate_deposit_credit_to_receive(ctx, amount)
        if receive.is_zero:
            raise InvalidAmount(
                f"Specified amount ({format_native(amount)} ether) is lower than minimum amount"
            )
        return SwapQuote(spend=amount, receive=receive)
    spend = await estimate_deposit_native_to_spend(ctx, amount)
    return SwapQuote(spend=spend, receive=amount)


async def quote_withdraw(ctx: LedgerContext, amount: Amount) -> SwapQuote:
    """
    Complete a withdrawal given either side.

    A credit amount is the amount to spend; a native amount is the amount
    wanted.

    Raises:
        InvalidAmount: the credit amount yields nothing at the current rate
    """
    if not isinstance(amount, Amount):
        raise InvalidAmount("quote_withdraw() needs an Amount with a unit")
    if amount.unit is Unit.CREDIT:
        receive = await estimate_withdraw_native_to_receive(ctx, amount)
        if receive.is_zero:
            raise InvalidAmount(
                f"Specified amount ({format_credit(amount)} RLC) is lower than minimum amount"
            )
        return SwapQuote(spend=amount, receive=receive)
    spend = await estimate_withdraw_credit_to_spend(ctx, amount)
    return SwapQuote(spend=spend, receive=amount)
