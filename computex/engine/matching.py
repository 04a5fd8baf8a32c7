"""
Computex Matchability Evaluator

Computes the volume a match candidate can execute right now.

Remaining volume is ledger state (`volume - consumed`) and other
participants consume it concurrently, so it is read fresh on every call and
the result is only a best-effort snapshot. The marketplace re-checks
atomically when the match executes.

Tag, trust and restriction compatibility is the marketplace's predicate; it
is queried, never re-derived here.
"""

import asyncio
from typing import Dict

from ..exceptions import IncompatibleOrders
from ..ledger.client import LedgerContext, MarketplaceMethod
from ..logger import get_logger
from ..market.orders import MatchCandidate, SignedOrder, order_identity

logger = get_logger(__name__)


async def fetch_remaining_volume(ctx: LedgerContext, order: SignedOrder) -> int:
    """Unconsumed volume of `order` as currently recorded by the marketplace."""
    order_hash = order_identity(order, ctx.domain)
    consumed = int(await ctx.ledger.call(MarketplaceMethod.VIEW_CONSUMED, [order_hash]))
    remaining = max(order.volume - consumed, 0)
    if remaining == 0:
        logger.debug("%s %s is fully consumed", order.KIND, order_hash)
    return remaining


async def check_orders_compatibility(ctx: LedgerContext, candidate: MatchCandidate) -> None:
    """
    Ask the marketplace whether the four orders can be matched together.

    Raises:
        IncompatibleOrders: the marketplace predicate rejects the candidate
    """
    compatible = await ctx.ledger.call(
        MarketplaceMethod.CHECK_ORDERS_COMPATIBILITY,
        list(candidate.to_structs()),
    )
    if not compatible:
        raise IncompatibleOrders(
            "Orders tags, trust or restrictions are not jointly satisfiable"
        )


async def fetch_remaining_volumes(ctx: LedgerContext, candidate: MatchCandidate) -> Dict[str, int]:
    """Remaining volume per present order kind."""
    present = list(candidate.orders())
    # every read is awaited to completion so no sibling failure goes unretrieved
    results = await asyncio.gather(
        *(fetch_remaining_volume(ctx, o) for o in present),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return {order.KIND: volume for order, volume in zip(present, results)}


async def compute_matchable_volume(ctx: LedgerContext, candidate: MatchCandidate) -> int:
    """
    Maximum volume all orders of `candidate` can jointly execute.

    A missing dataset order adds no constraint.

    Raises:
        IncompatibleOrders: the marketplace rejects the combination
    """
    await check_orders_compatibility(ctx, candidate)
    volumes = await fetch_remaining_volumes(ctx, candidate)
    matchable = min(volumes.values())
    logger.debug("Matchable volume %d (remaining: %s)", matchable, volumes)
    return matchable
