"""
Computex Collateral Guard

Checks that a workerpool owner's posted stake covers the collateral the
marketplace will lock for a prospective match:

    required = volume * workerpool_price * ratio_percent // 100

in credit units, multiplying before the truncating division. The check is
advisory: the ledger enforces it again when the match executes, so a stake
change between this read and the transaction is expected.
"""

from eth_utils import to_checksum_address

from ..constants import STAKE_RATIO_PERCENT
from ..exceptions import InsufficientStake, InvalidAmount
from ..ledger.client import LedgerContext, MarketplaceMethod
from ..logger import get_logger
from ..market.amount import Amount, Unit
from ..market.orders import WorkerpoolOrder

logger = get_logger(__name__)


def required_stake(volume: int, unit_price: Amount, ratio_percent: int = STAKE_RATIO_PERCENT) -> Amount:
    """Collateral for `volume` units at `unit_price`, truncated to the nRLC."""
    if isinstance(volume, bool) or not isinstance(volume, int) or volume < 0:
        raise ValueError(f"volume must be a non-negative integer, got {volume!r}")
    if not isinstance(unit_price, Amount) or unit_price.unit is not Unit.CREDIT:
        raise InvalidAmount("unit price must be a credit amount")
    return Amount.credit(volume * unit_price.value * ratio_percent // 100)


async def check_stake_sufficiency(ctx: LedgerContext, owner_address: str, required: Amount) -> Amount:
    """
    Verify `owner_address` has at least `required` staked.

    Returns:
        The owner's current stake

    Raises:
        InsufficientStake: carrying required and actual stake
    """
    balance = await ctx.account.check_balance(owner_address)
    stake = balance.stake
    if stake < required:
        logger.info("Stake check failed for %s: %s < %s", owner_address, stake, required)
        raise InsufficientStake(required=required, actual=stake, owner=owner_address)
    return stake


async def fetch_workerpool_owner(ctx: LedgerContext, workerpool: str) -> str:
    owner = await ctx.ledger.call(MarketplaceMethod.VIEW_WORKERPOOL_OWNER, [workerpool])
    return to_checksum_address(owner)


async def check_workerpool_stake(ctx: LedgerContext, order: WorkerpoolOrder, volume: int) -> Amount:
    """Collateral check of `order`'s owner for `volume`; ratio read from config now."""
    owner = await fetch_workerpool_owner(ctx, order.workerpool)
    required = required_stake(volume, order.price, ctx.stake_ratio_percent)
    return await check_stake_sufficiency(ctx, owner, required)
