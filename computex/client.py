"""
Computex Market Client

Groups the engine operations around one LedgerContext:

    client = MarketClient(ctx)
    await client.account.estimate_deposit_credit_to_receive(amount)
    await client.account.deposit_eth(native, credit)
    await client.order.match_orders_with_eth(candidate, native)
    client.network.chain_id
"""

from typing import Optional

from .config.loader import MarketConfig
from .engine import collateral, matching
from .ledger.client import (
    AccountReader,
    LedgerContext,
    LedgerFacade,
    TxOptions,
    WalletReader,
)
from .market.orders import MatchCandidate, SignedOrder, hash_order
from .swap import estimator, settlement


class _AccountOperations:
    """Swap estimates and native/credit transfers."""

    def __init__(self, ctx: LedgerContext):
        self._ctx = ctx

    async def check_swap_enabled(self, strict: bool = True):
        return await estimator.check_swap_enabled(self._ctx, strict)

    async def estimate_deposit_credit_to_receive(self, native_to_spend, strict: bool = True):
        return await estimator.estimate_deposit_credit_to_receive(self._ctx, native_to_spend, strict)

    async def estimate_deposit_native_to_spend(self, credit_to_receive, strict: bool = True):
        return await estimator.estimate_deposit_native_to_spend(self._ctx, credit_to_receive, strict)

    async def estimate_withdraw_credit_to_spend(self, native_to_receive, strict: bool = True):
        return await estimator.estimate_withdraw_credit_to_spend(self._ctx, native_to_receive, strict)

    async def estimate_withdraw_native_to_receive(self, credit_to_spend, strict: bool = True):
        return await estimator.estimate_withdraw_native_to_receive(self._ctx, credit_to_spend, strict)

    async def quote_deposit(self, amount):
        return await estimator.quote_deposit(self._ctx, amount)

    async def quote_withdraw(self, amount):
        return await estimator.quote_withdraw(self._ctx, amount)

    async def deposit_eth(self, native_to_spend, credit_wanted):
        return await settlement.deposit_eth(self._ctx, native_to_spend, credit_wanted)

    async def withdraw_eth(self, credit_to_spend, native_wanted):
        return await settlement.withdraw_eth(self._ctx, credit_to_spend, native_wanted)


class _OrderOperations:
    """Order hashing, matchability and matching."""

    def __init__(self, ctx: LedgerContext):
        self._ctx = ctx

    def hash_order(self, order: SignedOrder) -> str:
        return hash_order(order, self._ctx.domain)

    async def fetch_remaining_volume(self, order: SignedOrder) -> int:
        return await matching.fetch_remaining_volume(self._ctx, order)

    async def compute_matchable_volume(self, candidate: MatchCandidate) -> int:
        return await matching.compute_matchable_volume(self._ctx, candidate)

    async def check_workerpool_stake(self, candidate: MatchCandidate, volume: int):
        return await collateral.check_workerpool_stake(self._ctx, candidate.workerpool_order, volume)

    async def estimate_match_order_native_to_spend(self, candidate: MatchCandidate):
        return await estimator.estimate_match_order_native_to_spend(self._ctx, candidate)

    async def match_orders_with_eth(self, candidate: MatchCandidate, native_to_spend, min_volume_to_execute: int = 1):
        return await settlement.match_orders_with_eth(
            self._ctx, candidate, native_to_spend, min_volume_to_execute,
        )


class _NetworkInfo:
    def __init__(self, ctx: LedgerContext):
        self._ctx = ctx

    @property
    def chain_id(self) -> int:
        return self._ctx.chain_id

    @property
    def name(self) -> str:
        return self._ctx.config.chain.name

    @property
    def is_native(self) -> bool:
        return self._ctx.is_native

    @property
    def marketplace_address(self) -> str:
        return self._ctx.marketplace_address


class MarketClient:
    """Entry point bundling every operation on a single explicit context."""

    def __init__(self, ctx: LedgerContext):
        self.ctx = ctx
        self.account = _AccountOperations(ctx)
        self.order = _OrderOperations(ctx)
        self.network = _NetworkInfo(ctx)

    @classmethod
    def create(
        cls,
        ledger: LedgerFacade,
        account: AccountReader,
        wallet: WalletReader,
        config: Optional[MarketConfig] = None,
        tx_options: Optional[TxOptions] = None,
    ) -> "MarketClient":
        return cls(LedgerContext(
            ledger=ledger,
            account=account,
            wallet=wallet,
            config=config or MarketConfig(),
            tx_options=tx_options,
        ))
