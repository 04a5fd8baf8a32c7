"""
Tests for the matchability evaluator and the collateral guard.
"""

import pytest

from computex.engine import (
    check_stake_sufficiency,
    check_workerpool_stake,
    compute_matchable_volume,
    fetch_remaining_volume,
    fetch_remaining_volumes,
    required_stake,
)
from computex.exceptions import IncompatibleOrders, InsufficientStake, InvalidAmount
from computex.market import Amount

from conftest import WORKERPOOL, WORKERPOOL_OWNER, consumed_table, order_hash


class TestMatchableVolume:

    @pytest.mark.asyncio
    async def test_minimum_of_remaining(self, ctx, ledger, make_candidate):
        ledger.respond("viewConsumed", consumed_table({
            order_hash("a0"): 2,   # 8 left
            order_hash("d0"): 0,   # 10 left
            order_hash("e0"): 7,   # 3 left
            order_hash("f0"): 1,   # 9 left
        }))
        assert await compute_matchable_volume(ctx, make_candidate()) == 3

    @pytest.mark.asyncio
    async def test_null_dataset_adds_no_constraint(self, ctx, ledger, make_candidate):
        candidate = make_candidate(app_volume=10, dataset_volume=None, workerpool_volume=8, request_volume=6)
        assert await compute_matchable_volume(ctx, candidate) == 6
        queried = [args[0] for args in ledger.calls_to("viewConsumed")]
        assert order_hash("d0") not in queried
        assert len(queried) == 3

    @pytest.mark.asyncio
    async def test_fully_consumed_order(self, ctx, ledger, make_candidate):
        ledger.respond("viewConsumed", consumed_table({order_hash("a0"): 10}))
        assert await compute_matchable_volume(ctx, make_candidate()) == 0

    @pytest.mark.asyncio
    async def test_overconsumed_clamps_to_zero(self, ctx, ledger, make_candidate):
        ledger.respond("viewConsumed", 12)
        candidate = make_candidate()
        assert await fetch_remaining_volume(ctx, candidate.app_order) == 0

    @pytest.mark.asyncio
    async def test_incompatible(self, ctx, ledger, make_candidate):
        ledger.respond("checkOrdersCompatibility", False)
        with pytest.raises(IncompatibleOrders):
            await compute_matchable_volume(ctx, make_candidate())
        assert ledger.calls_to("viewConsumed") == []

    @pytest.mark.asyncio
    async def test_read_fresh_every_call(self, ctx, ledger, make_candidate):
        candidate = make_candidate()
        assert await compute_matchable_volume(ctx, candidate) == 10
        ledger.respond("viewConsumed", consumed_table({order_hash("f0"): 4}))
        assert await compute_matchable_volume(ctx, candidate) == 6

    @pytest.mark.asyncio
    async def test_remaining_by_kind(self, ctx, make_candidate):
        volumes = await fetch_remaining_volumes(ctx, make_candidate(request_volume=4))
        assert volumes == {
            "apporder": 10,
            "datasetorder": 10,
            "workerpoolorder": 10,
            "requestorder": 4,
        }

    @pytest.mark.asyncio
    async def test_failed_read_propagates(self, ctx, ledger, make_candidate):
        def view_consumed(args):
            if args[0] in (order_hash("d0"), order_hash("f0")):
                raise RuntimeError(f"read failed for {args[0]}")
            return 0

        ledger.respond("viewConsumed", view_consumed)
        with pytest.raises(RuntimeError, match=order_hash("d0")):
            await fetch_remaining_volumes(ctx, make_candidate())
        assert len(ledger.calls_to("viewConsumed")) == 4


class TestCollateral:

    def test_required_stake(self):
        # 3 * 100 * 30 / 100
        assert required_stake(3, Amount.credit(100)) == Amount.credit(90)

    def test_required_stake_truncates_last(self):
        # 1 * 5 * 30 = 150 -> 1 (dividing first would give 0)
        assert required_stake(1, Amount.credit(5)) == Amount.credit(1)
        assert required_stake(1, Amount.credit(3)) == Amount.credit(0)

    def test_required_stake_rejects_native_price(self):
        with pytest.raises(InvalidAmount):
            required_stake(1, Amount.native(5))

    @pytest.mark.asyncio
    async def test_exact_stake_passes(self, ctx, account):
        account.stakes[WORKERPOOL_OWNER] = 90
        stake = await check_stake_sufficiency(ctx, WORKERPOOL_OWNER, Amount.credit(90))
        assert stake == Amount.credit(90)

    @pytest.mark.asyncio
    async def test_one_below_fails(self, ctx, account):
        account.stakes[WORKERPOOL_OWNER] = 89
        with pytest.raises(InsufficientStake) as exc_info:
            await check_stake_sufficiency(ctx, WORKERPOOL_OWNER, Amount.credit(90))
        assert exc_info.value.required == Amount.credit(90)
        assert exc_info.value.actual == Amount.credit(89)
        assert exc_info.value.owner == WORKERPOOL_OWNER

    @pytest.mark.asyncio
    async def test_workerpool_owner_resolved(self, ctx, ledger, account, make_candidate):
        account.stakes[WORKERPOOL_OWNER] = 90
        candidate = make_candidate(workerpoolprice=100)
        await check_workerpool_stake(ctx, candidate.workerpool_order, 3)
        assert ledger.calls_to("viewWorkerpoolOwner") == [[WORKERPOOL]]
        with pytest.raises(InsufficientStake):
            await check_workerpool_stake(ctx, candidate.workerpool_order, 4)

    @pytest.mark.asyncio
    async def test_ratio_from_config(self, ctx, config, account, make_candidate):
        config.market.stake_ratio_percent = 50
        account.stakes[WORKERPOOL_OWNER] = 100
        candidate = make_candidate(workerpoolprice=100)
        await check_workerpool_stake(ctx, candidate.workerpool_order, 2)
        with pytest.raises(InsufficientStake):
            await check_workerpool_stake(ctx, candidate.workerpool_order, 3)
