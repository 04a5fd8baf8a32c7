"""
Tests for the unit-tagged amount model.
"""

import pytest

from computex.exceptions import InvalidAmount
from computex.market.amount import (
    Amount,
    Unit,
    coerce_amount,
    format_credit,
    format_native,
    from_ledger,
    min_amount,
    parse_credit,
    parse_native,
    require_positive,
    to_ledger,
)


class TestAmount:

    def test_rejects_negative(self):
        with pytest.raises(InvalidAmount):
            Amount.native(-1)

    def test_rejects_non_integer(self):
        with pytest.raises(InvalidAmount):
            Amount(1.5, Unit.NATIVE)
        with pytest.raises(InvalidAmount):
            Amount(True, Unit.CREDIT)

    def test_same_unit_arithmetic(self):
        a = Amount.credit(7)
        b = Amount.credit(5)
        assert a + b == Amount.credit(12)
        assert a - b == Amount.credit(2)
        assert a * 3 == Amount.credit(21)
        assert 3 * a == Amount.credit(21)
        assert a // 2 == Amount.credit(3)

    def test_mixed_units_rejected(self):
        with pytest.raises(InvalidAmount):
            Amount.native(1) + Amount.credit(1)
        with pytest.raises(InvalidAmount):
            Amount.native(1) < Amount.credit(2)

    def test_subtraction_underflow(self):
        with pytest.raises(InvalidAmount):
            Amount.credit(1) - Amount.credit(2)

    def test_equality_includes_unit(self):
        assert Amount.native(1) != Amount.credit(1)
        assert Amount.native(1) == Amount.native(1)

    def test_zero(self):
        zero = Amount.zero(Unit.CREDIT)
        assert zero.is_zero
        assert not zero

    def test_str(self):
        assert str(Amount.native(3)) == "3 wei"
        assert str(Amount.credit(3)) == "3 nRLC"


class TestLedgerRepresentation:

    @pytest.mark.parametrize("value", [0, 1, 10 ** 9, 2 ** 256 - 1])
    def test_round_trip(self, value):
        for unit in Unit:
            amount = Amount(value, unit)
            assert from_ledger(to_ledger(amount), unit) == amount

    def test_from_ledger_strings(self):
        assert from_ledger("1000", Unit.CREDIT) == Amount.credit(1000)
        assert from_ledger("0x10", Unit.NATIVE) == Amount.native(16)

    def test_from_ledger_rejects_garbage(self):
        with pytest.raises(InvalidAmount):
            from_ledger("ten", Unit.CREDIT)
        with pytest.raises(InvalidAmount):
            from_ledger(None, Unit.CREDIT)

    def test_coerce_wrong_unit(self):
        with pytest.raises(InvalidAmount):
            coerce_amount(Amount.native(1), Unit.CREDIT)

    @pytest.mark.parametrize("value", [0, "0", -1, "-5"])
    def test_require_positive_rejects(self, value):
        with pytest.raises(InvalidAmount):
            require_positive(value, Unit.NATIVE)

    def test_require_positive_accepts(self):
        assert require_positive("12", Unit.CREDIT) == Amount.credit(12)

    def test_min_amount(self):
        assert min_amount([Amount.credit(4), Amount.credit(2), Amount.credit(9)]) == Amount.credit(2)
        with pytest.raises(InvalidAmount):
            min_amount([])


class TestHumanUnits:

    def test_parse_native(self):
        assert parse_native("1", "ether") == Amount.native(10 ** 18)
        assert parse_native("1.5", "gwei") == Amount.native(1_500_000_000)
        assert parse_native(42) == Amount.native(42)

    def test_parse_native_large_value_is_exact(self):
        assert parse_native("123456789.123456789123456789", "ether") == Amount.native(
            123456789123456789123456789
        )

    def test_parse_credit(self):
        assert parse_credit("2.5", "RLC") == Amount.credit(2_500_000_000)
        assert parse_credit("7") == Amount.credit(7)

    def test_parse_rejects_excess_precision(self):
        with pytest.raises(InvalidAmount):
            parse_credit("0.0000000001", "RLC")
        with pytest.raises(InvalidAmount):
            parse_native("1.5", "wei")

    def test_parse_rejects_precision_beyond_uint256_digits(self):
        with pytest.raises(InvalidAmount):
            parse_native("1." + "0" * 79 + "1", "ether")
        assert parse_native("1." + "0" * 17 + "1", "ether") == Amount.native(10 ** 18 + 1)
        assert parse_native("1" + "0" * 70, "wei") == Amount.native(10 ** 70)

    def test_parse_rejects_unknown_unit(self):
        with pytest.raises(InvalidAmount):
            parse_native("1", "rlc")
        with pytest.raises(InvalidAmount):
            parse_credit("1", "ether")

    def test_format(self):
        assert format_native(Amount.native(1_500_000_000_000_000_000)) == "1.5"
        assert format_native(Amount.native(10 ** 18)) == "1"
        assert format_credit(Amount.credit(1)) == "0.000000001"
        assert format_credit(Amount.credit(5), "nRLC") == "5"

    def test_format_wrong_unit(self):
        with pytest.raises(InvalidAmount):
            format_native(Amount.credit(1))
