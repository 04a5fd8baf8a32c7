"""
Computex Amount Model

Fixed-precision unsigned integer amounts tagged with their unit.

  - NATIVE: the ledger's base currency, counted in wei (18 decimals)
  - CREDIT: the marketplace credit token, counted in nRLC (9 decimals)

Amounts are immutable. Arithmetic between two amounts requires matching
units; a mismatch raises InvalidAmount at the operation instead of being
converted. Conversion between units only ever happens through pool queries
(see computex.swap.estimator).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal, Inexact, InvalidOperation, localcontext
from enum import Enum
from typing import Iterable, Union

from ..constants import (
    CREDIT_DECIMALS,
    CREDIT_UNITS,
    NATIVE_DECIMALS,
    NATIVE_UNITS,
)
from ..exceptions import InvalidAmount


class Unit(Enum):
    """Amount unit."""
    NATIVE = "native"
    CREDIT = "credit"

    @property
    def decimals(self) -> int:
        return NATIVE_DECIMALS if self is Unit.NATIVE else CREDIT_DECIMALS

    @property
    def base_name(self) -> str:
        return "wei" if self is Unit.NATIVE else "nRLC"

    @property
    def display_name(self) -> str:
        return "ether" if self is Unit.NATIVE else "RLC"


LedgerInt = Union[int, str]

# uint256 needs 78 significant digits
_PRECISION = 78


@dataclass(frozen=True)
class Amount:
    """
    Non-negative integer amount in the base unit of `unit`.

    Attributes:
        value: Amount in base units (wei or nRLC)
        unit: Unit tag
    """
    value: int
    unit: Unit

    def __post_init__(self):
        if not isinstance(self.unit, Unit):
            raise InvalidAmount(f"Invalid unit: {self.unit!r}")
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidAmount(f"Amount must be an integer, got {self.value!r}")
        if self.value < 0:
            raise InvalidAmount(f"Amount must be non-negative, got {self.value}")

    # -- Constructors -------------------------------------------------------

    @classmethod
    def native(cls, value: int) -> "Amount":
        return cls(value, Unit.NATIVE)

    @classmethod
    def credit(cls, value: int) -> "Amount":
        return cls(value, Unit.CREDIT)

    @classmethod
    def zero(cls, unit: Unit) -> "Amount":
        return cls(0, unit)

    # -- Unit checks ---------------------------------------------------------

    def _same_unit(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            raise InvalidAmount(f"Cannot combine {self.unit.value} amount with {other!r}")
        if other.unit is not self.unit:
            raise InvalidAmount(
                f"Unit mismatch: {self.unit.value} vs {other.unit.value}"
            )
        return other

    # -- Arithmetic ----------------------------------------------------------

    def __add__(self, other: "Amount") -> "Amount":
        other = self._same_unit(other)
        return Amount(self.value + other.value, self.unit)

    def __sub__(self, other: "Amount") -> "Amount":
        other = self._same_unit(other)
        if other.value > self.value:
            raise InvalidAmount(
                f"Subtraction underflow: {self.value} - {other.value} {self.unit.base_name}"
            )
        return Amount(self.value - other.value, self.unit)

    def __mul__(self, factor: int) -> "Amount":
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise InvalidAmount(f"Amounts only scale by integers, got {factor!r}")
        return Amount(self.value * factor, self.unit)

    __rmul__ = __mul__

    def __floordiv__(self, divisor: int) -> "Amount":
        if isinstance(divisor, bool) or not isinstance(divisor, int) or divisor <= 0:
            raise InvalidAmount(f"Amounts only divide by positive integers, got {divisor!r}")
        return Amount(self.value // divisor, self.unit)

    # -- Comparison ----------------------------------------------------------

    def __lt__(self, other: "Amount") -> bool:
        return self.value < self._same_unit(other).value

    def __le__(self, other: "Amount") -> bool:
        return self.value <= self._same_unit(other).value

    def __gt__(self, other: "Amount") -> bool:
        return self.value > self._same_unit(other).value

    def __ge__(self, other: "Amount") -> bool:
        return self.value >= self._same_unit(other).value

    def __bool__(self) -> bool:
        return self.value != 0

    @property
    def is_zero(self) -> bool:
        return self.value == 0

    def __str__(self) -> str:
        return f"{self.value} {self.unit.base_name}"


# ---------------------------------------------------------------------------
# Ledger representation
# ---------------------------------------------------------------------------

def to_ledger(amount: Amount) -> int:
    """Amount → ledger uint256 (plain int)."""
    if not isinstance(amount, Amount):
        raise InvalidAmount(f"Expected Amount, got {amount!r}")
    return amount.value


def from_ledger(raw: LedgerInt, unit: Unit) -> Amount:
    """
    Ledger big integer → Amount.

    Accepts an int, a decimal string or a 0x-prefixed hex string.
    """
    if isinstance(raw, bool):
        raise InvalidAmount(f"Invalid ledger amount: {raw!r}")
    if isinstance(raw, int):
        return Amount(raw, unit)
    if isinstance(raw, str):
        text = raw.strip()
        try:
            if text.lower().startswith("0x"):
                return Amount(int(text, 16), unit)
            return Amount(int(text, 10), unit)
        except ValueError:
            raise InvalidAmount(f"Invalid ledger amount: {raw!r}") from None
    raise InvalidAmount(f"Invalid ledger amount: {raw!r}")


def coerce_amount(value: Union[Amount, int, str], unit: Unit) -> Amount:
    """
    Coerce `value` to an Amount of `unit`.

    Raises:
        InvalidAmount: wrong unit or negative literal
    """
    if isinstance(value, Amount):
        if value.unit is not unit:
            raise InvalidAmount(
                f"Expected {unit.value} amount, got {value.unit.value} amount"
            )
        return value
    return from_ledger(value, unit)


def require_positive(value: Union[Amount, int, str], unit: Unit) -> Amount:
    """
    Coerce `value` to an Amount of `unit` and require it to be > 0.

    Raises:
        InvalidAmount: wrong unit, negative or zero
    """
    amount = coerce_amount(value, unit)
    if amount.value <= 0:
        raise InvalidAmount("amount must be greater than 0")
    return amount


def min_amount(amounts: Iterable[Amount]) -> Amount:
    """Smallest of same-unit amounts."""
    amounts = list(amounts)
    if not amounts:
        raise InvalidAmount("min_amount() of an empty sequence")
    smallest = amounts[0]
    for amount in amounts[1:]:
        if amount < smallest:
            smallest = amount
    return smallest


# ---------------------------------------------------------------------------
# Human units
# ---------------------------------------------------------------------------

def is_native_unit(name: str) -> bool:
    return isinstance(name, str) and name.lower() in NATIVE_UNITS


def is_credit_unit(name: str) -> bool:
    return isinstance(name, str) and name.lower() in CREDIT_UNITS


def _parse(value, exponent: int, unit: Unit) -> Amount:
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidAmount(f"{value!r} is not a valid amount") from None
    if not number.is_finite():
        raise InvalidAmount(f"{value!r} is not a valid amount")
    # checked on the exact input, before any context rounding
    number = number.normalize(Context(prec=len(number.as_tuple().digits)))
    if number.as_tuple().exponent < -exponent:
        raise InvalidAmount(
            f"{value} has more decimals than {unit.base_name} precision allows"
        )
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        ctx.traps[Inexact] = True
        try:
            scaled = number.scaleb(exponent)
        except Inexact:
            raise InvalidAmount(f"{value} exceeds the uint256 range") from None
    return Amount(int(scaled), unit)


def parse_native(value, unit: str = "wei") -> Amount:
    """Parse `value` expressed in a native unit (wei, gwei, ether...)."""
    if not is_native_unit(unit):
        raise InvalidAmount(f"Invalid native unit: {unit}")
    return _parse(value, NATIVE_UNITS[unit.lower()], Unit.NATIVE)


def parse_credit(value, unit: str = "nRLC") -> Amount:
    """Parse `value` expressed in a credit unit (nRLC, RLC)."""
    if not is_credit_unit(unit):
        raise InvalidAmount(f"Invalid credit unit: {unit}")
    return _parse(value, CREDIT_UNITS[unit.lower()], Unit.CREDIT)


def _format(amount: Amount, exponent: int) -> str:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        text = format(Decimal(amount.value).scaleb(-exponent), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_native(amount: Amount, unit: str = "ether") -> str:
    if amount.unit is not Unit.NATIVE or not is_native_unit(unit):
        raise InvalidAmount(f"Cannot format {amount.unit.value} amount as {unit}")
    return _format(amount, NATIVE_UNITS[unit.lower()])


def format_credit(amount: Amount, unit: str = "RLC") -> str:
    if amount.unit is not Unit.CREDIT or not is_credit_unit(unit):
        raise InvalidAmount(f"Cannot format {amount.unit.value} amount as {unit}")
    return _format(amount, CREDIT_UNITS[unit.lower()])
