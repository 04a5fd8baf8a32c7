"""
Computex Orders

The four signed order kinds of the compute marketplace:

  - AppOrder:        app owner sells executions of an application
  - DatasetOrder:    dataset owner sells accesses to a dataset
  - WorkerpoolOrder: workerpool owner sells computing capacity
  - RequestOrder:    requester buys an execution under price ceilings

Orders are created and signed elsewhere and are immutable here. Their
remaining volume is ledger state and is never tracked locally.

A match without dataset is expressed with `dataset_order=None`; the null
dataset struct is only produced at encoding time.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from eth_abi import encode as abi_encode
from eth_utils import decode_hex, encode_hex, is_address, keccak, to_checksum_address

from ..constants import EMPTY_SIGNATURE, NULL_ADDRESS, NULL_BYTES32, TAG_BITS
from ..exceptions import InvalidAmount
from .amount import Amount


# ---------------------------------------------------------------------------
# EIP-712
# ---------------------------------------------------------------------------

EIP712_DOMAIN_TYPE = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)


@dataclass(frozen=True)
class Eip712Domain:
    """EIP-712 domain the marketplace signs orders under."""
    name: str
    version: str
    chain_id: int
    verifying_contract: str

    def separator(self) -> bytes:
        return keccak(abi_encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                keccak(text=EIP712_DOMAIN_TYPE),
                keccak(text=self.name),
                keccak(text=self.version),
                self.chain_id,
                to_checksum_address(self.verifying_contract),
            ],
        ))


def _bytes32(value) -> bytes:
    raw = bytes(value) if isinstance(value, (bytes, bytearray)) else decode_hex(value)
    if len(raw) != 32:
        raise ValueError(f"Expected 32 bytes, got {len(raw)}")
    return raw


def _canonical(abi_type: str, value):
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type == "uint256":
        return int(value)
    if abi_type == "bytes32":
        return _bytes32(value)
    if abi_type == "bytes":
        return bytes(value) if isinstance(value, (bytes, bytearray)) else decode_hex(value or "0x")
    return value


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

class SignedOrder:
    """
    Behaviour shared by the four order dataclasses.

    Subclasses declare EIP712_FIELDS (name, abi type) in struct order and
    the name of the field holding the per-unit price.
    """
    KIND: ClassVar[str] = ""
    EIP712_NAME: ClassVar[str] = ""
    EIP712_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = ()
    PRICE_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def _validate(self) -> None:
        for name, abi_type in self.EIP712_FIELDS:
            value = getattr(self, name)
            if abi_type == "address" and not is_address(value):
                raise ValueError(f"{self.KIND}.{name} is not a valid address: {value!r}")
            if abi_type == "uint256":
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError(f"{self.KIND}.{name} must be an integer")
                if value < 0:
                    if name in self.PRICE_FIELDS:
                        raise InvalidAmount(f"{self.KIND}.{name} must be non-negative")
                    raise ValueError(f"{self.KIND}.{name} must be non-negative")
            if abi_type == "bytes32":
                _bytes32(value)

    def __post_init__(self):
        self._validate()

    @classmethod
    def eip712_type(cls) -> str:
        args = ",".join(f"{t} {n}" for n, t in cls.EIP712_FIELDS)
        return f"{cls.EIP712_NAME}({args})"

    @property
    def price(self) -> Amount:
        """Per-unit price in credit units."""
        return Amount.credit(sum(getattr(self, f) for f in self.PRICE_FIELDS))

    def struct_hash(self) -> bytes:
        types = ["bytes32"]
        values: List[Any] = [keccak(text=self.eip712_type())]
        for name, abi_type in self.EIP712_FIELDS:
            value = getattr(self, name)
            if abi_type == "string":
                types.append("bytes32")
                values.append(keccak(text=value))
            else:
                types.append(abi_type)
                values.append(_canonical(abi_type, value))
        return keccak(abi_encode(types, values))

    def to_struct(self) -> Tuple[Any, ...]:
        """Canonical on-ledger struct: EIP-712 fields then signature."""
        values = [_canonical(t, getattr(self, n)) for n, t in self.EIP712_FIELDS]
        values.append(_canonical("bytes", self.sign))
        return tuple(values)

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "order_hash"}
        if self.order_hash:
            data["orderHash"] = self.order_hash
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        """Build from the marketplace's flat field names (e.g. `appprice`, `sign`)."""
        known = {f.name: f for f in fields(cls)}
        abi_types = dict(cls.EIP712_FIELDS)
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = "order_hash" if key == "orderHash" else key
            if name not in known:
                continue
            if abi_types.get(name) == "uint256":
                if isinstance(value, str):
                    text = value.strip()
                    value = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
                else:
                    value = int(value)
            kwargs[name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class AppOrder(SignedOrder):
    app: str
    appprice: int
    volume: int
    tag: str = NULL_BYTES32
    datasetrestrict: str = NULL_ADDRESS
    workerpoolrestrict: str = NULL_ADDRESS
    requesterrestrict: str = NULL_ADDRESS
    salt: str = NULL_BYTES32
    sign: str = EMPTY_SIGNATURE
    order_hash: Optional[str] = None

    KIND: ClassVar[str] = "apporder"
    EIP712_NAME: ClassVar[str] = "AppOrder"
    EIP712_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("app", "address"),
        ("appprice", "uint256"),
        ("volume", "uint256"),
        ("tag", "bytes32"),
        ("datasetrestrict", "address"),
        ("workerpoolrestrict", "address"),
        ("requesterrestrict", "address"),
        ("salt", "bytes32"),
    )
    PRICE_FIELDS: ClassVar[Tuple[str, ...]] = ("appprice",)


@dataclass(frozen=True)
class DatasetOrder(SignedOrder):
    dataset: str
    datasetprice: int
    volume: int
    tag: str = NULL_BYTES32
    apprestrict: str = NULL_ADDRESS
    workerpoolrestrict: str = NULL_ADDRESS
    requesterrestrict: str = NULL_ADDRESS
    salt: str = NULL_BYTES32
    sign: str = EMPTY_SIGNATURE
    order_hash: Optional[str] = None

    KIND: ClassVar[str] = "datasetorder"
    EIP712_NAME: ClassVar[str] = "DatasetOrder"
    EIP712_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("dataset", "address"),
        ("datasetprice", "uint256"),
        ("volume", "uint256"),
        ("tag", "bytes32"),
        ("apprestrict", "address"),
        ("workerpoolrestrict", "address"),
        ("requesterrestrict", "address"),
        ("salt", "bytes32"),
    )
    PRICE_FIELDS: ClassVar[Tuple[str, ...]] = ("datasetprice",)


@dataclass(frozen=True)
class WorkerpoolOrder(SignedOrder):
    workerpool: str
    workerpoolprice: int
    volume: int
    tag: str = NULL_BYTES32
    category: int = 0
    trust: int = 0
    apprestrict: str = NULL_ADDRESS
    datasetrestrict: str = NULL_ADDRESS
    requesterrestrict: str = NULL_ADDRESS
    salt: str = NULL_BYTES32
    sign: str = EMPTY_SIGNATURE
    order_hash: Optional[str] = None

    KIND: ClassVar[str] = "workerpoolorder"
    EIP712_NAME: ClassVar[str] = "WorkerpoolOrder"
    EIP712_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("workerpool", "address"),
        ("workerpoolprice", "uint256"),
        ("volume", "uint256"),
        ("tag", "bytes32"),
        ("category", "uint256"),
        ("trust", "uint256"),
        ("apprestrict", "address"),
        ("datasetrestrict", "address"),
        ("requesterrestrict", "address"),
        ("salt", "bytes32"),
    )
    PRICE_FIELDS: ClassVar[Tuple[str, ...]] = ("workerpoolprice",)


@dataclass(frozen=True)
class RequestOrder(SignedOrder):
    app: str
    appmaxprice: int
    workerpool: str
    workerpoolmaxprice: int
    requester: str
    volume: int
    dataset: str = NULL_ADDRESS
    datasetmaxprice: int = 0
    tag: str = NULL_BYTES32
    category: int = 0
    trust: int = 0
    beneficiary: str = NULL_ADDRESS
    callback: str = NULL_ADDRESS
    params: str = ""
    salt: str = NULL_BYTES32
    sign: str = EMPTY_SIGNATURE
    order_hash: Optional[str] = None

    KIND: ClassVar[str] = "requestorder"
    EIP712_NAME: ClassVar[str] = "RequestOrder"
    EIP712_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("app", "address"),
        ("appmaxprice", "uint256"),
        ("dataset", "address"),
        ("datasetmaxprice", "uint256"),
        ("workerpool", "address"),
        ("workerpoolmaxprice", "uint256"),
        ("requester", "address"),
        ("volume", "uint256"),
        ("tag", "bytes32"),
        ("category", "uint256"),
        ("trust", "uint256"),
        ("beneficiary", "address"),
        ("callback", "address"),
        ("params", "string"),
        ("salt", "bytes32"),
    )
    # A request carries ceilings; its price is the sum of the three maxima
    PRICE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "appmaxprice", "datasetmaxprice", "workerpoolmaxprice",
    )


NULL_DATASETORDER = DatasetOrder(dataset=NULL_ADDRESS, datasetprice=0, volume=0)


def dataset_struct(order: Optional[DatasetOrder]) -> Tuple[Any, ...]:
    """Struct of `order`, or of the null dataset order when there is none."""
    return (order or NULL_DATASETORDER).to_struct()


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------

def hash_order(order: SignedOrder, domain: Eip712Domain) -> str:
    """EIP-712 typed-data hash of `order` under `domain` (0x hex)."""
    digest = keccak(b"\x19\x01" + domain.separator() + order.struct_hash())
    return encode_hex(digest)


def order_identity(order: SignedOrder, domain: Eip712Domain) -> str:
    """The order's carried hash, computed from its content when absent."""
    return order.order_hash or hash_order(order, domain)


# ---------------------------------------------------------------------------
# Match candidate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatchCandidate:
    """
    The four orders evaluated together.

    `dataset_order=None` means no dataset is required.
    """
    app_order: AppOrder
    dataset_order: Optional[DatasetOrder]
    workerpool_order: WorkerpoolOrder
    request_order: RequestOrder

    def __post_init__(self):
        expected = (
            ("app_order", AppOrder),
            ("workerpool_order", WorkerpoolOrder),
            ("request_order", RequestOrder),
        )
        for name, kind in expected:
            if not isinstance(getattr(self, name), kind):
                raise TypeError(f"{name} must be a {kind.__name__}")
        if self.dataset_order is not None and not isinstance(self.dataset_order, DatasetOrder):
            raise TypeError("dataset_order must be a DatasetOrder or None")

    @property
    def has_dataset(self) -> bool:
        return self.dataset_order is not None

    def orders(self) -> Iterator[SignedOrder]:
        """Present orders; the missing dataset order is skipped."""
        yield self.app_order
        if self.dataset_order is not None:
            yield self.dataset_order
        yield self.workerpool_order
        yield self.request_order

    def unit_price(self) -> Amount:
        """Summed per-unit price of the app, dataset and workerpool orders."""
        total = self.app_order.price + self.workerpool_order.price
        if self.dataset_order is not None:
            total = total + self.dataset_order.price
        return total

    def to_structs(self) -> Tuple[Tuple[Any, ...], ...]:
        """Marketplace argument order: app, dataset, workerpool, request."""
        return (
            self.app_order.to_struct(),
            dataset_struct(self.dataset_order),
            self.workerpool_order.to_struct(),
            self.request_order.to_struct(),
        )


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

def encode_tag(names: Sequence[str]) -> str:
    """['tee', 'gpu'] → bytes32 hex bitmap."""
    value = 0
    for name in names:
        key = name.strip().lower()
        if key not in TAG_BITS:
            raise ValueError(f"Unknown tag {name}")
        value |= 1 << TAG_BITS[key]
    return "0x" + value.to_bytes(32, "big").hex()


def decode_tag(tag: str) -> List[str]:
    """bytes32 hex bitmap → tag names; unknown bits are an error."""
    value = int.from_bytes(_bytes32(tag), "big")
    names = []
    for name, bit in sorted(TAG_BITS.items(), key=lambda item: item[1]):
        if value & (1 << bit):
            names.append(name)
            value &= ~(1 << bit)
    if value:
        raise ValueError(f"Unknown bit set in tag {tag}")
    return names


def sum_tags(tags: Sequence[str]) -> str:
    """Bitwise OR of bytes32 tags."""
    value = 0
    for tag in tags:
        value |= int.from_bytes(_bytes32(tag), "big")
    return "0x" + value.to_bytes(32, "big").hex()
