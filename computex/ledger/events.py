"""
Computex Event Reconciliation

Locates the log entries that prove a transaction did what was intended.

A confirmed receipt only says the transaction was mined. The engine
therefore looks for specific events, matching on BOTH the emitting contract
address and the event arguments: a single transaction can contain
structurally identical events (e.g. several `Transfer`s) from unrelated
contracts.

Entries from foreign contracts (the pool) are not decoded by the ledger
facade. `EventProbe` decodes them against an ABI event description and
returns None on mismatch, so heterogeneous logs can be scanned entry by
entry.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, is_address, keccak, to_checksum_address

from ..logger import get_logger
from .client import LogEvent, MarketplaceEvent

logger = get_logger(__name__)


# Pool pair Swap event (constant-product pool ABI)
SWAP_EVENT_ABI: List[Dict[str, Any]] = [
    {
        "anonymous": False,
        "type": "event",
        "name": "Swap",
        "inputs": [
            {"indexed": True, "name": "sender", "type": "address"},
            {"indexed": False, "name": "amount0In", "type": "uint256"},
            {"indexed": False, "name": "amount1In", "type": "uint256"},
            {"indexed": False, "name": "amount0Out", "type": "uint256"},
            {"indexed": False, "name": "amount1Out", "type": "uint256"},
            {"indexed": True, "name": "to", "type": "address"},
        ],
    },
]

# Topic-encoded types decode as a single 32-byte word
_STATIC_TOPIC_TYPES = ("address", "bool", "bytes32")


def _to_bytes(value) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return decode_hex(value) if value else b""
    raise TypeError(f"Expected hex string or bytes, got {type(value).__name__}")


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Checksum-insensitive address equality; anything non-address never matches."""
    if not (isinstance(a, str) and isinstance(b, str)):
        return False
    if not (is_address(a) and is_address(b)):
        return False
    return to_checksum_address(a) == to_checksum_address(b)


# ---------------------------------------------------------------------------
# Known-ABI lookups
# ---------------------------------------------------------------------------

def find_event(
    name: str,
    events: Iterable[LogEvent],
    predicate: Optional[Callable[[LogEvent], bool]] = None,
) -> Optional[LogEvent]:
    """First event named `name` (and satisfying `predicate`), else None."""
    for event in events or ():
        if event.name != name:
            continue
        if predicate is None or predicate(event):
            return event
    return None


def check_event(name: str, events: Iterable[LogEvent]) -> bool:
    """True if any event is named `name`."""
    return find_event(name, events) is not None


_ANY = object()


def find_transfer(
    events: Iterable[LogEvent],
    emitter: str,
    sender: Any = _ANY,
    recipient: Any = _ANY,
) -> Optional[LogEvent]:
    """
    Locate a `Transfer` emitted by `emitter`.

    `sender` / `recipient` constrain the `from` / `to` arguments. Omitted
    constraints only require the argument to be present.
    """
    def matches(event: LogEvent) -> bool:
        if not same_address(event.address, emitter):
            return False
        args = event.args or {}
        for key, expected in (("from", sender), ("to", recipient)):
            actual = args.get(key)
            if expected is _ANY:
                if not actual:
                    return False
            elif not same_address(actual, expected):
                return False
        return True

    return find_event(MarketplaceEvent.TRANSFER, events, matches)


# ---------------------------------------------------------------------------
# Foreign-ABI probing
# ---------------------------------------------------------------------------

class EventProbe:
    """
    Decoder for one event of a foreign ABI.

    `probe(log)` returns the decoded fields or None when the entry is not
    this event (wrong signature, wrong topic count, undecodable payload).
    """

    def __init__(self, abi: Sequence[Mapping[str, Any]], event_name: str):
        entry = next(
            (e for e in abi if e.get("type") == "event" and e.get("name") == event_name),
            None,
        )
        if entry is None:
            raise ValueError(f"Event {event_name} not found in ABI")
        self.name = event_name
        self.inputs = list(entry["inputs"])
        self.anonymous = bool(entry.get("anonymous", False))
        types = ",".join(i["type"] for i in self.inputs)
        self.signature = f"{event_name}({types})"
        self.topic = keccak(text=self.signature)
        self._indexed = [i for i in self.inputs if i.get("indexed")]
        self._plain = [i for i in self.inputs if not i.get("indexed")]

    def probe(self, log: LogEvent) -> Optional[Dict[str, Any]]:
        try:
            topics = [_to_bytes(t) for t in log.topics]
            data = _to_bytes(log.data)
        except (TypeError, ValueError):
            return None

        # Facades exposing only the payload give no topics: indexed fields
        # are then unknown and decode as None.
        payload_only = not topics and not self.anonymous
        if not payload_only:
            if not self.anonymous:
                if topics[0] != self.topic:
                    return None
                topics = topics[1:]
            if len(topics) != len(self._indexed):
                return None

        try:
            plain_values = abi_decode([i["type"] for i in self._plain], data)
            indexed_values: List[Any] = []
            if payload_only:
                indexed_values = [None] * len(self._indexed)
            for param, topic in zip(self._indexed, topics):
                if param["type"] in _STATIC_TOPIC_TYPES or param["type"].startswith(("uint", "int")):
                    indexed_values.append(abi_decode([param["type"]], topic)[0])
                else:
                    # dynamic indexed values are only available as their hash
                    indexed_values.append(topic)
        except (DecodingError, ValueError, OverflowError):
            return None

        plain_iter = iter(plain_values)
        indexed_iter = iter(indexed_values)
        fields: Dict[str, Any] = {}
        for param in self.inputs:
            value = next(indexed_iter) if param.get("indexed") else next(plain_iter)
            if param["type"] == "address" and value is not None:
                value = to_checksum_address(value)
            fields[param["name"]] = value
        return fields

    def iter_decoded(self, events: Iterable[LogEvent]) -> Iterator[Dict[str, Any]]:
        """Lazily yield decoded fields of every matching entry."""
        for event in events:
            fields = self.probe(event)
            if fields is not None:
                yield fields


def decode_foreign_event(
    abi: Sequence[Mapping[str, Any]],
    event_name: str,
    log: LogEvent,
) -> Optional[Dict[str, Any]]:
    """Decode `log` as `event_name` of `abi`, None on mismatch."""
    return EventProbe(abi, event_name).probe(log)


SWAP_PROBE = EventProbe(SWAP_EVENT_ABI, "Swap")


def find_pool_swap(events: Iterable[LogEvent], pool_address: str) -> Optional[Dict[str, Any]]:
    """
    Decoded `Swap` of the pool at `pool_address`.

    When the pool emitted several decodable swaps the last one wins: the
    native payout is the final hop.
    """
    from_pool = (e for e in events if same_address(e.address, pool_address))
    decoded = None
    for fields in SWAP_PROBE.iter_decoded(from_pool):
        decoded = fields
    if decoded is None:
        logger.debug("No decodable Swap event from pool %s", pool_address)
    return decoded
