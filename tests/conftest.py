"""
Shared fakes for the computex test suite.

FakeLedger stands in for the marketplace facade: read-only calls are
answered from a response table and every call and broadcast is recorded so
tests can assert that nothing was sent.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from eth_abi import encode as abi_encode
from eth_utils import to_checksum_address

from computex.config import MarketConfig
from computex.constants import NULL_ADDRESS
from computex.ledger.client import (
    AccountBalance,
    LedgerContext,
    LogEvent,
    TxReceipt,
    WalletBalance,
)
from computex.ledger.events import SWAP_PROBE
from computex.market import (
    Amount,
    AppOrder,
    DatasetOrder,
    MatchCandidate,
    RequestOrder,
    WorkerpoolOrder,
)


def addr(byte: str) -> str:
    return to_checksum_address("0x" + byte * 20)


MARKETPLACE = addr("3e")
TOKEN = addr("7c")
POOL = addr("99")
USER = addr("11")
WORKERPOOL_OWNER = addr("22")
APP = addr("a1")
DATASET = addr("d1")
WORKERPOOL = addr("e1")
TX_HASH = "0x" + "ab" * 32
DEAL_ID = "0x" + "de" * 32


def order_hash(byte: str) -> str:
    return "0x" + byte * 32


# ---------------------------------------------------------------------------
# Ledger fakes
# ---------------------------------------------------------------------------

class FakePendingTx:
    def __init__(self, tx_hash: str, receipt: TxReceipt):
        self._hash = tx_hash
        self._receipt = receipt
        self.waited = False

    @property
    def hash(self) -> str:
        return self._hash

    async def wait(self) -> TxReceipt:
        self.waited = True
        return self._receipt


class FakeLedger:
    """Marketplace facade answering calls from `responses`."""

    def __init__(self, address: str = MARKETPLACE):
        self._address = address
        self.responses: Dict[str, Any] = {}
        self.calls: List[Tuple[str, list]] = []
        self.sent: List[Tuple[str, list, dict]] = []
        self.receipt = TxReceipt(transaction_hash=TX_HASH)

    @property
    def address(self) -> str:
        return self._address

    def respond(self, method: str, value: Any) -> None:
        self.responses[method] = value

    async def call(self, method: str, args=()):
        self.calls.append((method, list(args)))
        if method not in self.responses:
            raise AssertionError(f"unexpected ledger call {method}")
        response = self.responses[method]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(list(args))
        return response

    def calls_to(self, method: str) -> List[list]:
        return [args for name, args in self.calls if name == method]

    async def send(self, method: str, args=(), options: Optional[dict] = None):
        self.sent.append((method, list(args), dict(options or {})))
        return FakePendingTx(TX_HASH, self.receipt)


class FakeAccount:
    def __init__(self, stakes: Optional[Dict[str, int]] = None):
        self.stakes = stakes or {}

    async def check_balance(self, address: str) -> AccountBalance:
        stake = self.stakes.get(to_checksum_address(address), 0)
        return AccountBalance(stake=Amount.credit(stake), locked=Amount.credit(0))


class FakeWallet:
    def __init__(self, address: str = USER, native: int = 10 ** 18):
        self.address = address
        self.native = native

    async def get_address(self) -> str:
        return self.address

    async def check_balances(self, address: str) -> WalletBalance:
        return WalletBalance(native=Amount.native(self.native))


# ---------------------------------------------------------------------------
# Receipt builders
# ---------------------------------------------------------------------------

def transfer_event(emitter: str, sender: str, recipient: str, value: int) -> LogEvent:
    return LogEvent(
        address=emitter,
        name="Transfer",
        args={"from": sender, "to": recipient, "value": value},
    )


def mint_event(recipient: str = USER, value: int = 1000) -> LogEvent:
    return transfer_event(MARKETPLACE, NULL_ADDRESS, recipient, value)


def _address_topic(address: str) -> bytes:
    return abi_encode(["address"], [address])


def swap_log(
    pool: str = POOL,
    amount0_in: int = 0,
    amount1_in: int = 0,
    amount0_out: int = 0,
    amount1_out: int = 0,
    sender: str = MARKETPLACE,
    to: str = MARKETPLACE,
) -> LogEvent:
    """Undecoded pool Swap log entry, as the facade reports foreign events."""
    return LogEvent(
        address=pool,
        topics=(SWAP_PROBE.topic, _address_topic(sender), _address_topic(to)),
        data=abi_encode(
            ["uint256", "uint256", "uint256", "uint256"],
            [amount0_in, amount1_in, amount0_out, amount1_out],
        ),
    )


def orders_matched_event(volume: int, dealid: Any = DEAL_ID, emitter: str = MARKETPLACE) -> LogEvent:
    return LogEvent(
        address=emitter,
        name="OrdersMatched",
        args={"dealid": dealid, "volume": volume},
    )


def receipt(*events: LogEvent) -> TxReceipt:
    return TxReceipt(transaction_hash=TX_HASH, events=tuple(events))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def ledger():
    fake = FakeLedger()
    fake.respond("checkOrdersCompatibility", True)
    fake.respond("viewConsumed", 0)
    fake.respond("viewWorkerpoolOwner", WORKERPOOL_OWNER)
    fake.respond("token", TOKEN)
    return fake


@pytest.fixture
def account():
    return FakeAccount({USER: 10 ** 12, WORKERPOOL_OWNER: 10 ** 12})


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def config():
    return MarketConfig()


@pytest.fixture
def ctx(ledger, account, wallet, config):
    return LedgerContext(ledger=ledger, account=account, wallet=wallet, config=config)


@pytest.fixture
def native_ctx(ledger, account, wallet):
    config = MarketConfig()
    config.chain.is_native = True
    return LedgerContext(ledger=ledger, account=account, wallet=wallet, config=config)


@pytest.fixture
def make_candidate() -> Callable[..., MatchCandidate]:
    def _make(
        app_volume: int = 10,
        dataset_volume: Optional[int] = 10,
        workerpool_volume: int = 10,
        request_volume: int = 10,
        appprice: int = 5,
        datasetprice: int = 3,
        workerpoolprice: int = 100,
    ) -> MatchCandidate:
        dataset_order = None
        if dataset_volume is not None:
            dataset_order = DatasetOrder(
                dataset=DATASET, datasetprice=datasetprice, volume=dataset_volume,
                order_hash=order_hash("d0"),
            )
        return MatchCandidate(
            app_order=AppOrder(
                app=APP, appprice=appprice, volume=app_volume, order_hash=order_hash("a0"),
            ),
            dataset_order=dataset_order,
            workerpool_order=WorkerpoolOrder(
                workerpool=WORKERPOOL, workerpoolprice=workerpoolprice,
                volume=workerpool_volume, order_hash=order_hash("e0"),
            ),
            request_order=RequestOrder(
                app=APP, appmaxprice=appprice, workerpool=WORKERPOOL,
                workerpoolmaxprice=workerpoolprice, requester=USER, volume=request_volume,
                dataset=DATASET if dataset_volume is not None else NULL_ADDRESS,
                datasetmaxprice=datasetprice if dataset_volume is not None else 0,
                order_hash=order_hash("f0"),
            ),
        )
    return _make


def consumed_table(consumed: Dict[str, int]) -> Callable[[list], int]:
    """viewConsumed responder keyed by order hash."""
    return lambda args: consumed.get(args[0], 0)
