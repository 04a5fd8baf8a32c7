"""
Computex Ledger Context

Collaborator contracts consumed by the engine and the explicit context
handle threaded through every operation.

The engine never holds an ambient connection: each public operation takes a
`LedgerContext` carrying the marketplace contract facade, the account and
wallet readers, the chain configuration and the transaction options.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence, Tuple, Union

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from ..config.loader import MarketConfig
from ..exceptions import ConfigurationError
from ..market.amount import Amount
from ..market.orders import Eip712Domain


# ---------------------------------------------------------------------------
# Marketplace ABI names
# ---------------------------------------------------------------------------

class MarketplaceMethod:
    """Marketplace contract methods reached through the ledger facade."""
    # read-only
    VIEW_CONSUMED = "viewConsumed"
    CHECK_ORDERS_COMPATIBILITY = "checkOrdersCompatibility"
    VIEW_WORKERPOOL_OWNER = "viewWorkerpoolOwner"
    TOKEN = "token"
    ESTIMATE_DEPOSIT_ETH_SENT = "estimateDepositEthSent"
    ESTIMATE_DEPOSIT_TOKEN_WANTED = "estimateDepositTokenWanted"
    ESTIMATE_WITHDRAW_ETH_WANTED = "estimateWithdrawEthWanted"
    ESTIMATE_WITHDRAW_TOKEN_SENT = "estimateWithdrawTokenSent"
    # state-changing
    SAFE_DEPOSIT_ETH = "safeDepositEth"
    SAFE_WITHDRAW_ETH = "safeWithdrawEth"
    MATCH_ORDERS_WITH_ETH = "matchOrdersWithEth"


class MarketplaceEvent:
    """Event names decoded by the ledger facade for known ABIs."""
    TRANSFER = "Transfer"
    ORDERS_MATCHED = "OrdersMatched"


# ---------------------------------------------------------------------------
# Receipt model
# ---------------------------------------------------------------------------

HexBytes = Union[str, bytes]


@dataclass(frozen=True)
class LogEvent:
    """
    A single log entry of a confirmed transaction.

    Attributes:
        address: Emitting contract address
        name: Event name, None when the entry belongs to a foreign ABI
        data: Raw non-indexed payload
        topics: Raw topics (topic0 is the event signature hash)
        args: Decoded arguments for events of a known ABI
    """
    address: str
    name: Optional[str] = None
    data: HexBytes = b""
    topics: Tuple[HexBytes, ...] = ()
    args: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TxReceipt:
    """Confirmation of a mined transaction."""
    transaction_hash: str
    events: Tuple[LogEvent, ...] = ()
    block_number: Optional[int] = None


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------

class PendingTx(Protocol):
    """A broadcast transaction awaiting confirmation."""

    @property
    def hash(self) -> str: ...

    async def wait(self) -> TxReceipt: ...


class LedgerFacade(Protocol):
    """Marketplace contract bound to a signer."""

    @property
    def address(self) -> str: ...

    async def call(self, method: str, args: Sequence[Any] = ()) -> Any: ...

    async def send(
        self,
        method: str,
        args: Sequence[Any] = (),
        options: Optional[Dict[str, Any]] = None,
    ) -> PendingTx: ...


@dataclass(frozen=True)
class AccountBalance:
    """Marketplace account balance, credit units."""
    stake: Amount
    locked: Amount


@dataclass(frozen=True)
class WalletBalance:
    """Wallet balance, native units."""
    native: Amount


class AccountReader(Protocol):
    async def check_balance(self, address: str) -> AccountBalance: ...


class WalletReader(Protocol):
    async def get_address(self) -> str: ...

    async def check_balances(self, address: str) -> WalletBalance: ...


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TxOptions:
    """Options applied to every state-changing transaction."""
    gas_price: Optional[int] = None

    @classmethod
    def from_config(cls, config: MarketConfig) -> "TxOptions":
        return cls(gas_price=config.tx.gas_price)


@dataclass
class LedgerContext:
    """
    Explicit ledger handle passed to every operation.

    Attributes:
        ledger: Marketplace contract facade
        account: Marketplace account/escrow reader
        wallet: Wallet reader for the signing address
        config: Chain and market configuration
        tx_options: Transaction options; defaults to the [tx] config section
    """
    ledger: LedgerFacade
    account: AccountReader
    wallet: WalletReader
    config: MarketConfig = field(default_factory=MarketConfig)
    tx_options: Optional[TxOptions] = None

    def __post_init__(self):
        if self.tx_options is None:
            self.tx_options = TxOptions.from_config(self.config)
        hub = self.config.hub_address
        if hub is not None and hub != self.marketplace_address:
            raise ConfigurationError(
                f"Configured hub {hub} does not match the marketplace at {self.marketplace_address}"
            )

    @property
    def is_native(self) -> bool:
        return self.config.chain.is_native

    @property
    def chain_id(self) -> int:
        return self.config.chain.chain_id

    @property
    def stake_ratio_percent(self) -> int:
        return self.config.market.stake_ratio_percent

    @property
    def marketplace_address(self) -> ChecksumAddress:
        return to_checksum_address(self.ledger.address)

    @property
    def domain(self) -> Eip712Domain:
        return Eip712Domain(
            name=self.config.market.eip712_name,
            version=self.config.market.eip712_version,
            chain_id=self.chain_id,
            verifying_contract=self.marketplace_address,
        )

    async def fetch_token_address(self) -> ChecksumAddress:
        """Credit token contract address (configured or read from the marketplace)."""
        if self.config.chain.token_address:
            return to_checksum_address(self.config.chain.token_address)
        return to_checksum_address(await self.ledger.call(MarketplaceMethod.TOKEN))

    def send_options(self, value: Optional[Amount] = None) -> Dict[str, Any]:
        """Options for `LedgerFacade.send`: value in wei and gas price."""
        options: Dict[str, Any] = {}
        if value is not None:
            options["value"] = value.value
        if self.tx_options.gas_price is not None:
            options["gasPrice"] = self.tx_options.gas_price
        return options
