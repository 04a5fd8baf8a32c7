"""
Computex TOML Configuration Loader

Loads the sections of computex.toml with environment variable overrides.

Environment variable mapping:
    [chain] chain_id      → COMPUTEX_CHAIN_ID
    [chain] hub_address   → COMPUTEX_HUB_ADDRESS
    [chain] is_native     → COMPUTEX_IS_NATIVE
    [tx] gas_price        → COMPUTEX_GAS_PRICE
    [market] stake_ratio_percent → COMPUTEX_STAKE_RATIO_PERCENT

Key material never lives in this file; signing is the wallet's concern.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from eth_utils import is_address, to_checksum_address

from ..constants import (
    EIP712_DOMAIN_NAME,
    EIP712_DOMAIN_VERSION,
    STAKE_RATIO_PERCENT,
)
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class ChainSectionConfig:
    """[chain] section."""
    chain_id: int = 1
    name: str = "mainnet"
    # Native-asset-only chains have no native/credit pool
    is_native: bool = False
    hub_address: str = ""
    # Credit token address; read from the marketplace when empty
    token_address: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainSectionConfig":
        return cls(
            chain_id=int(data.get("chain_id", 1)),
            name=data.get("name", "mainnet"),
            is_native=bool(data.get("is_native", False)),
            hub_address=data.get("hub_address", ""),
            token_address=data.get("token_address", ""),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("COMPUTEX_CHAIN_ID"):
            self.chain_id = int(v)
        if v := os.environ.get("COMPUTEX_CHAIN_NAME"):
            self.name = v
        if v := os.environ.get("COMPUTEX_IS_NATIVE"):
            self.is_native = v.strip().lower() in _TRUE_VALUES
        if v := os.environ.get("COMPUTEX_HUB_ADDRESS"):
            self.hub_address = v
        if v := os.environ.get("COMPUTEX_TOKEN_ADDRESS"):
            self.token_address = v


@dataclass
class TxSectionConfig:
    """[tx] section."""
    # None lets the wallet pick the gas price
    gas_price: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TxSectionConfig":
        gas_price = data.get("gas_price")
        return cls(gas_price=int(gas_price) if gas_price is not None else None)

    def apply_env(self) -> None:
        if v := os.environ.get("COMPUTEX_GAS_PRICE"):
            self.gas_price = int(v)


@dataclass
class MarketSectionConfig:
    """[market] section."""
    stake_ratio_percent: int = STAKE_RATIO_PERCENT
    eip712_name: str = EIP712_DOMAIN_NAME
    eip712_version: str = EIP712_DOMAIN_VERSION

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketSectionConfig":
        return cls(
            stake_ratio_percent=int(data.get("stake_ratio_percent", STAKE_RATIO_PERCENT)),
            eip712_name=data.get("eip712_name", EIP712_DOMAIN_NAME),
            eip712_version=data.get("eip712_version", EIP712_DOMAIN_VERSION),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("COMPUTEX_STAKE_RATIO_PERCENT"):
            self.stake_ratio_percent = int(v)


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass
class MarketConfig:
    """
    Complete engine configuration.

    Usage:
        config = MarketConfig.from_file("computex.toml")
        config.validate()
    """
    chain: ChainSectionConfig = field(default_factory=ChainSectionConfig)
    tx: TxSectionConfig = field(default_factory=TxSectionConfig)
    market: MarketSectionConfig = field(default_factory=MarketSectionConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketConfig":
        return cls(
            chain=ChainSectionConfig.from_dict(data.get("chain", {})),
            tx=TxSectionConfig.from_dict(data.get("tx", {})),
            market=MarketSectionConfig.from_dict(data.get("market", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "MarketConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults with environment overrides applied.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            raw = tomli.load(f)

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.chain.apply_env()
        self.tx.apply_env()
        self.market.apply_env()

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        if self.chain.chain_id < 1:
            raise ConfigurationError("chain_id must be >= 1")
        for name in ("hub_address", "token_address"):
            value = getattr(self.chain, name)
            if value and not is_address(value):
                raise ConfigurationError(f"Invalid {name}: {value}")
        if self.tx.gas_price is not None and self.tx.gas_price < 0:
            raise ConfigurationError("gas_price must be >= 0")
        if not 0 <= self.market.stake_ratio_percent <= 100:
            raise ConfigurationError("stake_ratio_percent must be within [0, 100]")
        return True

    @property
    def hub_address(self) -> Optional[str]:
        if not self.chain.hub_address:
            return None
        return to_checksum_address(self.chain.hub_address)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics)."""
        return {
            "chain": {
                "chain_id": self.chain.chain_id,
                "name": self.chain.name,
                "is_native": self.chain.is_native,
                "hub_address": self.chain.hub_address,
                "token_address": self.chain.token_address,
            },
            "tx": {
                "gas_price": self.tx.gas_price,
            },
            "market": {
                "stake_ratio_percent": self.market.stake_ratio_percent,
                "eip712_name": self.market.eip712_name,
                "eip712_version": self.market.eip712_version,
            },
        }


def load_config(path: Optional[str] = None) -> MarketConfig:
    """
    Load engine configuration.

    Resolution order:
        1. Explicit *path* argument
        2. COMPUTEX_CONFIG env var
        3. ./computex.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("COMPUTEX_CONFIG", "computex.toml")

    return MarketConfig.from_file(path)
