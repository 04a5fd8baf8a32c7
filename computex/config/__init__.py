"""
Computex Configuration

Loads computex.toml; environment variables override TOML values.
"""

from .loader import (
    MarketConfig,
    ChainSectionConfig,
    TxSectionConfig,
    MarketSectionConfig,
    load_config,
)

__all__ = [
    "MarketConfig",
    "ChainSectionConfig",
    "TxSectionConfig",
    "MarketSectionConfig",
    "load_config",
]
