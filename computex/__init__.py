"""
Computex Package

Client-side matching and settlement engine for a compute marketplace.
Core imports are lazily loaded; for direct access import from submodules:

    from computex.market import Amount, AppOrder, MatchCandidate
    from computex.swap import deposit_eth, match_orders_with_eth
    from computex.exceptions import InsufficientStake
"""

__version__ = "0.1.0"


# Lazy imports to avoid loading eth_abi at package import
def __getattr__(name):
    if name == 'MarketClient':
        from .client import MarketClient
        return MarketClient
    elif name == 'LedgerContext':
        from .ledger.client import LedgerContext
        return LedgerContext
    elif name == 'load_config':
        from .config import load_config
        return load_config
    elif name == 'ComputexError':
        from .exceptions import ComputexError
        return ComputexError
    raise AttributeError(f"module 'computex' has no attribute {name!r}")

__all__ = ['MarketClient', 'LedgerContext', 'load_config', 'ComputexError']
