"""
Computex Matching Engine

Pre-flight evaluation of a match candidate:
- Matchability Evaluator: jointly executable volume from ledger state
- Collateral Guard: workerpool owner stake sufficiency
"""

from .matching import (
    check_orders_compatibility,
    compute_matchable_volume,
    fetch_remaining_volume,
    fetch_remaining_volumes,
)
from .collateral import (
    check_stake_sufficiency,
    check_workerpool_stake,
    fetch_workerpool_owner,
    required_stake,
)

__all__ = [
    "check_orders_compatibility",
    "compute_matchable_volume",
    "fetch_remaining_volume",
    "fetch_remaining_volumes",
    "check_stake_sufficiency",
    "check_workerpool_stake",
    "fetch_workerpool_owner",
    "required_stake",
]
