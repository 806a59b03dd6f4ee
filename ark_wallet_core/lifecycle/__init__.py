"""
VTXO lifecycle manager: tagging, rollover scheduling, renewal, orphan detection.
"""

from ark_wallet_core.lifecycle.indexer import CommitmentTimestampCache
from ark_wallet_core.lifecycle.schedule import best_market_hour, next_market_hour
from ark_wallet_core.lifecycle.utxo import confirmed_unexpired_utxos, is_expired_boarding_utxo
from ark_wallet_core.lifecycle.vtxo import (
    VtxoTag,
    compute_next_rollover,
    compute_renewal_threshold,
    find_expiring,
    find_orphans,
    observe_batch_lifetime,
    renewal_candidates,
    tag_status,
)

__all__ = [
    "CommitmentTimestampCache",
    "VtxoTag",
    "best_market_hour",
    "compute_next_rollover",
    "compute_renewal_threshold",
    "confirmed_unexpired_utxos",
    "find_expiring",
    "find_orphans",
    "is_expired_boarding_utxo",
    "next_market_hour",
    "observe_batch_lifetime",
    "renewal_candidates",
    "tag_status",
]
