"""
Commitment transaction finalize-time cache.

The batch start of a VTXO is the time its first commitment transaction was
finalized. That never changes, so each id is looked up once on the indexer
and cached in the "commitment_txs" key-value namespace.
"""

from __future__ import annotations

from ark_wallet_core.clients.protocols import CommitmentIndexer
from ark_wallet_core.database.database import KeyValueStore
from ark_wallet_core.wallet_logging import get_logger

logger = get_logger(__name__)

NAMESPACE = "commitment_txs"


class CommitmentTimestampCache:
    def __init__(self, store: KeyValueStore, indexer: CommitmentIndexer) -> None:
        self._store = store
        self._indexer = indexer

    async def get_ended_at(self, txid: str) -> int | None:
        """Finalize time (epoch seconds) of a commitment tx, or None if not known yet."""
        cached = self._store.get(txid)
        if cached:
            return int(cached)
        ended_at = await self._indexer.get_commitment_tx_ended_at(txid)
        if not ended_at:
            return None
        self._store.set(txid, int(ended_at))
        logger.debug("commitment_ended_at_cached", txid=txid, ended_at=ended_at)
        return int(ended_at)
