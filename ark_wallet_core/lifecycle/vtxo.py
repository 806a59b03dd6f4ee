"""
VTXO lifecycle: status tags, rollover deadline, renewal threshold, orphans.

Every off-chain coin lives in a batch that expires. The wallet must renew
(settle) coins before their batch expiry; coins whose batch already expired
without being swept are orphans that need recovery.

All functions are pure except observe_batch_lifetime, which consults the
commitment timestamp cache.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Iterable, Sequence

from ark_wallet_core.core.constants import EXPIRING_SOON_MS, MS_PER_SEC
from ark_wallet_core.database.models import VTXO_STATE_SWEPT, CoinKey, Utxo, Vtxo
from ark_wallet_core.lifecycle.indexer import CommitmentTimestampCache
from ark_wallet_core.lifecycle.utxo import confirmed_unexpired_utxos
from ark_wallet_core.wallet_logging import get_logger

logger = get_logger(__name__)

DEFAULT_RENEWAL_PERCENTAGE = 10


class VtxoTag(str, Enum):
    SETTLED = "settled"
    SUBDUST = "subdust"
    EXPIRING_SOON = "expiring_soon"
    NOMINAL = "nominal"


def tag_status(vtxo: Vtxo, dust_threshold: int, now_ms: int) -> VtxoTag:
    """
    Display tag for one coin. Priority: settled > subdust > expiring soon > nominal.

    Expiring soon means the batch has not expired yet but will within 24h.
    """
    if vtxo.settled_by:
        return VtxoTag.SETTLED
    if vtxo.value < dust_threshold:
        return VtxoTag.SUBDUST
    expiry = vtxo.batch_expiry
    if expiry and now_ms < expiry and expiry - now_ms < EXPIRING_SOON_MS:
        return VtxoTag.EXPIRING_SOON
    return VtxoTag.NOMINAL


def compute_next_rollover(
    spendable: Sequence[Vtxo],
    boarding_utxos: Sequence[Utxo],
    boarding_exit_delay_sec: int,
    now_sec: int | None = None,
) -> int:
    """
    Epoch seconds by which the wallet must renew, 0 when nothing is pending.

    The earliest nonzero batch expiry among spendable coins wins. Without any,
    the earliest confirmed, unexpired boarding output's block time plus the
    boarding exit delay is used.
    """
    expiries = [v.batch_expiry for v in spendable if v.batch_expiry]
    if expiries:
        return min(expiries) // MS_PER_SEC
    block_times = [
        u.status.block_time
        for u in confirmed_unexpired_utxos(boarding_utxos, now_sec)
        if u.status.block_time
    ]
    if not block_times:
        return 0
    return min(block_times) + boarding_exit_delay_sec


def compute_renewal_threshold(lifetime_ms: int, percentage: int = DEFAULT_RENEWAL_PERCENTAGE) -> int:
    """Renew coins this many ms before expiry: a flat percentage of the batch lifetime."""
    if lifetime_ms <= 0:
        return 0
    return max(0, lifetime_ms * percentage // 100)


async def observe_batch_lifetime(vtxos: Iterable[Vtxo], cache: CommitmentTimestampCache) -> int:
    """
    Lifetime (ms) of the batch of the first coin with both a batch expiry and a
    commitment id: expiry minus the first commitment's finalize time.

    Returns 0 when no sample exists or the lookup fails.
    """
    sample = next(
        (v for v in vtxos if v.batch_expiry and v.virtual_status.commitment_txids),
        None,
    )
    if sample is None:
        return 0
    txid = sample.virtual_status.commitment_txids[0]
    try:
        started_at = await cache.get_ended_at(txid)
    except Exception as e:
        logger.warning("batch_lifetime_lookup_failed", txid=txid, error=str(e))
        return 0
    if not started_at:
        return 0
    return max(0, sample.batch_expiry - started_at * MS_PER_SEC)


def find_orphans(spendable: Iterable[Vtxo], now_ms: int | None = None) -> list[Vtxo]:
    """Coins whose batch expired while still unspent and not swept by the server."""
    now = int(time.time() * MS_PER_SEC) if now_ms is None else now_ms
    return [
        v
        for v in spendable
        if v.batch_expiry
        and v.batch_expiry < now
        and not v.is_spent
        and v.virtual_status.state != VTXO_STATE_SWEPT
    ]


def find_expiring(vtxos: Iterable[Vtxo], threshold_ms: int, now_ms: int | None = None) -> list[Vtxo]:
    """Unspent coins whose batch expires within threshold_ms from now (not yet expired)."""
    if threshold_ms <= 0:
        return []
    now = int(time.time() * MS_PER_SEC) if now_ms is None else now_ms
    return [
        v
        for v in vtxos
        if v.batch_expiry
        and not v.is_spent
        and now <= v.batch_expiry <= now + threshold_ms
    ]


def renewal_candidates(vtxos: Sequence[Vtxo], threshold_ms: int, now_ms: int | None = None) -> list[Vtxo]:
    """Expiring coins plus orphans, each coin once, in input order."""
    now = int(time.time() * MS_PER_SEC) if now_ms is None else now_ms
    selected: set[CoinKey] = {v.key for v in find_expiring(vtxos, threshold_ms, now)}
    selected.update(v.key for v in find_orphans(vtxos, now))
    seen: set[CoinKey] = set()
    out: list[Vtxo] = []
    for v in vtxos:
        if v.key in selected and v.key not in seen:
            seen.add(v.key)
            out.append(v)
    return out
