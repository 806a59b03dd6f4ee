"""Boarding UTXO expiry checks."""

from __future__ import annotations

import time
from typing import Iterable

from ark_wallet_core.core.constants import SECONDS_PER_BLOCK
from ark_wallet_core.database.models import TIMELOCK_BLOCKS, Utxo


def timelock_seconds(utxo: Utxo) -> int | None:
    """Earliest exit timelock in seconds; block-based locks are approximated."""
    lock = utxo.exit_timelock
    if lock is None:
        return None
    if lock.type == TIMELOCK_BLOCKS:
        return lock.value * SECONDS_PER_BLOCK
    return lock.value


def is_expired_boarding_utxo(utxo: Utxo, now_sec: int | None = None) -> bool:
    """
    True once the boarding output's exit path is spendable by the user alone.

    Unconfirmed outputs and outputs without a known exit timelock never expire.
    """
    delay = timelock_seconds(utxo)
    if delay is None or not utxo.status.confirmed or not utxo.status.block_time:
        return False
    now = int(time.time()) if now_sec is None else now_sec
    return utxo.status.block_time + delay <= now


def confirmed_unexpired_utxos(utxos: Iterable[Utxo], now_sec: int | None = None) -> list[Utxo]:
    return [u for u in utxos if u.status.confirmed and not is_expired_boarding_utxo(u, now_sec)]
