"""
Tests for the reconciliation loop: tick contents, balance diff notifications,
error handling, idempotent reload and stop semantics.
"""

from __future__ import annotations

import asyncio

import pytest

from ark_wallet_core.database.models import WalletState
from ark_wallet_core.lifecycle import CommitmentTimestampCache
from ark_wallet_core.reconciler import LoopState, ReconciliationLoop, diff_balance

NOW_SEC = 1_700_000_000


def _loop(engine, db, notifier, **kwargs) -> ReconciliationLoop:
    kwargs.setdefault("clock", lambda: float(NOW_SEC))
    return ReconciliationLoop(engine, db, WalletState(pubkey="02ab"), notifier=notifier, **kwargs)


# --- diff_balance ---


def test_diff_balance():
    assert diff_balance(None, 500).delta == 0
    assert not diff_balance(None, 500).increased
    assert diff_balance(100, 500).increased
    assert diff_balance(100, 500).delta == 400
    assert diff_balance(500, 100).decreased
    assert not diff_balance(500, 500).increased
    with pytest.raises(ValueError):
        diff_balance(0, -1)


# --- ticks ---


def test_reload_persists_snapshot_and_state(engine, db, notifier, make_vtxo, make_utxo):
    engine.vtxos = [make_vtxo(batch_expiry=(NOW_SEC + 3600) * 1000)]
    engine.utxos = [make_utxo()]
    engine.balance = 10_000
    loop = _loop(engine, db, notifier)

    result = asyncio.run(loop.reload())

    assert result is not None
    assert result.balance == 10_000
    assert db.wallet.get_vtxos() == engine.vtxos
    assert db.wallet.get_utxos() == engine.utxos
    state = db.wallet.get_wallet_state()
    assert state.next_rollover == NOW_SEC + 3600
    assert state.last_balance == 10_000
    assert state.last_sync_ms == NOW_SEC * 1000
    assert loop.state == LoopState.IDLE
    assert loop.stats.tick_count == 1


def test_payment_received_notification_on_increase(engine, db, notifier):
    loop = _loop(engine, db, notifier)

    async def scenario():
        engine.balance = 1000
        await loop.reload()
        engine.balance = 1500
        await loop.reload()
        engine.balance = 1200
        await loop.reload()

    asyncio.run(scenario())
    assert notifier.events == [("payment_received", 500)]


def test_reload_is_idempotent(engine, db, notifier, make_vtxo):
    engine.vtxos = [make_vtxo(batch_expiry=(NOW_SEC + 60) * 1000)]
    engine.balance = 7000
    loop = _loop(engine, db, notifier)

    async def scenario():
        first = await loop.reload()
        second = await loop.reload()
        return first, second

    first, second = asyncio.run(scenario())
    assert first.wallet_state == second.wallet_state
    assert db.wallet.get_vtxos() == engine.vtxos
    assert notifier.events == []


def test_failed_step_abandons_tick(engine, db, notifier, make_vtxo):
    engine.vtxos = [make_vtxo()]
    engine.fail_on = "get_balance"
    loop = _loop(engine, db, notifier)

    assert asyncio.run(loop.reload()) is None
    assert loop.stats.error_count == 1
    assert "balance" in loop.stats.last_error
    assert db.wallet.get_vtxos() == []
    assert loop.state == LoopState.IDLE


def test_step_timeout_abandons_tick(engine, db, notifier):
    async def slow_balance():
        await asyncio.sleep(1)
        return 0

    engine.get_balance = slow_balance
    loop = _loop(engine, db, notifier, request_timeout_sec=0.01)
    assert asyncio.run(loop.reload()) is None
    assert loop.stats.error_count == 1


class HangingIndexer:
    async def get_commitment_tx_ended_at(self, txid: str) -> int | None:
        await asyncio.sleep(10)
        return 1


class BrokenIndexer:
    async def get_commitment_tx_ended_at(self, txid: str) -> int | None:
        raise ConnectionError("indexer down")


@pytest.mark.parametrize("indexer", [HangingIndexer(), BrokenIndexer()])
def test_unavailable_indexer_keeps_tick(engine, db, notifier, make_vtxo, indexer):
    engine.vtxos = [make_vtxo(batch_expiry=(NOW_SEC + 3600) * 1000, commitment_txids=["c1"])]
    engine.balance = 3000
    cache = CommitmentTimestampCache(db.namespace("commitment_txs"), indexer)
    loop = _loop(engine, db, notifier, commitment_cache=cache, request_timeout_sec=0.05)

    result = asyncio.run(loop.reload())

    assert result is not None
    assert db.wallet.get_vtxos() == engine.vtxos
    state = db.wallet.get_wallet_state()
    assert state.threshold_ms == 0
    assert state.last_balance == 3000
    assert loop.stats.error_count == 0


def test_overlapping_reloads_are_serialized(engine, db, notifier):
    active = 0
    peak = 0

    async def tracked_vtxos():
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return []

    engine.get_vtxos = tracked_vtxos
    loop = _loop(engine, db, notifier)

    async def scenario():
        return await asyncio.gather(loop.reload(), loop.reload(), loop.reload())

    results = asyncio.run(scenario())
    assert all(r is not None for r in results)
    assert peak == 1


# --- start / trigger / stop ---


def test_start_runs_immediate_tick_and_stop(engine, db, notifier):
    engine.balance = 42
    loop = _loop(engine, db, notifier, interval_sec=60)

    async def scenario():
        loop.start()
        await asyncio.sleep(0.05)
        assert loop.running
        await loop.stop()

    asyncio.run(scenario())
    assert loop.stats.tick_count == 1
    assert not loop.running
    assert db.wallet.get_wallet_state().last_balance == 42


def test_trigger_wakes_loop(engine, db, notifier):
    loop = _loop(engine, db, notifier, interval_sec=60)

    async def scenario():
        loop.start()
        await asyncio.sleep(0.05)
        loop.trigger()
        await asyncio.sleep(0.05)
        await loop.stop()

    asyncio.run(scenario())
    assert loop.stats.tick_count == 2


def test_loop_keeps_running_after_errors(engine, db, notifier):
    engine.fail_on = "get_vtxos"
    loop = _loop(engine, db, notifier, interval_sec=0.01)

    async def scenario():
        loop.start()
        await asyncio.sleep(0.1)
        running = loop.running
        await loop.stop()
        return running

    assert asyncio.run(scenario())
    assert loop.stats.error_count >= 2


def test_stop_discards_in_flight_tick(engine, db, notifier):
    release = None

    async def blocked_history():
        await release.wait()
        return []

    engine.get_tx_history = blocked_history
    engine.balance = 99
    loop = _loop(engine, db, notifier)

    async def scenario():
        nonlocal release
        release = asyncio.Event()
        pending = asyncio.create_task(loop.reload())
        await asyncio.sleep(0.01)
        await loop.stop()
        release.set()
        return await pending

    assert asyncio.run(scenario()) is None
    assert db.wallet.get_wallet_state() is None
    assert loop.stats.discarded_count == 1


def test_invalid_interval_rejected(engine, db):
    with pytest.raises(ValueError):
        ReconciliationLoop(engine, db, WalletState(), interval_sec=0)
