"""
Tests for the wallet session: connect, unlock/lock/reset, coin renewal and
scheduled renewal sessions. The Ark server is served by httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import time

import httpx
import pytest

from ark_wallet_core.clients.server_info import ArkServerClient, ScheduledSession, ServerInfo
from ark_wallet_core.config import Settings, UserConfig
from ark_wallet_core.database.models import VTXO_STATE_PRECONFIRMED, WalletState
from ark_wallet_core.destination.models import Venue
from ark_wallet_core.limits import LimitWindow
from ark_wallet_core.reconciler import WalletSession

INFO = {
    "network": "regtest",
    "dust": "330",
    "boardingExitDelay": "86400",
    "vtxoMaxAmount": "100000000",
}


def _info_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/v1/info":
        return httpx.Response(200, json=INFO)
    return httpx.Response(404)


def _down_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503)


@pytest.fixture
def make_session(tmp_path, db, notifier):
    def _make(handler=_info_handler, **overrides) -> WalletSession:
        settings = Settings(
            network="regtest",
            server_url="http://ark.test",
            boltz_api_url=None,
            db_path=tmp_path / "unused.db",
            reconcile_interval_sec=60,
            **overrides,
        )
        server = ArkServerClient(
            settings.server_url,
            max_retries=1,
            min_retry_delay_sec=0,
            transport=httpx.MockTransport(handler),
        )
        return WalletSession(settings, db=db, server=server, notifier=notifier)

    return _make


def _past_ms(hours: int = 1) -> int:
    return int((time.time() - hours * 3600) * 1000)


def test_connect_applies_server_limits(make_session):
    session = make_session()
    info = asyncio.run(session.connect())
    assert info.network == "regtest"
    assert session.limits.window(Venue.ARK) == LimitWindow(330, 100_000_000)


def test_connect_unreachable_keeps_limits(make_session):
    session = make_session(_down_handler)
    info = asyncio.run(session.connect())
    assert info.unreachable
    assert not session.limits.limits_loaded
    assert session.server_info.unreachable


def test_unlock_polls_and_lock_stops(make_session, engine, db):
    engine.balance = 5000
    session = make_session()

    async def scenario():
        await session.connect()
        await session.unlock(engine, "02ab")
        assert not session.is_locked
        await asyncio.sleep(0.05)
        assert session.loop.running
        await session.lock()

    asyncio.run(scenario())
    assert session.is_locked
    assert session.loop is None
    state = db.wallet.get_wallet_state()
    assert state.pubkey == "02ab"
    assert state.network == "regtest"
    assert state.last_balance == 5000


def test_unlock_renews_orphans_from_store(make_session, engine, db, notifier, make_vtxo):
    orphan = make_vtxo(batch_expiry=_past_ms())
    db.wallet.save_vtxos(orphan)
    engine.vtxos = [orphan]
    session = make_session()

    async def scenario():
        await session.connect()
        await session.unlock(engine, "02ab")
        await session.lock()

    asyncio.run(scenario())
    assert engine.settled == [[orphan]]
    assert ("vtxos_rolled_over", None) in notifier.events


def test_hanging_startup_renewal_does_not_block_unlock(make_session, engine, db, make_vtxo):
    orphan = make_vtxo(batch_expiry=_past_ms())
    db.wallet.save_vtxos(orphan)
    engine.vtxos = [orphan]

    async def hanging_settle(vtxos):
        await asyncio.sleep(10)
        return "never"

    engine.settle = hanging_settle
    session = make_session(request_timeout_sec=0.05)

    async def scenario():
        await session.connect()
        await asyncio.wait_for(session.unlock(engine, "02ab"), timeout=2)
        unlocked = not session.is_locked
        await session.lock()
        return unlocked

    assert asyncio.run(scenario())


def test_renewal_below_dust_is_skipped(make_session, engine, db, make_vtxo):
    db.wallet.save_vtxos(make_vtxo(value=100, batch_expiry=_past_ms()))
    session = make_session()

    async def scenario():
        await session.connect()
        await session.unlock(engine, "02ab")
        result = await session.renew_coins()
        await session.lock()
        return result

    assert asyncio.run(scenario()) is None
    assert engine.settled == []


def test_renew_and_settle_require_unlocked_wallet(make_session):
    session = make_session()
    with pytest.raises(RuntimeError):
        asyncio.run(session.renew_coins())
    with pytest.raises(RuntimeError):
        asyncio.run(session.settle_preconfirmed())


def test_settle_preconfirmed(make_session, engine, db, notifier, make_vtxo):
    pending = make_vtxo(state=VTXO_STATE_PRECONFIRMED)
    db.wallet.save_vtxos(pending)
    engine.vtxos = [pending]
    session = make_session()

    async def scenario():
        await session.connect()
        await session.unlock(engine, "02ab")
        txid = await session.settle_preconfirmed()
        await session.lock()
        return txid

    assert asyncio.run(scenario()) == "commitment-1"
    assert engine.settled == [[pending]]
    assert ("tx_settled", None) in notifier.events


def test_reset_wipes_wallet_keeps_config(make_session, engine, db, make_vtxo):
    engine.vtxos = [make_vtxo()]
    session = make_session()
    session.update_user_config(UserConfig(server_url="ark.example.com", notifications=True))

    async def scenario():
        await session.unlock(engine, "02ab")
        await asyncio.sleep(0.05)
        await session.reset()

    asyncio.run(scenario())
    assert session.is_locked
    assert db.wallet.get_vtxos() == []
    assert db.wallet.get_wallet_state() is None
    assert session.user_config().server_url == "https://ark.example.com"


def test_swap_provider_wired_on_unlock(make_session, engine, provider):
    session = make_session()

    async def scenario():
        await session.connect()
        await session.unlock(engine, "02ab", swap_provider=provider)
        window = session.limits.window(Venue.LIGHTNING)
        assert provider.callback is not None
        await session.lock()
        return window

    assert asyncio.run(scenario()) == LimitWindow(1000, 5_000_000)
    assert session.limits.window(Venue.LIGHTNING).disabled


def test_unavailable_swap_provider_disables_lightning(make_session, engine, provider):
    provider.fail_with = ConnectionError("offline")
    session = make_session()

    async def scenario():
        await session.unlock(engine, "02ab", swap_provider=provider)
        disabled = session.limits.window(Venue.LIGHTNING).disabled
        await session.lock()
        return disabled

    assert asyncio.run(scenario())


def test_next_renewal_session(make_session, db):
    session = make_session()
    assert session.next_renewal_session() is None
    db.wallet.save_wallet_state(WalletState(pubkey="02ab", next_rollover=1350))
    session.apply_server_info(
        ServerInfo(
            network="regtest",
            scheduled_session=ScheduledSession(next_start_time=1000, next_end_time=1010, period=100, duration=10),
        )
    )
    best = session.next_renewal_session()
    assert best.next_start_time == 1300
