"""
Wallet session: wires the store, limits engine, reconciliation loop, swap
service and notifier for one unlocked wallet.

connect() loads server info; unlock(engine) starts polling; lock() stops it and
forgets the engine; reset() locks and wipes local wallet data (user
configuration kept).
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace

from ark_wallet_core.clients.protocols import SwapProvider, WalletEngine
from ark_wallet_core.clients.server_info import ArkServerClient, ScheduledSession, ServerInfo
from ark_wallet_core.config.settings import Settings
from ark_wallet_core.config.user_config import UserConfig, load_user_config, save_user_config
from ark_wallet_core.core.constants import MS_PER_SEC
from ark_wallet_core.core.exceptions import ServerUnreachable, SwapProviderFailure
from ark_wallet_core.database.database import Database, get_database
from ark_wallet_core.database.models import VTXO_STATE_PRECONFIRMED, WalletState
from ark_wallet_core.lifecycle.indexer import NAMESPACE as COMMITMENT_NAMESPACE
from ark_wallet_core.lifecycle.indexer import CommitmentTimestampCache
from ark_wallet_core.lifecycle.schedule import best_market_hour
from ark_wallet_core.lifecycle.vtxo import renewal_candidates
from ark_wallet_core.limits.engine import LimitsEngine
from ark_wallet_core.reconciler.loop import ReconciliationLoop
from ark_wallet_core.reconciler.notifications import LoggingNotifier, Notifier
from ark_wallet_core.swaps.service import SwapService
from ark_wallet_core.wallet_logging import bind_wallet, get_logger, unbind_wallet

logger = get_logger(__name__)


class WalletSession:
    def __init__(
        self,
        settings: Settings,
        *,
        db: Database | None = None,
        server: ArkServerClient | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.settings = settings
        self.db = db or get_database(settings.db_path)
        self.server = server or ArkServerClient(
            settings.server_url,
            timeout_sec=settings.request_timeout_sec,
            max_retries=settings.max_retries,
        )
        self.notifier: Notifier = notifier or LoggingNotifier(settings.notifications_enabled)
        self.limits = LimitsEngine()
        self.server_info = ServerInfo.empty(settings.server_url)
        self.loop: ReconciliationLoop | None = None
        self.swaps: SwapService | None = None
        self._engine: WalletEngine | None = None

    def user_config(self) -> UserConfig:
        return load_user_config(self.db.config)

    def update_user_config(self, config: UserConfig) -> None:
        save_user_config(self.db.config, config)
        if isinstance(self.notifier, LoggingNotifier):
            self.notifier.enabled = config.notifications

    @property
    def is_locked(self) -> bool:
        return self._engine is None

    @property
    def wallet_state(self) -> WalletState:
        if self.loop is not None:
            return self.loop.wallet_state
        return self.db.wallet.get_wallet_state() or WalletState()

    async def connect(self) -> ServerInfo:
        """Fetch server info; an unreachable server leaves limits at their last-known values."""
        try:
            info = await self.server.get_info()
        except ServerUnreachable as e:
            logger.warning("session_server_unreachable", url=self.server.base_url, error=str(e))
            info = ServerInfo.empty(self.server.base_url, unreachable=True)
        self.apply_server_info(info)
        return info

    def apply_server_info(self, info: ServerInfo) -> None:
        self.server_info = info
        self.limits.apply_server_info(info)
        if self.loop is not None and not info.unreachable:
            self.loop.boarding_exit_delay_sec = info.boarding_exit_delay

    async def unlock(
        self,
        engine: WalletEngine,
        pubkey: str,
        *,
        swap_provider: SwapProvider | None = None,
    ) -> None:
        if not self.is_locked:
            await self.lock()
        bind_wallet(pubkey)
        state = self.db.wallet.get_wallet_state() or WalletState()
        state = replace(state, pubkey=pubkey, network=self.server_info.network or self.settings.network)
        self.db.wallet.save_wallet_state(state)

        self._engine = engine
        self.loop = ReconciliationLoop(
            engine,
            self.db,
            state,
            notifier=self.notifier,
            commitment_cache=CommitmentTimestampCache(self.db.namespace(COMMITMENT_NAMESPACE), self.server),
            boarding_exit_delay_sec=self.server_info.boarding_exit_delay,
            interval_sec=self.settings.reconcile_interval_sec,
            request_timeout_sec=self.settings.request_timeout_sec,
            renewal_percentage=self.settings.renewal_percentage,
        )
        if swap_provider is not None:
            await self._connect_swaps(swap_provider, engine)
        self.loop.start()
        logger.info("session_unlocked", network=state.network)

        try:
            await asyncio.wait_for(self.renew_coins(), timeout=self.settings.request_timeout_sec)
        except (asyncio.TimeoutError, Exception) as e:
            logger.warning("session_startup_renewal_failed", error=str(e) or type(e).__name__)

    async def _connect_swaps(self, provider: SwapProvider, engine: WalletEngine) -> None:
        self.swaps = SwapService(
            provider,
            self.db.swaps,
            engine,
            limits=self.limits,
            on_settled=self._on_swap_settled,
        )
        self.swaps.subscribe()
        try:
            await self.swaps.refresh_limits()
            await self.swaps.refresh_fees()
        except SwapProviderFailure as e:
            self.limits.disconnect_swaps()
            logger.warning("session_swap_provider_unavailable", error=str(e))

    async def _on_swap_settled(self) -> None:
        if self.loop is not None:
            self.loop.trigger()

    async def lock(self) -> None:
        if self.loop is not None:
            await self.loop.stop()
        self.loop = None
        self.swaps = None
        self._engine = None
        self.limits.disconnect_swaps()
        logger.info("session_locked")
        unbind_wallet()

    async def reset(self) -> None:
        await self.lock()
        self.db.clear_wallet()
        logger.info("session_reset")

    def _now_ms(self) -> int:
        return int(time.time() * MS_PER_SEC)

    async def renew_coins(self) -> str | None:
        """
        Settle coins that are about to expire plus orphans. Returns the
        commitment txid, or None when nothing needs renewing.
        """
        if self._engine is None:
            raise RuntimeError("wallet is locked")
        vtxos = self.db.wallet.get_vtxos(is_spent=False)
        candidates = renewal_candidates(vtxos, self.wallet_state.threshold_ms, self._now_ms())
        if not candidates:
            return None
        total = sum(v.value for v in candidates)
        if total < self.server_info.dust:
            logger.info("session_renewal_below_dust", candidates=len(candidates), value=total)
            return None
        txid = await self._engine.settle(candidates)
        logger.info("session_coins_renewed", count=len(candidates), value=total, txid=txid)
        self.notifier.vtxos_rolled_over()
        if self.loop is not None:
            self.loop.trigger()
        return txid

    async def settle_preconfirmed(self) -> str | None:
        """Settle preconfirmed coins into the next batch."""
        if self._engine is None:
            raise RuntimeError("wallet is locked")
        vtxos = self.db.wallet.get_vtxos(is_spent=False, state=VTXO_STATE_PRECONFIRMED)
        if not vtxos:
            return None
        txid = await self._engine.settle(vtxos)
        logger.info("session_preconfirmed_settled", count=len(vtxos), txid=txid)
        self.notifier.tx_settled()
        if self.loop is not None:
            self.loop.trigger()
        return txid

    def next_renewal_session(self) -> ScheduledSession | None:
        """Best scheduled settlement session before the next rollover deadline, if any."""
        deadline = self.wallet_state.next_rollover
        if not deadline:
            return None
        return best_market_hour(self.server_info.scheduled_session, deadline)
