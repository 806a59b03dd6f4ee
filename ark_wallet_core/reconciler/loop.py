"""
Wallet reconciliation loop: periodic refresh of coins, balance and history.

States: IDLE → POLLING → IDLE. start() runs one tick immediately and then one
every interval_sec until stop(). trigger() wakes the loop for an ad hoc tick;
reload() runs a tick and waits for it.

Tick: fetch VTXOs, boarding UTXOs, balance and history from the wallet engine
(each bounded by request_timeout_sec); diff the balance against the last one
seen; persist the snapshot together with the recomputed rollover deadline and
renewal threshold; notify on an incoming payment; log orphan coins. Any failure
abandons the tick (logged, counted) and the loop keeps running. Ticks are
serialized by a lock; a tick that started before stop() has its results
discarded.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from ark_wallet_core.clients.protocols import WalletEngine
from ark_wallet_core.core.constants import MS_PER_SEC
from ark_wallet_core.core.exceptions import ReconciliationTickFailure
from ark_wallet_core.database.database import Database
from ark_wallet_core.database.models import ArkTransaction, Utxo, Vtxo, WalletState
from ark_wallet_core.lifecycle.indexer import CommitmentTimestampCache
from ark_wallet_core.lifecycle.vtxo import (
    DEFAULT_RENEWAL_PERCENTAGE,
    compute_next_rollover,
    compute_renewal_threshold,
    find_orphans,
    observe_batch_lifetime,
)
from ark_wallet_core.reconciler.diff import BalanceChange, diff_balance
from ark_wallet_core.reconciler.notifications import LoggingNotifier, Notifier
from ark_wallet_core.wallet_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_INTERVAL_SEC = 10.0
DEFAULT_REQUEST_TIMEOUT_SEC = 15.0


class LoopState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"


@dataclass
class LoopStats:
    """Counters for monitoring."""

    tick_count: int = 0
    error_count: int = 0
    discarded_count: int = 0
    last_error: str | None = None
    last_tick_at: float | None = None


@dataclass
class TickResult:
    vtxos: list[Vtxo]
    utxos: list[Utxo]
    balance: int
    transactions: list[ArkTransaction]
    change: BalanceChange
    wallet_state: WalletState
    orphans: list[Vtxo] = field(default_factory=list)


class ReconciliationLoop:
    def __init__(
        self,
        engine: WalletEngine,
        db: Database,
        wallet_state: WalletState,
        *,
        notifier: Notifier | None = None,
        commitment_cache: CommitmentTimestampCache | None = None,
        boarding_exit_delay_sec: int = 0,
        interval_sec: float = DEFAULT_INTERVAL_SEC,
        request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC,
        renewal_percentage: int = DEFAULT_RENEWAL_PERCENTAGE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self._engine = engine
        self._db = db
        self._wallet_state = wallet_state
        self._notifier: Notifier = notifier or LoggingNotifier()
        self._cache = commitment_cache
        self.boarding_exit_delay_sec = boarding_exit_delay_sec
        self._interval_sec = interval_sec
        self._timeout_sec = request_timeout_sec
        self._renewal_percentage = renewal_percentage
        self._clock = clock

        self._state = LoopState.IDLE
        self._lock = asyncio.Lock()
        self._generation = 0
        self._stop = asyncio.Event()
        self._wake = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._last_result: TickResult | None = None
        self.stats = LoopStats()

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def wallet_state(self) -> WalletState:
        return self._wallet_state

    @property
    def last_result(self) -> TickResult | None:
        return self._last_result

    # --- Lifecycle ---

    def start(self) -> None:
        """Start polling: one tick now, then every interval. No-op if already running."""
        if self.running:
            return
        self._stop = asyncio.Event()
        self._wake = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._generation))
        logger.info("reconcile_loop_started", interval_sec=self._interval_sec)

    async def stop(self) -> None:
        """Stop polling; an in-flight tick is cancelled and its results discarded."""
        self._generation += 1
        self._stop.set()
        self._wake.set()
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._state = LoopState.IDLE
        logger.info("reconcile_loop_stopped", ticks=self.stats.tick_count, errors=self.stats.error_count)

    def trigger(self) -> None:
        """Ask for an ad hoc tick (swap settled, manual refresh)."""
        if self.running:
            self._wake.set()
        else:
            logger.debug("reconcile_trigger_ignored", reason="loop not running")

    async def reload(self) -> TickResult | None:
        """Run one tick now and wait for it. Returns None if it failed or was discarded."""
        return await self._tick(self._generation)

    async def _run(self, generation: int) -> None:
        while not self._stop.is_set():
            await self._tick(generation)
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self._interval_sec)
            except asyncio.TimeoutError:
                pass
            self._wake.clear()

    # --- Tick ---

    async def _step(self, step: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await asyncio.wait_for(call(), timeout=self._timeout_sec)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise ReconciliationTickFailure(step, e) from e

    async def _tick(self, generation: int) -> TickResult | None:
        async with self._lock:
            if generation != self._generation:
                return None
            self._state = LoopState.POLLING
            try:
                result = await self._poll(generation)
            except ReconciliationTickFailure as e:
                self._record_error(e)
                logger.warning("reconcile_tick_failed", step=e.step, error=str(e.cause))
                return None
            except Exception as e:
                self._record_error(e)
                logger.exception("reconcile_tick_error", error=str(e))
                return None
            finally:
                self._state = LoopState.IDLE
            if result is None:
                self.stats.discarded_count += 1
                logger.info("reconcile_tick_discarded")
                return None
            self.stats.tick_count += 1
            self.stats.last_tick_at = self._clock()
            self._last_result = result
            return result

    async def _observe_lifetime(self, vtxos: list[Vtxo]) -> int:
        """Batch lifetime for the renewal threshold; a failed or slow lookup gives 0."""
        if self._cache is None:
            return 0
        try:
            return await asyncio.wait_for(
                observe_batch_lifetime(vtxos, self._cache), timeout=self._timeout_sec
            )
        except asyncio.CancelledError:
            raise
        except (asyncio.TimeoutError, Exception) as e:
            logger.warning("reconcile_batch_lifetime_unavailable", error=str(e) or type(e).__name__)
            return 0

    def _record_error(self, error: BaseException) -> None:
        self.stats.error_count += 1
        self.stats.last_error = str(error)

    async def _poll(self, generation: int) -> TickResult | None:
        vtxos = await self._step("vtxos", self._engine.get_vtxos)
        utxos = await self._step("boarding_utxos", self._engine.get_boarding_utxos)
        balance = await self._step("balance", self._engine.get_balance)
        txs = await self._step("history", self._engine.get_tx_history)

        lifetime_ms = await self._observe_lifetime(vtxos)
        if generation != self._generation:
            return None

        now = self._clock()
        now_ms = int(now * MS_PER_SEC)
        spendable = [v for v in vtxos if not v.is_spent]
        change = diff_balance(self._wallet_state.last_balance, balance)
        state = replace(
            self._wallet_state,
            next_rollover=compute_next_rollover(
                spendable, utxos, self.boarding_exit_delay_sec, now_sec=int(now)
            ),
            threshold_ms=compute_renewal_threshold(lifetime_ms, self._renewal_percentage),
            last_balance=balance,
            last_sync_ms=now_ms,
        )
        try:
            self._db.wallet.save_snapshot(vtxos, utxos, txs, state)
        except Exception as e:
            raise ReconciliationTickFailure("persist", e) from e
        self._wallet_state = state

        if change.increased:
            self._notify("payment_received", change.delta)
        orphans = find_orphans(spendable, now_ms)
        if orphans:
            logger.warning(
                "reconcile_orphan_vtxos",
                count=len(orphans),
                value=sum(v.value for v in orphans),
            )
        logger.debug(
            "reconcile_tick_done",
            vtxos=len(vtxos),
            utxos=len(utxos),
            balance=balance,
            next_rollover=state.next_rollover,
            threshold_ms=state.threshold_ms,
        )
        return TickResult(
            vtxos=vtxos,
            utxos=utxos,
            balance=balance,
            transactions=txs,
            change=change,
            wallet_state=state,
            orphans=orphans,
        )

    def _notify(self, kind: str, *args: Any) -> None:
        try:
            getattr(self._notifier, kind)(*args)
        except Exception as e:
            logger.warning("notification_failed", kind=kind, error=str(e))
