"""
Wallet reconciliation: periodic polling loop, balance diff, notifications and
the wallet session that owns them.
"""

from ark_wallet_core.reconciler.diff import BalanceChange, diff_balance
from ark_wallet_core.reconciler.loop import LoopState, LoopStats, ReconciliationLoop, TickResult
from ark_wallet_core.reconciler.notifications import LoggingNotifier, Notifier
from ark_wallet_core.reconciler.session import WalletSession

__all__ = [
    "BalanceChange",
    "LoggingNotifier",
    "LoopState",
    "LoopStats",
    "Notifier",
    "ReconciliationLoop",
    "TickResult",
    "WalletSession",
    "diff_balance",
]
