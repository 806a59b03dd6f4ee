"""
Structured logging for Ark Wallet Core.

JSON logs with timestamp, event_type and wallet context.
Use get_logger() in all modules; recent lines are kept in memory for diagnostics.
"""

from ark_wallet_core.wallet_logging.logger import (
    bind_wallet,
    clear_recent_logs,
    get_logger,
    get_recent_logs,
    unbind_wallet,
)

__all__ = ["bind_wallet", "clear_recent_logs", "get_logger", "get_recent_logs", "unbind_wallet"]
