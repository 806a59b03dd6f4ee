"""
User notifications raised by the wallet core.

Delivery (system notification, toast) belongs to the host application, which
passes its own Notifier. LoggingNotifier is the default: it records each
notification as a structured log line.
"""

from __future__ import annotations

from typing import Protocol

from ark_wallet_core.wallet_logging import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    def payment_received(self, sats: int) -> None: ...

    def payment_sent(self, sats: int) -> None: ...

    def tx_settled(self) -> None: ...

    def vtxos_rolled_over(self) -> None: ...


def _pretty(sats: int) -> str:
    return f"{sats:,}"


class LoggingNotifier:
    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def _send(self, title: str, body: str) -> None:
        if not self.enabled:
            return
        logger.info("notification_sent", title=title, body=body)

    def payment_received(self, sats: int) -> None:
        self._send("Payment received", f"You received {_pretty(sats)} sats")

    def payment_sent(self, sats: int) -> None:
        self._send("Payment sent", f"You sent {_pretty(sats)} sats")

    def tx_settled(self) -> None:
        self._send("Transactions settled", "All preconfirmed transactions were settled")

    def vtxos_rolled_over(self) -> None:
        self._send("Vtxos rolled over", "All VTXOs were rolled over")
