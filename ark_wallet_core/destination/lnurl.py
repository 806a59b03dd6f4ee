"""
LNURL-pay resolution for pay handles.

The classifier only recognizes a pay handle; the routing caller resolves the
sendable range and requests an invoice here once the user picked an amount.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import httpx

from ark_wallet_core.core.exceptions import WalletCoreError
from ark_wallet_core.destination.models import PayHandleTarget
from ark_wallet_core.wallet_logging import get_logger

logger = get_logger(__name__)

LNURL_TIMEOUT_SEC = 15.0


class PayHandleError(WalletCoreError):
    """The LNURL service was unreachable or answered with an error."""


@dataclass(frozen=True)
class PayConditions:
    callback: str
    min_sats: int
    max_sats: int
    metadata: str = ""

    @property
    def fixed_amount(self) -> int | None:
        """Amount the service forces when min equals max."""
        return self.min_sats if self.min_sats == self.max_sats else None

    def accepts(self, sats: int) -> bool:
        return self.min_sats <= sats <= self.max_sats


async def _get_json(client: httpx.AsyncClient, url: str, params: dict | None = None) -> dict:
    try:
        resp = await client.get(url, params=params, timeout=LNURL_TIMEOUT_SEC)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        raise PayHandleError(f"request to {url} failed: {e}") from e
    if not isinstance(data, dict):
        raise PayHandleError("unexpected LNURL response")
    if str(data.get("status", "")).upper() == "ERROR":
        raise PayHandleError(str(data.get("reason") or "LNURL service error"))
    return data


async def fetch_pay_conditions(client: httpx.AsyncClient, target: PayHandleTarget) -> PayConditions:
    """Fetch the pay request; msat bounds become sats (min rounded up, max down)."""
    data = await _get_json(client, target.url)
    try:
        min_sendable = int(data["minSendable"])
        max_sendable = int(data["maxSendable"])
        callback = str(data["callback"])
    except (KeyError, TypeError, ValueError) as e:
        raise PayHandleError(f"incomplete pay request: {e}") from e
    conditions = PayConditions(
        callback=callback,
        min_sats=math.ceil(min_sendable / 1000),
        max_sats=math.floor(max_sendable / 1000),
        metadata=str(data.get("metadata") or ""),
    )
    logger.debug(
        "lnurl_conditions_loaded",
        handle=target.handle,
        min_sats=conditions.min_sats,
        max_sats=conditions.max_sats,
    )
    return conditions


async def fetch_invoice(client: httpx.AsyncClient, conditions: PayConditions, sats: int) -> str:
    """Ask the callback for an invoice of exactly sats."""
    if not conditions.accepts(sats):
        raise PayHandleError(
            f"amount {sats} outside [{conditions.min_sats}, {conditions.max_sats}]"
        )
    data = await _get_json(client, conditions.callback, params={"amount": sats * 1000})
    invoice = data.get("pr")
    if not invoice:
        raise PayHandleError("LNURL callback returned no invoice")
    return str(invoice)
