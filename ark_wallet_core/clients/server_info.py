"""
Ark server info and indexer client.

Responsibilities:
- Fetch server configuration (network, dust, per-venue limits, boarding exit
  delay, intent fees, scheduled settlement session) over HTTP.
- Look up commitment transaction finalize times for batch lifetime estimates.
- Bound every request with a timeout and retry with exponential backoff.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ark_wallet_core.core.exceptions import ServerUnreachable
from ark_wallet_core.wallet_logging import get_logger

logger = get_logger(__name__)

INFO_PATH = "/v1/info"
COMMITMENT_TX_PATH = "/v1/indexer/commitmentTx/{txid}"


def _lenient_int(value: Any) -> int:
    """Numbers may arrive as strings or as fee expressions; non-numeric → 0."""
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0


class IntentFees(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    offchain_input: int = Field(0, alias="offchainInput")
    offchain_output: int = Field(0, alias="offchainOutput")
    onchain_input: int = Field(0, alias="onchainInput")
    onchain_output: int = Field(0, alias="onchainOutput")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> int:
        return _lenient_int(v)


class ServerFees(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    intent_fee: IntentFees = Field(default_factory=IntentFees, alias="intentFee")
    tx_fee_rate: str | None = Field(None, alias="txFeeRate")


class ScheduledSession(BaseModel):
    """Recurring settlement window; times in epoch seconds, durations in seconds."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    next_start_time: int = Field(alias="nextStartTime")
    next_end_time: int = Field(alias="nextEndTime")
    period: int
    duration: int


class ServerInfo(BaseModel):
    """Subset of the Ark server's /v1/info response used by the wallet core."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str = ""
    network: str = ""
    signer_pubkey: str = Field("", alias="signerPubkey")
    dust: int = 0
    boarding_exit_delay: int = Field(0, alias="boardingExitDelay")
    unilateral_exit_delay: int = Field(0, alias="unilateralExitDelay")
    utxo_min_amount: int | None = Field(None, alias="utxoMinAmount")
    utxo_max_amount: int | None = Field(None, alias="utxoMaxAmount")
    vtxo_min_amount: int | None = Field(None, alias="vtxoMinAmount")
    vtxo_max_amount: int | None = Field(None, alias="vtxoMaxAmount")
    fees: ServerFees = Field(default_factory=ServerFees)
    scheduled_session: ScheduledSession | None = Field(None, alias="scheduledSession")
    unreachable: bool = False

    @field_validator("dust", "boarding_exit_delay", "unilateral_exit_delay", mode="before")
    @classmethod
    def _coerce_int(cls, v: Any) -> int:
        return _lenient_int(v)

    @field_validator(
        "utxo_min_amount", "utxo_max_amount", "vtxo_min_amount", "vtxo_max_amount", mode="before"
    )
    @classmethod
    def _coerce_limit(cls, v: Any) -> int | None:
        if v is None or v == "":
            return None
        return _lenient_int(v)

    @classmethod
    def empty(cls, url: str = "", unreachable: bool = False) -> "ServerInfo":
        return cls(url=url, unreachable=unreachable)


class ArkServerClient:
    """
    HTTP client for the Ark server info and indexer endpoints.

    Each request is bounded by timeout_sec; failures are retried up to
    max_retries times with exponential backoff before ServerUnreachable is raised.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_sec: float = 15.0,
        max_retries: int = 3,
        min_retry_delay_sec: float = 1.0,
        max_retry_delay_sec: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url must be non-empty")
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._base_url = base_url.strip().rstrip("/")
        self._timeout_sec = timeout_sec
        self._max_retries = max_retries
        self._min_retry_delay = min_retry_delay_sec
        self._max_retry_delay = max_retry_delay_sec
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_json(self, path: str) -> dict[str, Any]:
        delay = self._min_retry_delay
        last_error: Exception | None = None
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout_sec),
            transport=self._transport,
        ) as client:
            for attempt in range(self._max_retries):
                try:
                    resp = await client.get(path)
                    resp.raise_for_status()
                    data = resp.json()
                    if not isinstance(data, dict):
                        raise ValueError("expected a JSON object")
                    return data
                except (httpx.HTTPError, ValueError) as e:
                    last_error = e
                    logger.warning(
                        "server_request_retry",
                        path=path,
                        attempt=attempt + 1,
                        max_retries=self._max_retries,
                        error=str(e),
                    )
                    if attempt + 1 < self._max_retries:
                        await asyncio.sleep(delay)
                        delay = min(delay * 2, self._max_retry_delay)
        logger.error("server_request_give_up", path=path, error=str(last_error))
        raise ServerUnreachable(f"{self._base_url}{path}: {last_error}")

    async def get_info(self) -> ServerInfo:
        data = await self._get_json(INFO_PATH)
        info = ServerInfo.model_validate({**data, "url": self._base_url})
        logger.info(
            "server_info_loaded",
            network=info.network,
            dust=info.dust,
            boarding_exit_delay=info.boarding_exit_delay,
        )
        return info

    async def get_commitment_tx_ended_at(self, txid: str) -> int | None:
        """Finalize time (epoch seconds) of a commitment transaction; None if not finalized."""
        data = await self._get_json(COMMITMENT_TX_PATH.format(txid=txid))
        ended_at = _lenient_int(data.get("endedAt"))
        return ended_at or None
