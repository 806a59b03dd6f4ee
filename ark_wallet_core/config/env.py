"""
Environment variable loading and validation for Ark Wallet Core.

- ARK_NETWORK: bitcoin | mutinynet | signet | regtest | testnet (default: regtest)
- ARK_SERVER_URL: Ark server endpoint (default depends on network)
- BOLTZ_API_URL: swap provider endpoint (default depends on network; none on testnet)
- ARK_WALLET_DB_PATH: SQLite file for the wallet (default: ark-wallet.db in project root)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is ark_wallet_core/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

NETWORKS = ("bitcoin", "mutinynet", "signet", "regtest", "testnet")
DEFAULT_NETWORK = "regtest"

DEV_SERVER_URL = "http://localhost:7070"
TEST_SERVER_URL = "https://arkade.computer"
MAIN_SERVER_URL = "https://arkade.computer"

# Swap provider per network; testnet has no public instance
BOLTZ_API_URLS: dict[str, str | None] = {
    "bitcoin": "https://api.ark.boltz.exchange",
    "mutinynet": "https://api.boltz.mutinynet.arkade.sh",
    "signet": "https://boltz.signet.arkade.sh",
    "regtest": "http://localhost:9069",
    "testnet": None,
}


def load_wallet_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    load_dotenv(_ENV_PATH)


def get_network() -> str:
    """
    Return ARK_NETWORK from env.
    Unknown values fall back to regtest.
    """
    load_wallet_env()
    raw = (os.getenv("ARK_NETWORK") or DEFAULT_NETWORK).strip().lower()
    if raw == "mainnet":
        return "bitcoin"
    return raw if raw in NETWORKS else DEFAULT_NETWORK


def get_server_url() -> str:
    """
    Resolve the Ark server URL.
    Order: ARK_SERVER_URL > network default (regtest → local dev server).
    """
    load_wallet_env()
    url = (os.getenv("ARK_SERVER_URL") or "").strip()
    if url:
        return url.rstrip("/")
    network = get_network()
    if network == "bitcoin":
        return MAIN_SERVER_URL
    if network == "regtest":
        return DEV_SERVER_URL
    return TEST_SERVER_URL


def get_boltz_api_url() -> str | None:
    """Return BOLTZ_API_URL from env, or the default for the current network (may be None)."""
    load_wallet_env()
    url = (os.getenv("BOLTZ_API_URL") or "").strip()
    if url:
        return url.rstrip("/")
    return BOLTZ_API_URLS.get(get_network())


def get_db_path() -> Path:
    """Return ARK_WALLET_DB_PATH, defaulting to ark-wallet.db in the project root."""
    load_wallet_env()
    raw = (os.getenv("ARK_WALLET_DB_PATH") or "").strip()
    return Path(raw) if raw else _ROOT / "ark-wallet.db"


def env_float(name: str, default: float) -> float:
    """Read a positive float from env; invalid or non-positive values give the default."""
    raw = (os.getenv(name) or "").strip()
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def env_int(name: str, default: int) -> int:
    """Read a non-negative int from env; invalid values give the default."""
    raw = (os.getenv(name) or "").strip()
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def env_flag(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")
