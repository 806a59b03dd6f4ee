"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and .env files.
- Provide defaults for optional values (intervals, timeouts, retry counts).
- Expose a typed, immutable Settings object used by the session, the
  reconciliation loop and the HTTP client.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ark_wallet_core.config.env import (
    env_flag,
    env_float,
    env_int,
    get_boltz_api_url,
    get_db_path,
    get_network,
    get_server_url,
    load_wallet_env,
)

DEFAULT_RECONCILE_INTERVAL_SEC = 10.0
DEFAULT_REQUEST_TIMEOUT_SEC = 15.0
DEFAULT_MAX_RETRIES = 3
# Renewal threshold as a percentage of the observed batch lifetime
DEFAULT_RENEWAL_PERCENTAGE = 10


@dataclass(frozen=True)
class Settings:
    """Typed settings for one wallet process."""

    network: str
    server_url: str
    boltz_api_url: str | None
    db_path: Path
    reconcile_interval_sec: float = DEFAULT_RECONCILE_INTERVAL_SEC
    request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC
    max_retries: int = DEFAULT_MAX_RETRIES
    renewal_percentage: int = DEFAULT_RENEWAL_PERCENTAGE
    notifications_enabled: bool = True


def get_settings() -> Settings:
    """
    Return the current application settings.

    Env overrides: ARK_RECONCILE_INTERVAL_SEC, ARK_REQUEST_TIMEOUT_SEC,
    ARK_MAX_RETRIES, ARK_RENEWAL_PERCENTAGE, ARK_NOTIFICATIONS.
    """
    load_wallet_env()
    percentage = env_int("ARK_RENEWAL_PERCENTAGE", DEFAULT_RENEWAL_PERCENTAGE)
    return Settings(
        network=get_network(),
        server_url=get_server_url(),
        boltz_api_url=get_boltz_api_url(),
        db_path=get_db_path(),
        reconcile_interval_sec=env_float("ARK_RECONCILE_INTERVAL_SEC", DEFAULT_RECONCILE_INTERVAL_SEC),
        request_timeout_sec=env_float("ARK_REQUEST_TIMEOUT_SEC", DEFAULT_REQUEST_TIMEOUT_SEC),
        max_retries=max(1, env_int("ARK_MAX_RETRIES", DEFAULT_MAX_RETRIES)),
        renewal_percentage=min(percentage, 100),
        notifications_enabled=env_flag("ARK_NOTIFICATIONS", True),
    )
