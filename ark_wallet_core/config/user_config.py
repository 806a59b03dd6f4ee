"""
User preferences stored in the database "config" namespace.

Unlike wallet data, these survive a wallet reset.
"""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

USER_CONFIG_KEY = "user_config"


class _Store(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


def normalize_server_url(url: str) -> str:
    """Add a scheme when missing: http for localhost, https otherwise."""
    url = url.strip()
    if not url or url.startswith(("http://", "https://")):
        return url
    scheme = "http://" if url.startswith("localhost") else "https://"
    return scheme + url


class UserConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    server_url: str = ""
    pubkey: str = ""
    notifications: bool = False
    show_balance: bool = True
    swaps_connected: bool = True
    unit: str = "btc"
    fiat: str = "USD"
    announcements_seen: list[str] = Field(default_factory=list)

    @field_validator("server_url", mode="before")
    @classmethod
    def _normalize_url(cls, v: Any) -> str:
        return normalize_server_url(str(v or ""))


def load_user_config(store: _Store) -> UserConfig:
    data = store.get(USER_CONFIG_KEY)
    if not isinstance(data, dict):
        return UserConfig()
    return UserConfig.model_validate(data)


def save_user_config(store: _Store, config: UserConfig) -> None:
    store.set(USER_CONFIG_KEY, config.model_dump())
