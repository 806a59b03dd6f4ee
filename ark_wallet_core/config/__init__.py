"""
Configuration management for Ark Wallet Core.

Loads and validates settings from environment variables and an optional .env
file. Exposes a single source of truth for server URLs, timeouts and intervals.
User preferences that survive a wallet reset live in config.user_config.
"""

from ark_wallet_core.config.settings import Settings, get_settings
from ark_wallet_core.config.user_config import UserConfig, load_user_config, save_user_config

__all__ = ["Settings", "UserConfig", "get_settings", "load_user_config", "save_user_config"]
