"""
Database layer for Ark Wallet Core.

SQLite storage for coins, transaction history, contracts, swaps, wallet state
and namespaced key-value rows. Use get_database() to obtain a Database.
"""

from ark_wallet_core.database.database import (
    ContractRepository,
    Database,
    KeyValueStore,
    SQLiteBackend,
    SwapRepository,
    WalletRepository,
    get_database,
)
from ark_wallet_core.database.models import (
    ArkTransaction,
    CoinKey,
    Contract,
    RelativeTimelock,
    TxKey,
    Utxo,
    UtxoStatus,
    VirtualStatus,
    Vtxo,
    WalletState,
)

__all__ = [
    "ArkTransaction",
    "CoinKey",
    "Contract",
    "ContractRepository",
    "Database",
    "KeyValueStore",
    "RelativeTimelock",
    "SQLiteBackend",
    "SwapRepository",
    "TxKey",
    "Utxo",
    "UtxoStatus",
    "VirtualStatus",
    "Vtxo",
    "WalletRepository",
    "WalletState",
    "get_database",
]
