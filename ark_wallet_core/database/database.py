"""
Local persistence layer: coins, transaction history, contracts, swaps, wallet state.

SQLite, one connection per operation, WAL journal. Each entity family is a
repository with get(filters) / save(rows) / delete(key) / clear(). Rows keep
their key and indexed columns in real columns and the full entity as a JSON
payload (see database.serialization). Multi-row writes run in one transaction
so a reader never observes a partially updated set.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence

from ark_wallet_core.core.exceptions import PersistenceFailure
from ark_wallet_core.database.models import (
    ArkTransaction,
    Contract,
    TxKey,
    Utxo,
    Vtxo,
    WalletState,
)
from ark_wallet_core.database.serialization import json_dumps, json_loads, load_as
from ark_wallet_core.swaps.models import SwapRecord, swap_from_dict, swap_to_dict
from ark_wallet_core.wallet_logging import get_logger

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Schema
# -----------------------------------------------------------------------------

SCHEMA_COINS = """
CREATE TABLE IF NOT EXISTS vtxos (
    address TEXT NOT NULL,
    txid TEXT NOT NULL,
    vout INTEGER NOT NULL,
    state TEXT NOT NULL,
    is_spent INTEGER NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (address, txid, vout)
);
CREATE INDEX IF NOT EXISTS ix_vtxos_state ON vtxos(state);
CREATE TABLE IF NOT EXISTS utxos (
    address TEXT NOT NULL,
    txid TEXT NOT NULL,
    vout INTEGER NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (address, txid, vout)
);
"""

SCHEMA_TRANSACTIONS = """
CREATE TABLE IF NOT EXISTS transactions (
    address TEXT NOT NULL,
    key_boarding_txid TEXT NOT NULL,
    key_commitment_txid TEXT NOT NULL,
    key_ark_txid TEXT NOT NULL,
    type TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (address, key_boarding_txid, key_commitment_txid, key_ark_txid)
);
CREATE INDEX IF NOT EXISTS ix_transactions_created_at ON transactions(created_at);
"""

SCHEMA_CONTRACTS = """
CREATE TABLE IF NOT EXISTS contracts (
    script TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    state TEXT NOT NULL,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_contracts_type ON contracts(type);
CREATE INDEX IF NOT EXISTS ix_contracts_state ON contracts(state);
"""

SCHEMA_SWAPS = """
CREATE TABLE IF NOT EXISTS swaps (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_swaps_type ON swaps(type);
CREATE INDEX IF NOT EXISTS ix_swaps_status ON swaps(status);
CREATE INDEX IF NOT EXISTS ix_swaps_created_at ON swaps(created_at);
"""

SCHEMA_STATE = """
CREATE TABLE IF NOT EXISTS wallet_state (
    key TEXT PRIMARY KEY,
    data TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS kv (
    namespace TEXT NOT NULL,
    key TEXT NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (namespace, key)
);
"""

WALLET_STATE_KEY = "state"
CONFIG_NAMESPACE = "config"


def _where(filters: dict[str, Any], columns: Iterable[str]) -> tuple[str, list[Any]]:
    """
    Build a conjunctive WHERE clause: scalar → equality, list/tuple/set → IN.

    None values are ignored; an empty collection matches nothing.
    """
    allowed = set(columns)
    conditions: list[str] = []
    params: list[Any] = []
    for column, value in filters.items():
        if value is None:
            continue
        if column not in allowed:
            raise ValueError(f"cannot filter on {column!r}")
        if isinstance(value, (list, tuple, set, frozenset)):
            values = list(value)
            if not values:
                conditions.append("0")
                continue
            conditions.append(f"{column} IN ({','.join('?' for _ in values)})")
            params.extend(values)
        else:
            conditions.append(f"{column} = ?")
            params.append(value)
    if not conditions:
        return "", params
    return " WHERE " + " AND ".join(conditions), params


# -----------------------------------------------------------------------------
# SQLite backend
# -----------------------------------------------------------------------------


class SQLiteBackend:
    """SQLite file; one connection per operation."""

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout_sec = timeout_sec

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._path), timeout=self._timeout_sec)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def cursor(self) -> Iterator[sqlite3.Cursor]:
        """Cursor inside one transaction: commit on success, rollback on error."""
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"cannot open {self._path}: {e}") from e
        try:
            cur = conn.cursor()
            yield cur
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceFailure(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self.cursor() as cur:
            for stmt in (SCHEMA_COINS, SCHEMA_TRANSACTIONS, SCHEMA_CONTRACTS, SCHEMA_SWAPS, SCHEMA_STATE):
                cur.executescript(stmt)


# -----------------------------------------------------------------------------
# Repositories
# -----------------------------------------------------------------------------


class WalletRepository:
    """VTXOs, boarding UTXOs, transaction history and the wallet state singleton."""

    VTXO_COLUMNS = ("address", "txid", "vout", "state", "is_spent")
    UTXO_COLUMNS = ("address", "txid", "vout")
    TX_COLUMNS = ("address", "type")

    def __init__(self, backend: SQLiteBackend) -> None:
        self._backend = backend

    # --- VTXOs ---

    @staticmethod
    def _insert_vtxos(cur: sqlite3.Cursor, vtxos: Sequence[Vtxo]) -> None:
        cur.executemany(
            "INSERT OR REPLACE INTO vtxos (address, txid, vout, state, is_spent, data) VALUES (?, ?, ?, ?, ?, ?)",
            [
                (v.address, v.txid, v.vout, v.virtual_status.state, int(v.is_spent), json_dumps(v))
                for v in vtxos
            ],
        )

    def get_vtxos(self, **filters: Any) -> list[Vtxo]:
        if "is_spent" in filters and isinstance(filters["is_spent"], bool):
            filters["is_spent"] = int(filters["is_spent"])
        where, params = _where(filters, self.VTXO_COLUMNS)
        with self._backend.cursor() as cur:
            cur.execute(f"SELECT data FROM vtxos{where} ORDER BY txid, vout", params)
            rows = cur.fetchall()
        return [load_as(r["data"], Vtxo.from_dict) for r in rows]

    def save_vtxos(self, vtxos: Vtxo | Sequence[Vtxo]) -> None:
        rows = [vtxos] if isinstance(vtxos, Vtxo) else list(vtxos)
        if not rows:
            return
        with self._backend.cursor() as cur:
            self._insert_vtxos(cur, rows)

    def replace_vtxos(self, vtxos: Sequence[Vtxo]) -> None:
        """Make the stored set exactly `vtxos` in a single transaction."""
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM vtxos")
            self._insert_vtxos(cur, vtxos)

    def delete_vtxo(self, address: str, txid: str, vout: int) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM vtxos WHERE address = ? AND txid = ? AND vout = ?", (address, txid, vout))

    def delete_vtxos(self, address: str) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM vtxos WHERE address = ?", (address,))

    def clear_vtxos(self) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM vtxos")

    # --- Boarding UTXOs ---

    @staticmethod
    def _insert_utxos(cur: sqlite3.Cursor, utxos: Sequence[Utxo]) -> None:
        cur.executemany(
            "INSERT OR REPLACE INTO utxos (address, txid, vout, data) VALUES (?, ?, ?, ?)",
            [(u.address, u.txid, u.vout, json_dumps(u)) for u in utxos],
        )

    def get_utxos(self, **filters: Any) -> list[Utxo]:
        where, params = _where(filters, self.UTXO_COLUMNS)
        with self._backend.cursor() as cur:
            cur.execute(f"SELECT data FROM utxos{where} ORDER BY txid, vout", params)
            rows = cur.fetchall()
        return [load_as(r["data"], Utxo.from_dict) for r in rows]

    def save_utxos(self, utxos: Utxo | Sequence[Utxo]) -> None:
        rows = [utxos] if isinstance(utxos, Utxo) else list(utxos)
        if not rows:
            return
        with self._backend.cursor() as cur:
            self._insert_utxos(cur, rows)

    def replace_utxos(self, utxos: Sequence[Utxo]) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM utxos")
            self._insert_utxos(cur, utxos)

    def delete_utxo(self, address: str, txid: str, vout: int) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM utxos WHERE address = ? AND txid = ? AND vout = ?", (address, txid, vout))

    def clear_utxos(self) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM utxos")

    # --- Transaction history ---

    @staticmethod
    def _insert_transactions(cur: sqlite3.Cursor, txs: Sequence[ArkTransaction]) -> None:
        cur.executemany(
            """
            INSERT OR REPLACE INTO transactions
                (address, key_boarding_txid, key_commitment_txid, key_ark_txid, type, created_at, data)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    tx.address,
                    tx.key.boarding_txid,
                    tx.key.commitment_txid,
                    tx.key.ark_txid,
                    tx.type,
                    tx.created_at,
                    json_dumps(tx),
                )
                for tx in txs
            ],
        )

    def get_transactions(self, **filters: Any) -> list[ArkTransaction]:
        """History, oldest first."""
        where, params = _where(filters, self.TX_COLUMNS)
        with self._backend.cursor() as cur:
            cur.execute(f"SELECT data FROM transactions{where} ORDER BY created_at ASC", params)
            rows = cur.fetchall()
        return [load_as(r["data"], ArkTransaction.from_dict) for r in rows]

    def save_transactions(self, txs: ArkTransaction | Sequence[ArkTransaction]) -> None:
        rows = [txs] if isinstance(txs, ArkTransaction) else list(txs)
        if not rows:
            return
        with self._backend.cursor() as cur:
            self._insert_transactions(cur, rows)

    def replace_transactions(self, txs: Sequence[ArkTransaction]) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM transactions")
            self._insert_transactions(cur, txs)

    def delete_transaction(self, address: str, key: TxKey) -> None:
        with self._backend.cursor() as cur:
            cur.execute(
                """
                DELETE FROM transactions
                WHERE address = ? AND key_boarding_txid = ? AND key_commitment_txid = ? AND key_ark_txid = ?
                """,
                (address, key.boarding_txid, key.commitment_txid, key.ark_txid),
            )

    def delete_transactions(self, address: str) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM transactions WHERE address = ?", (address,))

    def clear_transactions(self) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM transactions")

    # --- Snapshot ---

    def save_snapshot(
        self,
        vtxos: Sequence[Vtxo],
        utxos: Sequence[Utxo],
        txs: Sequence[ArkTransaction],
        state: WalletState,
    ) -> None:
        """Replace coins and history and write wallet state, all in one transaction."""
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM vtxos")
            self._insert_vtxos(cur, vtxos)
            cur.execute("DELETE FROM utxos")
            self._insert_utxos(cur, utxos)
            cur.execute("DELETE FROM transactions")
            self._insert_transactions(cur, txs)
            cur.execute(
                "INSERT OR REPLACE INTO wallet_state (key, data) VALUES (?, ?)",
                (WALLET_STATE_KEY, json_dumps(state)),
            )

    # --- Wallet state ---

    def get_wallet_state(self) -> WalletState | None:
        with self._backend.cursor() as cur:
            cur.execute("SELECT data FROM wallet_state WHERE key = ?", (WALLET_STATE_KEY,))
            row = cur.fetchone()
        if row is None:
            return None
        return load_as(row["data"], WalletState.from_dict)

    def save_wallet_state(self, state: WalletState) -> None:
        with self._backend.cursor() as cur:
            cur.execute(
                "INSERT OR REPLACE INTO wallet_state (key, data) VALUES (?, ?)",
                (WALLET_STATE_KEY, json_dumps(state)),
            )

    def clear(self) -> None:
        with self._backend.cursor() as cur:
            for table in ("vtxos", "utxos", "transactions", "wallet_state"):
                cur.execute(f"DELETE FROM {table}")


class ContractRepository:
    COLUMNS = ("script", "type", "state")

    def __init__(self, backend: SQLiteBackend) -> None:
        self._backend = backend

    def get_contracts(self, **filters: Any) -> list[Contract]:
        where, params = _where(filters, self.COLUMNS)
        with self._backend.cursor() as cur:
            cur.execute(f"SELECT data FROM contracts{where} ORDER BY script", params)
            rows = cur.fetchall()
        return [load_as(r["data"], Contract.from_dict) for r in rows]

    def save_contracts(self, contracts: Contract | Sequence[Contract]) -> None:
        rows = [contracts] if isinstance(contracts, Contract) else list(contracts)
        if not rows:
            return
        with self._backend.cursor() as cur:
            cur.executemany(
                "INSERT OR REPLACE INTO contracts (script, type, state, data) VALUES (?, ?, ?, ?)",
                [(c.script, c.type, c.state, json_dumps(c)) for c in rows],
            )

    def delete_contract(self, script: str) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM contracts WHERE script = ?", (script,))

    def clear(self) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM contracts")


class SwapRepository:
    COLUMNS = ("id", "type", "status")

    def __init__(self, backend: SQLiteBackend) -> None:
        self._backend = backend

    def get_swaps(
        self,
        *,
        order_by: str | None = None,
        order_direction: str = "desc",
        **filters: Any,
    ) -> list[SwapRecord]:
        where, params = _where(filters, self.COLUMNS)
        order = ""
        if order_by is not None:
            if order_by != "created_at":
                raise ValueError(f"cannot order swaps by {order_by!r}")
            order = f" ORDER BY created_at {'ASC' if order_direction == 'asc' else 'DESC'}, id"
        with self._backend.cursor() as cur:
            cur.execute(f"SELECT data FROM swaps{where}{order}", params)
            rows = cur.fetchall()
        return [load_as(r["data"], swap_from_dict) for r in rows]

    def get_swap(self, swap_id: str) -> SwapRecord | None:
        found = self.get_swaps(id=swap_id)
        return found[0] if found else None

    def save_swaps(self, swaps: SwapRecord | Sequence[SwapRecord]) -> None:
        rows = list(swaps) if isinstance(swaps, (list, tuple)) else [swaps]
        if not rows:
            return
        with self._backend.cursor() as cur:
            cur.executemany(
                "INSERT OR REPLACE INTO swaps (id, type, status, created_at, data) VALUES (?, ?, ?, ?, ?)",
                [(s.id, s.type, s.status, s.created_at, json_dumps(swap_to_dict(s))) for s in rows],
            )

    def delete_swap(self, swap_id: str) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM swaps WHERE id = ?", (swap_id,))

    def clear(self) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM swaps")


class KeyValueStore:
    """Namespaced JSON key-value rows (user configuration, lookup caches)."""

    def __init__(self, backend: SQLiteBackend, namespace: str) -> None:
        self._backend = backend
        self._namespace = namespace

    def get(self, key: str, default: Any = None) -> Any:
        with self._backend.cursor() as cur:
            cur.execute("SELECT data FROM kv WHERE namespace = ? AND key = ?", (self._namespace, key))
            row = cur.fetchone()
        return default if row is None else json_loads(row["data"])

    def set(self, key: str, value: Any) -> None:
        with self._backend.cursor() as cur:
            cur.execute(
                "INSERT OR REPLACE INTO kv (namespace, key, data) VALUES (?, ?, ?)",
                (self._namespace, key, json_dumps(value)),
            )

    def items(self) -> dict[str, Any]:
        with self._backend.cursor() as cur:
            cur.execute("SELECT key, data FROM kv WHERE namespace = ?", (self._namespace,))
            return {r["key"]: json_loads(r["data"]) for r in cur.fetchall()}

    def clear(self) -> None:
        with self._backend.cursor() as cur:
            cur.execute("DELETE FROM kv WHERE namespace = ?", (self._namespace,))


# -----------------------------------------------------------------------------
# Database facade
# -----------------------------------------------------------------------------


class Database:
    """One wallet's store: repositories sharing a backend."""

    def __init__(self, backend: SQLiteBackend) -> None:
        self._backend = backend
        self.wallet = WalletRepository(backend)
        self.contracts = ContractRepository(backend)
        self.swaps = SwapRepository(backend)
        self.config = KeyValueStore(backend, CONFIG_NAMESPACE)

    @property
    def path(self) -> Path:
        return self._backend.path

    def ensure_schema(self) -> None:
        self._backend.ensure_schema()

    def namespace(self, name: str) -> KeyValueStore:
        if name == CONFIG_NAMESPACE:
            return self.config
        return KeyValueStore(self._backend, name)

    def clear_wallet(self) -> None:
        """Wallet reset: drop everything except the user configuration."""
        with self._backend.cursor() as cur:
            for table in ("vtxos", "utxos", "transactions", "wallet_state", "contracts", "swaps"):
                cur.execute(f"DELETE FROM {table}")
            cur.execute("DELETE FROM kv WHERE namespace != ?", (CONFIG_NAMESPACE,))
        logger.info("database_wallet_cleared", path=str(self._backend.path))


def get_database(path: str | Path | None = None) -> Database:
    """
    Return a Database for the given SQLite file, schema ensured.

    path: default "ark-wallet.db" in cwd.
    """
    if path is None:
        path = Path("ark-wallet.db")
    db = Database(SQLiteBackend(path))
    db.ensure_schema()
    return db
