"""
JSON serialization helpers for SQLite payload columns.

bytes are stored as {"__t": "bytes", "d": "<hex>"} and datetimes as
{"__t": "datetime", "d": <epoch ms>}. Both round-trip exactly for timezone-aware
datetimes with millisecond precision (naive datetimes are read back as UTC).
"""

from __future__ import annotations

import dataclasses
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, TypeVar

T = TypeVar("T")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // _ONE_MS


def ms_to_datetime(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=ms)


def _default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return {"__t": "bytes", "d": bytes(value).hex()}
    if isinstance(value, datetime):
        return {"__t": "datetime", "d": datetime_to_ms(value)}
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _revive(obj: dict[str, Any]) -> Any:
    tag = obj.get("__t")
    if tag == "bytes" and isinstance(obj.get("d"), str):
        return bytes.fromhex(obj["d"])
    if tag == "datetime" and isinstance(obj.get("d"), int):
        return ms_to_datetime(obj["d"])
    return obj


def json_dumps(value: Any) -> str:
    """Serialize a dataclass (or plain JSON-like value) to a payload string."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    return json.dumps(value, default=_default, sort_keys=True, separators=(",", ":"))


def json_loads(text: str) -> Any:
    return json.loads(text, object_hook=_revive)


def load_as(text: str, factory: Callable[[dict[str, Any]], T]) -> T:
    """Parse a payload and build a model with its from_dict factory."""
    return factory(json_loads(text))
