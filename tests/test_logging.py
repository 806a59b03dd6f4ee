"""
Test that wallet_logging imports cleanly and the recent-log buffer works.
"""

from __future__ import annotations

from ark_wallet_core.wallet_logging import (
    bind_wallet,
    clear_recent_logs,
    get_logger,
    get_recent_logs,
    unbind_wallet,
)
from ark_wallet_core.wallet_logging.logger import MAX_RECENT_LOGS


def test_logging_import():
    """Import get_logger from wallet_logging and use the logger."""
    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_recent_logs_capture_event_and_context():
    clear_recent_logs()
    get_logger("test").info("reconcile_tick_done", balance=21000)
    get_logger("test").warning("reconcile_tick_failed", step="vtxos")

    lines = get_recent_logs()
    assert len(lines) == 2
    assert lines[0]["level"] == "info"
    assert lines[0]["msg"].startswith("reconcile_tick_done")
    assert "balance=21000" in lines[0]["msg"]
    assert [line["msg"].split()[0] for line in get_recent_logs("warning")] == ["reconcile_tick_failed"]


def test_recent_logs_capped():
    clear_recent_logs()
    logger = get_logger("test")
    for i in range(MAX_RECENT_LOGS + 25):
        logger.info("event", i=i)
    lines = get_recent_logs()
    assert len(lines) == MAX_RECENT_LOGS
    assert lines[-1]["msg"].endswith(f"i={MAX_RECENT_LOGS + 24}")


def test_clear_recent_logs():
    get_logger("test").info("something")
    clear_recent_logs()
    assert get_recent_logs() == []


def test_bind_wallet_adds_pubkey_to_events():
    clear_recent_logs()
    bind_wallet("02ab")
    try:
        get_logger("test").info("session_unlocked")
    finally:
        unbind_wallet()
    get_logger("test").info("session_locked")
    first, second = get_recent_logs()
    assert "wallet_pubkey=02ab" in first["msg"]
    assert "wallet_pubkey" not in second["msg"]
