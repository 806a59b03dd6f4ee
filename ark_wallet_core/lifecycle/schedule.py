"""
Scheduled settlement sessions ("market hours").

The server may announce a recurring session: next start, period and duration
(epoch seconds). Renewal should land in a session that starts before the
rollover deadline.
"""

from __future__ import annotations

from ark_wallet_core.clients.server_info import ScheduledSession


def _window(session: ScheduledSession, start: int) -> ScheduledSession:
    return session.model_copy(
        update={"next_start_time": start, "next_end_time": start + session.duration}
    )


def next_market_hour(session: ScheduledSession | None, deadline_sec: int) -> ScheduledSession | None:
    """The upcoming session, if it starts no later than deadline_sec."""
    if session is None or session.next_start_time > deadline_sec:
        return None
    return _window(session, session.next_start_time)


def best_market_hour(session: ScheduledSession | None, deadline_sec: int) -> ScheduledSession | None:
    """The last session occurrence that still starts before deadline_sec."""
    if session is None or session.next_start_time > deadline_sec:
        return None
    if session.period <= 0:
        return None
    start = session.next_start_time
    # Jump whole periods instead of stepping one at a time
    steps = (deadline_sec - start - 1) // session.period
    if steps > 0:
        start += steps * session.period
    return _window(session, start)
