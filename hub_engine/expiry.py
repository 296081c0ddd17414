"""Read-time expiry for cards, follows and notifications.

Records are never deleted when they expire; they simply drop out of the
party's working set once the reset boundary passes.
"""
from typing import Iterable, List, Optional

from hub_engine.cycle import party_reset_boundary
from utils.time_util import MILLIS_PER_DAY, local_date, minutes_of_day


def cycle_id(instant_ms: int, tz_name: Optional[str], boundary: int) -> int:
    """Ordinal of the cycle containing ``instant_ms``; cycles start at ``boundary``."""
    ordinal = local_date(instant_ms, tz_name).toordinal()
    if minutes_of_day(instant_ms, tz_name) < boundary:
        ordinal -= 1
    return ordinal


def is_expired(timestamp_ms: int, party, now_ms: int) -> bool:
    boundary = party_reset_boundary(party)
    if boundary is None:
        return now_ms - timestamp_ms > MILLIS_PER_DAY

    tz_name = getattr(party, "timezone", None)
    return cycle_id(timestamp_ms, tz_name, boundary) < cycle_id(now_ms, tz_name, boundary)


def is_card_expired(card, party, now_ms: int) -> bool:
    if card.is_permanent or card.is_pinned:
        return False
    return is_expired(card.timestamp, party, now_ms)


def active_cards(cards: Iterable, party, now_ms: int) -> List:
    return [c for c in cards if not is_card_expired(c, party, now_ms)]


def active_follows(follows: Iterable, party, now_ms: int) -> List:
    return [f for f in follows if not is_expired(f.timestamp, party, now_ms)]


def active_notifications(notifications: Iterable, party, now_ms: int) -> List:
    return [n for n in notifications if not is_expired(n.timestamp, party, now_ms)]
