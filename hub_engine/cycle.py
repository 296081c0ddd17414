"""Daily pod-session cycle for a party.

Every party runs on its own wall clock. The day is carved into named session
windows (``session_config`` plus the legacy ``pod_sessions`` list), and the
hub's working set rolls over at the *reset boundary*: a fixed lead time before
the earliest window of the day. All values here are minutes after local
midnight unless noted otherwise.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from core.config import RESET_LEAD_MINUTES
from core.logger import setup_logger
from hub_engine.models import SESSION_TYPES
from utils.time_util import MINUTES_PER_DAY, minutes_of_day, parse_hhmm, format_hhmm

logger = setup_logger("CYCLE")


@dataclass(frozen=True)
class SessionSlot:
    name: str
    start: int
    end: int

    @property
    def spans_midnight(self) -> bool:
        return self.end < self.start

    def contains(self, minute: int) -> bool:
        if self.spans_midnight:
            return minute >= self.start or minute <= self.end
        return self.start <= minute <= self.end

    def to_dict(self) -> dict:
        return {"name": self.name, "start": format_hhmm(self.start), "end": format_hhmm(self.end)}


@dataclass(frozen=True)
class ActiveSession:
    slot: SessionSlot
    remaining: int

    @property
    def name(self) -> str:
        return self.slot.name


@dataclass(frozen=True)
class UpcomingSession:
    slot: SessionSlot
    countdown: int

    @property
    def name(self) -> str:
        return self.slot.name


@dataclass
class CycleInfo:
    active_session: Optional[ActiveSession] = None
    next_session: Optional[UpcomingSession] = None
    reset_in: Optional[int] = None
    reset_minute: Optional[int] = None
    reset_time_formatted: Optional[str] = None
    windows: List[SessionSlot] = field(default_factory=list)

    @property
    def is_degenerate(self) -> bool:
        return not self.windows

    def to_dict(self) -> dict:
        active = self.active_session
        upcoming = self.next_session
        return {
            "active_session": {**active.slot.to_dict(), "remaining": active.remaining} if active else None,
            "next_session": {**upcoming.slot.to_dict(), "countdown": upcoming.countdown} if upcoming else None,
            "reset_in": self.reset_in,
            "reset_time": self.reset_time_formatted,
            "windows": [w.to_dict() for w in self.windows],
        }


def _slot_from(name, raw) -> Optional[SessionSlot]:
    if not isinstance(raw, dict):
        return None
    start, end = parse_hhmm(raw.get("start")), parse_hhmm(raw.get("end"))
    if start is None or end is None:
        return None
    return SessionSlot(name=str(name), start=start, end=end)


def collect_windows(party) -> List[SessionSlot]:
    """Merges enabled ``session_config`` windows with legacy ``pod_sessions``, sorted by start."""
    if party is None:
        return []

    slots = []
    config = getattr(party, "session_config", None)
    if isinstance(config, dict):
        for name in SESSION_TYPES:
            raw = config.get(name)
            if isinstance(raw, dict) and raw.get("enabled"):
                slot = _slot_from(name, raw)
                if slot: slots.append(slot)

    legacy = getattr(party, "pod_sessions", None)
    if isinstance(legacy, list):
        for raw in legacy:
            slot = _slot_from(raw.get("name", "pod") if isinstance(raw, dict) else "pod", raw)
            if slot: slots.append(slot)

    if not slots:
        logger.debug(f"Party {getattr(party, 'id', '?')} has no usable session windows")
    return sorted(slots, key=lambda s: (s.start, s.end))


def reset_boundary(windows: List[SessionSlot], lead: int = RESET_LEAD_MINUTES) -> Optional[int]:
    if not windows:
        return None
    boundary = min(w.start for w in windows) - lead
    if boundary < 0:
        boundary += MINUTES_PER_DAY
    return boundary


def party_reset_boundary(party) -> Optional[int]:
    return reset_boundary(collect_windows(party))


def compute_cycle(windows: List[SessionSlot], now_minute: int) -> CycleInfo:
    if not windows:
        return CycleInfo()

    active = None
    for slot in windows:
        if slot.contains(now_minute):
            active = ActiveSession(slot, (slot.end - now_minute) % MINUTES_PER_DAY)
            break

    upcoming = None
    for slot in windows:
        if slot.start > now_minute:
            upcoming = UpcomingSession(slot, slot.start - now_minute)
            break
    if upcoming is None:
        first = windows[0]
        upcoming = UpcomingSession(first, first.start + MINUTES_PER_DAY - now_minute)

    boundary = reset_boundary(windows)
    return CycleInfo(
        active_session=active,
        next_session=upcoming,
        reset_in=(boundary - now_minute) % MINUTES_PER_DAY,
        reset_minute=boundary,
        reset_time_formatted=format_hhmm(boundary),
        windows=list(windows),
    )


def get_cycle_info(party, now_ms: int) -> CycleInfo:
    """Cycle state for ``party`` at ``now_ms``; a missing party is always open."""
    windows = collect_windows(party)
    if not windows:
        return CycleInfo()
    tz_name = getattr(party, "timezone", None)
    return compute_cycle(windows, minutes_of_day(now_ms, tz_name))


def window_for(party, session_type: str) -> Optional[dict]:
    """Raw ``session_config`` entry for a tab, or None when the party has none."""
    config = getattr(party, "session_config", None) if party is not None else None
    if not isinstance(config, dict):
        return None
    raw = config.get(session_type)
    return raw if isinstance(raw, dict) else None
