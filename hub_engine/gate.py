from dataclasses import dataclass
from typing import Iterable, Optional

from core.config import ADMIN_FOLDER_CAP
from hub_engine.cycle import SessionSlot, window_for
from hub_engine.models import SYSTEM_PARTY_ID, UserRole
from utils.time_util import local_date_str, minutes_of_day, parse_hhmm


@dataclass(frozen=True)
class SubmissionDecision:
    """Outcome of a card submission check."""
    allowed: bool
    reason: Optional[str] = None
    code: Optional[str] = None


ALLOWED = SubmissionDecision(allowed=True)


def _role(member) -> UserRole:
    try:
        return UserRole(member.role)
    except ValueError:
        return UserRole.REGULAR


def can_submit(
    member,
    party,
    folder,
    existing_cards: Iterable,
    active_session_tab: str,
    now_ms: int,
) -> SubmissionDecision:
    """
    Decide whether ``member`` may post a new card into ``folder`` right now.

    ``existing_cards`` are the member's cards in this folder; only those dated
    today (party-local) are counted, so callers may pass a wider set.
    Violations come back as a decision, never as an exception.
    """
    role = _role(member)
    if role == UserRole.DEV:
        return ALLOWED

    tz_name = getattr(party, "timezone", None) if party is not None else None
    today = local_date_str(now_ms, tz_name)
    todays_cards = [
        c for c in existing_cards
        if c.user_id == member.id and c.folder_id == folder.id and c.session_date == today
    ]

    if role == UserRole.ADMIN:
        if folder.party_id == SYSTEM_PARTY_ID:
            return SubmissionDecision(
                allowed=False,
                reason="Access Denied: universal folders are restricted to developers.",
                code="SYSTEM_FOLDER",
            )
        if len(todays_cards) >= ADMIN_FOLDER_CAP:
            return SubmissionDecision(
                allowed=False,
                reason=f"Community Cap: max {ADMIN_FOLDER_CAP} cards permitted per folder today.",
                code="ADMIN_CAP",
            )
        return ALLOWED

    window = window_for(party, active_session_tab)
    if not window or not window.get("enabled"):
        return SubmissionDecision(
            allowed=False,
            reason=f'Window Disabled: the "{active_session_tab}" session is currently disabled.',
            code="WINDOW_DISABLED",
        )

    start, end = parse_hhmm(window.get("start")), parse_hhmm(window.get("end"))
    now_minute = minutes_of_day(now_ms, tz_name)
    if start is None or end is None or not SessionSlot(active_session_tab, start, end).contains(now_minute):
        return SubmissionDecision(
            allowed=False,
            reason=(
                f'Window Closed: "{active_session_tab}" submissions are only permitted '
                f'between {window.get("start")} and {window.get("end")}.'
            ),
            code="WINDOW_CLOSED",
        )

    if any(c.session_type == active_session_tab for c in todays_cards):
        return SubmissionDecision(
            allowed=False,
            reason=f'Already Posted: you already have a card for today\'s "{active_session_tab}" session in this folder.',
            code="ALREADY_POSTED",
        )

    return ALLOWED
