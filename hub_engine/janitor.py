"""The Janitor: once-per-cycle reciprocity audit.

Each party is polled on a fixed interval, but the audit only does work inside
the hour before the party's reset boundary and only once per reset.
Members who take far more follows than they give collect strikes; the fourth
strike expels them. Members who close the gap before the next audit are reset
to a clean record.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from core.config import GAP_THRESHOLD, JANITOR_CONCURRENCY, JANITOR_INTERVAL, RESET_LEAD_MINUTES, STRIKE_LIMIT
from core.errors import TransientStoreError
from core.logger import setup_logger
from hub_engine.alerts import queue_alert
from hub_engine.cycle import get_cycle_info
from hub_engine.expiry import active_cards, active_follows
from hub_engine.membership import expel_and_ban
from hub_engine.models import NotificationType, UserRole, warning_label_for
from utils.time_util import local_date_str, now_millis

MILLIS_PER_MINUTE = 60 * 1000

logger = setup_logger("JANITOR")


@dataclass
class AuditReport:
    party_id: str
    audit_date: str
    audited: int = 0
    warned: List[str] = field(default_factory=list)
    expelled: List[str] = field(default_factory=list)
    healed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def engagement_gap(member_id: str, cards: Iterable, follows: Iterable) -> int:
    """Inbound follows on the member's non-pinned cards minus follows the member gave."""
    owned = {c.id for c in cards if c.user_id == member_id and not c.is_pinned}
    follows = list(follows)
    inbound = sum(1 for f in follows if f.target_card_id in owned)
    outbound = sum(1 for f in follows if f.follower_id == member_id)
    return inbound - outbound


class Janitor:
    def __init__(
        self,
        store,
        sink,
        alert: Callable[[str], Awaitable[None]] = queue_alert,
        clock: Callable[[], int] = now_millis,
        gap_threshold: int = GAP_THRESHOLD,
        strike_limit: int = STRIKE_LIMIT,
    ):
        self.store = store
        self.sink = sink
        self.alert = alert
        self.clock = clock
        self.gap_threshold = gap_threshold
        self.strike_limit = strike_limit
        self.last_audit_completed: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @staticmethod
    def closing_reset_date(party, now_ms: int) -> Optional[str]:
        """Party-local date of the next reset, or None outside the pre-reset hour.

        An audit hour that crosses midnight maps to a single reset date.
        """
        reset_in = get_cycle_info(party, now_ms).reset_in
        if reset_in is None or not 0 < reset_in <= RESET_LEAD_MINUTES:
            return None
        return local_date_str(now_ms + reset_in * MILLIS_PER_MINUTE, party.timezone)

    def should_run(self, party, now_ms: int) -> bool:
        closing = self.closing_reset_date(party, now_ms)
        return closing is not None and self.last_audit_completed.get(party.id) != closing

    async def run(self, party) -> Optional[AuditReport]:
        """Audits one party if it is due. Returns None when gated or aborted."""
        lock = self._locks.setdefault(party.id, asyncio.Lock())
        async with lock:
            now_ms = self.clock()
            if not self.should_run(party, now_ms):
                return None
            closing = self.closing_reset_date(party, now_ms)

            try:
                members = await self.store.query("users", party_id=party.id)
                cards = await self.store.query("cards", party_id=party.id)
                follows = await self.store.query("follows", party_id=party.id)
            except TransientStoreError as e:
                logger.warning(f"Audit for {party.id} aborted, will retry next poll: {e}")
                return None

            cards = active_cards(cards, party, now_ms)
            follows = active_follows(follows, party, now_ms)
            report = AuditReport(party_id=party.id, audit_date=closing)

            for member in members:
                if member.role != UserRole.REGULAR:
                    continue
                report.audited += 1
                try:
                    await self._audit_member(party, member, engagement_gap(member.id, cards, follows), report)
                except TransientStoreError as e:
                    logger.error(f"Audit step failed for {member.name} in {party.id}: {e}")
                    report.failed.append(member.id)

            self.last_audit_completed[party.id] = closing
            await self.alert(
                f"🧹 <b>JANITOR</b> {party.id} {closing}: audited {report.audited}, "
                f"warned {len(report.warned)}, expelled {len(report.expelled)}, "
                f"cleared {len(report.healed)}, failed {len(report.failed)}"
            )
            return report

    async def _audit_member(self, party, member, gap: int, report: AuditReport):
        current = member.engagement_warnings or 0

        if gap > self.gap_threshold:
            strikes = current + 1
            if strikes >= self.strike_limit:
                if await expel_and_ban(self.store, member, clock=self.clock):
                    report.expelled.append(member.id)
                    await self.alert(f"🚫 <b>JANITOR</b>: Expelled {member.name} for persistent leaching.")
                return

            label = warning_label_for(strikes)
            await self.store.update("users", member.id, {"engagement_warnings": strikes, "warning_label": label})
            report.warned.append(member.id)
            await self.sink.create_notification(
                recipient_id=member.id,
                type=NotificationType.SYSTEM_WARNING,
                party_id=party.id,
            )
            await self.alert(
                f"⚠️ <b>JANITOR</b>: {label} ({strikes}/{self.strike_limit}) for {member.name}. Support gap {gap}."
            )
            return

        if (member.warning_label or "CLEAN") != "CLEAN" or current:
            await self.store.update("users", member.id, {"engagement_warnings": 0, "warning_label": "CLEAN"})
            report.healed.append(member.id)

    async def run_many(self, parties: Iterable, concurrency: int = JANITOR_CONCURRENCY) -> List[AuditReport]:
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def bounded(party):
            async with semaphore:
                try:
                    return await self.run(party)
                except Exception as e:
                    logger.error(f"Audit for {party.id} crashed: {e!r}")
                    return None

        results = await asyncio.gather(*(bounded(p) for p in parties))
        return [r for r in results if r is not None]


async def janitor_loop(janitor: Janitor, interval: int = JANITOR_INTERVAL):
    """Polls every party forever. Meant to run under ``supervised_task``."""
    while True:
        try:
            parties = await janitor.store.query("parties")
            await janitor.run_many(parties)
        except TransientStoreError as e:
            logger.warning(f"Janitor poll skipped: {e}")
        await asyncio.sleep(interval)
