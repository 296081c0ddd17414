from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from core.logger import setup_logger
from hub_engine.expiry import is_card_expired
from hub_engine.gate import SubmissionDecision, can_submit
from hub_engine.membership import is_banned
from hub_engine.models import NotificationType, SYSTEM_PARTY_ID, UserRole
from utils.time_util import local_date_str

logger = setup_logger("ENGAGEMENT")


@dataclass
class FeedView:
    pinned: List = field(default_factory=list)
    regular: List = field(default_factory=list)


async def toggle_follow(store, sink, follower, card, now_ms: int) -> bool:
    """Follows ``card`` or drops the existing follow. Returns True when now following."""
    existing = await store.query("follows", follower_id=follower.id, target_card_id=card.id)
    if existing:
        await store.delete_where("follows", follower_id=follower.id, target_card_id=card.id)
        return False

    await store.insert("follows", {
        "follower_id": follower.id,
        "target_card_id": card.id,
        "party_id": follower.party_id,
        "timestamp": now_ms,
    })
    await sink.create_notification(
        recipient_id=card.user_id,
        type=NotificationType.FOLLOW,
        party_id=follower.party_id,
        related_card_id=card.id,
        sender_id=follower.id,
        sender_name=follower.name,
    )
    return True


async def submit_card(
    store,
    member,
    party,
    folder,
    session_tab: str,
    fields: dict,
    now_ms: int,
) -> Tuple[SubmissionDecision, Optional[object]]:
    """Runs the submission gate and, when it passes, stores a stamped card."""
    if await is_banned(store, member.party_id, member.name, member.device_fingerprint):
        return SubmissionDecision(allowed=False, reason="Access Denied: this identity is banned.", code="BANNED"), None

    existing = await store.query("cards", user_id=member.id, folder_id=folder.id)
    decision = can_submit(member, party, folder, existing, session_tab, now_ms)
    if not decision.allowed:
        logger.info(f"Submission by {member.name} refused: {decision.code}")
        return decision, None

    card = await store.insert("cards", {
        **fields,
        "user_id": member.id,
        "creator_role": UserRole(member.role),
        "folder_id": folder.id,
        "party_id": folder.party_id,
        "timestamp": now_ms,
        "session_type": session_tab,
        "session_date": local_date_str(now_ms, getattr(party, "timezone", None)),
    })
    return decision, card


async def set_card_pin(store, actor, card, pinned: bool) -> bool:
    """Pins or unpins a card. Only DEVs and admins of the card's party may do it."""
    role = UserRole(actor.role)
    if role != UserRole.DEV and not (role == UserRole.ADMIN and actor.party_id == card.party_id):
        logger.warning(f"Pin change on {card.id} refused for {actor.name}")
        return False
    return await store.update("cards", card.id, {"is_pinned": bool(pinned)})


def visible_feed(cards: Iterable, party, folder, viewer, session_tab: str, now_ms: int) -> FeedView:
    """Cards a viewer sees in a folder right now, pinned first, own cards leading."""
    viewer_is_dev = viewer is not None and viewer.role == UserRole.DEV
    today = local_date_str(now_ms, getattr(party, "timezone", None))

    def shown(card) -> bool:
        if card.folder_id != folder.id or is_card_expired(card, party, now_ms):
            return False
        if folder.party_id == SYSTEM_PARTY_ID:
            return card.creator_role == UserRole.DEV
        if card.creator_role == UserRole.ADMIN or card.is_permanent:
            return True
        if viewer_is_dev:
            return True
        return card.session_type == session_tab and card.session_date == today

    viewer_id = viewer.id if viewer is not None else None
    ordered = sorted(
        (c for c in cards if shown(c)),
        key=lambda c: (c.user_id != viewer_id, -c.timestamp),
    )
    return FeedView(
        pinned=[c for c in ordered if c.is_pinned],
        regular=[c for c in ordered if not c.is_pinned],
    )
