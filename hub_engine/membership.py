from typing import Callable, Optional

from core.logger import setup_logger
from utils.time_util import now_millis

logger = setup_logger("MEMBERSHIP")


async def is_banned(store, party_id: str, name: str, fingerprint: Optional[str] = None) -> bool:
    """True when either the name or the device fingerprint is blacklisted in the party.

    Fingerprints are a weak secondary key; anyone can change the attributes
    they are hashed from.
    """
    if name and await store.query("banned_identities", party_id=party_id, name=name):
        return True
    if fingerprint and await store.query("banned_identities", party_id=party_id, device_fingerprint=fingerprint):
        return True
    return False


async def expel_and_ban(store, member, clock: Callable[[], int] = now_millis) -> bool:
    """Blacklists a member's name and fingerprint, then deletes the member.

    Returns False without touching anything when the member is already gone.
    """
    if await store.get("users", member.id) is None:
        logger.info(f"Expulsion of {member.name} skipped: member already removed")
        return False

    await store.insert("banned_identities", {
        "party_id": member.party_id,
        "name": member.name,
        "device_fingerprint": member.device_fingerprint,
        "banned_at": clock(),
    })
    removed = await store.delete("users", member.id)
    logger.warning(f"🚫 Expelled {member.name} from party {member.party_id}")
    return removed
