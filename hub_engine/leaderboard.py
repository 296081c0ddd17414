import enum
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional


class RewardLevel(str, enum.Enum):
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    DIAMOND = "DIAMOND"
    CROWN = "CROWN"


# Highest threshold first
REWARD_THRESHOLDS = [
    (500, RewardLevel.CROWN),
    (200, RewardLevel.DIAMOND),
    (100, RewardLevel.GOLD),
    (50, RewardLevel.SILVER),
]


@dataclass
class EngagementStats:
    user_id: str
    name: str
    role: str
    follows_given: int = 0
    follows_received: int = 0

    @property
    def engagement(self) -> int:
        return self.follows_given + self.follows_received


def reward_tier(score: int) -> RewardLevel:
    for threshold, level in REWARD_THRESHOLDS:
        if score >= threshold:
            return level
    return RewardLevel.BRONZE


def engagement_stats(cards: Iterable, follows: Iterable) -> List[EngagementStats]:
    """Per-author engagement, most engaged first. Only card authors are ranked."""
    cards = list(cards)
    stats: Dict[str, EngagementStats] = {}
    for card in cards:
        if card.user_id not in stats:
            stats[card.user_id] = EngagementStats(card.user_id, card.display_name, card.creator_role)

    owner_of = {c.id: c.user_id for c in cards}
    for follow in follows:
        giver = stats.get(follow.follower_id)
        if giver:
            giver.follows_given += 1
        receiver = stats.get(owner_of.get(follow.target_card_id))
        if receiver:
            receiver.follows_received += 1

    return sorted(stats.values(), key=lambda s: s.engagement, reverse=True)


def rank_of(ranking: List[EngagementStats], user_id: str) -> Optional[int]:
    for position, entry in enumerate(ranking, start=1):
        if entry.user_id == user_id:
            return position
    return None
