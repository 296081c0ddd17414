import enum
import uuid
from sqlalchemy import Column, String, Integer, BigInteger, Boolean, JSON, Enum, UniqueConstraint
from sqlalchemy.orm import declarative_base
from utils.time_util import now_millis

HubBase = declarative_base()

SYSTEM_PARTY_ID = "SYSTEM"
WARNING_LABELS = ["CLEAN", "1st Warning", "2nd Warning", "Final Warning"]
SESSION_TYPES = ("morning", "afternoon", "evening")


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def warning_label_for(strikes: int) -> str:
    return WARNING_LABELS[max(0, min(strikes or 0, len(WARNING_LABELS) - 1))]


class UserRole(str, enum.Enum):
    REGULAR = "REGULAR"
    ADMIN = "ADMIN"
    DEV = "DEV"


class NotificationType(str, enum.Enum):
    FOLLOW = "FOLLOW"
    FOLLOW_BACK = "FOLLOW_BACK"
    SYSTEM_WARNING = "SYSTEM_WARNING"


class Party(HubBase):
    __tablename__ = "parties"
    id = Column(String(32), primary_key=True)
    name = Column(String(120), nullable=False)
    timezone = Column(String(64), default="UTC")
    # {"morning": {"enabled": bool, "start": "HH:MM", "end": "HH:MM"}, ...}
    session_config = Column(JSON, nullable=True)
    # Legacy free-form windows: [{"name", "start", "end"}]
    pod_sessions = Column(JSON, nullable=True)
    max_slots = Column(Integer, default=50)
    created_at = Column(BigInteger, default=now_millis)


class Member(HubBase):
    __tablename__ = "users"
    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String(120), nullable=False, index=True)
    role = Column(Enum(UserRole), default=UserRole.REGULAR, nullable=False)
    party_id = Column(String(32), index=True, nullable=False)
    device_fingerprint = Column(String(64), nullable=True)
    engagement_warnings = Column(Integer, default=0)
    warning_label = Column(String(20), default="CLEAN")
    created_at = Column(BigInteger, default=now_millis)


class Folder(HubBase):
    __tablename__ = "folders"
    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String(120), nullable=False)
    icon = Column(String(16), nullable=True)
    party_id = Column(String(32), index=True, nullable=False)


class Card(HubBase):
    __tablename__ = "cards"
    id = Column(String(64), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    creator_role = Column(Enum(UserRole), default=UserRole.REGULAR)
    folder_id = Column(String(64), index=True, nullable=False)
    party_id = Column(String(32), index=True, nullable=False)
    display_name = Column(String(120), default="")
    external_link = Column(String(500), default="")
    timestamp = Column(BigInteger, default=now_millis, nullable=False)
    is_permanent = Column(Boolean, default=False)
    is_pinned = Column(Boolean, default=False)
    session_type = Column(String(16), nullable=True)
    session_date = Column(String(10), nullable=True)


class Follow(HubBase):
    __tablename__ = "follows"
    id = Column(String(64), primary_key=True, default=new_id)
    follower_id = Column(String(64), index=True, nullable=False)
    target_card_id = Column(String(64), index=True, nullable=False)
    party_id = Column(String(32), index=True, nullable=False)
    timestamp = Column(BigInteger, default=now_millis, nullable=False)
    __table_args__ = (UniqueConstraint("follower_id", "target_card_id", name="_follower_card_uc"),)


class Notification(HubBase):
    __tablename__ = "notifications"
    id = Column(String(64), primary_key=True, default=new_id)
    recipient_id = Column(String(64), index=True, nullable=False)
    sender_id = Column(String(64), default=SYSTEM_PARTY_ID)
    sender_name = Column(String(120), default="System Audit")
    type = Column(Enum(NotificationType), nullable=False)
    related_card_id = Column(String(64), default="")
    party_id = Column(String(32), index=True, nullable=False)
    timestamp = Column(BigInteger, default=now_millis, nullable=False)
    read = Column(Boolean, default=False)


class BannedIdentity(HubBase):
    __tablename__ = "banned_identities"
    id = Column(Integer, primary_key=True, autoincrement=True)
    party_id = Column(String(32), index=True, nullable=False)
    name = Column(String(120), index=True, nullable=False)
    device_fingerprint = Column(String(64), nullable=True)
    banned_at = Column(BigInteger, default=now_millis, nullable=False)


COLLECTIONS = {
    "parties": Party,
    "users": Member,
    "folders": Folder,
    "cards": Card,
    "follows": Follow,
    "notifications": Notification,
    "banned_identities": BannedIdentity,
}


def system_party() -> Party:
    return Party(id=SYSTEM_PARTY_ID, name="System Core", timezone="UTC")
