"""
Tests for the card submission gate: roles, windows and per-folder caps.
"""

import pytest

from hub_engine.gate import can_submit
from hub_engine.models import Party, Member, Folder, Card, UserRole, SYSTEM_PARTY_ID


@pytest.fixture
def party():
    return Party(id="31", name="Gate Hub", timezone="UTC", session_config={
        "morning": {"enabled": True, "start": "08:00", "end": "11:00"},
        "afternoon": {"enabled": False, "start": "13:00", "end": "15:00"},
    })


@pytest.fixture
def folder():
    return Folder(id="fold-1", name="Reels", party_id="31")


@pytest.fixture
def system_folder():
    return Folder(id="fold-sys", name="Universal", party_id=SYSTEM_PARTY_ID)


@pytest.fixture
def regular():
    return Member(id="reg-1", name="rita", role=UserRole.REGULAR, party_id="31")


@pytest.fixture
def admin():
    return Member(id="admin-31-1", name="Admin", role=UserRole.ADMIN, party_id="31")


@pytest.fixture
def dev():
    return Member(id="dev-master-root", name="Dev", role=UserRole.DEV, party_id=SYSTEM_PARTY_ID)


def posted(member, folder, date, session="morning", n=1):
    return [
        Card(id=f"{member.id}-{folder.id}-{date}-{i}", user_id=member.id, folder_id=folder.id,
             party_id=folder.party_id, timestamp=0, session_type=session, session_date=date)
        for i in range(n)
    ]


class TestRegularMember:

    def test_rejected_before_window_opens(self, regular, party, folder, at):
        decision = can_submit(regular, party, folder, [], "morning", at("2026-03-11 07:59"))
        assert not decision.allowed
        assert decision.code == "WINDOW_CLOSED"
        assert "Window Closed" in decision.reason

    def test_allowed_inside_window(self, regular, party, folder, at):
        assert can_submit(regular, party, folder, [], "morning", at("2026-03-11 08:01")).allowed

    def test_window_end_is_inclusive(self, regular, party, folder, at):
        assert can_submit(regular, party, folder, [], "morning", at("2026-03-11 11:00")).allowed
        assert can_submit(regular, party, folder, [], "morning", at("2026-03-11 11:01")).code == "WINDOW_CLOSED"

    def test_second_post_same_window_rejected(self, regular, party, folder, at):
        existing = posted(regular, folder, "2026-03-11")
        decision = can_submit(regular, party, folder, existing, "morning", at("2026-03-11 10:30"))
        assert not decision.allowed
        assert decision.code == "ALREADY_POSTED"
        assert "Already Posted" in decision.reason

    def test_yesterdays_post_or_other_folder_does_not_count(self, regular, party, folder, at):
        other = Folder(id="fold-2", name="Shorts", party_id="31")
        existing = posted(regular, folder, "2026-03-10") + posted(regular, other, "2026-03-11")
        assert can_submit(regular, party, folder, existing, "morning", at("2026-03-11 09:00")).allowed

    def test_disabled_or_missing_window(self, regular, party, folder, at):
        now = at("2026-03-11 14:00")
        assert can_submit(regular, party, folder, [], "afternoon", now).code == "WINDOW_DISABLED"
        assert can_submit(regular, party, folder, [], "evening", now).code == "WINDOW_DISABLED"

    def test_no_party_means_no_windows(self, regular, folder, at):
        decision = can_submit(regular, None, folder, [], "morning", at("2026-03-11 09:00"))
        assert decision.code == "WINDOW_DISABLED"

    def test_window_checked_in_party_timezone(self, regular, folder, at):
        tokyo = Party(id="31", name="Tokyo", timezone="Asia/Tokyo",
                      session_config={"morning": {"enabled": True, "start": "08:00", "end": "11:00"}})
        # 00:30 UTC is 09:30 in Tokyo
        assert can_submit(regular, tokyo, folder, [], "morning", at("2026-03-11 00:30")).allowed

    def test_three_rejections_are_distinct(self, regular, party, folder, at):
        codes = {
            can_submit(regular, party, folder, [], "afternoon", at("2026-03-11 09:00")).code,
            can_submit(regular, party, folder, [], "morning", at("2026-03-11 12:00")).code,
            can_submit(regular, party, folder, posted(regular, folder, "2026-03-11"), "morning",
                       at("2026-03-11 09:00")).code,
        }
        assert codes == {"WINDOW_DISABLED", "WINDOW_CLOSED", "ALREADY_POSTED"}


class TestAdminMember:

    def test_admin_posts_outside_windows(self, admin, party, folder, at):
        assert can_submit(admin, party, folder, [], "afternoon", at("2026-03-11 03:00")).allowed

    def test_admin_blocked_from_universal_folders(self, admin, party, system_folder, at):
        decision = can_submit(admin, party, system_folder, [], "morning", at("2026-03-11 09:00"))
        assert decision.code == "SYSTEM_FOLDER"

    def test_admin_folder_cap(self, admin, party, folder, at):
        now = at("2026-03-11 09:00")
        assert can_submit(admin, party, folder, posted(admin, folder, "2026-03-11", n=4), "morning", now).allowed
        capped = can_submit(admin, party, folder, posted(admin, folder, "2026-03-11", n=5), "morning", now)
        assert capped.code == "ADMIN_CAP"

    def test_cap_resets_with_the_date(self, admin, party, folder, at):
        existing = posted(admin, folder, "2026-03-10", n=5)
        assert can_submit(admin, party, folder, existing, "morning", at("2026-03-11 09:00")).allowed


class TestDevMember:

    def test_dev_is_never_limited(self, dev, party, system_folder, folder, at):
        now = at("2026-03-11 03:00")
        many = posted(dev, system_folder, "2026-03-11", n=20)
        assert can_submit(dev, party, system_folder, many, "evening", now).allowed
        assert can_submit(dev, None, folder, [], "morning", now).allowed
