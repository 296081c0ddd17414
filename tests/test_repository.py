"""
Tests for the record store: collection CRUD, party lookup and retry behaviour.
"""

import asyncio

import pytest
from sqlalchemy.exc import IntegrityError

from core.errors import TransientStoreError
from hub_engine.models import UserRole, SYSTEM_PARTY_ID
from hub_engine.repository import RecordStore, db_retry, build_engine


class TestCollections:

    async def test_insert_and_query_by_field(self, store):
        await store.insert("users", {"id": "u1", "name": "ana", "role": UserRole.REGULAR, "party_id": "41"})
        await store.insert("users", {"id": "u2", "name": "ben", "role": UserRole.ADMIN, "party_id": "41"})
        await store.insert("users", {"id": "u3", "name": "cy", "role": UserRole.REGULAR, "party_id": "42"})

        regulars = await store.query("users", party_id="41", role=UserRole.REGULAR)
        assert [m.id for m in regulars] == ["u1"]

        both = await store.query("users", id=["u1", "u3"])
        assert sorted(m.id for m in both) == ["u1", "u3"]

    async def test_defaults_applied_on_insert(self, store):
        member = await store.insert("users", {"name": "dee", "party_id": "41"})
        loaded = await store.get("users", member.id)
        assert loaded.engagement_warnings == 0
        assert loaded.warning_label == "CLEAN"
        assert loaded.role == UserRole.REGULAR

    async def test_update_and_delete_report_hits(self, store):
        await store.insert("users", {"id": "u1", "name": "ana", "party_id": "41"})

        assert await store.update("users", "u1", {"engagement_warnings": 2, "warning_label": "2nd Warning"})
        assert (await store.get("users", "u1")).warning_label == "2nd Warning"
        assert not await store.update("users", "missing", {"engagement_warnings": 1})

        assert await store.delete("users", "u1")
        assert not await store.delete("users", "u1")
        assert await store.get("users", "u1") is None

    async def test_delete_where(self, store):
        for i in range(3):
            await store.insert("follows", {"follower_id": "a", "target_card_id": f"c{i}", "party_id": "41", "timestamp": i})
        removed = await store.delete_where("follows", follower_id="a", target_card_id="c1")
        assert removed == 1
        assert len(await store.query("follows", follower_id="a")) == 2

    async def test_unknown_collection(self, store):
        with pytest.raises(KeyError):
            await store.query("widgets")

    async def test_duplicate_follow_is_not_transient(self, store):
        follow = {"follower_id": "a", "target_card_id": "c1", "party_id": "41", "timestamp": 1}
        await store.insert("follows", follow)
        with pytest.raises(IntegrityError):
            await store.insert("follows", follow)


class TestPartyLookup:

    async def test_system_party_is_synthesized(self, store):
        party = await store.find_party(SYSTEM_PARTY_ID)
        assert party.id == SYSTEM_PARTY_ID
        assert party.timezone == "UTC"
        assert await store.get("parties", SYSTEM_PARTY_ID) is None

    async def test_lookup_is_cached_until_updated(self, store):
        await store.insert("parties", {"id": "41", "name": "Cached", "timezone": "UTC"})
        first = await store.find_party("41")
        assert await store.find_party("41") is first

        await store.update("parties", "41", {"timezone": "Asia/Tokyo"})
        refreshed = await store.find_party("41")
        assert refreshed.timezone == "Asia/Tokyo"

    async def test_missing_party(self, store):
        assert await store.find_party("99") is None


class SlowStore(RecordStore):

    def __init__(self, **kwargs):
        super().__init__(build_engine("sqlite+aiosqlite://"), **kwargs)
        self.calls = 0

    @db_retry
    async def stall(self):
        self.calls += 1
        await asyncio.sleep(1)

    @db_retry
    async def blip_once(self):
        self.calls += 1
        if self.calls == 1:
            raise OSError("connection reset")
        return "ok"


class TestRetry:

    async def test_timeout_becomes_transient_error(self):
        slow = SlowStore(retries=2, timeout=0.01, backoff=0)
        with pytest.raises(TransientStoreError) as exc:
            await slow.stall()
        assert slow.calls == 2
        assert exc.value.operation == "stall"
        await slow.dispose()

    async def test_blip_is_retried(self):
        flaky = SlowStore(retries=3, timeout=1, backoff=0)
        assert await flaky.blip_once() == "ok"
        assert flaky.calls == 2
        await flaky.dispose()
