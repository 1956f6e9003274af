"""Tests for the JSONL host loader and InMemoryStore behaviour."""

import json
from datetime import datetime, time, timezone

import pytest

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from meetings.models.availability import AvailabilityRule, RuleUpdate
from meetings.models.booking import Booking, BookingLink, Host, MeetingType
from meetings.stores.base import Confirmed, Rejected
from meetings.stores.loader import load_hosts_jsonl
from meetings.stores.memory import SLOT_TAKEN, InMemoryStore


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def write_jsonl(path, rows):
    path.write_text("\n".join(json.dumps(r) for r in rows) + "\n", encoding="utf-8")
    return path


ADA = {
    "id": "ada",
    "name": "Ada",
    "timezone": "Europe/London",
    "calendar_id": "ada@example.com",
    "links": [
        {"slug": "ada-30", "title": "Intro call"},
        {"slug": "ada-phone", "duration_minutes": 15, "meeting_type": "PHONE"},
    ],
    "rules": [
        {"day_of_week": 3, "start_time": "13:00", "end_time": "17:00"},
        {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00", "timezone": "UTC"},
    ],
}


class TestLoadHostsJsonl:
    async def test_loads_hosts_links_and_rules(self, tmp_path):
        store = load_hosts_jsonl(write_jsonl(tmp_path / "hosts.jsonl", [ADA]))

        host = await store.get_host("ada")
        assert host.name == "Ada"

        link, owner = await store.get_booking_link("ada-30")
        assert owner.id == "ada"
        assert link.duration_minutes == 30
        assert link.meeting_type == MeetingType.GOOGLE_MEET

        phone, _ = await store.get_booking_link("ada-phone")
        assert phone.meeting_type == MeetingType.PHONE

    async def test_rules_inherit_host_timezone(self, tmp_path):
        store = load_hosts_jsonl(write_jsonl(tmp_path / "hosts.jsonl", [ADA]))
        rules = await store.get_rules("ada")
        # Sorted by day of week
        assert [r.day_of_week for r in rules] == [1, 3]
        assert rules[0].timezone == "UTC"
        assert rules[1].timezone == "Europe/London"
        assert rules[1].start_time == time(13, 0)

    def test_blank_lines_skipped(self, tmp_path):
        path = tmp_path / "hosts.jsonl"
        path.write_text("\n" + json.dumps(ADA) + "\n\n", encoding="utf-8")
        load_hosts_jsonl(path)

    def test_bad_json_reports_line(self, tmp_path):
        path = tmp_path / "hosts.jsonl"
        path.write_text(json.dumps(ADA) + "\n{not json\n", encoding="utf-8")
        with pytest.raises(ValueError, match=":2:"):
            load_hosts_jsonl(path)

    def test_invalid_rule_rejected(self, tmp_path):
        bad = dict(ADA, rules=[{"day_of_week": 1, "start_time": "12:00", "end_time": "09:00"}])
        with pytest.raises(ValueError):
            load_hosts_jsonl(write_jsonl(tmp_path / "hosts.jsonl", [bad]))

    async def test_bundled_demo_file(self):
        path = os.path.join(os.path.dirname(__file__), "..", "data", "hosts.jsonl")
        store = load_hosts_jsonl(path)
        assert await store.get_booking_link("intro-call") is not None
        assert len(await store.get_rules("demo-host")) == 5

    async def test_host_timezone_defaults_from_settings(self, tmp_path, monkeypatch):
        monkeypatch.setattr("meetings.stores.loader.settings.default_timezone", "Asia/Tokyo")
        plain = {k: v for k, v in ADA.items() if k != "timezone"}
        store = load_hosts_jsonl(write_jsonl(tmp_path / "hosts.jsonl", [plain]))
        assert (await store.get_host("ada")).timezone == "Asia/Tokyo"
        # Rules without their own zone follow the host
        assert (await store.get_rules("ada"))[1].timezone == "Asia/Tokyo"

    def test_unknown_host_timezone_fails_at_load(self, tmp_path):
        bad = dict(ADA, timezone="Mars/Olympus")
        with pytest.raises(ValueError, match="Unknown timezone"):
            load_hosts_jsonl(write_jsonl(tmp_path / "hosts.jsonl", [bad]))

    def test_host_model_rejects_unknown_timezone(self):
        with pytest.raises(ValueError):
            Host(id="h1", timezone="Mars/Olympus")


class TestInMemoryStore:
    def make(self) -> InMemoryStore:
        store = InMemoryStore()
        store.add_host(Host(id="h1", timezone="UTC"))
        store.add_rule(AvailabilityRule(
            id="r1", host_id="h1", day_of_week=2, start_time="09:00", end_time="10:00", timezone="UTC",
        ))
        return store

    def test_link_for_unknown_host(self):
        with pytest.raises(ValueError):
            InMemoryStore().add_link(BookingLink(slug="x", host_id="ghost"))

    def test_rule_for_unknown_host(self):
        with pytest.raises(ValueError):
            InMemoryStore().add_rule(AvailabilityRule(
                host_id="ghost", day_of_week=1, start_time="09:00", end_time="10:00", timezone="UTC",
            ))

    async def test_inactive_rules_hidden(self):
        store = self.make()
        await store.update_rule("h1", "r1", RuleUpdate(is_active=False))
        assert await store.get_rules("h1") == []

    async def test_update_revalidates(self):
        store = self.make()
        with pytest.raises(ValueError):
            await store.update_rule("h1", "r1", RuleUpdate(start_time="11:00"))
        # Original rule untouched
        assert (await store.get_rules("h1"))[0].start_time == time(9, 0)

    async def test_update_unknown_rule(self):
        assert await self.make().update_rule("h1", "nope", RuleUpdate(day_of_week=3)) is None

    async def test_replace_rules_pins_host(self):
        store = self.make()
        count = await store.replace_rules("h1", [
            AvailabilityRule(
                host_id="other", day_of_week=5, start_time="08:00", end_time="09:00", timezone="UTC",
            ),
        ])
        assert count == 1
        rules = await store.get_rules("h1")
        assert [(r.host_id, r.day_of_week) for r in rules] == [("h1", 5)]

    async def test_delete_rule(self):
        store = self.make()
        assert await store.delete_rule("h1", "r1") is True
        assert await store.delete_rule("h1", "r1") is False


class TestTryConfirm:
    def booking(self, start, end, name="Grace") -> Booking:
        return Booking(
            host_id="h1", link_slug="intro", slot_start=start, slot_end=end,
            duration_minutes=int((end - start).total_seconds() // 60),
            guest_name=name, guest_email=f"{name.lower()}@example.com",
        )

    async def test_overlap_rejected(self):
        store = InMemoryStore()
        first = await store.try_confirm("h1", self.booking(utc(2025, 3, 10, 9), utc(2025, 3, 10, 10)))
        second = await store.try_confirm(
            "h1", self.booking(utc(2025, 3, 10, 9, 30), utc(2025, 3, 10, 10, 30), name="Alan")
        )
        assert isinstance(first, Confirmed)
        assert second == Rejected(SLOT_TAKEN)

    async def test_back_to_back_allowed(self):
        store = InMemoryStore()
        await store.try_confirm("h1", self.booking(utc(2025, 3, 10, 9), utc(2025, 3, 10, 10)))
        result = await store.try_confirm(
            "h1", self.booking(utc(2025, 3, 10, 10), utc(2025, 3, 10, 11), name="Alan")
        )
        assert isinstance(result, Confirmed)

    async def test_hosts_are_independent(self):
        store = InMemoryStore()
        b = self.booking(utc(2025, 3, 10, 9), utc(2025, 3, 10, 10))
        assert isinstance(await store.try_confirm("h1", b), Confirmed)
        other = b.model_copy(update={"id": "other", "host_id": "h2"})
        assert isinstance(await store.try_confirm("h2", other), Confirmed)

    async def test_list_bookings_window(self):
        store = InMemoryStore()
        await store.try_confirm("h1", self.booking(utc(2025, 3, 10, 14), utc(2025, 3, 10, 15)))
        await store.try_confirm("h1", self.booking(utc(2025, 3, 10, 9), utc(2025, 3, 10, 10), name="Alan"))

        day = await store.list_bookings("h1", utc(2025, 3, 10), utc(2025, 3, 11))
        assert [b.guest_name for b in day] == ["Alan", "Grace"]
        # Window ending exactly at a booking's start excludes it
        assert await store.list_bookings("h1", utc(2025, 3, 10, 8), utc(2025, 3, 10, 9)) == []
