"""Tests for the JSON store."""

import json

from focusguard.policy.categories import BlockCategory
from focusguard.session.models import Preset, Session, format_remaining


class TestJsonStore:
    def test_empty_store(self, store):
        assert store.load_current_session() is None
        assert store.load_presets() is None
        assert store.load_history() == []

    def test_current_session_round_trip_and_clear(self, store):
        session = Session(
            goal="Ship it", duration=900, start_time=100.0, end_time=1000.0,
            blocked_apps=["Slack"], blocked_websites=["x.com"],
            block_categories=[BlockCategory.NEWS], active=True,
            paused=True, paused_at=400.0, total_paused_time=12.5,
        )
        assert store.save_current_session(session)
        assert store.load_current_session() == session

        assert store.save_current_session(None)
        assert store.load_current_session() is None

    def test_presets_saved_empty_is_not_none(self, store):
        store.save_presets([])
        assert store.load_presets() == []

    def test_history_keeps_order(self, store):
        items = [Session(goal=g) for g in ("a", "b")]
        store.save_history(items)
        assert [s.goal for s in store.load_history()] == ["a", "b"]

    def test_unreadable_entries_are_skipped(self, store):
        good = Preset(name="Keep", duration=60).to_dict()
        store.data_dir.mkdir(parents=True)
        (store.data_dir / "presets.json").write_text(json.dumps([good, {"name": "no id"}]))
        assert [p.name for p in store.load_presets()] == ["Keep"]

    def test_corrupt_file_loads_as_empty(self, store):
        store.data_dir.mkdir(parents=True)
        (store.data_dir / "history.json").write_text("{not json")
        (store.data_dir / "current_session.json").write_text("[]")
        assert store.load_history() == []
        assert store.load_current_session() is None

    def test_write_failure_returns_false(self, tmp_path):
        from focusguard.store.json_store import JsonStore

        blocker = tmp_path / "file"
        blocker.write_text("")
        store = JsonStore(blocker / "data")
        assert store.save_history([Session()]) is False
        assert store.load_history() == []


class TestSessionModel:
    def test_remaining_before_start_is_duration(self):
        assert Session(duration=600).remaining(now=1e9) == 600

    def test_remaining_never_negative(self):
        s = Session(duration=60, start_time=0.0, active=True)
        assert s.remaining(now=1000.0) == 0.0
        assert s.is_completed(now=1000.0)
        assert s.progress(now=1000.0) == 1.0

    def test_copy_is_independent(self):
        s = Session(blocked_apps=["Slack"])
        c = s.copy()
        c.blocked_apps.append("Steam")
        assert s.blocked_apps == ["Slack"]

    def test_format_remaining(self):
        assert format_remaining(0) == "00:00"
        assert format_remaining(65.9) == "01:05"
        assert format_remaining(3725) == "1:02:05"
        assert format_remaining(-5) == "00:00"
