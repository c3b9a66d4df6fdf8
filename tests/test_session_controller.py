"""Tests for the session state machine, snooze integration and history."""

import pytest

from focusguard.enforcement.events import (
    SESSION_CHANGED,
    SESSION_COMPLETED,
    SNOOZE_REQUESTED,
)
from focusguard.policy.categories import BlockCategory
from focusguard.policy.targets import TargetKind
from focusguard.session.controller import SessionController, SessionState
from focusguard.session.models import Session
from focusguard.store.json_store import JsonStore



def _session(**kwargs) -> Session:
    kwargs.setdefault("goal", "Write report")
    kwargs.setdefault("duration", 1500)
    kwargs.setdefault("block_categories", [BlockCategory.SOCIAL_MEDIA])
    return Session(**kwargs)


class TestTransitions:
    def test_starts_idle(self, controller):
        assert controller.state == SessionState.IDLE
        assert controller.current_session is None
        assert controller.remaining() == 0.0
        assert controller.desired_policy().is_empty

    def test_start_applies_policy(self, controller, app_enforcer, website_enforcer, clock):
        started = controller.start(_session(blocked_apps=["Slack.app"]))
        assert started.active
        assert started.start_time == clock.now
        assert started.end_time == clock.now + 1500
        assert started.blocked_apps == ["Slack"]
        assert controller.state == SessionState.ACTIVE
        assert "Twitter" in app_enforcer.blocked_apps
        assert "Slack" in app_enforcer.blocked_apps
        assert "reddit.com" in website_enforcer.blocked_websites

    def test_start_rejected_while_active(self, controller):
        controller.start(_session())
        assert controller.start(_session(goal="other")) is None
        assert controller.current_session.goal == "Write report"

    def test_guarded_transitions_from_idle(self, controller):
        assert controller.pause() is False
        assert controller.resume() is False
        assert controller.extend(60) is False
        assert controller.stop() is None
        assert controller.state == SessionState.IDLE

    def test_pause_lifts_and_resume_reapplies(self, controller, app_enforcer, website_enforcer):
        controller.start(_session())
        assert controller.pause()
        assert controller.state == SessionState.PAUSED
        assert app_enforcer.blocked_apps == []
        assert website_enforcer.blocked_websites == []
        assert controller.pause() is False

        assert controller.resume()
        assert controller.state == SessionState.ACTIVE
        assert "Twitter" in app_enforcer.blocked_apps
        assert controller.resume() is False

    def test_stop_records_history_and_lifts(self, controller, app_enforcer, capability, clock):
        capability.launch("Twitter")
        controller.start(_session())
        app_enforcer.poll()
        clock.advance(600)

        record = controller.stop()
        assert record.active is False
        assert record.end_time == clock.now
        assert controller.state == SessionState.IDLE
        assert app_enforcer.blocked_apps == []
        assert capability.restored == ["Twitter"]
        assert [s.id for s in controller.history()] == [record.id]

    def test_no_block_action_after_stop(self, controller, app_enforcer, capability):
        controller.start(_session())
        controller.stop()
        capability.launch("Twitter")
        assert app_enforcer.poll() == []
        assert capability.suppressed == []

    def test_stop_while_paused_counts_the_pause(self, controller, clock):
        controller.start(_session())
        clock.advance(100)
        controller.pause()
        clock.advance(50)
        record = controller.stop()
        assert record.total_paused_time == 50
        assert record.paused is False

    def test_extend_adds_time(self, controller, clock):
        controller.start(_session())
        clock.advance(100)
        assert controller.extend(300)
        assert controller.remaining() == pytest.approx(1700)
        assert controller.current_session.duration == 1800
        assert controller.extend(0) is False

    def test_extend_rejected_while_paused(self, controller):
        controller.start(_session())
        controller.pause()
        assert controller.extend(60) is False
        assert controller.current_session.duration == 1500

    def test_session_changed_events(self, controller, bus):
        states = []
        bus.subscribe(SESSION_CHANGED, lambda state: states.append(state))
        controller.start(_session())
        controller.pause()
        controller.resume()
        controller.stop()
        assert states == [
            SessionState.ACTIVE, SessionState.PAUSED, SessionState.ACTIVE, SessionState.IDLE,
        ]


class TestTimeline:
    def test_session_completes_after_duration(self, controller, clock, bus, website_enforcer):
        completed = []
        bus.subscribe(SESSION_COMPLETED, lambda session: completed.append(session))
        controller.start(_session(duration=1500))

        clock.advance(1499)
        assert controller.tick() == SessionState.ACTIVE
        clock.advance(1)
        assert controller.tick() == SessionState.COMPLETED

        assert controller.state == SessionState.IDLE
        assert website_enforcer.blocked_websites == []
        (record,) = controller.history()
        assert record.active is False
        assert completed[0].id == record.id
        assert completed[0].block_categories == [BlockCategory.SOCIAL_MEDIA]

    def test_stop_after_completion_records_once(self, controller, clock):
        controller.start(_session(duration=60))
        clock.advance(60)
        assert controller.tick() == SessionState.COMPLETED

        assert controller.stop() is None
        assert len(controller.history()) == 1

    def test_pause_freezes_remaining(self, controller, clock):
        controller.start(_session(duration=1500))
        clock.advance(600)
        assert controller.remaining() == pytest.approx(900)

        controller.pause()
        clock.advance(300)
        assert controller.remaining() == pytest.approx(900)
        assert controller.tick() == SessionState.PAUSED

        controller.resume()
        assert controller.remaining() == pytest.approx(900)
        assert controller.current_session.total_paused_time == pytest.approx(300)

    def test_snapshot_shape(self, controller, clock):
        controller.start(_session(duration=1500))
        clock.advance(300)
        snap = controller.snapshot()
        assert snap["state"] == "active"
        assert snap["remaining_seconds"] == pytest.approx(1200)
        assert snap["remaining_label"] == "20:00"
        assert snap["progress"] == pytest.approx(0.2)
        assert snap["enforcing"] is True
        assert "twitter.com" in snap["policy"]["websites"]


class TestSnoozes:
    def test_snooze_then_expiry_reblocks(self, controller, app_enforcer, clock, timers):
        controller.start(_session())
        controller.snooze("Twitter", TargetKind.APP, 180)

        assert controller.is_app_snoozed("Twitter")
        assert "Twitter" not in app_enforcer.blocked_apps
        assert "Facebook" in app_enforcer.blocked_apps

        clock.advance(181)
        timers.run_due()
        assert not controller.is_app_snoozed("Twitter")
        assert "Twitter" in app_enforcer.blocked_apps

    def test_lazy_expiry_on_tick(self, controller, app_enforcer, clock):
        controller.start(_session())
        controller.snooze("Twitter", TargetKind.APP, 180)
        clock.advance(181)
        controller.tick()
        assert "Twitter" in app_enforcer.blocked_apps

    def test_expiry_during_pause_does_not_reblock(self, controller, app_enforcer, clock, timers):
        controller.start(_session())
        controller.snooze("Twitter", TargetKind.APP, 60)
        controller.pause()
        clock.advance(61)
        timers.run_due()
        assert app_enforcer.blocked_apps == []

        controller.resume()
        assert "Twitter" in app_enforcer.blocked_apps

    def test_snooze_requires_a_session(self, controller):
        assert controller.snooze("Twitter", TargetKind.APP) is None

    def test_website_snooze(self, controller, website_enforcer):
        controller.start(_session())
        controller.snooze("https://www.reddit.com/r/all", TargetKind.WEBSITE, 180)
        assert controller.is_website_snoozed("reddit.com")
        assert "reddit.com" not in website_enforcer.blocked_websites
        assert "reddit.com" not in controller.desired_policy().websites

    def test_snooze_requested_event(self, controller, bus):
        controller.start(_session())
        bus.publish(SNOOZE_REQUESTED, target="Instagram", kind=TargetKind.APP)
        assert controller.is_app_snoozed("Instagram")

    def test_snooze_requested_event_carries_duration(self, controller, bus, clock):
        controller.start(_session())
        bus.publish(SNOOZE_REQUESTED, target="Instagram", kind=TargetKind.APP, duration=60)
        assert controller.snoozes.expires_at("Instagram", TargetKind.APP) == clock.now + 60

    def test_stop_clears_snoozes(self, controller):
        controller.start(_session())
        controller.snooze("Twitter", TargetKind.APP, 180)
        controller.stop()
        assert controller.snoozes.active_entries() == []

    def test_new_session_starts_without_snoozes(self, controller, app_enforcer):
        controller.start(_session())
        controller.snooze("Twitter", TargetKind.APP, 180)
        controller.stop()
        controller.start(_session())
        assert "Twitter" in app_enforcer.blocked_apps


class TestHistory:
    def _run(self, controller, clock, goal):
        controller.start(_session(goal=goal))
        clock.advance(60)
        return controller.stop()

    def test_newest_first_and_limit(self, controller, clock):
        ids = [self._run(controller, clock, g).id for g in ("a", "b", "c")]
        assert [s.id for s in controller.history()] == ids[::-1]
        assert [s.goal for s in controller.history(limit=2)] == ["c", "b"]

    def test_find_and_delete(self, controller, clock):
        record = self._run(controller, clock, "a")
        assert controller.find_history(record.id).goal == "a"
        assert controller.delete_history(record.id)
        assert controller.find_history(record.id) is None
        assert not controller.delete_history(record.id)

    def test_clear(self, controller, clock):
        self._run(controller, clock, "a")
        controller.clear_history()
        assert controller.history() == []


class TestPersistence:
    def _build(self, store, app_enforcer, website_enforcer, snoozes, bus, clock):
        return SessionController(
            app_enforcer, website_enforcer, store=store, snoozes=snoozes, bus=bus, clock=clock
        )

    def test_active_session_is_restored(
        self, tmp_path, app_enforcer, website_enforcer, snoozes, bus, clock
    ):
        store = JsonStore(tmp_path / "restore")
        first = self._build(store, app_enforcer, website_enforcer, snoozes, bus, clock)
        started = first.start(_session())

        app_enforcer.unblock_all()
        second = self._build(store, app_enforcer, website_enforcer, snoozes, bus, clock)
        assert second.state == SessionState.ACTIVE
        assert second.current_session.id == started.id
        assert "Twitter" in app_enforcer.blocked_apps

    def test_paused_session_restores_paused(
        self, tmp_path, app_enforcer, website_enforcer, snoozes, bus, clock
    ):
        store = JsonStore(tmp_path / "restore")
        first = self._build(store, app_enforcer, website_enforcer, snoozes, bus, clock)
        first.start(_session())
        first.pause()

        second = self._build(store, app_enforcer, website_enforcer, snoozes, bus, clock)
        assert second.state == SessionState.PAUSED
        assert app_enforcer.blocked_apps == []

    def test_history_survives_restart(
        self, tmp_path, app_enforcer, website_enforcer, snoozes, bus, clock
    ):
        store = JsonStore(tmp_path / "restore")
        first = self._build(store, app_enforcer, website_enforcer, snoozes, bus, clock)
        first.start(_session())
        record = first.stop()

        second = self._build(store, app_enforcer, website_enforcer, snoozes, bus, clock)
        assert second.state == SessionState.IDLE
        assert [s.id for s in second.history()] == [record.id]

    def test_every_mutation_persists(
        self, memory_store, app_enforcer, website_enforcer, snoozes, bus, clock
    ):
        store = memory_store
        controller = self._build(store, app_enforcer, website_enforcer, snoozes, bus, clock)
        controller.start(_session())
        controller.pause()
        controller.resume()
        controller.extend(60)
        assert store.saves == 4
        assert store.current.duration == 1560

        controller.stop()
        assert store.current is None
        assert len(store.history_items) == 1

    def test_failing_store_keeps_memory_state(
        self, tmp_path, app_enforcer, website_enforcer, snoozes, bus, clock
    ):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        controller = self._build(
            JsonStore(blocker / "data"), app_enforcer, website_enforcer, snoozes, bus, clock
        )
        controller.start(_session())
        assert controller.state == SessionState.ACTIVE
        record = controller.stop()
        assert [s.id for s in controller.history()] == [record.id]
