"""
Tests for the session lifecycle manager.

Uses a temporary database and pointer file with a fixed clock so the
auto-completion day check is deterministic.
"""

from datetime import timedelta

import pytest

from kubb_trainer.errors import InvalidState, NotFound
from kubb_trainer.lifecycle import LifecycleManager
from kubb_trainer.models.phases import FullGamePhase, InkastPhase
from kubb_trainer.models.variant import PracticeMode, SessionVariant
from kubb_trainer.models.watch import WatchThrowEvent

PRACTICE = SessionVariant.PRACTICE


class TestStartAndResume:

    def test_start_persists_and_points(self, manager, db, pointers, clock):
        session = manager.start_session(PRACTICE, target=30)
        assert manager.active_session(PRACTICE) is session
        assert pointers.get(PRACTICE) == session.id
        assert db.read_session(session.id) == session
        assert session.date == clock.now

    def test_start_emits_signal(self, manager, qtbot):
        with qtbot.waitSignal(manager.session_started) as blocker:
            session = manager.start_session(PRACTICE, target=30)
        assert blocker.args == [session]

    def test_one_active_session_per_variant(self, manager, db):
        first = manager.start_session(PRACTICE, target=30)
        manager.record_throw(PRACTICE, True)
        second = manager.start_session(PRACTICE, target=30)

        assert manager.active_session(PRACTICE) is second
        stored = db.read_session(first.id)
        assert stored.is_complete
        assert stored.total_throws == 1

    def test_variants_have_separate_slots(self, manager):
        practice = manager.start_session(PRACTICE, target=30)
        game = manager.start_session(SessionVariant.FULL_GAME_SIM)
        assert manager.active_session(PRACTICE) is practice
        assert manager.active_session(SessionVariant.FULL_GAME_SIM) is game
        assert not practice.is_complete

    def test_start_inkast_blast_options(self, manager, rng):
        session = manager.start_session(SessionVariant.INKAST_BLAST, target=3,
                                        game_phase=InkastPhase.EARLY,
                                        first_round_kubbs=2, rng=rng)
        assert session.details.game_phase is InkastPhase.EARLY
        assert session.current_round.target_count == 2

    def test_restores_active_sessions(self, manager, db, pointers, clock):
        session = manager.start_session(PRACTICE, target=30, mode=PracticeMode.AROUND_THE_PITCH)
        manager.record_throw(PRACTICE, True)

        restored = LifecycleManager(db, pointers, clock=clock)
        active = restored.active_session(PRACTICE)
        assert active == session

    def test_drops_pointer_to_missing_session(self, db, pointers, clock, qtbot):
        pointers.set(PRACTICE, "gone")
        manager = LifecycleManager(db, pointers, clock=clock)
        assert manager.active_session(PRACTICE) is None
        assert pointers.get(PRACTICE) is None

    def test_resume_paused_session(self, manager):
        session = manager.start_session(PRACTICE, target=30)
        manager.pause_session(PRACTICE)
        resumed = manager.resume_session(session.id)
        assert resumed.id == session.id
        assert not resumed.is_paused
        assert manager.active_session(PRACTICE) is resumed

    def test_resume_missing_returns_none(self, manager):
        assert manager.resume_session("nope") is None

    def test_resume_completed_rejected(self, manager):
        session = manager.start_session(PRACTICE, target=30)
        manager.complete_session(PRACTICE)
        with pytest.raises(InvalidState):
            manager.resume_session(session.id)

    def test_resume_stale_session_auto_completes(self, manager, db, pointers, clock, qtbot):
        """The stale session leaves the active slot and cannot be written again."""
        session = manager.start_session(PRACTICE, target=30)
        manager.record_throw(PRACTICE, True)
        manager.pause_session(PRACTICE)
        clock.advance(days=1)

        with qtbot.waitSignals([manager.session_completed, manager.active_sessions_changed]):
            with pytest.raises(InvalidState):
                manager.resume_session(session.id)

        assert manager.active_session(PRACTICE) is None
        assert pointers.get(PRACTICE) is None
        assert session.is_complete
        with pytest.raises(InvalidState):
            manager.unpause_session(PRACTICE)
        assert manager.record_throw(PRACTICE, True, session_id=session.id) is None

        stored = db.read_session(session.id)
        assert stored.is_complete
        assert not stored.is_paused
        assert stored.total_throws == 1

    def test_resume_stale_stored_session_leaves_other_active(self, manager, db, clock):
        stale = manager.start_session(PRACTICE, target=30)
        manager.complete_session(PRACTICE)
        stored = db.read_session(stale.id)
        stored.is_complete = False
        stored.is_paused = True
        db.update_session(stored)

        clock.advance(days=1)
        current = manager.start_session(PRACTICE, target=30)
        with pytest.raises(InvalidState):
            manager.resume_session(stale.id)
        assert manager.active_session(PRACTICE) is current
        assert db.read_session(stale.id).is_complete


class TestThrows:

    def test_record_throw_persists(self, manager, db):
        session = manager.start_session(PRACTICE, target=30)
        record = manager.record_throw(PRACTICE, True)
        assert record.is_hit
        assert db.read_session(session.id).total_hits == 1

    def test_record_without_active_session_is_ignored(self, manager):
        assert manager.record_throw(PRACTICE, True) is None

    def test_mismatched_session_id_is_ignored(self, manager):
        session = manager.start_session(PRACTICE, target=30)
        assert manager.record_throw(PRACTICE, True, session_id="other") is None
        assert session.total_throws == 0

    def test_watch_event_routed_by_session_id(self, manager):
        practice = manager.start_session(PRACTICE, target=30)
        blast = manager.start_session(SessionVariant.INKAST_BLAST, first_round_kubbs=4)

        manager.handle_throw_event(WatchThrowEvent(blast.id, True, units_affected=2))
        assert blast.current_round.kubbs_remaining == 2
        assert practice.total_throws == 0

        assert manager.handle_throw_event(WatchThrowEvent("stale", True)) is None

    def test_rejected_throw_propagates(self, manager):
        manager.start_session(PRACTICE, target=30)
        manager.pause_session(PRACTICE)
        with pytest.raises(InvalidState):
            manager.record_throw(PRACTICE, True)

    def test_update_signal(self, manager, qtbot):
        manager.start_session(PRACTICE, target=30)
        with qtbot.waitSignal(manager.session_updated):
            manager.record_throw(PRACTICE, False)

    def test_full_game_operations(self, manager, db):
        game = manager.start_session(SessionVariant.FULL_GAME_SIM)
        manager.record_throw(SessionVariant.FULL_GAME_SIM, True)
        assert manager.advance_phase() is FullGamePhase.ROUND_COMPLETE
        assert manager.advance_phase() is FullGamePhase.ATTACKING
        manager.advance_phase()
        manager.record_inkast(SessionVariant.FULL_GAME_SIM, 0, 0, kubbs=2)
        manager.complete_round()

        stored = db.read_session(game.id)
        assert stored.details.current_round == 2
        assert stored.details.current_phase is FullGamePhase.ROUND_COMPLETE

    def test_operations_need_active_session(self, manager):
        with pytest.raises(InvalidState):
            manager.advance_phase()
        with pytest.raises(InvalidState):
            manager.pause_session(PRACTICE)

    def test_reset_current_round(self, manager):
        session = manager.start_session(PRACTICE, target=30)
        manager.record_throw(PRACTICE, True)
        manager.reset_current_round(PRACTICE)
        assert session.total_throws == 0


class TestCompletion:

    def test_complete_clears_slot(self, manager, db, pointers, qtbot):
        session = manager.start_session(PRACTICE, target=30)
        with qtbot.waitSignal(manager.session_completed):
            manager.complete_session(PRACTICE)
        assert manager.active_session(PRACTICE) is None
        assert pointers.get(PRACTICE) is None
        assert db.read_session(session.id).is_complete

    def test_foreground_auto_completes_stale_sessions(self, manager, db, pointers, clock):
        session = manager.start_session(PRACTICE, target=30)
        manager.record_throw(PRACTICE, True)
        modified = db.read_session(session.id).modified_at

        clock.advance(days=1)
        completed = manager.handle_app_foreground()

        assert [s.id for s in completed] == [session.id]
        stored = db.read_session(session.id)
        assert stored.is_complete
        assert stored.end_time is not None
        assert stored.modified_at == modified
        assert manager.active_session(PRACTICE) is None
        assert pointers.get(PRACTICE) is None

        assert manager.handle_app_foreground() == []

    def test_foreground_keeps_todays_sessions(self, manager, clock):
        manager.start_session(PRACTICE, target=30)
        clock.advance(hours=5)
        assert manager.handle_app_foreground() == []
        assert manager.active_session(PRACTICE) is not None

    def test_starting_over_stale_session_auto_completes_it(self, manager, db, clock):
        stale = manager.start_session(PRACTICE, target=30)
        modified = stale.modified_at
        clock.advance(days=2)
        manager.start_session(PRACTICE, target=30)
        stored = db.read_session(stale.id)
        assert stored.is_complete
        assert stored.modified_at == modified

    def test_timestamps_follow_manager_clock(self, manager, db, clock):
        session = manager.start_session(PRACTICE, target=30)
        clock.advance(minutes=20)
        manager.record_throw(PRACTICE, True)
        assert session.modified_at == clock.now

        clock.advance(minutes=5)
        manager.pause_session(PRACTICE)
        assert db.read_session(session.id).end_time == clock.now

        clock.advance(minutes=5)
        manager.unpause_session(PRACTICE)
        clock.advance(minutes=10)
        manager.complete_session(PRACTICE)
        stored = db.read_session(session.id)
        assert stored.end_time == clock.now
        assert stored.duration_minutes == pytest.approx(40.0)

    def test_restored_session_uses_manager_clock(self, db, pointers, clock, qtbot):
        first = LifecycleManager(db, pointers, clock=clock)
        session = first.start_session(PRACTICE, target=30)

        clock.advance(hours=1)
        second = LifecycleManager(db, pointers, clock=clock)
        second.pause_session(PRACTICE)
        assert second.active_session(PRACTICE).end_time == clock.now
        assert db.read_session(session.id).end_time == clock.now

    def test_background_flushes(self, manager, db):
        session = manager.start_session(PRACTICE, target=30)
        session.record_throw(True)  # mutated behind the manager's back
        manager.handle_app_background()
        assert db.read_session(session.id).total_throws == 1


class TestQueries:

    def test_get_session(self, manager):
        session = manager.start_session(PRACTICE, target=30)
        assert manager.get_session(session.id) is session
        manager.complete_session(PRACTICE)
        assert manager.get_session(session.id).id == session.id
        with pytest.raises(NotFound):
            manager.get_session("missing")

    def test_history_and_counts(self, manager, clock):
        manager.start_session(PRACTICE, target=30)
        clock.advance(minutes=30)
        manager.start_session(PRACTICE, target=30)
        manager.start_session(SessionVariant.FULL_GAME_SIM)

        assert len(manager.all_sessions(PRACTICE)) == 2
        assert manager.session_counts()[PRACTICE] == 2
        found = manager.sessions_by_date_range(
            PRACTICE, clock.now - timedelta(minutes=10), clock.now + timedelta(minutes=10)
        )
        assert len(found) == 1

    def test_delete_active_session(self, manager, pointers):
        session = manager.start_session(PRACTICE, target=30)
        assert manager.delete_session(session.id)
        assert manager.active_session(PRACTICE) is None
        assert pointers.get(PRACTICE) is None

    def test_delete_all(self, manager):
        manager.start_session(PRACTICE, target=30)
        manager.start_session(SessionVariant.FULL_GAME_SIM)
        assert manager.delete_all() == 2
        assert manager.active_sessions == {}
