"""
Tests for the Session model: lifecycle state machine, practice rules,
derived values and serialization.
"""

from datetime import datetime, timedelta

import pytest

from kubb_trainer.errors import InvalidState, MalformedRecord
from kubb_trainer.models.phases import FullGamePhase
from kubb_trainer.models.session import Session
from kubb_trainer.models.throw import ThrowTag
from kubb_trainer.models.variant import PracticeMode, SessionState, SessionVariant


class TestStandardPractice:
    """8 m practice: six-baton rounds against the baseline."""

    def test_round_closes_and_next_opens(self):
        """5 hits then a miss closes round 1 and opens round 2."""
        session = Session.practice(30)
        for _ in range(5):
            session.record_throw(True)
        session.record_throw(False)

        assert session.rounds[0].is_complete
        assert session.rounds[0].total_throws == 6
        assert len(session.rounds) == 2
        assert session.current_round.round_number == 2
        assert session.total_hits == 5
        assert session.total_throws == 6
        assert session.accuracy == pytest.approx(5 / 6)

    def test_sixth_baton_after_baseline_clear_is_king(self):
        session = Session.practice(30)
        records = [session.record_throw(True) for _ in range(6)]
        assert [r.tag for r in records[:5]] == [None] * 5
        assert records[5].tag is ThrowTag.KING
        assert session.king_attempts == 1
        assert session.king_hits == 1
        assert session.king_accuracy == 1.0

    def test_no_king_throw_without_baseline_clear(self):
        session = Session.practice(30)
        records = [session.record_throw(i != 2) for i in range(6)]
        assert all(r.tag is None for r in records)

    def test_round_numbers_increase(self):
        session = Session.practice(30)
        for i in range(18):
            session.record_throw(i % 3 != 0)
        assert [r.round_number for r in session.rounds] == [1, 2, 3, 4]

    def test_no_new_round_once_target_reached(self):
        session = Session.practice(6)
        for _ in range(6):
            session.record_throw(True)
        assert session.is_target_reached
        assert session.current_round is None
        assert len(session.rounds) == 1

    def test_recording_past_target_is_permitted(self):
        """Reaching the target is a signal to stop, not a hard limit."""
        session = Session.practice(6)
        for _ in range(7):
            session.record_throw(False)
        assert session.total_throws == 7
        assert len(session.rounds) == 2
        assert session.progress_percentage == 1.0

    def test_baseline_clears_and_progress(self):
        session = Session.practice(12)
        for i in range(12):
            session.record_throw(i < 6)
        assert session.baseline_clears == 1
        assert session.progress_percentage == 1.0

    def test_reset_current_round(self):
        session = Session.practice(30)
        for _ in range(6):
            session.record_throw(True)
        session.record_throw(True)
        session.record_throw(False)

        fresh = session.reset_current_round()
        assert fresh.round_number == 2
        assert fresh.total_throws == 0
        assert session.total_throws == 6
        assert session.total_hits == 6


class TestAroundThePitch:
    """All throws accumulate into one open round."""

    def test_single_open_round(self):
        session = Session.practice(20, mode=PracticeMode.AROUND_THE_PITCH)
        for i in range(14):
            session.record_throw(i % 2 == 0)
        assert len(session.rounds) == 1
        assert not session.rounds[0].is_complete
        assert session.current_round is session.rounds[0]

    def test_baseline_alternates_by_throw_parity(self):
        session = Session.practice(20, mode=PracticeMode.AROUND_THE_PITCH)
        seen = []
        for _ in range(4):
            seen.append(session.current_baseline)
            session.record_throw(False)
        assert seen == [1, 2, 1, 2]

    def test_king_after_all_field_kubbs(self):
        session = Session.practice(20, mode=PracticeMode.AROUND_THE_PITCH)
        for _ in range(10):
            assert session.record_throw(True).tag is None
        king = session.record_throw(True)
        assert king.tag is ThrowTag.KING
        assert session.all_targets_down
        assert session.is_target_reached
        assert session.met_target

    def test_target_is_a_par_not_a_cap(self):
        """Using up the par does not end the session while kubbs stand."""
        session = Session.practice(20, mode=PracticeMode.AROUND_THE_PITCH)
        for _ in range(20):
            session.record_throw(False)
        assert not session.is_target_reached
        assert not session.met_target
        assert session.is_incomplete()
        assert session.current_round is session.rounds[0]

    def test_king_over_par_reaches_but_misses_target(self):
        session = Session.practice(12, mode=PracticeMode.AROUND_THE_PITCH)
        for _ in range(5):
            session.record_throw(False)
        for _ in range(11):
            session.record_throw(True)
        assert session.total_throws == 16
        assert session.is_target_reached
        assert not session.met_target

    def test_king_exactly_on_par_meets_target(self):
        session = Session.practice(12, mode=PracticeMode.AROUND_THE_PITCH)
        session.record_throw(False)
        for _ in range(11):
            session.record_throw(True)
        assert session.total_throws == 12
        assert session.met_target


class TestLifecycle:
    """Active → paused → complete transitions."""

    def test_initial_state(self):
        session = Session.practice(30)
        assert session.state is SessionState.ACTIVE
        assert session.variant is SessionVariant.PRACTICE
        assert session.end_time is None

    def test_pause_stamps_and_resume_clears_end_time(self):
        session = Session.practice(30)
        session.record_throw(True)
        session.pause()
        assert session.state is SessionState.PAUSED
        assert session.end_time is not None
        assert session.total_throws == 1

        session.resume()
        assert session.state is SessionState.ACTIVE
        assert session.end_time is None

    def test_recording_while_paused_is_rejected(self):
        session = Session.practice(30)
        session.pause()
        with pytest.raises(InvalidState):
            session.record_throw(True)
        assert session.total_throws == 0

    def test_paused_practice_rejects_round_reset(self):
        session = Session.practice(30)
        session.record_throw(True)
        session.pause()
        with pytest.raises(InvalidState):
            session.reset_current_round()
        assert session.total_throws == 1
        assert session.current_round.total_throws == 1

    def test_paused_inkast_blast_rejects_inkast(self, rng):
        session = Session.inkast_blast(target=2, first_round_kubbs=5, rng=rng)
        session.pause()
        with pytest.raises(InvalidState):
            session.record_inkast(1)
        assert session.current_round.inkast.out_first_attempt == 0

    def test_paused_full_game_rejects_phase_changes(self):
        game = Session.full_game()
        game.record_throw(True)
        game.pause()
        with pytest.raises(InvalidState):
            game.next_phase()
        with pytest.raises(InvalidState):
            game.complete_round()
        assert game.details.current_phase is FullGamePhase.ATTACKING
        assert not game.rounds[0].is_complete

        game.resume()
        assert game.next_phase() is FullGamePhase.ROUND_COMPLETE

    def test_clock_stamps_end_time_and_modified_at(self, clock):
        session = Session.practice(30, clock=clock, modified_at=clock.now)
        clock.advance(minutes=10)
        session.pause()
        assert session.end_time == clock.now
        assert session.modified_at == clock.now

        clock.advance(minutes=5)
        session.resume()
        assert session.modified_at == clock.now
        session.complete()
        assert session.end_time == clock.now

    def test_duration_uses_clock_while_running(self, clock):
        session = Session.practice(30, clock=clock, start_time=clock.now)
        clock.advance(minutes=12)
        assert session.duration_minutes == pytest.approx(12.0)

    def test_completed_session_is_frozen(self):
        session = Session.practice(30)
        session.record_throw(True)
        session.complete()
        assert session.state is SessionState.COMPLETE
        assert session.end_time is not None

        with pytest.raises(InvalidState):
            session.record_throw(True)
        with pytest.raises(InvalidState):
            session.pause()
        with pytest.raises(InvalidState):
            session.reset_current_round()
        assert session.total_throws == 1
        assert sum(r.total_throws for r in session.rounds) == 1

    def test_complete_twice_is_noop(self):
        session = Session.practice(30)
        session.complete()
        end, modified = session.end_time, session.modified_at
        session.complete()
        assert session.end_time == end
        assert session.modified_at == modified

    def test_complete_from_paused(self):
        session = Session.practice(30)
        session.pause()
        session.complete()
        assert session.is_complete
        assert not session.is_paused

    def test_modified_at_never_decreases(self):
        future = datetime.now() + timedelta(days=1)
        session = Session.practice(30, modified_at=future)
        session.record_throw(True)
        assert session.modified_at == future

    def test_hits_never_exceed_throws(self):
        session = Session.practice(30)
        for i in range(20):
            session.record_throw(i % 4 != 0)
            assert 0 <= session.total_hits <= session.total_throws


class TestAutoCompletion:
    """Sessions left open on an earlier day complete on inspection."""

    def _yesterday_session(self) -> Session:
        yesterday = datetime(2026, 10, 13, 19, 30)
        session = Session.practice(30, date=yesterday, start_time=yesterday,
                                   created_at=yesterday, modified_at=yesterday)
        return session

    def test_stale_session_completes_once(self):
        session = self._yesterday_session()
        now = datetime(2026, 10, 14, 8, 0)
        modified = session.modified_at

        assert session.auto_complete(today=now, now=now)
        assert session.is_complete
        assert session.end_time == now
        assert session.modified_at == modified

        assert not session.auto_complete(today=now, now=now + timedelta(hours=1))
        assert session.end_time == now
        assert session.modified_at == modified

    def test_keeps_existing_end_time(self):
        session = self._yesterday_session()
        session.is_paused = True
        session.end_time = datetime(2026, 10, 13, 20, 0)
        session.auto_complete(today=datetime(2026, 10, 14, 8, 0))
        assert session.end_time == datetime(2026, 10, 13, 20, 0)
        assert not session.is_paused

    def test_same_day_is_untouched(self):
        """Date comparison only: hours of inactivity do not matter."""
        session = self._yesterday_session()
        assert not session.auto_complete(today=datetime(2026, 10, 13, 23, 59))
        assert not session.is_complete


class TestIncomplete:

    def test_incomplete_when_stopped_short_today(self):
        session = Session.practice(30)
        session.record_throw(True)
        assert session.is_incomplete()

    def test_not_incomplete_on_other_day_or_complete(self):
        session = Session.practice(30)
        assert not session.is_incomplete(today=datetime.now() + timedelta(days=2))
        session.complete()
        assert not session.is_incomplete()


class TestSessionSerialization:

    def test_round_trip(self):
        session = Session.practice(30)
        for i in range(9):
            session.record_throw(i % 3 != 0)
        session.pause()

        restored = Session.from_dict(session.to_dict())
        assert restored == session
        assert restored.variant is SessionVariant.PRACTICE
        assert [len(r.throws) for r in restored.rounds] == [6, 3]

    def test_malformed_data_raises(self):
        data = Session.practice(30).to_dict()
        del data["rounds"]
        with pytest.raises(MalformedRecord):
            Session.from_dict(data)

    def test_unknown_variant_raises(self):
        data = Session.practice(30).to_dict()
        data["variant"] = "curling"
        with pytest.raises(MalformedRecord):
            Session.from_dict(data)
