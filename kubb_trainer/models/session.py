"""
Session model for Kubb Trainer.

A session is one training period: an ordered list of rounds plus
cumulative counters, moving through active → paused → complete. The
three training variants share this one class; everything variant-specific
lives in the `details` payload (PracticeDetails, InkastBlastDetails or
FullGameDetails), which the session dispatches to.
"""

import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Union

from kubb_trainer.errors import InvalidState, MalformedRecord
from kubb_trainer.models.full_game import FullGameDetails
from kubb_trainer.models.inkast_blast import InkastBlastDetails
from kubb_trainer.models.phases import FullGamePhase, InkastPhase
from kubb_trainer.models.practice import PracticeDetails
from kubb_trainer.models.round import InkastResult, Round
from kubb_trainer.models.throw import ThrowRecord, ThrowStage, ThrowTag
from kubb_trainer.models.variant import PracticeMode, SessionState, SessionVariant
from kubb_trainer.rules import current_baseline, is_same_day

logger = logging.getLogger(__name__)

SessionDetails = Union[PracticeDetails, InkastBlastDetails, FullGameDetails]

DETAILS_BY_VARIANT = {
    SessionVariant.PRACTICE: PracticeDetails,
    SessionVariant.INKAST_BLAST: InkastBlastDetails,
    SessionVariant.FULL_GAME_SIM: FullGameDetails,
}


@dataclass
class Session:
    """A training session containing multiple rounds.

    Attributes:
        details: Variant payload; also determines `variant`.
        target: Throw budget (practice) or round count (other variants).
                0 means open-ended.
        id: Unique identifier.
        date: Calendar day the session belongs to.
        total_hits: Cumulative hits across all rounds.
        total_throws: Cumulative throws across all rounds.
        start_time: When the session started.
        end_time: Stamped on pause and completion, cleared on resume.
        is_complete: No further mutation once set.
        is_paused: Temporarily suspended.
        rounds: Rounds in play order.
        created_at: Creation timestamp.
        modified_at: Last mutation timestamp, never moves backwards.
        rng: Random source for drawing Inkast-Blast kubb counts (not persisted).
        clock: Source of "now" for end times and modified_at (not persisted).
    """
    details: SessionDetails
    target: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    date: datetime = field(default_factory=datetime.now)
    total_hits: int = 0
    total_throws: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    is_complete: bool = False
    is_paused: bool = False
    rounds: list[Round] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    modified_at: datetime = field(default_factory=datetime.now)
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)
    clock: Callable[[], datetime] = field(default=datetime.now, repr=False, compare=False)

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def practice(cls, target: int, mode: PracticeMode = PracticeMode.STANDARD,
                 **kwargs) -> "Session":
        """Start a practice session with its first round open."""
        session = cls(details=PracticeDetails(mode=mode), target=target, **kwargs)
        session.open_round()
        return session

    @classmethod
    def inkast_blast(cls, game_phase: InkastPhase = InkastPhase.ALL,
                     target: int = 0,
                     first_round_kubbs: Optional[int] = None,
                     rng: Optional[random.Random] = None,
                     **kwargs) -> "Session":
        """Start an Inkast-Blast session; round 1's kubb count is drawn from
        `game_phase` unless given."""
        session = cls(
            details=InkastBlastDetails(game_phase=game_phase),
            target=target,
            rng=rng or random.Random(),
            **kwargs,
        )
        session.open_round(kubbs=first_round_kubbs)
        return session

    @classmethod
    def full_game(cls, target: int = 0, **kwargs) -> "Session":
        """Start a full game simulation in round 1's attacking phase."""
        session = cls(details=FullGameDetails(), target=target, **kwargs)
        session.open_round()
        return session

    @property
    def variant(self) -> SessionVariant:
        return self.details.variant

    @property
    def practice_mode(self) -> Optional[PracticeMode]:
        if isinstance(self.details, PracticeDetails):
            return self.details.mode
        return None

    @property
    def title(self) -> str:
        if isinstance(self.details, PracticeDetails):
            return self.details.mode.display_name
        if isinstance(self.details, InkastBlastDetails):
            return f"Inkast & Blast ({self.details.game_phase.display_name})"
        return "Full Game Sim"

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def state(self) -> SessionState:
        if self.is_complete:
            return SessionState.COMPLETE
        if self.is_paused:
            return SessionState.PAUSED
        return SessionState.ACTIVE

    def _touch(self, now: Optional[datetime] = None):
        now = now or self.clock()
        self.modified_at = max(self.modified_at, now)

    def _require_mutable(self, action: str):
        if self.is_complete:
            raise InvalidState(f"Cannot {action}: session is complete", session_id=self.id)

    def _require_active(self, action: str):
        """Guard for every mutation other than pause, resume and complete."""
        self._require_mutable(action)
        if self.is_paused:
            raise InvalidState(f"Cannot {action}: session is paused", session_id=self.id)

    def pause(self):
        """Suspend the session; the end time is stamped for elapsed-time bookkeeping."""
        self._require_mutable("pause")
        if self.is_paused:
            return
        self.is_paused = True
        self.end_time = self.clock()
        self._touch(self.end_time)

    def resume(self):
        self._require_mutable("resume")
        if not self.is_paused:
            return
        self.is_paused = False
        self.end_time = None
        self._touch()

    def complete(self):
        """Mark the session complete. A no-op if it already is."""
        if self.is_complete:
            return
        self.is_complete = True
        self.is_paused = False
        self.end_time = self.clock()
        self._touch(self.end_time)

    def auto_complete(self, today: Optional[datetime] = None,
                      now: Optional[datetime] = None) -> bool:
        """Complete a stale session left open on an earlier calendar day.

        Only the end time is back-filled; modified_at is left alone so the
        session does not look recently changed. Applying it again, or to a
        session dated today, changes nothing.

        Returns:
            True if the session was completed by this call.
        """
        if self.is_complete:
            return False
        today = today or self.clock()
        if is_same_day(self.date, today):
            return False
        self.is_complete = True
        self.is_paused = False
        self.end_time = self.end_time or now or self.clock()
        logger.info(f"Auto-completed stale session {self.id} from {self.date:%Y-%m-%d}")
        return True

    # =========================================================================
    # Rounds and throws
    # =========================================================================

    @property
    def current_round(self) -> Optional[Round]:
        """The open round, or None right after the last one closed."""
        if self.rounds and not self.rounds[-1].is_complete:
            return self.rounds[-1]
        return None

    @property
    def completed_rounds(self) -> list[Round]:
        return [r for r in self.rounds if r.is_complete]

    def open_round(self, kubbs: Optional[int] = None) -> Round:
        round_ = self.details.make_round(self, kubbs)
        self.rounds.append(round_)
        return round_

    def count_throw(self, record: ThrowRecord):
        """Fold a freshly appended throw into the session counters."""
        self.total_throws += 1
        if record.is_hit:
            self.total_hits += 1

    def record_throw(self, is_hit: bool, units_affected: Optional[int] = None,
                     tag: Optional[ThrowTag] = None) -> ThrowRecord:
        """Record one baton in the current round.

        The variant decides the round, the throw's classification and
        whether the round closes (opening the next one).

        Raises:
            InvalidState: The session is complete or paused, or the throw
                breaks a variant rule.
        """
        self._require_active("record a throw")
        record = self.details.record_throw(self, is_hit, units_affected, tag)
        self._touch()
        logger.debug(
            f"Session {self.id}: {'hit' if is_hit else 'miss'} "
            f"({self.total_hits}/{self.total_throws})"
        )
        return record

    def record_inkast(self, out_first_attempt: int, out_second_attempt: int = 0,
                      neighbors: int = 0, kubbs: Optional[int] = None) -> Round:
        """Record inkast placement (Inkast-Blast and full game only)."""
        self._require_active("record an inkast")
        if isinstance(self.details, PracticeDetails):
            raise InvalidState("Practice sessions have no inkast", session_id=self.id)
        round_ = self.details.record_inkast(
            self, out_first_attempt, out_second_attempt, neighbors, kubbs
        )
        self._touch()
        return round_

    def reset_current_round(self) -> Round:
        """Discard the open round's throws, keeping its number and setup."""
        self._require_active("reset a round")
        if isinstance(self.details, FullGameDetails):
            raise InvalidState("Full game rounds cannot be reset", session_id=self.id)
        current = self.current_round
        if current is None:
            raise InvalidState("No open round to reset", session_id=self.id)
        self.total_throws -= current.total_throws
        self.total_hits -= current.hits
        fresh = Round(
            round_number=current.round_number,
            closure=current.closure,
            target_count=current.target_count,
            max_throws=current.max_throws,
            inkast=InkastResult(kubbs=current.inkast.kubbs) if current.inkast else None,
        )
        self.rounds[-1] = fresh
        self._touch()
        return fresh

    # =========================================================================
    # Full game phase machine
    # =========================================================================

    def _full_game(self, action: str) -> FullGameDetails:
        if not isinstance(self.details, FullGameDetails):
            raise InvalidState(f"Cannot {action}: not a full game simulation",
                               session_id=self.id)
        return self.details

    def next_phase(self) -> FullGamePhase:
        self._require_active("advance the phase")
        phase = self._full_game("advance the phase").next_phase(self)
        self._touch()
        return phase

    def complete_round(self) -> Round:
        self._require_active("complete a round")
        round_ = self._full_game("complete a round").complete_round(self)
        self._touch()
        return round_

    # =========================================================================
    # Derived values
    # =========================================================================

    @property
    def accuracy(self) -> float:
        if self.total_throws == 0:
            return 0.0
        return self.total_hits / self.total_throws

    @property
    def is_target_reached(self) -> bool:
        return self.details.is_target_reached(self)

    @property
    def met_target(self) -> bool:
        """Finished within the target; only around the pitch treats it as a par."""
        if isinstance(self.details, PracticeDetails):
            return self.details.met_target(self)
        return self.is_target_reached

    @property
    def progress_percentage(self) -> float:
        if self.target <= 0:
            return 0.0
        if isinstance(self.details, PracticeDetails):
            done = self.total_throws
        else:
            done = len(self.completed_rounds)
        return min(done / self.target, 1.0)

    def is_incomplete(self, today: Optional[datetime] = None) -> bool:
        """Left open today: paused, or stopped before reaching the target."""
        if self.is_complete:
            return False
        today = today or self.clock()
        return is_same_day(self.date, today) and (self.is_paused or not self.is_target_reached)

    @property
    def duration_minutes(self) -> float:
        end = self.end_time or self.clock()
        return (end - self.start_time).total_seconds() / 60

    def all_throws(self) -> list[ThrowRecord]:
        """Every throw in chronological round/throw order."""
        return [t for r in self.rounds for t in r.throws]

    @property
    def baseline_clears(self) -> int:
        return sum(1 for r in self.rounds if r.has_baseline_clear)

    @property
    def king_attempts(self) -> int:
        return sum(r.king_attempts for r in self.rounds)

    @property
    def king_hits(self) -> int:
        return sum(r.king_hits for r in self.rounds)

    @property
    def king_accuracy(self) -> float:
        if self.king_attempts == 0:
            return 0.0
        return self.king_hits / self.king_attempts

    # Around the pitch

    @property
    def current_baseline(self) -> int:
        return current_baseline(self.total_throws)

    @property
    def all_targets_down(self) -> bool:
        return self.king_hits > 0

    # Inkast-Blast

    @property
    def total_kubbs_placed(self) -> int:
        return sum(r.kubbs_placed for r in self.rounds if r.inkast)

    @property
    def total_penalty_kubbs(self) -> int:
        return sum(r.inkast.penalty_kubbs for r in self.rounds if r.inkast)

    @property
    def total_neighbors(self) -> int:
        return sum(r.inkast.neighbors for r in self.rounds if r.inkast)

    @property
    def total_kubbs_knocked(self) -> int:
        return sum(r.units_knocked for r in self.rounds)

    @property
    def kubbs_per_baton(self) -> float:
        if self.total_throws == 0:
            return 0.0
        return self.total_kubbs_knocked / self.total_throws

    @property
    def penalty_rate(self) -> float:
        if self.total_kubbs_placed == 0:
            return 0.0
        return self.total_penalty_kubbs / self.total_kubbs_placed

    @property
    def neighbor_rate(self) -> float:
        if self.total_kubbs_placed == 0:
            return 0.0
        return self.total_neighbors / self.total_kubbs_placed

    # Full game

    @property
    def attacking_team(self) -> int:
        return self._full_game("read the attacking team").attacking_team

    @property
    def attacking_baton_limit(self) -> int:
        return self._full_game("read the baton limit").baton_limit

    @property
    def overall_handicap(self) -> float:
        """Mean handicap over rounds after the first (undefined rounds count as 0)."""
        scored = [r for r in self.rounds if r.round_number > 1]
        if not scored:
            return 0.0
        return sum(r.handicap or 0 for r in scored) / len(scored)

    @property
    def outcome(self) -> Optional[str]:
        if not isinstance(self.details, FullGameDetails) or not self.is_complete:
            return None
        return "Victory" if self.details.king_hit else "Defeat"

    @property
    def eight_meter_accuracy(self) -> float:
        throws = [t for r in self.rounds for t in r.throws_in_stage(ThrowStage.EIGHT_METER)]
        if not throws:
            return 0.0
        return sum(1 for t in throws if t.is_hit) / len(throws)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "variant": self.variant.value,
            "date": self.date.isoformat(),
            "target": self.target,
            "total_hits": self.total_hits,
            "total_throws": self.total_throws,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "is_complete": self.is_complete,
            "is_paused": self.is_paused,
            "details": self.details.to_dict(),
            "rounds": [r.to_dict() for r in self.rounds],
            "created_at": self.created_at.isoformat(),
            "modified_at": self.modified_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        """Rebuild a session from `to_dict` output.

        Raises:
            MalformedRecord: The data does not describe a session.
        """
        try:
            details_cls = DETAILS_BY_VARIANT[SessionVariant(data["variant"])]
            end_time = data.get("end_time")
            return cls(
                details=details_cls.from_dict(data["details"]),
                target=int(data["target"]),
                id=data["id"],
                date=datetime.fromisoformat(data["date"]),
                total_hits=int(data["total_hits"]),
                total_throws=int(data["total_throws"]),
                start_time=datetime.fromisoformat(data["start_time"]),
                end_time=datetime.fromisoformat(end_time) if end_time else None,
                is_complete=bool(data["is_complete"]),
                is_paused=bool(data["is_paused"]),
                rounds=[Round.from_dict(r) for r in data["rounds"]],
                created_at=datetime.fromisoformat(data["created_at"]),
                modified_at=datetime.fromisoformat(data["modified_at"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedRecord(f"Cannot decode session: {e}",
                                  session_id=data.get("id")) from e
