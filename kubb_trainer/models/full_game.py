"""
Full game simulation payload for Kubb Trainer.

A solo player plays both sides of a game. Each round cycles through the
attacking phase (blast field kubbs, then the baseline from 8 m) and the
inkast phase. Round 1 has no field kubbs and skips inkasting. The
attacking phase is capped at 2 / 4 / 6 batons in rounds 1 / 2 / 3+.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Optional

from kubb_trainer.errors import InvalidState
from kubb_trainer.models.phases import FullGamePhase
from kubb_trainer.models.round import InkastResult, Round, RoundClosure
from kubb_trainer.models.throw import ThrowRecord, ThrowStage, ThrowTag
from kubb_trainer.models.variant import SessionVariant
from kubb_trainer.rules import (
    attacking_baton_limit,
    attacking_team,
    classify_inkast_phase,
    next_full_game_phase,
)
from kubb_trainer.utils.constants import MAX_INKAST_KUBBS, TEAM_BASELINE_KUBBS

if TYPE_CHECKING:
    from kubb_trainer.models.session import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ALine:
    """Field kubbs an attacking team left standing at the end of a round.

    The defending side gets to throw from that advanced line next round.

    Attributes:
        round_number: Round the field kubbs were left in.
        uncleared_kubbs: Field kubbs still standing when the round closed.
        game_phase: Inkast phase of the round's kubb count ("early", "mid", "end").
    """
    round_number: int
    uncleared_kubbs: int
    game_phase: str

    def to_dict(self) -> dict:
        return {
            "round_number": self.round_number,
            "uncleared_kubbs": self.uncleared_kubbs,
            "game_phase": self.game_phase,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ALine":
        return cls(
            round_number=int(data["round_number"]),
            uncleared_kubbs=int(data["uncleared_kubbs"]),
            game_phase=str(data["game_phase"]),
        )


@dataclass
class FullGameDetails:
    """Variant payload for full game simulations.

    Attributes:
        current_round: Round number the phase machine is in.
        current_phase: Attacking, inkast, or round complete.
        team1_baseline_kubbs: Baseline kubbs left for team 1 to knock down.
        team2_baseline_kubbs: Baseline kubbs left for team 2 to knock down.
        king_hit: The king has been knocked over.
        team1_uncleared_kubbs: Field kubbs team 1 left standing in its last round.
        team2_uncleared_kubbs: Field kubbs team 2 left standing in its last round.
        a_lines: One entry per round that closed with field kubbs standing.
    """
    current_round: int = 1
    current_phase: FullGamePhase = FullGamePhase.ATTACKING
    team1_baseline_kubbs: int = TEAM_BASELINE_KUBBS
    team2_baseline_kubbs: int = TEAM_BASELINE_KUBBS
    king_hit: bool = False
    team1_uncleared_kubbs: int = 0
    team2_uncleared_kubbs: int = 0
    a_lines: list[ALine] = field(default_factory=list)

    variant: ClassVar[SessionVariant] = SessionVariant.FULL_GAME_SIM

    # =========================================================================
    # Derived
    # =========================================================================

    @property
    def attacking_team(self) -> int:
        return attacking_team(self.current_round)

    @property
    def baton_limit(self) -> int:
        return attacking_baton_limit(self.current_round)

    def baseline_kubbs(self, team: int) -> int:
        return self.team1_baseline_kubbs if team == 1 else self.team2_baseline_kubbs

    @property
    def current_baseline_kubbs(self) -> int:
        return self.baseline_kubbs(self.attacking_team)

    def _knock_baseline(self, team: int, kubbs: int):
        # Pools only ever shrink, never below zero
        if team == 1:
            self.team1_baseline_kubbs = max(0, self.team1_baseline_kubbs - kubbs)
        else:
            self.team2_baseline_kubbs = max(0, self.team2_baseline_kubbs - kubbs)

    def uncleared_kubbs(self, team: int) -> int:
        return self.team1_uncleared_kubbs if team == 1 else self.team2_uncleared_kubbs

    def a_line_for(self, round_number: int) -> Optional[ALine]:
        for a_line in self.a_lines:
            if a_line.round_number == round_number:
                return a_line
        return None

    def round_data(self, session: "Session") -> Optional[Round]:
        for round_ in session.rounds:
            if round_.round_number == self.current_round:
                return round_
        return None

    @staticmethod
    def attacking_throws(round_: Round) -> int:
        return len(round_.throws_in_stage(ThrowStage.BLAST, ThrowStage.EIGHT_METER))

    @staticmethod
    def field_kubbs_standing(round_: Round) -> int:
        blast_units = sum(t.units_knocked for t in round_.throws_in_stage(ThrowStage.BLAST))
        return max(0, round_.kubbs_placed - blast_units)

    # =========================================================================
    # Rounds and phases
    # =========================================================================

    def make_round(self, session: "Session", kubbs: Optional[int] = None) -> Round:
        return Round(round_number=self.current_round, closure=RoundClosure.EXPLICIT)

    def _current_or_new_round(self, session: "Session") -> Round:
        return self.round_data(session) or session.open_round()

    def _close_round(self, session: "Session") -> Round:
        """Mark the current round complete and settle the field kubbs left standing."""
        round_ = self._current_or_new_round(session)
        round_.is_complete = True
        standing = self.field_kubbs_standing(round_)
        if self.attacking_team == 1:
            self.team1_uncleared_kubbs = standing
        else:
            self.team2_uncleared_kubbs = standing
        if standing > 0 and self.a_line_for(round_.round_number) is None:
            phase = classify_inkast_phase(round_.kubbs_placed)
            self.a_lines.append(ALine(round_.round_number, standing, phase.value))
            logger.info(
                f"A-line in round {round_.round_number}: "
                f"{standing} field kubbs left by team {self.attacking_team}"
            )
        return round_

    def next_phase(self, session: "Session") -> FullGamePhase:
        """Advance the phase machine one step.

        Entering RoundComplete marks the round complete; leaving it opens
        the next round.
        """
        previous = self.current_phase
        self.current_phase, self.current_round = next_full_game_phase(
            self.current_phase, self.current_round
        )
        if self.current_phase is FullGamePhase.ROUND_COMPLETE:
            self._close_round(session)
        elif previous is FullGamePhase.ROUND_COMPLETE:
            session.open_round()
        logger.debug(
            f"Full game {previous.value} -> {self.current_phase.value} "
            f"(round {self.current_round})"
        )
        return self.current_phase

    def complete_round(self, session: "Session") -> Round:
        """Close the current round explicitly, whatever phase it is in."""
        if self.current_phase is FullGamePhase.ROUND_COMPLETE:
            raise InvalidState(f"Round {self.current_round} is already complete",
                               session_id=session.id)
        round_ = self._close_round(session)
        self.current_phase = FullGamePhase.ROUND_COMPLETE
        logger.debug(f"Full game round {self.current_round} completed")
        return round_

    # =========================================================================
    # Recording
    # =========================================================================

    def record_inkast(
        self,
        session: "Session",
        out_first_attempt: int,
        out_second_attempt: int = 0,
        neighbors: int = 0,
        kubbs: Optional[int] = None,
    ) -> Round:
        """Record the kubbs inkasted onto the field this round."""
        if self.current_phase is not FullGamePhase.INKAST:
            raise InvalidState(
                f"Inkast can only be recorded in the inkast phase "
                f"(currently {self.current_phase.value})",
                session_id=session.id,
            )
        round_ = self._current_or_new_round(session)
        if kubbs is None:
            kubbs = len(round_.throws_in_stage(ThrowStage.INKAST))
        if not 0 <= kubbs <= MAX_INKAST_KUBBS:
            raise InvalidState(f"Kubb count must be 0-{MAX_INKAST_KUBBS}, got {kubbs}",
                               session_id=session.id)
        if not 0 <= out_second_attempt <= out_first_attempt <= kubbs or neighbors < 0:
            raise InvalidState(
                f"Inconsistent inkast: {out_first_attempt} out first, "
                f"{out_second_attempt} out second, {kubbs} kubbs",
                session_id=session.id,
            )
        round_.inkast = InkastResult(
            kubbs=kubbs,
            out_first_attempt=out_first_attempt,
            out_second_attempt=out_second_attempt,
            neighbors=neighbors,
        )
        return round_

    def record_throw(
        self,
        session: "Session",
        is_hit: bool,
        units_affected: Optional[int] = None,
        tag: Optional[ThrowTag] = None,
    ) -> ThrowRecord:
        if self.current_phase is FullGamePhase.ROUND_COMPLETE:
            raise InvalidState(
                f"Round {self.current_round} is complete; advance to the next phase",
                session_id=session.id,
            )
        round_ = self._current_or_new_round(session)

        if self.current_phase is FullGamePhase.INKAST:
            stage = ThrowStage.INKAST
        else:
            if self.attacking_throws(round_) >= self.baton_limit:
                raise InvalidState(
                    f"Round {self.current_round} allows only "
                    f"{self.baton_limit} attacking batons",
                    session_id=session.id,
                )
            if self.field_kubbs_standing(round_) > 0:
                stage = ThrowStage.BLAST
                if is_hit and units_affected is None:
                    units_affected = 1
                if not is_hit and units_affected:
                    raise InvalidState("A miss cannot knock down kubbs",
                                       session_id=session.id)
            else:
                stage = ThrowStage.EIGHT_METER
                if tag is None and self.current_baseline_kubbs == 0:
                    tag = ThrowTag.KING

        record = round_.append_throw(is_hit, units_affected=units_affected,
                                     tag=tag, stage=stage)
        session.count_throw(record)

        if stage is ThrowStage.EIGHT_METER and is_hit:
            if record.is_king_throw:
                self.king_hit = True
                logger.info(f"King down in round {self.current_round}")
            else:
                self._knock_baseline(self.attacking_team, record.units_knocked)
        return record

    def is_target_reached(self, session: "Session") -> bool:
        """The king fell, or the requested number of rounds is complete."""
        if self.king_hit:
            return True
        if session.target <= 0:
            return False
        return len(session.completed_rounds) >= session.target

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict:
        return {
            "current_round": self.current_round,
            "current_phase": self.current_phase.value,
            "team1_baseline_kubbs": self.team1_baseline_kubbs,
            "team2_baseline_kubbs": self.team2_baseline_kubbs,
            "king_hit": self.king_hit,
            "team1_uncleared_kubbs": self.team1_uncleared_kubbs,
            "team2_uncleared_kubbs": self.team2_uncleared_kubbs,
            "a_lines": [a.to_dict() for a in self.a_lines],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FullGameDetails":
        # Records written before A-line tracking lack the last three keys
        return cls(
            current_round=int(data["current_round"]),
            current_phase=FullGamePhase(data["current_phase"]),
            team1_baseline_kubbs=int(data["team1_baseline_kubbs"]),
            team2_baseline_kubbs=int(data["team2_baseline_kubbs"]),
            king_hit=bool(data["king_hit"]),
            team1_uncleared_kubbs=int(data.get("team1_uncleared_kubbs", 0)),
            team2_uncleared_kubbs=int(data.get("team2_uncleared_kubbs", 0)),
            a_lines=[ALine.from_dict(a) for a in data.get("a_lines", [])],
        )
