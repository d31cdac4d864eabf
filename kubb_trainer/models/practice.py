"""
Practice session payload for Kubb Trainer.

Two modes share this variant:
  - Standard (8 m): six-baton rounds against the five baseline kubbs.
    The sixth baton after five baseline hits is a king throw.
  - Around the pitch: every throw accumulates into a single open round.
    Once all ten field-end kubbs are down, the next throw is at the king.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Optional

from kubb_trainer.models.round import Round, RoundClosure
from kubb_trainer.models.throw import ThrowRecord, ThrowTag
from kubb_trainer.models.variant import PracticeMode, SessionVariant
from kubb_trainer.utils.constants import (
    BASELINE_KUBBS,
    BATONS_PER_ROUND,
    FIELD_END_KUBBS,
)

if TYPE_CHECKING:
    from kubb_trainer.models.session import Session

logger = logging.getLogger(__name__)


@dataclass
class PracticeDetails:
    """Variant payload for practice sessions.

    Attributes:
        mode: Standard 8 m rounds or around the pitch.
    """
    mode: PracticeMode = PracticeMode.STANDARD

    variant: ClassVar[SessionVariant] = SessionVariant.PRACTICE

    @property
    def is_around_the_pitch(self) -> bool:
        return self.mode is PracticeMode.AROUND_THE_PITCH

    def make_round(self, session: "Session", kubbs: Optional[int] = None) -> Round:
        round_number = len(session.rounds) + 1
        if self.is_around_the_pitch:
            return Round(
                round_number=round_number,
                closure=RoundClosure.OPEN,
                target_count=FIELD_END_KUBBS,
            )
        return Round(
            round_number=round_number,
            closure=RoundClosure.CEILING,
            target_count=BASELINE_KUBBS,
            max_throws=BATONS_PER_ROUND,
        )

    def classify(self, round_: Round) -> Optional[ThrowTag]:
        """Tag for the next throw in `round_`, derived from the throws so far."""
        if self.is_around_the_pitch:
            field_hits = sum(1 for t in round_.throws
                             if t.is_hit and not t.is_king_throw)
            if field_hits >= FIELD_END_KUBBS:
                return ThrowTag.KING
            return None
        if round_.hits >= BASELINE_KUBBS and round_.total_throws == BASELINE_KUBBS:
            return ThrowTag.KING
        return None

    def record_throw(
        self,
        session: "Session",
        is_hit: bool,
        units_affected: Optional[int] = None,
        tag: Optional[ThrowTag] = None,
    ) -> ThrowRecord:
        round_ = session.current_round or session.open_round()
        if tag is None:
            tag = self.classify(round_)

        record = round_.append_throw(is_hit, units_affected=units_affected, tag=tag)
        session.count_throw(record)

        if round_.is_closed:
            round_.is_complete = True
            logger.debug(
                f"Round {round_.round_number} closed "
                f"({round_.hits}/{round_.total_throws})"
            )
            if not self.is_target_reached(session):
                session.open_round()
        return record

    def is_target_reached(self, session: "Session") -> bool:
        """Throw budget used up (8 m) or the king is down (around the pitch).

        Around the pitch the target is a par, not a cap: the session runs
        on past it until the pitch is cleared.
        """
        if self.is_around_the_pitch:
            return session.all_targets_down
        if session.target <= 0:
            return False
        return session.total_throws >= session.target

    def met_target(self, session: "Session") -> bool:
        """Around the pitch: king down in par or fewer. 8 m: budget used up."""
        if not self.is_around_the_pitch:
            return self.is_target_reached(session)
        if not session.all_targets_down:
            return False
        return session.target <= 0 or session.total_throws <= session.target

    def to_dict(self) -> dict:
        return {"mode": self.mode.value}

    @classmethod
    def from_dict(cls, data: dict) -> "PracticeDetails":
        return cls(mode=PracticeMode(data["mode"]))
