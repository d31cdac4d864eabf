"""
Inkast-Blast session payload for Kubb Trainer.

Each round the player inkasts a number of kubbs drawn from the chosen
game phase, then blasts them down. A round closes once every placed kubb
is knocked over. Penalty kubbs (still out after the re-throw) stay in
the round's target because the opponent re-places them.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Optional

from kubb_trainer.errors import InvalidState
from kubb_trainer.models.phases import InkastPhase
from kubb_trainer.models.round import InkastResult, Round, RoundClosure
from kubb_trainer.models.throw import ThrowRecord, ThrowTag
from kubb_trainer.models.variant import SessionVariant
from kubb_trainer.utils.constants import MAX_INKAST_KUBBS

if TYPE_CHECKING:
    from kubb_trainer.models.session import Session

logger = logging.getLogger(__name__)


@dataclass
class InkastBlastDetails:
    """Variant payload for Inkast-Blast sessions.

    Attributes:
        game_phase: Kubb-count bucket rounds are drawn from.
    """
    game_phase: InkastPhase = InkastPhase.ALL

    variant: ClassVar[SessionVariant] = SessionVariant.INKAST_BLAST

    def make_round(self, session: "Session", kubbs: Optional[int] = None) -> Round:
        if kubbs is None:
            kubbs = self.game_phase.random_kubb_count(session.rng)
        return Round(
            round_number=len(session.rounds) + 1,
            closure=RoundClosure.CLEAR,
            target_count=kubbs,
            inkast=InkastResult(kubbs=kubbs),
        )

    def record_inkast(
        self,
        session: "Session",
        out_first_attempt: int,
        out_second_attempt: int = 0,
        neighbors: int = 0,
        kubbs: Optional[int] = None,
    ) -> Round:
        """Record where the current round's kubbs landed.

        Args:
            out_first_attempt: Kubbs out of bounds on the first inkast.
            out_second_attempt: Kubbs still out after the re-throw.
            neighbors: Kubbs raised next to another kubb.
            kubbs: Override the drawn kubb count (only before any baton).

        Raises:
            InvalidState: Batons were already thrown this round, or the
                counts are inconsistent.
        """
        round_ = session.current_round or session.open_round()
        if round_.throws:
            raise InvalidState(
                f"Round {round_.round_number} already has batons thrown",
                session_id=session.id,
            )
        kubbs = round_.target_count if kubbs is None else kubbs
        if not 1 <= kubbs <= MAX_INKAST_KUBBS:
            raise InvalidState(f"Kubb count must be 1-{MAX_INKAST_KUBBS}, got {kubbs}",
                               session_id=session.id)
        if not 0 <= out_second_attempt <= out_first_attempt <= kubbs:
            raise InvalidState(
                f"Inconsistent inkast: {out_first_attempt} out first, "
                f"{out_second_attempt} out second, {kubbs} kubbs",
                session_id=session.id,
            )
        if neighbors < 0:
            raise InvalidState("Neighbor count cannot be negative", session_id=session.id)

        round_.target_count = kubbs
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
        round_ = session.current_round or session.open_round()
        if units_affected is None:
            units_affected = 1 if is_hit else 0
        if not is_hit and units_affected:
            raise InvalidState("A miss cannot knock down kubbs", session_id=session.id)
        if units_affected < 0 or (is_hit and units_affected > round_.kubbs_remaining):
            raise InvalidState(
                f"Cannot knock {units_affected} kubbs, "
                f"{round_.kubbs_remaining} standing",
                session_id=session.id,
            )

        record = round_.append_throw(is_hit, units_affected=units_affected, tag=tag)
        session.count_throw(record)

        if round_.is_closed:
            round_.is_complete = True
            logger.debug(
                f"Round {round_.round_number} cleared: {round_.target_count} kubbs "
                f"in {round_.total_throws} batons"
            )
            if not self.is_target_reached(session):
                session.open_round()
        return record

    def is_target_reached(self, session: "Session") -> bool:
        """Target is a number of cleared rounds (0 = open-ended)."""
        if session.target <= 0:
            return False
        return len(session.completed_rounds) >= session.target

    def to_dict(self) -> dict:
        return {"game_phase": self.game_phase.value}

    @classmethod
    def from_dict(cls, data: dict) -> "InkastBlastDetails":
        return cls(game_phase=InkastPhase(data["game_phase"]))
