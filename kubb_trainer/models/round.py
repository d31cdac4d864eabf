"""
Round model for Kubb Trainer.

A round is an ordered, append-only list of throws for one sub-unit of a
session. Whether a round is closed is always recomputed from its throw
list; the stored `is_complete` flag only records that the owning session
has marked it done.

RoundClosure: How a round decides that it is finished.
InkastResult: Placement outcome of the kubbs inkasted for a round.
Round: The round itself.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from kubb_trainer.errors import InvalidState
from kubb_trainer.models.throw import ThrowRecord, ThrowStage, ThrowTag
from kubb_trainer.rules import expected_baton_cost
from kubb_trainer.utils.constants import BATONS_PER_ROUND, BASELINE_KUBBS


class RoundClosure(str, Enum):
    """Round-completion rule, one per training variant."""
    CEILING = "ceiling"    # 8 m practice: baseline cleared + king attempt, or baton ceiling
    CLEAR = "clear"        # Inkast-Blast: every placed kubb knocked down
    OPEN = "open"          # Around the pitch: never closes
    EXPLICIT = "explicit"  # Full game: closed by the phase machine


@dataclass
class InkastResult:
    """Outcome of inkasting kubbs onto the field.

    Attributes:
        kubbs: Kubbs thrown onto the field this round.
        out_first_attempt: Kubbs that landed out of bounds on the first try.
        out_second_attempt: Kubbs still out after the re-throw (penalty kubbs).
        neighbors: Kubbs that had to be raised next to another kubb.
    """
    kubbs: int
    out_first_attempt: int = 0
    out_second_attempt: int = 0
    neighbors: int = 0

    @property
    def penalty_kubbs(self) -> int:
        return self.out_second_attempt

    @property
    def in_bounds(self) -> int:
        return self.kubbs - self.penalty_kubbs

    @property
    def out_of_bounds(self) -> int:
        return self.out_first_attempt + self.out_second_attempt

    @property
    def is_complete(self) -> bool:
        """Placement is settled once nothing went out, or the re-throw happened."""
        return self.out_first_attempt == 0 or self.out_second_attempt > 0

    def to_dict(self) -> dict:
        return {
            "kubbs": self.kubbs,
            "out_first_attempt": self.out_first_attempt,
            "out_second_attempt": self.out_second_attempt,
            "neighbors": self.neighbors,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InkastResult":
        return cls(
            kubbs=int(data["kubbs"]),
            out_first_attempt=int(data["out_first_attempt"]),
            out_second_attempt=int(data["out_second_attempt"]),
            neighbors=int(data["neighbors"]),
        )


@dataclass
class Round:
    """One round of a training session.

    Attributes:
        round_number: 1-based, increasing within the session.
        closure: Completion rule for this round.
        target_count: Primary targets to clear (baseline kubbs, or kubbs
                      placed for Inkast-Blast). 0 when not applicable.
        max_throws: Baton ceiling for CEILING rounds.
        inkast: Inkast placement for rounds that start with one.
        throws: Ordered throw records.
        is_complete: Set by the owning session when the round is done.
        id: Unique identifier.
        created_at: When the round was opened.
    """
    round_number: int
    closure: RoundClosure
    target_count: int = 0
    max_throws: Optional[int] = None
    inkast: Optional[InkastResult] = None
    throws: list[ThrowRecord] = field(default_factory=list)
    is_complete: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)

    # -------------------------------------------------------------------------
    # Counts
    # -------------------------------------------------------------------------

    @property
    def total_throws(self) -> int:
        return len(self.throws)

    @property
    def hits(self) -> int:
        return sum(1 for t in self.throws if t.is_hit)

    @property
    def misses(self) -> int:
        return sum(1 for t in self.throws if not t.is_hit)

    @property
    def accuracy(self) -> float:
        if not self.throws:
            return 0.0
        return self.hits / self.total_throws

    @property
    def units_knocked(self) -> int:
        return sum(t.units_knocked for t in self.throws)

    @property
    def king_attempts(self) -> int:
        return sum(1 for t in self.throws if t.is_king_throw)

    @property
    def king_hits(self) -> int:
        return sum(1 for t in self.throws if t.is_king_throw and t.is_hit)

    @property
    def has_baseline_clear(self) -> bool:
        return self.hits >= BASELINE_KUBBS

    @property
    def is_perfect(self) -> bool:
        """Every baton of a full 8 m round hit."""
        return self.total_throws == BATONS_PER_ROUND and self.hits == BATONS_PER_ROUND

    def throws_in_stage(self, *stages: ThrowStage) -> list[ThrowRecord]:
        return [t for t in self.throws if t.stage in stages]

    # -------------------------------------------------------------------------
    # Closure
    # -------------------------------------------------------------------------

    @property
    def is_closed(self) -> bool:
        """Whether the throw list satisfies this round's closure rule.

        Recomputed on every access; never cached.
        """
        if self.closure is RoundClosure.CEILING:
            ceiling = self.max_throws or BATONS_PER_ROUND
            baseline_cleared = (self.hits >= self.target_count
                                and self.king_attempts > 0)
            return baseline_cleared or self.total_throws >= ceiling
        if self.closure is RoundClosure.CLEAR:
            return self.target_count > 0 and self.units_knocked >= self.target_count
        return False

    @property
    def is_open(self) -> bool:
        return not self.is_complete

    @property
    def enforces_closure(self) -> bool:
        return self.closure is not RoundClosure.OPEN

    def append_throw(
        self,
        is_hit: bool,
        units_affected: Optional[int] = None,
        tag: Optional[ThrowTag] = None,
        stage: Optional[ThrowStage] = None,
    ) -> ThrowRecord:
        """Append a new immutable throw record.

        Raises:
            InvalidState: The round is complete and its variant enforces
                round closure.
        """
        if self.is_complete and self.enforces_closure:
            raise InvalidState(f"Round {self.round_number} is already complete")
        record = ThrowRecord(
            is_hit=is_hit,
            index=len(self.throws) + 1,
            units_affected=units_affected,
            tag=tag,
            stage=stage,
        )
        self.throws.append(record)
        return record

    # -------------------------------------------------------------------------
    # Inkast / blast performance
    # -------------------------------------------------------------------------

    @property
    def kubbs_placed(self) -> int:
        return self.inkast.kubbs if self.inkast else 0

    @property
    def kubbs_remaining(self) -> int:
        """Inkast-Blast: placed kubbs not yet knocked down."""
        return max(0, self.target_count - self.units_knocked)

    @property
    def performance_vs_target(self) -> int:
        """Inkast-Blast: expected batons minus batons used (positive = efficient)."""
        return expected_baton_cost(self.kubbs_placed) - self.total_throws

    @property
    def blast_throws(self) -> int:
        return len(self.throws_in_stage(ThrowStage.BLAST))

    @property
    def handicap(self) -> Optional[int]:
        """Full game: blast batons used minus expected cost.

        Undefined (None) for round 1, which has no field kubbs.
        """
        if self.round_number <= 1:
            return None
        return self.blast_throws - expected_baton_cost(self.kubbs_placed)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "round_number": self.round_number,
            "closure": self.closure.value,
            "target_count": self.target_count,
            "max_throws": self.max_throws,
            "inkast": self.inkast.to_dict() if self.inkast else None,
            "throws": [t.to_dict() for t in self.throws],
            "is_complete": self.is_complete,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Round":
        inkast = data.get("inkast")
        return cls(
            round_number=int(data["round_number"]),
            closure=RoundClosure(data["closure"]),
            target_count=int(data["target_count"]),
            max_throws=data.get("max_throws"),
            inkast=InkastResult.from_dict(inkast) if inkast else None,
            throws=[ThrowRecord.from_dict(t) for t in data["throws"]],
            is_complete=bool(data["is_complete"]),
            id=data["id"],
            created_at=datetime.fromisoformat(data["created_at"]),
        )
