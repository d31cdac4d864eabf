"""
Throw record model for Kubb Trainer.

ThrowTag: Classification of a throw (king attempt, thrown from the A-line).
ThrowStage: Which part of a full-game round a throw belongs to.
ThrowRecord: One immutable baton outcome, owned by its Round.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ThrowTag(str, Enum):
    """Optional classification attached to a throw."""
    KING = "king"        # Throw at the king after the baseline was cleared
    A_LINE = "a_line"    # Thrown from the advanced (A) line


class ThrowStage(str, Enum):
    """Full game simulation: the target a throw was aimed at."""
    EIGHT_METER = "eight_meter"  # Baseline kubbs from 8 m
    INKAST = "inkast"            # Inkasting kubbs onto the opponent's half
    BLAST = "blast"              # Field kubbs on the attacker's side


@dataclass(frozen=True)
class ThrowRecord:
    """A single baton throw.

    Attributes:
        is_hit: Whether the baton knocked anything down.
        index: 1-based position within its round.
        units_affected: Kubbs knocked by this baton (None = not tracked).
        tag: Optional classification (king throw, A-line).
        stage: Full game only: which target the throw was aimed at.
        id: Unique identifier.
        timestamp: When the throw was recorded.
    """
    is_hit: bool
    index: int
    units_affected: Optional[int] = None
    tag: Optional[ThrowTag] = None
    stage: Optional[ThrowStage] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_king_throw(self) -> bool:
        return self.tag is ThrowTag.KING

    @property
    def units_knocked(self) -> int:
        """Kubbs knocked down: 0 on a miss, 1 on an untracked hit."""
        if not self.is_hit:
            return 0
        if self.units_affected is None:
            return 1
        return self.units_affected

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "is_hit": self.is_hit,
            "index": self.index,
            "units_affected": self.units_affected,
            "tag": self.tag.value if self.tag else None,
            "stage": self.stage.value if self.stage else None,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ThrowRecord":
        return cls(
            is_hit=bool(data["is_hit"]),
            index=int(data["index"]),
            units_affected=data.get("units_affected"),
            tag=ThrowTag(data["tag"]) if data.get("tag") else None,
            stage=ThrowStage(data["stage"]) if data.get("stage") else None,
            id=data["id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )
