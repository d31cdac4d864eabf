"""
Phase definitions for Kubb Trainer.

The word "phase" is used in two senses:
  - InkastPhase: a kubb-count bucket used to pick Inkast-Blast rounds
    and to segment their statistics (early / mid / end game).
  - FullGamePhase: the turn-structure state of a full game simulation
    (attacking → inkast → round complete).
"""

import random
from enum import Enum
from typing import Optional

from kubb_trainer.utils.constants import INKAST_PHASE_RANGES


class InkastPhase(str, Enum):
    """Kubb-count buckets for Inkast-Blast training."""
    EARLY = "early"
    MID = "mid"
    END = "end"
    ALL = "all"

    @property
    def min_kubbs(self) -> int:
        return INKAST_PHASE_RANGES[self.value][0]

    @property
    def max_kubbs(self) -> int:
        return INKAST_PHASE_RANGES[self.value][1]

    @property
    def display_name(self) -> str:
        if self is InkastPhase.ALL:
            return "All Phases"
        return f"{self.value.capitalize()} Game"

    def contains(self, kubbs: int) -> bool:
        return self.min_kubbs <= kubbs <= self.max_kubbs

    def random_kubb_count(self, rng: Optional[random.Random] = None) -> int:
        """Draw a kubb count uniformly from this phase's range."""
        rng = rng or random.Random()
        return rng.randint(self.min_kubbs, self.max_kubbs)


class FullGamePhase(str, Enum):
    """Turn-structure states of a full game simulation round."""
    ATTACKING = "attacking"
    INKAST = "inkast"
    ROUND_COMPLETE = "round_complete"

    @property
    def display_name(self) -> str:
        return {
            FullGamePhase.ATTACKING: "Attacking",
            FullGamePhase.INKAST: "Inkast",
            FullGamePhase.ROUND_COMPLETE: "Round Complete",
        }[self]
