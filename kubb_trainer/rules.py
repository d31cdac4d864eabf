"""
Game rules for Kubb Trainer.

Hard rule tables and the small pure functions built on them:
  - Attacking-phase baton ceiling per full-game round
  - Expected baton cost for clearing inkasted kubbs (handicap basis)
  - Inkast phase classification of a kubb count
  - Full game phase transitions and attacking-team parity
  - Around-the-pitch baseline parity

Downstream handicap statistics depend on these exact tables; they are
lookups, not formulas, except where noted.
"""

import math
from datetime import date, datetime
from typing import Union

from kubb_trainer.models.phases import FullGamePhase, InkastPhase
from kubb_trainer.utils.constants import (
    ATTACKING_BATON_LIMITS,
    ATTACKING_BATON_LIMIT_DEFAULT,
    EXPECTED_BATON_COST,
)


# =============================================================================
# Baton Budgets
# =============================================================================

def attacking_baton_limit(round_number: int) -> int:
    """Maximum batons the attacking phase may use in a full-game round.

    Round 1 → 2, round 2 → 4, round 3 and later → 6.
    """
    return ATTACKING_BATON_LIMITS.get(round_number, ATTACKING_BATON_LIMIT_DEFAULT)


def expected_baton_cost(kubbs: int) -> int:
    """Expected batons needed to clear `kubbs` inkasted kubbs.

    1-2 → 1, 3-4 → 2, 5-7 → 3, 8-10 → 4; anything else falls back
    to ceil((kubbs + 1) / 2).
    """
    if kubbs in EXPECTED_BATON_COST:
        return EXPECTED_BATON_COST[kubbs]
    return math.ceil((kubbs + 1) / 2)


# =============================================================================
# Phase Rules
# =============================================================================

def classify_inkast_phase(kubbs: int) -> InkastPhase:
    """Bucket a round's kubb count: 1-3 early, 4-7 mid, 8-10 end, else all."""
    for phase in (InkastPhase.EARLY, InkastPhase.MID, InkastPhase.END):
        if phase.contains(kubbs):
            return phase
    return InkastPhase.ALL


def next_full_game_phase(phase: FullGamePhase,
                         round_number: int) -> tuple[FullGamePhase, int]:
    """Apply one full-game phase transition.

    Attacking in round 1 skips the inkast phase. Leaving RoundComplete
    moves to the next round's attacking phase.

    Returns:
        (next phase, round number after the transition)
    """
    if phase is FullGamePhase.ATTACKING:
        if round_number == 1:
            return FullGamePhase.ROUND_COMPLETE, round_number
        return FullGamePhase.INKAST, round_number
    if phase is FullGamePhase.INKAST:
        return FullGamePhase.ATTACKING, round_number
    return FullGamePhase.ATTACKING, round_number + 1


def attacking_team(round_number: int) -> int:
    """Team 1 attacks in odd rounds, team 2 in even rounds."""
    return 1 if round_number % 2 == 1 else 2


def current_baseline(total_throws: int) -> int:
    """Around-the-pitch baseline (1 or 2), alternating with every throw."""
    return (total_throws % 2) + 1


# =============================================================================
# Calendar
# =============================================================================

def is_same_day(a: Union[date, datetime], b: Union[date, datetime]) -> bool:
    """Calendar-date comparison, ignoring time of day."""
    return (a.year, a.month, a.day) == (b.year, b.month, b.day)
