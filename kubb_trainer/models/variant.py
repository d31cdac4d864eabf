"""
Session variant tags for Kubb Trainer.

SessionVariant: Which kind of training a session is. Each variant has one
    active-session slot in the lifecycle manager.
PracticeMode: Sub-mode of the practice variant.
SessionState: Lifecycle state derived from a session's flags.
"""

from enum import Enum


class SessionVariant(str, Enum):
    PRACTICE = "practice"
    INKAST_BLAST = "inkast_blast"
    FULL_GAME_SIM = "full_game_sim"

    @property
    def display_name(self) -> str:
        return {
            SessionVariant.PRACTICE: "Practice",
            SessionVariant.INKAST_BLAST: "Inkast & Blast",
            SessionVariant.FULL_GAME_SIM: "Full Game Sim",
        }[self]


class PracticeMode(str, Enum):
    STANDARD = "standard"                  # 8 m baseline practice, 6-baton rounds
    AROUND_THE_PITCH = "around_the_pitch"  # Clear both baselines, then the king

    @property
    def display_name(self) -> str:
        if self is PracticeMode.STANDARD:
            return "8 Meter"
        return "Around the Pitch"


class SessionState(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETE = "complete"
