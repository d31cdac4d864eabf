"""
Wearable-device message shapes for Kubb Trainer.

The paired watch renders a compact projection of the active session and
sends back throw outcomes. Only the message shape is defined here; how
the messages travel is up to the bridge.

Outbound:
    WatchSessionState → {sessionId, title, orderedContextItems, isActive}
    WatchInputConfig  → {throwInputShape, options}
Inbound:
    WatchThrowEvent   ← {sessionId, isHit, unitsAffected?}
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from kubb_trainer.models.full_game import FullGameDetails
from kubb_trainer.models.inkast_blast import InkastBlastDetails
from kubb_trainer.models.phases import FullGamePhase
from kubb_trainer.models.practice import PracticeDetails
from kubb_trainer.models.session import Session
from kubb_trainer.models.throw import ThrowTag
from kubb_trainer.utils.constants import BATONS_PER_ROUND, MAX_MULTI_KUBB_OPTIONS


class ContextTier(str, Enum):
    """Visual weight of a context item on the watch face."""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    PROGRESS = "progress"


class ThrowInputShape(str, Enum):
    """Which input widget the watch should present for the next throw."""
    SIMPLE = "simple"          # Hit / miss
    MULTI_KUBB = "multi_kubb"  # Hit with a kubb count
    KING = "king"              # Hit / miss at the king


@dataclass
class WatchContextItem:
    label: str
    value: str
    tier: ContextTier

    def to_dict(self) -> dict:
        return {"label": self.label, "value": self.value, "tier": self.tier.value}


@dataclass
class WatchSessionState:
    """Compact session projection sent to the watch.

    Attributes:
        session_id: Id the watch echoes back with every throw.
        title: Short session title.
        context_items: Ordered label/value pairs.
        is_active: False once the session is paused or complete.
        last_updated: When the projection was built.
    """
    session_id: str
    title: str
    context_items: list[WatchContextItem] = field(default_factory=list)
    is_active: bool = True
    last_updated: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "title": self.title,
            "orderedContextItems": [item.to_dict() for item in self.context_items],
            "isActive": self.is_active,
        }


@dataclass
class WatchInputConfig:
    throw_input_shape: ThrowInputShape = ThrowInputShape.SIMPLE
    options: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"throwInputShape": self.throw_input_shape.value, "options": list(self.options)}


@dataclass(frozen=True)
class WatchThrowEvent:
    """Throw outcome reported by the watch."""
    session_id: str
    is_hit: bool
    units_affected: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "WatchThrowEvent":
        """Parse an inbound message.

        Raises:
            ValueError: A required key is missing or has the wrong type.
        """
        session_id = data.get("sessionId")
        is_hit = data.get("isHit")
        units = data.get("unitsAffected")
        if not isinstance(session_id, str) or not session_id:
            raise ValueError(f"Throw event has no sessionId: {data!r}")
        if not isinstance(is_hit, bool):
            raise ValueError(f"Throw event isHit must be a boolean: {data!r}")
        if units is not None and (isinstance(units, bool) or not isinstance(units, int)):
            raise ValueError(f"Throw event unitsAffected must be an integer: {data!r}")
        return cls(session_id=session_id, is_hit=is_hit, units_affected=units)

    def to_dict(self) -> dict:
        data = {"sessionId": self.session_id, "isHit": self.is_hit}
        if self.units_affected is not None:
            data["unitsAffected"] = self.units_affected
        return data


# =============================================================================
# Projections
# =============================================================================

def _practice_items(session: Session, details: PracticeDetails) -> list[WatchContextItem]:
    if details.is_around_the_pitch:
        return [
            WatchContextItem("Score", f"{session.total_hits}/{session.target}", ContextTier.PRIMARY),
            WatchContextItem("Baseline", str(session.current_baseline), ContextTier.SECONDARY),
            WatchContextItem("Throws", str(session.total_throws), ContextTier.PROGRESS),
        ]
    items = []
    current = session.current_round
    if current is not None:
        items.append(WatchContextItem("Round", str(current.round_number), ContextTier.PRIMARY))
        items.append(WatchContextItem(
            "Throw", f"{current.total_throws + 1}/{BATONS_PER_ROUND}", ContextTier.SECONDARY
        ))
    items.append(WatchContextItem(
        "Total", f"{session.total_throws}/{session.target}", ContextTier.PROGRESS
    ))
    return items


def _inkast_blast_items(session: Session) -> list[WatchContextItem]:
    items = []
    current = session.current_round
    if current is not None:
        in_bounds = current.inkast.in_bounds if current.inkast else current.target_count
        items += [
            WatchContextItem("Round", str(current.round_number), ContextTier.PRIMARY),
            WatchContextItem("Kubbs Left", str(current.kubbs_remaining), ContextTier.SECONDARY),
            WatchContextItem("In Bounds", str(in_bounds), ContextTier.SECONDARY),
        ]
    items.append(WatchContextItem("Rounds", str(len(session.rounds)), ContextTier.PROGRESS))
    return items


def _full_game_items(session: Session, details: FullGameDetails) -> list[WatchContextItem]:
    return [
        WatchContextItem("Round", str(details.current_round), ContextTier.PRIMARY),
        WatchContextItem("Phase", details.current_phase.display_name, ContextTier.SECONDARY),
        WatchContextItem("Team", str(details.attacking_team), ContextTier.SECONDARY),
        WatchContextItem("Total Rounds", str(len(session.rounds)), ContextTier.PROGRESS),
    ]


def session_context(session: Session) -> WatchSessionState:
    """Project a session onto the watch's context layout."""
    details = session.details
    if isinstance(details, PracticeDetails):
        items = _practice_items(session, details)
    elif isinstance(details, InkastBlastDetails):
        items = _inkast_blast_items(session)
    else:
        items = _full_game_items(session, details)
    return WatchSessionState(
        session_id=session.id,
        title=session.title,
        context_items=items,
        is_active=not (session.is_complete or session.is_paused),
    )


def _kubb_options(remaining: int) -> list[int]:
    options = list(range(1, min(remaining, MAX_MULTI_KUBB_OPTIONS) + 1))
    return options or [1]


def input_config(session: Session) -> WatchInputConfig:
    """Which input widget the watch should show for the next throw."""
    details = session.details
    current = session.current_round

    if isinstance(details, PracticeDetails):
        if current is not None and details.classify(current) is ThrowTag.KING:
            return WatchInputConfig(ThrowInputShape.KING)
        return WatchInputConfig(ThrowInputShape.SIMPLE)

    if isinstance(details, InkastBlastDetails):
        if current is None:
            return WatchInputConfig(ThrowInputShape.SIMPLE)
        return WatchInputConfig(ThrowInputShape.MULTI_KUBB, _kubb_options(current.kubbs_remaining))

    if details.current_phase is not FullGamePhase.ATTACKING or current is None:
        return WatchInputConfig(ThrowInputShape.SIMPLE)
    standing = details.field_kubbs_standing(current)
    if standing > 0:
        return WatchInputConfig(ThrowInputShape.MULTI_KUBB, _kubb_options(standing))
    if details.current_baseline_kubbs == 0:
        return WatchInputConfig(ThrowInputShape.KING)
    return WatchInputConfig(ThrowInputShape.SIMPLE)
