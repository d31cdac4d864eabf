"""
Session lifecycle manager for Kubb Trainer.

Holds at most one active session per variant and mediates everything
that happens to it: start, resume, throws, pause, completion, and the
auto-completion of sessions left open on an earlier day. Every mutation
is handed to the session store straight away, and the per-variant
pointer store remembers which sessions to reload on the next start.

The manager is constructed once per process with its collaborators
injected. It is not thread-safe; call it from the GUI thread only
(cross-thread signals such as the mock watch's are queued onto it).
"""

import logging
import random
from datetime import datetime
from typing import Callable, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from kubb_trainer.database.protocols import ActivePointerStore, SessionStore
from kubb_trainer.errors import InvalidState, NotFound
from kubb_trainer.models.phases import FullGamePhase, InkastPhase
from kubb_trainer.models.round import Round
from kubb_trainer.models.session import Session
from kubb_trainer.models.throw import ThrowRecord, ThrowTag
from kubb_trainer.models.variant import PracticeMode, SessionVariant
from kubb_trainer.models.watch import WatchThrowEvent

logger = logging.getLogger(__name__)


class LifecycleManager(QObject):
    """Coordinates the active session of each training variant.

    Signals:
        session_started(Session): A session was started or resumed.
        session_updated(Session): An active session changed.
        session_completed(Session): A session was completed (explicitly
            or automatically) and left the active set.
        active_sessions_changed(): The set of active sessions changed.
    """

    session_started = pyqtSignal(object)
    session_updated = pyqtSignal(object)
    session_completed = pyqtSignal(object)
    active_sessions_changed = pyqtSignal()

    def __init__(
        self,
        store: SessionStore,
        pointers: ActivePointerStore,
        clock: Callable[[], datetime] = datetime.now,
        parent=None,
    ):
        """
        Args:
            store: Session persistence.
            pointers: Variant → active session id store.
            clock: Source of "now", used for session dates and the
                auto-completion day check.
        """
        super().__init__(parent)
        self._store = store
        self._pointers = pointers
        self._clock = clock
        self._active: dict[SessionVariant, Session] = {}
        self._load_active()

    def _adopt(self, session: Optional[Session]) -> Optional[Session]:
        """Put a session on the manager's clock before it is mutated."""
        if session is not None:
            session.clock = self._clock
        return session

    def _load_active(self):
        """Reload the sessions the pointer store says were active."""
        for variant in SessionVariant:
            session_id = self._pointers.get(variant)
            if not session_id:
                continue
            session = self._adopt(self._store.read_session(session_id))
            if session is None or session.is_complete:
                logger.info(f"Dropping stale {variant.value} pointer to {session_id}")
                self._pointers.clear(variant)
                continue
            self._active[variant] = session
            logger.info(f"Restored active {variant.value} session {session_id}")

    # =========================================================================
    # Queries
    # =========================================================================

    def active_session(self, variant: SessionVariant) -> Optional[Session]:
        return self._active.get(variant)

    @property
    def active_sessions(self) -> dict[SessionVariant, Session]:
        return dict(self._active)

    def get_session(self, session_id: str) -> Session:
        """Look a session up by id, active or historical.

        Raises:
            NotFound: No such session exists.
        """
        session = self._find_active(session_id)
        if session is None:
            session = self._adopt(self._store.read_session(session_id))
        if session is None:
            raise NotFound(f"No session with id {session_id}", session_id=session_id)
        return session

    def all_sessions(self, variant: Optional[SessionVariant] = None) -> list[Session]:
        return self._store.read_all(variant)

    def sessions_by_date_range(self, variant: SessionVariant,
                               start: datetime, end: datetime) -> list[Session]:
        return self._store.read_by_date_range(variant, start, end)

    def session_counts(self) -> dict[SessionVariant, int]:
        return self._store.session_counts()

    def _find_active(self, session_id: str) -> Optional[Session]:
        for session in self._active.values():
            if session.id == session_id:
                return session
        return None

    def _require_active(self, variant: SessionVariant) -> Session:
        session = self._active.get(variant)
        if session is None:
            raise InvalidState(f"No active {variant.display_name} session")
        return session

    # =========================================================================
    # Start / resume / retire
    # =========================================================================

    def _retire(self, variant: SessionVariant):
        """Complete and persist the active session of `variant`, if any."""
        prior = self._active.get(variant)
        if prior is None:
            return
        now = self._clock()
        if not prior.auto_complete(today=now, now=now):
            prior.complete()
        self._store.update_session(prior)
        self._evict(prior)
        logger.info(f"Completed previous {variant.value} session {prior.id}")

    def _evict(self, session: Session) -> bool:
        """Drop a just-completed session from the active set and its pointer.

        Returns:
            True if the session was active.
        """
        if self._active.get(session.variant) is not session:
            return False
        del self._active[session.variant]
        self._pointers.clear(session.variant)
        self.session_completed.emit(session)
        return True

    def _activate(self, session: Session):
        self._active[session.variant] = session
        self._pointers.set(session.variant, session.id)
        self.session_started.emit(session)
        self.active_sessions_changed.emit()

    def start_session(
        self,
        variant: SessionVariant,
        target: int = 0,
        mode: PracticeMode = PracticeMode.STANDARD,
        game_phase: InkastPhase = InkastPhase.ALL,
        first_round_kubbs: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> Session:
        """Start a new session, completing any open one of the same variant.

        Args:
            variant: Which training to start.
            target: Throw budget (practice) or round count (others).
            mode: Practice mode.
            game_phase: Inkast-Blast kubb-count phase.
            first_round_kubbs: Inkast-Blast round 1 kubb count override.
            rng: Inkast-Blast random source.
        """
        self._retire(variant)

        now = self._clock()
        timestamps = {"date": now, "start_time": now, "created_at": now, "modified_at": now}
        if variant is SessionVariant.PRACTICE:
            session = Session.practice(target, mode=mode, **timestamps)
        elif variant is SessionVariant.INKAST_BLAST:
            session = Session.inkast_blast(game_phase, target=target,
                                           first_round_kubbs=first_round_kubbs,
                                           rng=rng, **timestamps)
        else:
            session = Session.full_game(target=target, **timestamps)
        self._adopt(session)

        self._store.create_session(session)
        self._activate(session)
        logger.info(f"Started {session.title} session {session.id} (target={target})")
        return session

    def resume_session(self, session_id: str) -> Optional[Session]:
        """Make a stored session the active one of its variant again.

        Returns:
            The session, or None if no such session exists.

        Raises:
            InvalidState: The session is complete, or was left open on an
                earlier day and has just been auto-completed.
        """
        session = self._find_active(session_id)
        if session is None:
            session = self._adopt(self._store.read_session(session_id))
        if session is None:
            logger.warning(f"Cannot resume missing session {session_id}")
            return None
        now = self._clock()
        if session.auto_complete(today=now, now=now):
            self._store.update_session(session)
            if self._evict(session):
                self.active_sessions_changed.emit()
        if session.is_complete:
            raise InvalidState("Cannot resume a completed session", session_id=session_id)

        current = self._active.get(session.variant)
        if current is not None and current.id != session.id:
            self._retire(session.variant)
        session.resume()
        self._store.update_session(session)
        self._activate(session)
        logger.info(f"Resumed {session.variant.value} session {session.id}")
        return session

    # =========================================================================
    # Mutations on the active session
    # =========================================================================

    def _persist(self, session: Session):
        self._store.update_session(session)
        self.session_updated.emit(session)

    def record_throw(
        self,
        variant: SessionVariant,
        is_hit: bool,
        units_affected: Optional[int] = None,
        tag: Optional[ThrowTag] = None,
        session_id: Optional[str] = None,
    ) -> Optional[ThrowRecord]:
        """Record a throw in the active session of `variant`.

        A `session_id` that does not match the active session is ignored,
        as is a throw when no session of that variant is active.

        Returns:
            The new throw record, or None if the throw was ignored.

        Raises:
            InvalidState: The session rejected the throw.
        """
        session = self._active.get(variant)
        if session is None:
            logger.debug(f"Ignoring throw: no active {variant.value} session")
            return None
        if session_id is not None and session_id != session.id:
            logger.debug(f"Ignoring throw for inactive session {session_id}")
            return None
        record = session.record_throw(is_hit, units_affected=units_affected, tag=tag)
        self._persist(session)
        return record

    def handle_throw_event(self, event: WatchThrowEvent) -> Optional[ThrowRecord]:
        """Apply a throw reported by the watch to whichever active session it names."""
        for variant, session in self._active.items():
            if session.id == event.session_id:
                return self.record_throw(variant, event.is_hit,
                                         units_affected=event.units_affected,
                                         session_id=event.session_id)
        logger.debug(f"Ignoring watch throw for inactive session {event.session_id}")
        return None

    def record_inkast(self, variant: SessionVariant, out_first_attempt: int,
                      out_second_attempt: int = 0, neighbors: int = 0,
                      kubbs: Optional[int] = None) -> Round:
        session = self._require_active(variant)
        round_ = session.record_inkast(out_first_attempt, out_second_attempt,
                                       neighbors, kubbs)
        self._persist(session)
        return round_

    def reset_current_round(self, variant: SessionVariant) -> Round:
        session = self._require_active(variant)
        round_ = session.reset_current_round()
        self._persist(session)
        return round_

    def advance_phase(self) -> FullGamePhase:
        """Step the active full game simulation to its next phase."""
        session = self._require_active(SessionVariant.FULL_GAME_SIM)
        phase = session.next_phase()
        self._persist(session)
        return phase

    def complete_round(self) -> Round:
        """Close the active full game simulation's current round."""
        session = self._require_active(SessionVariant.FULL_GAME_SIM)
        round_ = session.complete_round()
        self._persist(session)
        return round_

    def update_session(self, session: Session):
        """Persist changes made to a session outside the manager."""
        self._persist(session)

    def pause_session(self, variant: SessionVariant) -> Session:
        session = self._require_active(variant)
        session.pause()
        self._persist(session)
        logger.info(f"Paused {variant.value} session {session.id}")
        return session

    def unpause_session(self, variant: SessionVariant) -> Session:
        session = self._require_active(variant)
        session.resume()
        self._persist(session)
        logger.info(f"Unpaused {variant.value} session {session.id}")
        return session

    def complete_session(self, variant: SessionVariant) -> Session:
        """Complete the active session of `variant` and clear its slot."""
        session = self._require_active(variant)
        self._retire(variant)
        self.active_sessions_changed.emit()
        return session

    # =========================================================================
    # App lifecycle
    # =========================================================================

    def handle_app_background(self):
        """Flush every active session to the store."""
        for session in self._active.values():
            self._store.update_session(session)
        logger.debug(f"Saved {len(self._active)} active sessions on background")

    def handle_app_foreground(self) -> list[Session]:
        """Auto-complete active sessions dated before today.

        Returns:
            The sessions that were auto-completed.
        """
        now = self._clock()
        completed = []
        for session in list(self._active.values()):
            if not session.auto_complete(today=now, now=now):
                continue
            self._store.update_session(session)
            self._evict(session)
            completed.append(session)
        if completed:
            self.active_sessions_changed.emit()
        return completed

    # =========================================================================
    # Deletion
    # =========================================================================

    def delete_session(self, session_id: str) -> bool:
        """Delete a session, clearing its active slot if it has one."""
        for variant, session in list(self._active.items()):
            if session.id == session_id:
                del self._active[variant]
                self._pointers.clear(variant)
                self.active_sessions_changed.emit()
        return self._store.delete_session(session_id)

    def delete_all(self, variant: Optional[SessionVariant] = None) -> int:
        variants = [variant] if variant else list(SessionVariant)
        for v in variants:
            if self._active.pop(v, None) is not None:
                self._pointers.clear(v)
        self.active_sessions_changed.emit()
        return self._store.delete_all(variant)
