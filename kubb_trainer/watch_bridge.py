"""
In-process wearable bridge for Kubb Trainer.

Sits between a paired watch (real or mock) and the lifecycle manager:
inbound throw messages are parsed and recorded against the session they
name, and every change to an active session is pushed back out as a
fresh context projection and input configuration.
"""

import logging

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from kubb_trainer.errors import KubbTrainerError
from kubb_trainer.lifecycle import LifecycleManager
from kubb_trainer.models.session import Session
from kubb_trainer.models.watch import WatchThrowEvent, input_config, session_context

logger = logging.getLogger(__name__)


class WatchBridge(QObject):
    """Forwards watch messages to the lifecycle manager and back.

    Signals:
        context_updated(dict): Session projection for the watch to render.
        input_config_updated(dict): Input widget the watch should present.
        error_occurred(str): A message was malformed or its throw rejected.
        connection_changed(bool): The watch connected or disconnected.
    """

    context_updated = pyqtSignal(dict)
    input_config_updated = pyqtSignal(dict)
    error_occurred = pyqtSignal(str)
    connection_changed = pyqtSignal(bool)

    def __init__(self, manager: LifecycleManager, parent=None):
        super().__init__(parent)
        self._manager = manager
        self._connected = False

        manager.session_started.connect(self.push_session)
        manager.session_updated.connect(self.push_session)
        manager.session_completed.connect(self.push_session)

    @property
    def is_connected(self) -> bool:
        return self._connected

    @pyqtSlot(bool)
    def set_connected(self, connected: bool):
        """Track the watch link; a disconnect is a notice, not an error."""
        if connected == self._connected:
            return
        self._connected = connected
        if connected:
            logger.info("Watch connected")
            for session in self._manager.active_sessions.values():
                self.push_session(session)
        else:
            logger.warning("Watch disconnected")
        self.connection_changed.emit(connected)

    @pyqtSlot(object)
    def push_session(self, session: Session):
        """Send the session's current projection to the watch."""
        self.context_updated.emit(session_context(session).to_dict())
        self.input_config_updated.emit(input_config(session).to_dict())

    @pyqtSlot(dict)
    def receive_message(self, message: dict):
        """Handle one inbound message from the watch."""
        try:
            event = WatchThrowEvent.from_dict(message)
        except ValueError as e:
            logger.warning(f"Malformed watch message: {e}")
            self.error_occurred.emit(str(e))
            return

        try:
            record = self._manager.handle_throw_event(event)
        except KubbTrainerError as e:
            logger.warning(f"Watch throw rejected: {e.message}")
            self.error_occurred.emit(e.message)
            return

        if record is None:
            logger.debug(f"Watch throw for {event.session_id} ignored")
