"""
Mock paired watch for development and testing.

Generates realistic throw outcomes without a physical wearable, sending
them as the same messages a real watch would. Supports player presets
to simulate different skill levels.

This is a first-class feature, not just a test utility: users can demo
the full throw → session → statistics pipeline without a watch.
"""

import logging
import random
import time
from typing import Optional

from PyQt6.QtCore import QThread, pyqtSignal, pyqtSlot

logger = logging.getLogger(__name__)


# Player presets: 8 m hit probability and the chance a blast hit
# takes down more than one kubb
PRESETS = {
    "consistent_player": {
        "description": "Club player with steady 8 m accuracy",
        "hit_rate": 0.7,
        "king_rate": 0.5,
        "multi_kubb_rate": 0.3,
    },
    "beginner": {
        "description": "New player still finding the baseline",
        "hit_rate": 0.35,
        "king_rate": 0.2,
        "multi_kubb_rate": 0.1,
    },
    "sniper": {
        "description": "Elite 8 m thrower",
        "hit_rate": 0.9,
        "king_rate": 0.8,
        "multi_kubb_rate": 0.4,
    },
    "streaky": {
        "description": "Runs hot and cold: hits follow hits, misses follow misses",
        "hit_rate": 0.55,
        "king_rate": 0.4,
        "multi_kubb_rate": 0.25,
        "momentum": 0.25,
    },
}


class MockWatch(QThread):
    """Simulates a paired watch sending throw outcomes on a timer.

    Keeps the last session context and input configuration it was sent,
    so generated throws carry the active session id and a kubb count
    that fits the current input widget.

    Signals:
        message_sent(dict): An outbound throw message ({sessionId, isHit,
            unitsAffected?}).
        connection_changed(bool): True at startup, False at shutdown.
    """

    message_sent = pyqtSignal(dict)
    connection_changed = pyqtSignal(bool)

    def __init__(
        self,
        preset: str = "consistent_player",
        throw_interval: tuple[float, float] = (2.0, 5.0),
        seed: Optional[int] = None,
        parent=None,
    ):
        """
        Args:
            preset: Player preset name (see PRESETS).
            throw_interval: (min, max) seconds between simulated throws.
            seed: Random seed for reproducible runs.
        """
        super().__init__(parent)
        self._running = False
        self._preset_name = preset if preset in PRESETS else "consistent_player"
        self._preset = PRESETS[self._preset_name]
        self._throw_interval = throw_interval
        self._rng = random.Random(seed)
        self._throw_count = 0
        self._last_hit: Optional[bool] = None
        self._context: dict = {}
        self._input: dict = {"throwInputShape": "simple", "options": []}

    @property
    def session_id(self) -> Optional[str]:
        return self._context.get("sessionId")

    def set_preset(self, preset: str):
        """Change the player preset."""
        if preset in PRESETS:
            self._preset_name = preset
            self._preset = PRESETS[preset]
            logger.info(f"Mock watch preset changed to: {preset}")

    @pyqtSlot(dict)
    def update_context(self, context: dict):
        """Receive a session projection from the bridge."""
        self._context = dict(context)

    @pyqtSlot(dict)
    def update_input_config(self, config: dict):
        """Receive the input configuration from the bridge."""
        self._input = dict(config)

    def run(self):
        """Main thread loop: send throws at random intervals."""
        self._running = True
        logger.info(f"Mock watch started (preset={self._preset_name})")
        self.connection_changed.emit(True)

        while self._running:
            delay = self._rng.uniform(*self._throw_interval)
            # Sleep in small increments so we can stop quickly
            elapsed = 0.0
            while elapsed < delay and self._running:
                time.sleep(0.1)
                elapsed += 0.1

            if not self._running:
                break

            self._generate_throw()

        self.connection_changed.emit(False)
        logger.info("Mock watch stopped")

    def _hit_probability(self) -> float:
        p = self._preset
        rate = p["king_rate"] if self._input.get("throwInputShape") == "king" else p["hit_rate"]
        momentum = p.get("momentum", 0.0)
        if self._last_hit is True:
            rate += momentum
        elif self._last_hit is False:
            rate -= momentum
        return max(0.0, min(1.0, rate))

    def _generate_throw(self) -> Optional[dict]:
        """Generate and send a single throw for the current session."""
        if not self.session_id or not self._context.get("isActive", False):
            logger.debug("Mock watch has no active session, skipping throw")
            return None

        is_hit = self._rng.random() < self._hit_probability()
        message = {"sessionId": self.session_id, "isHit": is_hit}

        options = self._input.get("options") or []
        if is_hit and self._input.get("throwInputShape") == "multi_kubb" and options:
            units = 1
            while units < max(options) and self._rng.random() < self._preset["multi_kubb_rate"]:
                units += 1
            message["unitsAffected"] = units

        self._last_hit = is_hit
        self._throw_count += 1
        logger.info(
            f"Mock throw #{self._throw_count}: {'hit' if is_hit else 'miss'}"
            + (f" x{message['unitsAffected']}" if "unitsAffected" in message else "")
        )
        self.message_sent.emit(message)
        return message

    def trigger_throw(self) -> Optional[dict]:
        """Manually trigger a single throw (for UI button / testing)."""
        return self._generate_throw()

    def stop(self):
        """Signal the thread to stop."""
        self._running = False

    def is_connected(self) -> bool:
        return self._running
