"""
Application configuration management for Kubb Trainer.

Handles settings storage, default session targets, and mock watch
preferences. Settings are persisted to ~/.kubbtrainer/config.json
(or $KUBBTRAINER_HOME/config.json when that variable is set).
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _default_app_dir() -> Path:
    env_dir = os.environ.get("KUBBTRAINER_HOME", "")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".kubbtrainer"


class Config:
    """JSON-backed settings shared by the whole process.

    Saved values are layered over the built-in defaults, so a config
    file only needs the keys the user changed.
    """

    _APP_DIR = _default_app_dir()
    _CONFIG_FILE = _APP_DIR / "config.json"
    _DB_PATH = _APP_DIR / "kubbtrainer.db"
    _POINTER_FILE = _APP_DIR / "active_sessions.json"

    _defaults = {
        "standard_target": 30,          # batons per 8 m practice session
        "around_the_pitch_target": 20,  # throw budget to clear the pitch
        "inkast_blast_target": 5,       # cleared rounds per Inkast-Blast session
        "full_game_target": 0,          # rounds; 0 plays until the king falls
        "inkast_blast_phase": "all",    # "early", "mid", "end", "all"
        "recent_form_window": 5,
        "trend_window": 3,
        "mock_preset": "consistent_player",
        "mock_throw_interval": [2.0, 5.0],  # seconds between mock throws
    }

    _instance: Optional["Config"] = None
    _settings: dict

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._settings = cls._instance._read()
        return cls._instance

    @classmethod
    def _app_dir(cls) -> Path:
        cls._APP_DIR.mkdir(parents=True, exist_ok=True)
        return cls._APP_DIR

    def _read(self) -> dict:
        self._app_dir()
        if not self._CONFIG_FILE.exists():
            return dict(self._defaults)
        try:
            saved = json.loads(self._CONFIG_FILE.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable config {self._CONFIG_FILE}: {e}")
            return dict(self._defaults)
        return {**self._defaults, **saved}

    def save(self):
        """Write the current settings to disk."""
        self._app_dir()
        self._CONFIG_FILE.write_text(json.dumps(self._settings, indent=2))

    def get(self, key: str, default=None):
        return self._settings.get(key, default)

    def set(self, key: str, value):
        """Change one setting and save straight away."""
        self._settings[key] = value
        self.save()

    def reset(self):
        """Drop every saved value back to its default."""
        self._settings = dict(self._defaults)
        self.save()

    def default_target(self, variant: str, mode: Optional[str] = None) -> int:
        """Default session target for a variant (and practice mode)."""
        if variant == "practice":
            key = "around_the_pitch_target" if mode == "around_the_pitch" else "standard_target"
        elif variant == "inkast_blast":
            key = "inkast_blast_target"
        else:
            key = "full_game_target"
        return int(self.get(key, self._defaults[key]))

    @classmethod
    def get_db_path(cls) -> Path:
        """SQLite database file."""
        cls._app_dir()
        return cls._DB_PATH

    @classmethod
    def get_pointer_path(cls) -> Path:
        """File that remembers which sessions are active."""
        cls._app_dir()
        return cls._POINTER_FILE

    @classmethod
    def get_app_dir(cls) -> Path:
        return cls._app_dir()
