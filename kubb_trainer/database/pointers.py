"""
Active-session pointer store for Kubb Trainer.

Remembers which session is active for each variant so it can be
reloaded after a restart. File: ~/.kubbtrainer/active_sessions.json
"""

import json
import logging
from pathlib import Path
from typing import Optional

from kubb_trainer.models.variant import SessionVariant
from kubb_trainer.utils.config import Config

logger = logging.getLogger(__name__)


class ActiveSessionPointers:
    """JSON-file mapping of variant key → active session id."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path or Config.get_pointer_path()
        self._pointers: dict[str, str] = {}
        self._load()

    def _load(self):
        if not self.path.exists():
            return
        try:
            with open(self.path) as f:
                saved = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable pointer file {self.path}: {e}")
            return
        if isinstance(saved, dict):
            self._pointers = {k: v for k, v in saved.items() if isinstance(v, str)}

    def _save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._pointers, f, indent=2)

    def get(self, variant: SessionVariant) -> Optional[str]:
        return self._pointers.get(variant.value)

    def set(self, variant: SessionVariant, session_id: str):
        self._pointers[variant.value] = session_id
        self._save()

    def clear(self, variant: SessionVariant):
        if self._pointers.pop(variant.value, None) is not None:
            self._save()
