"""
Error hierarchy for Kubb Trainer.

Domain-rule violations are raised to the caller as typed exceptions.
Statistics code never raises on empty or insufficient data, so nothing
in the stats engine appears here.

    InvalidState:    mutating a completed/paused session, appending to
                     a closed round, exceeding a game-rule ceiling.
    NotFound:        a session id that does not exist in storage.
    MalformedRecord: persisted data that no longer decodes into a session.
"""

from typing import Optional


class KubbTrainerError(Exception):
    """Base exception for all Kubb Trainer errors.

    Attributes:
        message: Human-readable description.
        code: Short machine-readable error code.
        session_id: Session the error relates to, if any.
    """

    code = "kubb_trainer_error"

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.session_id = session_id

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "session_id": self.session_id,
        }


class InvalidState(KubbTrainerError):
    """Operation not allowed in the session's or round's current state."""

    code = "invalid_state"


class NotFound(KubbTrainerError):
    """No session with the requested id exists."""

    code = "not_found"


class MalformedRecord(KubbTrainerError):
    """Persisted data failed to decode into the expected shape."""

    code = "malformed_record"
