"""
Storage contracts used by the lifecycle manager.

The manager depends only on these protocols, so tests and alternative
back ends can supply any object with matching methods.
"""

from datetime import datetime
from typing import Optional, Protocol

from kubb_trainer.models.session import Session
from kubb_trainer.models.variant import SessionVariant


class SessionStore(Protocol):
    """Create/read/update/delete sessions by id."""

    def create_session(self, session: Session) -> str: ...

    def read_session(self, session_id: str) -> Optional[Session]: ...

    def update_session(self, session: Session) -> None: ...

    def delete_session(self, session_id: str) -> bool: ...

    def read_all(self, variant: Optional[SessionVariant] = None) -> list[Session]: ...

    def read_by_date_range(self, variant: SessionVariant,
                           start: datetime, end: datetime) -> list[Session]: ...

    def delete_all(self, variant: Optional[SessionVariant] = None) -> int: ...

    def session_counts(self) -> dict[SessionVariant, int]: ...


class ActivePointerStore(Protocol):
    """Variant → active session id, surviving restarts."""

    def get(self, variant: SessionVariant) -> Optional[str]: ...

    def set(self, variant: SessionVariant, session_id: str) -> None: ...

    def clear(self, variant: SessionVariant) -> None: ...
