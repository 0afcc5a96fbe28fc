"""
Common base for the session-bound sales services.

Services flush; the caller's ``session_scope()`` commits.  A whole import,
restore or undo therefore lands as one transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session

from sales_kernel.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """Holds the caller's session and the clock used for timestamps."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self._clock = clock or SystemClock()
