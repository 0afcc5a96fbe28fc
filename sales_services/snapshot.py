"""
SnapshotManager -- bounded undo history for batch mutations of sales.

Responsibility:
    Keep, per user scope, the sale collections as they were immediately
    before each destructive batch mutation, and hand the most recent one
    back on undo.

Architecture position:
    Services -- in-memory, process-lifetime state.  Not persisted and not
    part of backups.

Invariants enforced:
    - History is a ``deque(maxlen=depth)``; with the default depth of 1 a
      second mutation forfeits the undo of the first.
    - Histories of different scopes never mix.
    - ``undo`` removes the entry it returns.

Failure modes:
    - NothingToUndoError when the scope has no snapshot.
    - ScopeRequiredError when called without a scope.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from sales_kernel.domain.clock import Clock, SystemClock
from sales_kernel.domain.scope import UserScope, require_scope
from sales_kernel.domain.types import Sale, Snapshot
from sales_kernel.exceptions import NothingToUndoError
from sales_kernel.logging_config import get_logger

logger = get_logger("services.snapshot")


class SnapshotManager:
    """Per-scope bounded undo history."""

    def __init__(self, depth: int = 1, clock: Clock | None = None):
        if depth < 1:
            raise ValueError(f"Snapshot depth must be at least 1, got {depth}")
        self._depth = depth
        self._clock = clock or SystemClock()
        self._history: dict[str, deque[Snapshot]] = {}

    @property
    def depth(self) -> int:
        return self._depth

    def _entries(self, scope: UserScope) -> deque[Snapshot]:
        return self._history.setdefault(scope.user_id, deque(maxlen=self._depth))

    def take(self, scope: UserScope | None, sales: Iterable[Sale]) -> Snapshot:
        """Record ``sales`` as the state to return to on the next undo."""
        scope = require_scope(scope, "take_snapshot")
        snapshot = Snapshot(sales=tuple(sales), taken_at=self._clock.now())
        self._entries(scope).append(snapshot)
        logger.debug(
            "snapshot_taken",
            extra={"user_id": scope.user_id, "sale_count": len(snapshot.sales)},
        )
        return snapshot

    def has_snapshot(self, scope: UserScope | None) -> bool:
        if scope is None or not scope.user_id:
            return False
        return bool(self._history.get(scope.user_id))

    def undo(self, scope: UserScope | None) -> Snapshot:
        """
        Pop the most recent snapshot.

        Raises:
            NothingToUndoError: if no snapshot is held for ``scope``.
        """
        scope = require_scope(scope, "undo")
        entries = self._history.get(scope.user_id)
        if not entries:
            raise NothingToUndoError(scope.user_id)
        snapshot = entries.pop()
        logger.info(
            "snapshot_restored",
            extra={"user_id": scope.user_id, "sale_count": len(snapshot.sales)},
        )
        return snapshot

    def clear(self, scope: UserScope | None) -> None:
        if scope is not None and scope.user_id:
            self._history.pop(scope.user_id, None)
