"""
Backlog (backpressure) signal reported to the controller side.
"""

from __future__ import annotations

from dataclasses import dataclass


def backlog_delayed(pending_count: int, limit: int) -> bool:
    """True when strictly more than ``limit`` records are waiting."""
    return pending_count > limit


@dataclass(frozen=True)
class BacklogState:
    """Derived each relay cycle from the pending count; never persisted.

    Attributes:
        pending_count: Records with status Pending at check time
        limit: Configured PendingLimit
    """

    pending_count: int
    limit: int

    @property
    def delayed(self) -> bool:
        return backlog_delayed(self.pending_count, self.limit)

    @property
    def utilization(self) -> float:
        """Backlog relative to the limit (1.0 == at the limit)."""
        return self.pending_count / self.limit if self.limit > 0 else 0.0
