"""fabvote — Per-phase Timeout Policy.

Each gateway phase has its own budget. A deadline is an absolute epoch
timestamp taken when the phase starts, so endorsement and commit
latency are bounded independently.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum


class Phase(str, Enum):
    EVALUATE = "evaluate"
    ENDORSE = "endorse"
    SUBMIT = "submit"
    COMMIT_STATUS = "commit_status"


@dataclass(frozen=True)
class TimeoutPolicy:
    """Budgets in seconds for each phase."""

    evaluate: float = 5.0
    endorse: float = 15.0
    submit: float = 5.0
    commit_status: float = 60.0

    def budget(self, phase: Phase) -> float:
        return getattr(self, phase.value)

    def deadline(self, phase: Phase, now: float | None = None) -> float:
        """Absolute expiry for a phase starting at ``now``."""
        start = time.time() if now is None else now
        return start + self.budget(phase)


DEFAULT_TIMEOUTS = TimeoutPolicy()


def remaining(deadline: float) -> float:
    """Seconds left before ``deadline`` (may be negative)."""
    return deadline - time.time()
