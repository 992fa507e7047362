"""
L1 Domain — Run-level wall-clock budget.

Every blocking network call asks the deadline for its timeout so the
whole run cannot outlive the budget, however many calls it makes.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from mihomo_installer.core.errors import DeadlineExceeded


class Deadline:
    """A monotonic-clock deadline shared by all stages of one run."""

    def __init__(self, budget_s: float | None, *, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.budget_s = budget_s
        self._expires = None if budget_s is None else clock() + budget_s

    @classmethod
    def unbounded(cls) -> Deadline:
        return cls(None)

    def remaining(self) -> float | None:
        """Seconds left, or None when unbounded."""
        if self._expires is None:
            return None
        return max(0.0, self._expires - self._clock())

    @property
    def expired(self) -> bool:
        left = self.remaining()
        return left is not None and left <= 0

    def check(self, what: str = "operation") -> None:
        """Raise DeadlineExceeded if the budget is used up."""
        if self.expired:
            raise DeadlineExceeded(
                f"Run budget of {self.budget_s:g}s exhausted before {what}"
            )

    def timeout(self, per_call: float, what: str = "operation") -> float:
        """Timeout for one call: ``min(per_call, remaining)``.

        Raises:
            DeadlineExceeded: If nothing is left.
        """
        self.check(what)
        left = self.remaining()
        return per_call if left is None else min(per_call, left)
