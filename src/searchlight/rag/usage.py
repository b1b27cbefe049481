"""Token usage accounting across the model calls of one run."""

from __future__ import annotations

import threading

from searchlight.models import TokenUsage


class TokenUsageTracker:
    """Accumulates the TokenUsage of every completed model call.

    A tracker starts at zero and only ever grows. Owned by whoever drives a
    run (the Pipeline); there is no module-level instance.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._totals = TokenUsage()
        self._calls = 0

    def record(self, usage: TokenUsage) -> TokenUsage:
        """Add one call's usage. Returns the new totals."""
        with self._lock:
            self._totals = self._totals + usage
            self._calls += 1
            return self._totals

    @property
    def totals(self) -> TokenUsage:
        return self._totals

    @property
    def calls(self) -> int:
        return self._calls
