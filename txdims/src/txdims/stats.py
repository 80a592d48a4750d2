"""
Error distribution tracking for estimate verification.
"""

from __future__ import annotations

from collections import Counter


class InvalidPercentileError(ValueError):
    pass


class ErrorTracker:
    """Counts how often each integer error value occurs."""

    def __init__(self) -> None:
        self.counts: Counter[int] = Counter()
        self.total = 0

    def add(self, value: int) -> None:
        self.counts[value] += 1
        self.total += 1

    def get_percentile(self, p: float) -> int:
        """
        Return the smallest value whose cumulative share of all samples is >= p.

        Raises:
            InvalidPercentileError: If p is outside [0, 1]
            ValueError: If no samples were added
        """
        if not 0 <= p <= 1:
            raise InvalidPercentileError(f"p must be between 0 and 1, got {p}")
        if self.total == 0:
            raise ValueError("No samples recorded")

        cumulative = 0
        for value in sorted(self.counts):
            cumulative += self.counts[value]
            if cumulative / self.total >= p:
                return value

        # Unreachable: the last value always has a cumulative share of 1
        raise ValueError(f"Could not find percentile {p}")

    def __str__(self) -> str:
        return "[" + " ".join(f"[{v}, {self.counts[v]}]" for v in sorted(self.counts)) + "]"
