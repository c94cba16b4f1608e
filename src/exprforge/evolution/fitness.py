"""Per-row error functions and stagnation tracking.

Error functions take ``(actual, predicted)`` and return a non-negative
float. Non-finite results are counted separately by ``Expr.score_against``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from exprforge.expression.tree import Fitness
from exprforge.expression.types import Value


def relative_error(actual: Value, predicted: Value) -> float:
    """``|(predicted - actual) / actual|``, or ``|predicted|`` when actual is 0."""
    a = actual.as_float()
    p = predicted.as_float()
    if a != 0.0:
        return abs((p - a) / a)
    return abs(p)


def absolute_error(actual: Value, predicted: Value) -> float:
    return abs(predicted.as_float() - actual.as_float())


def squared_error(actual: Value, predicted: Value) -> float:
    diff = predicted.as_float() - actual.as_float()
    return diff * diff


ERROR_FUNCTIONS = {
    "relative": relative_error,
    "absolute": absolute_error,
    "squared": squared_error,
}


def relative_delta(a: float, b: float) -> float:
    """``|a - b| / max(|b|, 1)``, with equal values (infinities included) at 0."""
    if a == b:
        return 0.0
    return abs(a - b) / max(abs(b), 1.0)


@dataclass
class StagnationTracker:
    """Counts generations in which the best fitness did not move.

    A change smaller than ``delta_threshold`` (relative, on both the real
    and the nan component) counts as no change.
    """

    delta_threshold: float
    counter: int = 0
    reference: Fitness | None = field(default=None)

    def update(self, best: Fitness) -> int:
        """Record this generation's best fitness and return the counter."""
        if self.reference is not None and self._unchanged(best):
            self.counter += 1
        else:
            self.reference = best
            self.counter = 0
        return self.counter

    def reset(self) -> None:
        self.counter = 0
        self.reference = None

    def _unchanged(self, best: Fitness) -> bool:
        return (
            relative_delta(best.real, self.reference.real) <= self.delta_threshold
            and relative_delta(best.nan, self.reference.nan) <= self.delta_threshold
        )
