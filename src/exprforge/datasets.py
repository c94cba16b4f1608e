"""Training data generators.

Target functions are vectorised over a ``(n_samples, n_args)`` array of
inputs. ``sample_function`` draws the inputs and wraps both sides as Values
ready for TrainingArgs.
"""

from dataclasses import dataclass
from typing import Callable

import numpy as np

from exprforge.expression.types import TypeTag, Value


@dataclass(frozen=True)
class Target:
    """Named function to learn."""

    name: str
    n_args: int
    fn: Callable[[np.ndarray], np.ndarray]
    description: str = ""


TARGETS: dict[str, Target] = {
    t.name: t
    for t in [
        Target("add", 2, lambda x: x[:, 0] + x[:, 1], "x0 + x1"),
        Target("mul", 2, lambda x: x[:, 0] * x[:, 1], "x0 * x1"),
        Target("poly", 1, lambda x: x[:, 0] ** 2 + x[:, 0] + 1.0, "x0^2 + x0 + 1"),
        Target("cubic", 1, lambda x: x[:, 0] ** 3 - 2.0 * x[:, 0], "x0^3 - 2 x0"),
        Target("sin", 1, lambda x: np.sin(x[:, 0]), "sin(x0)"),
        Target("hypot", 2, lambda x: np.sqrt(x[:, 0] ** 2 + x[:, 1] ** 2), "sqrt(x0^2 + x1^2)"),
    ]
}


def get_target(name: str) -> Target:
    if name not in TARGETS:
        raise ValueError(f"Unknown target: {name}. Valid: {sorted(TARGETS)}")
    return TARGETS[name]


def to_values(array: np.ndarray, tag: TypeTag = TypeTag.FLOAT) -> list:
    """Convert a 1-D array to Values, or a 2-D array to rows of Values."""
    if array.ndim == 1:
        return [Value.of(tag, x) for x in array.tolist()]
    if array.ndim == 2:
        return [[Value.of(tag, x) for x in row] for row in array.tolist()]
    raise ValueError(f"Expected a 1-D or 2-D array, got {array.ndim} dimensions")


def sample_function(
    fn: Callable[[np.ndarray], np.ndarray],
    n_args: int,
    n_samples: int = 100,
    low: float = -100.0,
    high: float = 100.0,
    seed: int | None = None,
) -> tuple[list[list[Value]], list[Value]]:
    """Sample a target function on uniformly drawn float inputs.

    Args:
        fn: Vectorised target over an ``(n_samples, n_args)`` array
        n_args: Number of input columns
        n_samples: Number of rows
        low: Lower bound of the inputs
        high: Upper bound of the inputs
        seed: Seed for the input draw

    Returns:
        (train_x, train_y) as Values
    """
    if n_args < 1:
        raise ValueError(f"n_args must be >= 1, got {n_args}")
    if n_samples < 1:
        raise ValueError(f"n_samples must be >= 1, got {n_samples}")
    if low > high:
        raise ValueError(f"Invalid input range: ({low}, {high})")

    rng = np.random.default_rng(seed)
    x = rng.uniform(low, high, size=(n_samples, n_args))
    y = np.asarray(fn(x), dtype=np.float64)
    if y.shape != (n_samples,):
        raise ValueError(f"Target returned shape {y.shape}, expected ({n_samples},)")
    return to_values(x), to_values(y)


def sample_target(
    name: str,
    n_samples: int = 100,
    low: float = -100.0,
    high: float = 100.0,
    seed: int | None = None,
) -> tuple[list[list[Value]], list[Value]]:
    """Sample a named target from ``TARGETS``."""
    target = get_target(name)
    return sample_function(target.fn, target.n_args, n_samples, low, high, seed)
