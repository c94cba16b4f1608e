"""Type system for strongly-typed genetic programming (STGP).

Every node declares the tag of the value it returns and the tags of its
argument slots, so generation, crossover and mutation only ever connect
compatible subtrees.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
import math
import random

INT_BITS = 32
INT_MIN = -(2 ** (INT_BITS - 1))
INT_MAX = 2 ** (INT_BITS - 1) - 1
UINT_MAX = 2**INT_BITS - 1


class TypeTag(Enum):
    """Run-time shape of a value and declared type of node slots."""

    INT = auto()
    FLOAT = auto()
    UINT = auto()
    BOOL = auto()


def wrap_int(value: int) -> int:
    """Wrap to the signed 32-bit range."""
    return ((value - INT_MIN) % 2**INT_BITS) + INT_MIN


def wrap_uint(value: int) -> int:
    """Wrap to the unsigned 32-bit range."""
    return value % 2**INT_BITS


@dataclass(frozen=True)
class Value:
    """Tagged value produced by evaluating a node.

    Attributes:
        tag: Which of int / float / uint / bool the payload is
        payload: The Python value; ints are kept inside 32-bit range
    """

    tag: TypeTag
    payload: int | float | bool

    @classmethod
    def of(cls, tag: TypeTag, payload: int | float | bool) -> "Value":
        """Build a value of the given tag, normalising the payload."""
        if tag == TypeTag.FLOAT:
            return cls(tag, float(payload))
        if tag == TypeTag.INT:
            return cls(tag, wrap_int(int(payload)))
        if tag == TypeTag.UINT:
            return cls(tag, wrap_uint(int(payload)))
        return cls(tag, bool(payload))

    @classmethod
    def int_(cls, payload: int) -> "Value":
        return cls.of(TypeTag.INT, payload)

    @classmethod
    def float_(cls, payload: float) -> "Value":
        return cls.of(TypeTag.FLOAT, payload)

    @classmethod
    def uint(cls, payload: int) -> "Value":
        return cls.of(TypeTag.UINT, payload)

    @classmethod
    def bool_(cls, payload: bool) -> "Value":
        return cls.of(TypeTag.BOOL, payload)

    @classmethod
    def zero(cls, tag: TypeTag) -> "Value":
        """Zero value of a tag (0, 0.0, 0 or false)."""
        return cls.of(tag, 0)

    def as_float(self) -> float:
        """Payload as a float, used by error functions."""
        return float(self.payload)

    def is_finite(self) -> bool:
        if self.tag == TypeTag.FLOAT:
            return math.isfinite(self.payload)
        return True

    def __str__(self) -> str:
        if self.tag == TypeTag.INT:
            return f"{self.payload}I"
        if self.tag == TypeTag.FLOAT:
            return f"{self.payload}F"
        if self.tag == TypeTag.UINT:
            return f"{self.payload}U"
        return "true" if self.payload else "false"


def random_value(tag: TypeTag, rng: random.Random) -> Value:
    """Draw a uniformly random value of a tag.

    Integers cover their full 32-bit range, floats fall in [0, 1).
    """
    if tag == TypeTag.INT:
        return Value(tag, rng.randint(INT_MIN, INT_MAX))
    if tag == TypeTag.UINT:
        return Value(tag, rng.randint(0, UINT_MAX))
    if tag == TypeTag.FLOAT:
        return Value(tag, rng.random())
    return Value(tag, rng.random() < 0.5)


def random_value_in(
    tag: TypeTag,
    low: int | float,
    high: int | float,
    rng: random.Random,
) -> Value:
    """Draw a uniformly random value within an inclusive range.

    Args:
        tag: Tag of the value to draw
        low: Lower bound
        high: Upper bound (must be >= low)
        rng: Random number generator

    Returns:
        A Value of the requested tag. Booleans ignore the range.
    """
    if low > high:
        raise ValueError(f"Invalid range for {tag.name}: ({low}, {high})")

    if tag == TypeTag.FLOAT:
        return Value(tag, rng.uniform(float(low), float(high)))
    if tag == TypeTag.BOOL:
        return Value(tag, rng.random() < 0.5)
    return Value.of(tag, rng.randint(int(low), int(high)))
