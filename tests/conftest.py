"""
Pytest fixtures for exprforge tests.

Every fixture that involves randomness is seeded for reproducibility.
"""

import random

import pytest

from exprforge.datasets import sample_function, sample_target
from exprforge.expression.builder import BuilderParams
from exprforge.expression.nodes import BinaryOp, UnaryOp, Variable
from exprforge.expression.tables import arithmetic_table, float_table
from exprforge.expression.types import TypeTag


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def params() -> BuilderParams:
    """Generation parameters with a fixed seed and depth 6."""
    return BuilderParams(max_depth=6, random_seed=42)


@pytest.fixture
def table():
    return float_table()


@pytest.fixture
def arith_table():
    return arithmetic_table()


@pytest.fixture
def two_floats() -> list[TypeTag]:
    return [TypeTag.FLOAT, TypeTag.FLOAT]


@pytest.fixture
def sample_tree():
    """x[0] + sin(x[1])"""
    return BinaryOp("add", Variable(0), UnaryOp("sin", Variable(1)))


@pytest.fixture
def add_data():
    """Samples of x0 + x1."""
    return sample_function(lambda x: x[:, 0] + x[:, 1], 2, n_samples=40, low=-10, high=10, seed=7)


@pytest.fixture
def sin_data():
    """Samples of sin(x0); arithmetic trees can never match it exactly."""
    return sample_target("sin", n_samples=30, low=-3.0, high=3.0, seed=11)
