"""Tests for selection, mutation and crossover."""

import random
from collections import Counter

import pytest

from exprforge.expression.builder import BuilderParams
from exprforge.expression.nodes import BinaryOp, Conditional, Constant, UnaryOp, Variable
from exprforge.expression.tree import Expr, Fitness
from exprforge.expression.types import TypeTag, Value
from exprforge.operators import (
    crossover,
    mutate,
    rank_weighted_selection,
    rank_weights,
    scaled_probability,
    select_parent,
)


def scored(root, arg_types, real=0.5, nan=0.0):
    expr = Expr(root, arg_types)
    expr.fitness = Fitness(real=real, nan=nan)
    return expr


class TestSelection:
    """Test rank-weighted selection."""

    def test_rank_weights(self):
        assert rank_weights(4).tolist() == [4, 3, 2, 1]
        assert rank_weights(0).tolist() == []

    def test_best_drawn_more_often(self):
        rng = random.Random(42)
        counts = Counter(rank_weighted_selection(["best", "worst"], 3000, rng))
        share = counts["best"] / 3000
        assert 0.6 < share < 0.73

    def test_every_rank_reachable(self):
        rng = random.Random(1)
        picks = set(rank_weighted_selection(list(range(5)), 500, rng))
        assert picks == {0, 1, 2, 3, 4}

    def test_empty_population(self):
        with pytest.raises(ValueError):
            rank_weighted_selection([], 1, random.Random(0))

    def test_select_parent(self):
        assert select_parent(["only"], random.Random(0)) == "only"


class TestMutationOperator:
    """Test the population-level mutation attempt."""

    def test_scaled_probability(self, two_floats):
        expr = scored(Variable(0), two_floats, real=2.0)
        assert scaled_probability(0.3, expr) == pytest.approx(0.6)
        expr = scored(Variable(0), two_floats, real=10.0)
        assert scaled_probability(0.3, expr) == 1.0
        expr = scored(Variable(0), two_floats, real=0.0)
        assert scaled_probability(0.3, expr) == 0.0

    def test_unscored_uses_base(self, two_floats):
        assert scaled_probability(0.3, Expr(Variable(0), two_floats)) == 0.3

    def test_parent_untouched(self, sample_tree, table, params, two_floats):
        parent = scored(sample_tree, two_floats, real=5.0)
        before = parent.render()
        for _ in range(20):
            child = mutate(parent, 0.5, table, params)
            if child is not None:
                assert child.type_check() is None
                assert child.max_depth() <= params.max_depth
        assert parent.render() == before
        assert parent.fitness.real == 5.0

    def test_perfect_parent_unchanged(self, sample_tree, table, two_floats):
        """A zero-error parent gets base probability 0 at every node."""
        params = BuilderParams(max_depth=3, random_seed=0).with_curve(5.5, 50.0)
        parent = scored(sample_tree, two_floats, real=0.0)
        assert mutate(parent, 0.9, table, params) is None


class TestCrossoverOperator:
    """Test the population-level crossover attempt."""

    def test_children_typed_and_bounded(self, table, two_floats):
        params = BuilderParams(max_depth=5, random_seed=3)
        produced = 0
        for _ in range(60):
            donor = scored(Expr.random(two_floats, TypeTag.FLOAT, table, params).root, two_floats, real=0.8)
            host = scored(Expr.random(two_floats, TypeTag.FLOAT, table, params).root, two_floats, real=0.8)
            child = crossover(donor, host, 0.5, params)
            if child is not None:
                produced += 1
                assert child.return_type == TypeTag.FLOAT
                assert child.type_check() is None
                assert child.max_depth() <= params.max_depth
        assert produced > 0

    def test_parents_untouched(self, sample_tree, params, two_floats):
        donor = scored(UnaryOp("cos", Variable(1)), two_floats, real=1.0)
        host = scored(sample_tree, two_floats, real=1.0)
        before = (donor.render(), host.render())
        for _ in range(20):
            crossover(donor, host, 0.5, params)
        assert (donor.render(), host.render()) == before

    def test_bool_fragment_only_lands_in_bool_slot(self, two_floats):
        """Fragments from a condition only replace the host's condition."""
        condition = BinaryOp("gt", Variable(0), Variable(1))
        host = scored(
            Conditional(
                BinaryOp("lt", Variable(0), Constant(Value.float_(0.0))),
                Variable(0),
                Variable(1),
            ),
            two_floats,
        )
        donor = scored(condition, two_floats)
        params = BuilderParams(max_depth=6, random_seed=5).with_curve(5.5, -1e6)
        for _ in range(20):
            child = crossover(donor, host, 0.5, params)
            if child is None:
                continue
            assert child.type_check() is None
            assert child.return_type == TypeTag.FLOAT
