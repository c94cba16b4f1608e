"""Tests for the Expr wrapper and fitness ordering."""

import random

import pytest

from exprforge.errors import UncalculatedFitnessError
from exprforge.evolution.fitness import relative_error
from exprforge.expression.nodes import BinaryOp, Constant, UnaryOp, Variable
from exprforge.expression.tree import Expr, Fitness
from exprforge.expression.types import TypeTag, Value


class TestFitness:
    """Test fitness ordering."""

    def test_nan_fraction_dominates(self):
        assert Fitness(real=1.0, nan=0.0) < Fitness(real=0.5, nan=0.1)

    def test_real_breaks_ties(self):
        assert Fitness(real=0.2, nan=0.0) < Fitness(real=0.3, nan=0.0)
        assert Fitness(real=0.2, nan=0.0) <= Fitness(real=0.2, nan=0.0)
        assert Fitness(real=0.4, nan=0.0) > Fitness(real=0.3, nan=0.0)

    def test_uncalculated_comparison_raises(self):
        with pytest.raises(UncalculatedFitnessError):
            Fitness() < Fitness(real=1.0, nan=0.0)
        with pytest.raises(UncalculatedFitnessError):
            Fitness(real=1.0, nan=0.0) >= Fitness()

    def test_uncalculated_equality_raises(self):
        with pytest.raises(UncalculatedFitnessError):
            Fitness() == Fitness(real=0.0, nan=0.0)
        with pytest.raises(UncalculatedFitnessError):
            Fitness(real=0.0, nan=0.0) != Fitness()

    def test_calculated_equality(self):
        assert Fitness(real=0.5, nan=0.0) == Fitness(real=0.5, nan=0.0)
        assert Fitness(real=0.5, nan=0.0) != Fitness(real=0.5, nan=0.1)
        assert len({Fitness(real=0.5, nan=0.0), Fitness(real=0.5, nan=0.0)}) == 1

    def test_partial_fitness_rejected(self):
        with pytest.raises(ValueError):
            Fitness(real=1.0)

    def test_sorting_is_consistent(self):
        rng = random.Random(42)
        values = [
            Fitness(real=rng.choice([0.0, 0.5, 1.0]), nan=rng.choice([0.0, 0.5]))
            for _ in range(50)
        ]
        ordered = sorted(values)
        for a, b in zip(ordered, ordered[1:]):
            assert a <= b
            assert not b < a

    def test_str(self):
        assert str(Fitness()) == "uncalculated"
        assert "real=" in str(Fitness(real=1.0, nan=0.0))


class TestExpr:
    """Test expression scoring and bookkeeping."""

    @pytest.fixture
    def exact(self, two_floats):
        return Expr(BinaryOp("add", Variable(0), Variable(1)), two_floats)

    def test_new_is_uncalculated(self, exact):
        assert not exact.fitness.is_calculated
        assert exact.return_type == TypeTag.FLOAT
        assert exact.arg_types == (TypeTag.FLOAT, TypeTag.FLOAT)

    def test_exact_match_scores_zero(self, exact, add_data):
        train_x, train_y = add_data
        fitness = exact.score_against(train_x, train_y, relative_error)
        assert fitness == Fitness(real=0.0, nan=0.0)
        assert exact.fitness is fitness

    def test_non_finite_everywhere(self, two_floats, add_data):
        """A tree dividing by zero has every error counted as non-finite."""
        expr = Expr(BinaryOp("div", Variable(0), Constant(Value.float_(0.0))), two_floats)
        train_x, train_y = add_data
        fitness = expr.score_against(train_x, train_y, relative_error)
        assert fitness.nan == 1.0
        assert fitness.real == 0.0

    def test_partial_non_finite(self, two_floats):
        expr = Expr(UnaryOp("log", Variable(0)), two_floats)
        train_x = [[Value.float_(1.0), Value.float_(0.0)], [Value.float_(-1.0), Value.float_(0.0)]]
        train_y = [Value.float_(1.0), Value.float_(1.0)]
        fitness = expr.score_against(train_x, train_y, relative_error)
        assert fitness.nan == 0.5
        assert fitness.real == pytest.approx(0.5)

    def test_non_finite_prediction_counted(self, two_floats):
        """A non-finite prediction counts even when the error function hides it."""
        expr = Expr(UnaryOp("log", Variable(0)), two_floats)
        train_x = [[Value.float_(0.0), Value.float_(0.0)], [Value.float_(1.0), Value.float_(0.0)]]
        train_y = [Value.float_(0.0), Value.float_(0.0)]
        fitness = expr.score_against(train_x, train_y, lambda actual, predicted: 0.0)
        assert fitness.nan == 0.5
        assert fitness.real == 0.0

    def test_score_requires_matching_data(self, exact):
        with pytest.raises(ValueError):
            exact.score_against([[Value.float_(1.0), Value.float_(1.0)]], [], relative_error)
        with pytest.raises(ValueError):
            exact.score_against([], [], relative_error)

    def test_clone(self, exact, add_data):
        exact.score_against(*add_data, relative_error)
        cloned = exact.clone()
        assert cloned.fitness == exact.fitness
        assert cloned.root == exact.root
        assert cloned.root is not exact.root

    def test_prune_invalidates_changed_tree(self, two_floats, add_data):
        expr = Expr(UnaryOp("exp", UnaryOp("log", Variable(0))), two_floats)
        expr.score_against(*add_data, relative_error)
        expr.prune()
        assert expr.equation() == "x[0]"
        assert not expr.fitness.is_calculated

    def test_prune_keeps_fitness_of_unchanged_tree(self, exact, add_data):
        exact.score_against(*add_data, relative_error)
        exact.prune()
        assert exact.fitness.is_calculated

    def test_random(self, params, table, two_floats):
        expr = Expr.random(two_floats, TypeTag.FLOAT, table, params)
        assert expr.type_check() is None
        assert expr.max_depth() <= params.max_depth
        assert expr.size() >= 1

    def test_type_check_declared_return(self, two_floats):
        expr = Expr(Variable(0), two_floats)
        expr.return_type = TypeTag.INT
        assert expr.type_check() is not None

    def test_render_and_equation(self, exact):
        assert exact.render() == "add\n.x[0]\n.x[1]"
        assert str(exact) == "(x[0] + x[1])"
        assert "x[0] + x[1]" in repr(exact)
