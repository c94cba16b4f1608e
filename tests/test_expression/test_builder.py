"""Tests for builder tables and generation parameters."""

import pytest

from exprforge.expression.builder import BuilderParams, BuilderTable, GrowthCurve
from exprforge.expression.nodes import NodeShape, build_random_tree
from exprforge.expression.tables import (
    TABLES,
    arithmetic_table,
    float_table,
    get_table,
    mixed_table,
)
from exprforge.expression.types import TypeTag


class TestGrowthCurve:
    """Test the depth-dependent probability law."""

    def test_midpoint_is_half(self):
        curve = GrowthCurve()
        assert curve.probability(0.7, 0, 10) == pytest.approx(0.5)

    def test_zero_at_depth_limit(self):
        curve = GrowthCurve()
        assert curve.probability(0.9, 10, 10) == 0.0
        assert curve.probability(0.9, 12, 10) == 0.0

    def test_grows_with_depth(self):
        curve = GrowthCurve()
        values = [curve.probability(0.1, d, 10) for d in range(5)]
        assert values == sorted(values)
        assert values[-1] > values[0]

    def test_overflow_yields_zero(self):
        curve = GrowthCurve(steepness=5.5, midpoint=1e6)
        assert curve.probability(0.5, 0, 10) == 0.0

    def test_coefficients_overridable(self):
        assert GrowthCurve(steepness=1.0, midpoint=0.0).probability(0.0, 0, 5) == pytest.approx(0.5)


class TestBuilderParams:
    """Test generation parameters."""

    def test_defaults(self):
        params = BuilderParams()
        assert params.max_depth == 10
        assert params.termination_probability == 0.05
        assert params.float_range == (0.0, 1.0)
        assert params.int_range == (-100, 100)
        assert params.uint_range == (0, 100)
        assert params.curve == GrowthCurve(5.5, 0.7)

    def test_chaining(self):
        params = BuilderParams()
        result = params.with_max_depth(4).with_termination_probability(0.2).with_float_range(-1.0, 1.0)
        assert result is params
        assert params.max_depth == 4
        assert params.termination_probability == 0.2
        assert params.float_range == (-1.0, 1.0)

    @pytest.mark.parametrize("kwargs", [
        {"max_depth": -1},
        {"termination_probability": 1.5},
        {"float_range": (1.0, 0.0)},
        {"int_range": (5, -5)},
        {"uint_range": (-1, 3)},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            BuilderParams(**kwargs)

    @pytest.mark.parametrize("method, args", [
        ("with_max_depth", (-5,)),
        ("with_termination_probability", (2.0,)),
        ("with_float_range", (3.0, 1.0)),
        ("with_int_range", (5, -5)),
        ("with_uint_range", (-1, 3)),
    ])
    def test_chaining_validates(self, method, args):
        """Invalid chained values are rejected and leave the params unchanged."""
        params = BuilderParams()
        before = (params.max_depth, params.termination_probability, params.float_range,
                  params.int_range, params.uint_range)
        with pytest.raises(ValueError):
            getattr(params, method)(*args)
        after = (params.max_depth, params.termination_probability, params.float_range,
                 params.int_range, params.uint_range)
        assert after == before

    def test_seed_reproducible(self, table):
        a = BuilderParams(max_depth=6, random_seed=7)
        b = BuilderParams(max_depth=6, random_seed=7)
        trees_a = [build_random_tree(table, [TypeTag.FLOAT], TypeTag.FLOAT, 0, a).equation() for _ in range(5)]
        trees_b = [build_random_tree(table, [TypeTag.FLOAT], TypeTag.FLOAT, 0, b).equation() for _ in range(5)]
        assert trees_a == trees_b

    def test_reseed(self):
        params = BuilderParams(random_seed=1)
        first = [params.rng.random() for _ in range(3)]
        params.seed(1)
        assert [params.rng.random() for _ in range(3)] == first

    def test_literals_in_range(self):
        params = BuilderParams(int_range=(-3, 3), uint_range=(1, 2), random_seed=0)
        for _ in range(50):
            assert -3 <= params.literal(TypeTag.INT).payload <= 3
            assert 1 <= params.literal(TypeTag.UINT).payload <= 2
            assert params.literal(TypeTag.BOOL).tag == TypeTag.BOOL


class TestBuilderTable:
    """Test catalog assembly and lookup."""

    def test_push_and_lookup(self):
        table = BuilderTable()
        assert table.push(NodeShape.unary("sin")) is table
        assert table.shapes(TypeTag.FLOAT) == (NodeShape.unary("sin"),)
        assert len(table) == 1

    def test_duplicates_ignored(self):
        table = BuilderTable().register_unary("sin", "sin")
        assert len(table) == 1

    def test_leaf_shapes_rejected(self):
        with pytest.raises(ValueError):
            BuilderTable().push(NodeShape.constant())

    def test_frozen(self):
        table = BuilderTable().freeze()
        assert table.frozen
        with pytest.raises(RuntimeError):
            table.register_unary("cos")

    def test_pick_forces_leaf_at_depth_limit(self, table):
        params = BuilderParams(max_depth=3, termination_probability=0.0, random_seed=0)
        for _ in range(20):
            assert table.pick(TypeTag.FLOAT, [TypeTag.FLOAT], 2, params).is_leaf()

    def test_pick_operator_below_limit(self, table):
        params = BuilderParams(max_depth=5, termination_probability=0.0, random_seed=0)
        shape = table.pick(TypeTag.FLOAT, [TypeTag.FLOAT], 0, params)
        assert not shape.is_leaf()
        assert shape.return_type == TypeTag.FLOAT

    def test_pick_leaf_without_argument(self):
        params = BuilderParams(random_seed=0)
        table = BuilderTable()
        for _ in range(10):
            assert table.pick_leaf(TypeTag.BOOL, [TypeTag.FLOAT], params) == table.constant

    def test_describe(self):
        rows = arithmetic_table().describe()
        names = [row["name"] for row in rows]
        assert names[:4] == ["add", "sub", "mul", "div"]
        assert "const" in names and "var" in names


class TestTables:
    """Test the ready-made tables."""

    def test_arithmetic(self):
        table = arithmetic_table()
        assert len(table) == 4
        assert table.frozen

    def test_float(self):
        names = {shape.name for shape in float_table().shapes(TypeTag.FLOAT)}
        assert names == {"sin", "cos", "tan", "exp", "log", "abs", "add", "sub", "mul", "div", "pow"}

    def test_mixed(self):
        table = mixed_table()
        bool_names = {shape.name for shape in table.shapes(TypeTag.BOOL)}
        assert bool_names == {"gt", "lt", "and", "or", "not"}
        assert "if" in {shape.name for shape in table.shapes(TypeTag.FLOAT)}

    def test_get_table(self):
        for name in TABLES:
            assert len(get_table(name)) > 0
        with pytest.raises(ValueError, match="Unknown table"):
            get_table("nope")
