"""Ready-made builder tables.

Each function returns a frozen BuilderTable. ``TABLES`` maps the names used
on the command line to these factories.
"""

from typing import Callable

from exprforge.expression.builder import BuilderTable
from exprforge.expression.types import TypeTag

ARITHMETIC = ("add", "sub", "mul", "div")
COMPARISONS = ("eq", "ne", "gt", "ge", "lt", "le")
TRIGONOMETRIC = ("sin", "cos", "tan", "asin", "acos", "atan")
HYPERBOLIC = ("sinh", "cosh", "tanh", "asinh", "acosh", "atanh")


def arithmetic_table() -> BuilderTable:
    """Float add, sub, mul and div only."""
    return BuilderTable().register_binary(TypeTag.FLOAT, *ARITHMETIC).freeze()


def float_table() -> BuilderTable:
    """Float functions: sin, cos, tan, exp, log, abs and the arithmetic operators with pow."""
    table = BuilderTable()
    table.register_unary("sin", "cos", "tan", "exp", "log", "abs")
    table.register_binary(TypeTag.FLOAT, *ARITHMETIC, "pow")
    return table.freeze()


def extended_float_table() -> BuilderTable:
    """Every float-to-float operator kind."""
    table = BuilderTable()
    table.register_unary(*TRIGONOMETRIC, *HYPERBOLIC)
    table.register_unary("exp", "log", "abs", "sqrt", "neg", "relu", "heaviside")
    table.register_binary(TypeTag.FLOAT, *ARITHMETIC, "pow")
    return table.freeze()


def mixed_table() -> BuilderTable:
    """Float arithmetic with boolean conditions and a float conditional."""
    table = BuilderTable()
    table.register_unary("sin", "cos", "exp", "log", "abs")
    table.register_binary(TypeTag.FLOAT, *ARITHMETIC)
    table.register_binary(TypeTag.FLOAT, "gt", "lt")
    table.register_binary(TypeTag.BOOL, "and", "or")
    table.register_unary("not")
    table.register_conditional(TypeTag.FLOAT)
    return table.freeze()


def integer_table() -> BuilderTable:
    """Wrapping 32-bit integer arithmetic."""
    table = BuilderTable()
    table.register_binary(TypeTag.INT, *ARITHMETIC)
    return table.freeze()


TABLES: dict[str, Callable[[], BuilderTable]] = {
    "arithmetic": arithmetic_table,
    "float": float_table,
    "extended": extended_float_table,
    "mixed": mixed_table,
    "integer": integer_table,
}


def get_table(name: str) -> BuilderTable:
    """Build a named table."""
    if name not in TABLES:
        raise ValueError(f"Unknown table: {name}. Valid: {sorted(TABLES)}")
    return TABLES[name]()
