"""
exprforge: Strongly-typed genetic programming for symbolic regression.

Evolves closed-form expressions that approximate a function from sampled
input/output pairs:
- Typed expression trees with random construction, mutation and crossover
- Population controller with rank-weighted selection and stagnation handling
"""

__version__ = "0.1.0"

from exprforge.expression.types import TypeTag, Value
from exprforge.expression.builder import BuilderParams, BuilderTable
from exprforge.expression.tree import Expr, Fitness
from exprforge.evolution.config import TrainingArgs
from exprforge.evolution.population import Population, TrainingResult

__all__ = [
    "__version__",
    "TypeTag",
    "Value",
    "BuilderParams",
    "BuilderTable",
    "Expr",
    "Fitness",
    "TrainingArgs",
    "Population",
    "TrainingResult",
]
