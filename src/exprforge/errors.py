"""Error taxonomy for expression trees and evolution.

Two families are kept apart:

- TypeCheckError: a malformed tree. Returned by ``type_check`` and meant to
  be shown to whoever produced the tree.
- Fatal misuse (EvaluationError, UncalculatedFitnessError): programmer
  errors that abort a run. Library code never catches them.

"No effect" outcomes of mutation and crossover are not errors; those
operations return ``None``.
"""


class TypeCheckError(Exception):
    """Tree contains a slot whose child type does not match."""

    def __init__(self, msg: str):
        super().__init__(msg)
        self.msg = msg


class EvaluationError(RuntimeError):
    """Operands reached an operator that cannot handle their types."""


class UncalculatedFitnessError(RuntimeError):
    """An unscored fitness took part in a comparison."""
