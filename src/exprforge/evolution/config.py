"""Training configuration.

TrainingArgs bundles the hyperparameters of a run with its training data
and is validated on construction; a run cannot start without data.
"""

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from exprforge.evolution.fitness import relative_error
from exprforge.expression.types import Value


class TrainingArgs(BaseModel):
    """Hyperparameters and training data for one evolution run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    n_subs: int = Field(100, ge=1, description="Target population size after a purge")
    purge_period: int = Field(1, ge=0, description="Generations between purges (0 disables)")
    iterations: int = Field(100, ge=0, description="Generation budget")
    mutation_probability: float = Field(0.1, ge=0, le=1, description="Base mutation probability")
    crossover_probability: float = Field(0.1, ge=0, le=1, description="Base crossover probability")
    new_sub_intro_period: int = Field(
        5, ge=0, description="Generations between reseeds (0 disables)"
    )
    increase_ratio: float = Field(0.2, ge=0, description="Reseed size as a fraction of n_subs")
    top_fraction: float = Field(
        0.5, gt=0, le=1, description="Fraction of the population used for offspring attempts"
    )
    mass_extinction_threshold: int = Field(
        20, ge=1, description="Stagnant generations before a mass extinction"
    )
    delta_threshold: float = Field(
        1e-3, ge=0, description="Relative change below which the best is unchanged"
    )
    max_error: float = Field(1e-3, ge=0, description="Early-exit error of the best individual")
    max_population: int = Field(1000, ge=1, description="Hard population cap")
    err_fn: Callable[[Value, Value], float] = Field(
        relative_error, description="Per-row error function (actual, predicted)"
    )
    train_x: list[list[Any]] = Field(..., description="Input rows")
    train_y: list[Any] = Field(..., description="Expected outputs")
    log_generations: bool = Field(True, description="Log a progress line per generation")
    log_every: int = Field(1, ge=1, description="Generations between progress lines")

    @field_validator("train_x")
    @classmethod
    def rows_hold_values(cls, v: list[list[Any]]) -> list[list[Any]]:
        """Rows must be non-empty lists of Values."""
        if not v:
            raise ValueError("train_x must not be empty")
        for row in v:
            if not all(isinstance(item, Value) for item in row):
                raise ValueError("train_x rows must contain Value items")
        return v

    @field_validator("train_y")
    @classmethod
    def targets_hold_values(cls, v: list[Any]) -> list[Any]:
        if not v:
            raise ValueError("train_y must not be empty")
        if not all(isinstance(item, Value) for item in v):
            raise ValueError("train_y must contain Value items")
        return v

    @model_validator(mode="after")
    def check_consistency(self) -> "TrainingArgs":
        """Data lengths must match and the cap must admit a full population."""
        if len(self.train_x) != len(self.train_y):
            raise ValueError(
                f"train_x has {len(self.train_x)} rows but train_y has {len(self.train_y)}"
            )
        if self.max_population < self.n_subs:
            raise ValueError("max_population must be >= n_subs")
        return self

    @property
    def reseed_count(self) -> int:
        return int(self.n_subs * self.increase_ratio)
