"""Population management and the generational training loop.

Per generation: prune, score, rank, periodically purge and reseed, breed
offspring by crossover and mutation, track stagnation, and trigger a mass
extinction or a population cap when needed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import logging
from typing import Callable, Iterator, Sequence

import pandas as pd

from exprforge.evolution.config import TrainingArgs
from exprforge.evolution.fitness import StagnationTracker
from exprforge.expression.builder import BuilderParams, BuilderTable
from exprforge.expression.tree import Expr, ErrorFunction
from exprforge.expression.types import TypeTag, Value
from exprforge.operators.crossover import crossover
from exprforge.operators.mutation import mutate
from exprforge.operators.selection import select_parent

logger = logging.getLogger(__name__)


@dataclass
class GenerationStats:
    """Statistics recorded at the end of a generation."""

    generation: int
    population_size: int
    best_real: float
    best_nan: float
    best_size: int
    stagnation: int
    crossovers: int = 0
    mutations: int = 0
    extinction: bool = False


@dataclass
class TrainingResult:
    """Outcome of a training run."""

    best: Expr
    generations: int
    converged: bool
    stopped: bool = False
    history: list[GenerationStats] = field(default_factory=list)

    def history_frame(self) -> pd.DataFrame:
        """Per-generation statistics as a DataFrame indexed by generation."""
        columns = [f for f in GenerationStats.__dataclass_fields__]
        frame = pd.DataFrame([asdict(s) for s in self.history], columns=columns)
        return frame.set_index("generation")


class Population:
    """Ordered collection of expressions evolved toward training data.

    Members are kept best first after ``rank``. All randomness comes from
    ``params.rng``, so a fixed seed reproduces a run.
    """

    def __init__(
        self,
        arg_types: Sequence[TypeTag],
        return_type: TypeTag,
        table: BuilderTable | None = None,
        params: BuilderParams | None = None,
    ):
        self.arg_types = tuple(arg_types)
        self.return_type = return_type
        self.table = (table if table is not None else BuilderTable()).freeze()
        self.params = params if params is not None else BuilderParams()
        self.members: list[Expr] = []
        self.generation = 0
        self._stop_requested = False

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[Expr]:
        return iter(self.members)

    def __getitem__(self, idx: int) -> Expr:
        return self.members[idx]

    def set_table(self, table: BuilderTable) -> None:
        self.table = table.freeze()

    def set_params(self, params: BuilderParams) -> None:
        self.params = params

    def random_member(self) -> Expr:
        return Expr.random(self.arg_types, self.return_type, self.table, self.params)

    def init_population(self, n: int) -> None:
        """Replace the members with ``n`` random expressions."""
        self.members = [self.random_member() for _ in range(n)]
        self.generation = 0

    def reseed(self, n: int) -> None:
        """Append ``n`` random expressions."""
        self.members.extend(self.random_member() for _ in range(n))

    def prune(self) -> None:
        for expr in self.members:
            expr.prune()

    def score(
        self,
        train_x: Sequence[Sequence[Value]],
        train_y: Sequence[Value],
        err_fn: ErrorFunction,
    ) -> int:
        """Score every unscored member.

        Returns:
            Number of members scored
        """
        scored = 0
        for expr in self.members:
            if not expr.fitness.is_calculated:
                expr.score_against(train_x, train_y, err_fn)
                scored += 1
        return scored

    def rank(self) -> None:
        """Sort members best first. Every member must be scored."""
        self.members.sort(key=lambda e: e.fitness.key())

    def purge(self, n: int) -> int:
        """Keep the first ``n`` members.

        Returns:
            Number of members removed
        """
        removed = max(len(self.members) - n, 0)
        del self.members[n:]
        return removed

    def ranked_members(self) -> list[Expr]:
        """Leading run of scored members, in rank order."""
        ranked = []
        for expr in self.members:
            if not expr.fitness.is_calculated:
                break
            ranked.append(expr)
        return ranked

    def crossbreed(self, count: int, base_probability: float) -> int:
        """Attempt ``count`` crossovers between rank-weighted parents.

        Returns:
            Number of children added
        """
        ranked = self.ranked_members()
        if not ranked:
            return 0

        added = 0
        for _ in range(count):
            donor = select_parent(ranked, self.params.rng)
            host = select_parent(ranked, self.params.rng)
            child = crossover(donor, host, base_probability, self.params)
            if child is not None:
                self.members.append(Expr(child, self.arg_types))
                added += 1
        return added

    def mutate(self, count: int, base_probability: float) -> int:
        """Attempt ``count`` mutations of rank-weighted parents.

        Returns:
            Number of mutants added
        """
        ranked = self.ranked_members()
        if not ranked:
            return 0

        added = 0
        for _ in range(count):
            parent = select_parent(ranked, self.params.rng)
            child = mutate(parent, base_probability, self.table, self.params)
            if child is not None:
                self.members.append(Expr(child, self.arg_types))
                added += 1
        return added

    def best(self) -> Expr:
        """Best member; the population must be ranked."""
        if not self.members:
            raise ValueError("Population is empty")
        return self.members[0]

    def request_stop(self) -> None:
        """Ask a running ``train``/``run`` to stop before its next generation."""
        self._stop_requested = True

    def train(self, args: TrainingArgs) -> Expr:
        """Evolve the population and return a copy of the best expression."""
        return self.run(args).best

    def run(
        self,
        args: TrainingArgs,
        on_generation: Callable[[int, GenerationStats], None] | None = None,
    ) -> TrainingResult:
        """Run the generational loop.

        Args:
            args: Validated hyperparameters and training data
            on_generation: Optional callback called after each generation
                           with (generation_number, stats)

        Returns:
            TrainingResult with the best expression and per-generation stats
        """
        self._stop_requested = False
        if not self.members:
            self.init_population(args.n_subs)

        tracker = StagnationTracker(args.delta_threshold)
        history: list[GenerationStats] = []
        converged = False
        stopped = False

        logger.info(
            f"Training {len(self.members)} expressions for up to {args.iterations} generations"
        )

        for gen in range(args.iterations):
            if self._stop_requested:
                logger.info(f"Stop requested at generation {gen}")
                stopped = True
                break

            self.generation = gen
            self.prune()
            self.score(args.train_x, args.train_y, args.err_fn)
            self.rank()

            if args.purge_period and (gen + 1) % args.purge_period == 0:
                removed = self.purge(args.n_subs)
                logger.debug(f"Generation {gen}: purged {removed} expressions")

            if args.new_sub_intro_period and (gen + 1) % args.new_sub_intro_period == 0:
                self.reseed(args.reseed_count)
                logger.debug(f"Generation {gen}: reseeded {args.reseed_count} expressions")

            best = self.best()
            stats = GenerationStats(
                generation=gen,
                population_size=len(self.members),
                best_real=best.fitness.real,
                best_nan=best.fitness.nan,
                best_size=best.size(),
                stagnation=tracker.counter,
            )

            if best.fitness.nan == 0 and best.fitness.real <= args.max_error:
                converged = True
                self._record(stats, history, args, on_generation)
                logger.info(f"Converged at generation {gen}: {best.equation()}")
                break

            if gen != args.iterations - 1:
                top_child_count = max(1, int(len(self.members) * args.top_fraction))
                stats.crossovers = self.crossbreed(top_child_count, args.crossover_probability)
                stats.mutations = self.mutate(top_child_count, args.mutation_probability)

            stats.stagnation = tracker.update(best.fitness)
            if stats.stagnation >= args.mass_extinction_threshold:
                self.mass_extinction(args.n_subs)
                tracker.reset()
                stats.extinction = True

            if len(self.members) > args.max_population:
                removed = self.purge(args.max_population)
                logger.debug(f"Generation {gen}: capped population, removed {removed}")

            stats.population_size = len(self.members)
            self._record(stats, history, args, on_generation)

        # Members added after the last ranking still need a score
        self.score(args.train_x, args.train_y, args.err_fn)
        self.rank()

        return TrainingResult(
            best=self.best().clone(),
            generations=len(history),
            converged=converged,
            stopped=stopped,
            history=history,
        )

    def mass_extinction(self, n_subs: int) -> None:
        """Keep only the best member and refill with random expressions."""
        logger.debug(f"Mass extinction at generation {self.generation}")
        self.purge(1)
        self.reseed(n_subs - 1)

    def _record(
        self,
        stats: GenerationStats,
        history: list[GenerationStats],
        args: TrainingArgs,
        on_generation: Callable[[int, GenerationStats], None] | None,
    ) -> None:
        history.append(stats)
        if args.log_generations and stats.generation % args.log_every == 0:
            logger.info(
                f"Gen {stats.generation}: size={stats.population_size} "
                f"best_real={stats.best_real:.6g} best_nan={stats.best_nan:.3f} "
                f"stagnation={stats.stagnation}"
            )
        if on_generation is not None:
            on_generation(stats.generation + 1, stats)
