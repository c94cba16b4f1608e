"""
Command-line interface for exprforge.

Provides commands for:
- Evolving an expression against a named target function
- Sampling random expressions from a builder table
- Listing the operators a table registers
"""

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from exprforge import __version__

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("exprforge")

TYPE_NAMES = ["int", "float", "uint", "bool"]


def _parse_types(spec: str):
    from exprforge.expression.types import TypeTag

    names = [part.strip().lower() for part in spec.split(",") if part.strip()]
    for name in names:
        if name not in TYPE_NAMES:
            raise click.BadParameter(f"Unknown type {name!r}. Valid: {TYPE_NAMES}")
    return [TypeTag[name.upper()] for name in names]


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def main(verbose: bool) -> None:
    """exprforge - Typed symbolic regression by genetic programming."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@main.command()
@click.option("--target", "-t", default="add", help="Named target function")
@click.option("--table", default="float", help="Builder table name")
@click.option("--samples", "-n", default=100, type=int, help="Training rows")
@click.option("--low", default=-100.0, type=float, help="Lower bound of inputs")
@click.option("--high", default=100.0, type=float, help="Upper bound of inputs")
@click.option("--generations", "-g", default=100, type=int, help="Generation budget")
@click.option("--population", "-p", default=100, type=int, help="Population size (n_subs)")
@click.option("--max-depth", default=6, type=int, help="Maximum tree depth")
@click.option("--max-error", default=1e-3, type=float, help="Early-exit error")
@click.option("--mutation-prob", default=0.1, type=float, help="Base mutation probability")
@click.option("--crossover-prob", default=0.1, type=float, help="Base crossover probability")
@click.option(
    "--error",
    "error_name",
    default="relative",
    type=click.Choice(["relative", "absolute", "squared"]),
    help="Per-row error function",
)
@click.option("--seed", default=None, type=int, help="Random seed")
@click.option("--history", default=None, help="Write per-generation stats to this CSV")
def evolve(
    target: str,
    table: str,
    samples: int,
    low: float,
    high: float,
    generations: int,
    population: int,
    max_depth: int,
    max_error: float,
    mutation_prob: float,
    crossover_prob: float,
    error_name: str,
    seed: int,
    history: str,
) -> None:
    """Evolve an expression approximating a target function."""
    from exprforge.datasets import get_target, sample_function
    from exprforge.evolution import ERROR_FUNCTIONS, Population, TrainingArgs
    from exprforge.expression.builder import BuilderParams
    from exprforge.expression.tables import get_table
    from exprforge.expression.types import TypeTag

    try:
        target_fn = get_target(target)
        builder_table = get_table(table)
        params = BuilderParams(max_depth=max_depth, random_seed=seed)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    train_x, train_y = sample_function(target_fn.fn, target_fn.n_args, samples, low, high, seed)

    try:
        args = TrainingArgs(
            n_subs=population,
            iterations=generations,
            max_error=max_error,
            mutation_probability=mutation_prob,
            crossover_probability=crossover_prob,
            max_population=max(10 * population, 1000),
            err_fn=ERROR_FUNCTIONS[error_name],
            train_x=train_x,
            train_y=train_y,
        )
    except ValidationError as e:
        click.echo(f"Invalid training arguments:\n{e}", err=True)
        sys.exit(1)

    click.echo(f"Evolving {target} ({target_fn.description}) with table {table!r}...")

    pop = Population([TypeTag.FLOAT] * target_fn.n_args, TypeTag.FLOAT, builder_table, params)
    result = pop.run(args)

    click.echo("\n" + "=" * 50)
    click.echo("EVOLUTION RESULTS")
    click.echo("=" * 50)
    click.echo(f"Generations:  {result.generations}")
    click.echo(f"Converged:    {'yes' if result.converged else 'no'}")
    click.echo(f"Fitness:      {result.best.fitness}")
    click.echo(f"Equation:     {result.best.equation()}")
    click.echo("\nTree:")
    click.echo(result.best.render())

    if history:
        path = Path(history)
        result.history_frame().to_csv(path)
        click.echo(f"\nHistory saved to {path}")


@main.command()
@click.option("--table", default="float", help="Builder table name")
@click.option("--args", "arg_spec", default="float,float", help="Comma-separated argument types")
@click.option("--returns", default="float", help="Return type")
@click.option("--count", "-c", default=4, type=int, help="Number of expressions")
@click.option("--max-depth", default=6, type=int, help="Maximum tree depth")
@click.option("--seed", default=None, type=int, help="Random seed")
@click.option("--prune", "do_prune", is_flag=True, help="Prune before printing")
def sample(
    table: str,
    arg_spec: str,
    returns: str,
    count: int,
    max_depth: int,
    seed: int,
    do_prune: bool,
) -> None:
    """Print random expressions with their type check."""
    from exprforge.evolution import Population
    from exprforge.expression.builder import BuilderParams
    from exprforge.expression.tables import get_table

    arg_types = _parse_types(arg_spec)
    return_types = _parse_types(returns)
    if len(return_types) != 1:
        raise click.BadParameter("Exactly one return type is required", param_hint="--returns")
    return_type = return_types[0]

    try:
        builder_table = get_table(table)
        params = BuilderParams(max_depth=max_depth, random_seed=seed)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    pop = Population(arg_types, return_type, builder_table, params)
    pop.init_population(count)
    if do_prune:
        pop.prune()

    for i, expr in enumerate(pop):
        error = expr.type_check()
        click.echo(f"--- expression {i} (depth {expr.max_depth()}, size {expr.size()})")
        click.echo(expr.render())
        click.echo(f"equation: {expr.equation()}")
        click.echo(f"type check: {'ok' if error is None else error.msg}")


@main.command()
@click.option("--table", default="float", help="Builder table name")
def operators(table: str) -> None:
    """List the shapes registered in a builder table."""
    from exprforge.expression.tables import TABLES, get_table

    try:
        builder_table = get_table(table)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("Available tables:")
        for name in sorted(TABLES):
            click.echo(f"  - {name}")
        sys.exit(1)

    click.echo(f"{'Name':<12} {'Family':<8} {'Returns':<8} Args")
    click.echo("-" * 44)
    for row in builder_table.describe():
        click.echo(f"{row['name']:<12} {row['family']:<8} {row['returns']:<8} {row['args']}")


if __name__ == "__main__":
    main()
