"""Example: Symbolic regression with typed genetic programming.

This example demonstrates:
- Assembling a builder table and generation parameters
- Printing random expressions with their type check
- Evolving an expression toward sampled data
- Inspecting per-generation statistics
"""

from exprforge import BuilderParams, Population, TrainingArgs, TypeTag
from exprforge.datasets import sample_target
from exprforge.expression.tables import float_table


def main():
    """Run the symbolic regression example."""
    print("=" * 80)
    print("exprforge symbolic regression")
    print("=" * 80)

    # =========================================================================
    # Step 1: Random expressions
    # =========================================================================
    print("\n[Step 1] Sampling random expressions...")

    table = float_table()
    params = BuilderParams().with_max_depth(6).seed(42)
    pop = Population([TypeTag.FLOAT, TypeTag.FLOAT], TypeTag.FLOAT, table, params)
    pop.init_population(4)

    for expr in pop:
        print(expr.render())
        error = expr.type_check()
        print(f"type check: {'ok' if error is None else error.msg}\n")

    # =========================================================================
    # Step 2: Training data
    # =========================================================================
    print("\n[Step 2] Sampling x0 + x1...")

    train_x, train_y = sample_target("add", n_samples=100, low=-100.0, high=100.0, seed=42)
    args = TrainingArgs(
        n_subs=100,
        iterations=50,
        mutation_probability=0.1,
        crossover_probability=0.1,
        max_error=1e-6,
        train_x=train_x,
        train_y=train_y,
        log_every=10,
    )

    # =========================================================================
    # Step 3: Evolve
    # =========================================================================
    print("\n[Step 3] Evolving...")

    pop.init_population(args.n_subs)
    result = pop.run(args)

    print(f"Best: {result.best.equation()}")
    print(f"Fitness: {result.best.fitness}")
    print(f"Converged: {result.converged} after {result.generations} generations")

    history = result.history_frame()
    print(history[["population_size", "best_real", "best_nan"]].tail())


if __name__ == "__main__":
    main()
