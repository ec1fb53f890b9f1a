"""Show solver logging and progress callbacks on the balanced example."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from middleman_solver import (  # noqa: E402
    ProgressInfo,
    SolverOptions,
    load_problem,
    solve_middleman_problem,
)


def report(info: ProgressInfo) -> None:
    print(
        f"  iteration {info.iteration}/{info.max_iterations}: objective={info.objective:.2f}, "
        f"improving cells={info.opportunities}, elapsed={info.elapsed_time * 1000:.2f} ms"
    )


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    base_dir = Path(__file__).resolve().parent
    problem = load_problem(base_dir / "balanced_problem.json")

    options = SolverOptions(improvement_strategy="stepping_stone", record_steps=True)
    solution = solve_middleman_problem(problem, options=options, progress_callback=report)

    print("\nSolution trace:")
    for step in solution.steps:
        print(f"  [{step.step_number}] {step.description} -> profit {step.current_profit:.2f}")
    print(f"\nDiagnostics: {solution.diagnostics}")


if __name__ == "__main__":
    main()
