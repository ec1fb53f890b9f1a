"""Compare the improvement strategies against the exact LP optimum.

The default local strategy stops as soon as it cannot move flow along the
entering cell's row or column. The stepping-stone strategy follows full cycles.
Both are measured against scipy's LP solution of the same balanced problem.
"""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from middleman_solver import (  # noqa: E402
    SolverOptions,
    load_problem,
    plan_objective,
    solve_lp_reference,
    solve_middleman_problem,
)

PROBLEMS = (
    "small_problem.json",
    "medium_problem.json",
    "balanced_problem.json",
    "unbalanced_supply_problem.json",
    "unbalanced_demand_problem.json",
)


def main() -> None:
    base_dir = Path(__file__).resolve().parent
    for name in PROBLEMS:
        problem = load_problem(base_dir / name)
        reference = solve_lp_reference(problem)
        print(f"{name}: LP objective {reference.objective:.2f}")
        for strategy in ("local", "stepping_stone"):
            solution = solve_middleman_problem(
                problem, options=SolverOptions(improvement_strategy=strategy)
            )
            objective = plan_objective(solution.profit_matrix, solution.transportation_plan)
            print(
                f"  {strategy:>14}: status={solution.status:<15} "
                f"objective={objective:.2f} gap={reference.objective - objective:.2f} "
                f"real profit={solution.total_profit:.2f}"
            )


if __name__ == "__main__":
    main()
