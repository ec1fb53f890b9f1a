"""Example script demonstrating usage of the middleman solver."""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from middleman_solver import load_problem, save_solution, solve_middleman_problem  # noqa: E402


def main() -> None:
    base_dir = Path(__file__).resolve().parent
    problem_path = base_dir / "small_problem.json"
    output_path = base_dir / "small_solution.json"

    problem = load_problem(problem_path)
    solution = solve_middleman_problem(problem)
    save_solution(output_path, solution)

    print(
        f"Solved {problem_path.name}: status={solution.status}, "
        f"profit={solution.total_profit:.2f}"
    )

    print("\nRoutes:")
    for route in solution.optimal_routes:
        print(
            f"  {route.supplier_id} -> {route.customer_id}: {route.quantity:g} units "
            f"at {route.unit_profit:g} per unit"
        )


if __name__ == "__main__":
    main()
