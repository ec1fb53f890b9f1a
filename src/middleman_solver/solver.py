"""Public solver entrypoints."""

from __future__ import annotations

from pathlib import Path

from .data import MiddlemanProblem, ProgressCallback, Solution, SolverOptions
from .engine import MiddlemanSolver
from .io import load_problem as load_problem_file
from .io import save_solution as save_solution_file


def solve_middleman_problem(
    problem: MiddlemanProblem,
    options: SolverOptions | None = None,
    progress_callback: ProgressCallback | None = None,
) -> Solution:
    """Find a profit-maximizing transportation plan for a middleman problem.

    The problem is balanced with at most one fictitious node, an initial plan is
    built with the Maximum Element Method, and the plan is then improved until the
    dual-variable optimality test passes, the improver stagnates, or the iteration
    cap is reached.

    Args:
        problem: Suppliers, customers and transportation costs.
        options: Solver configuration options. If None, uses defaults
                 (20 iterations, tolerance 1e-3, local improvement strategy).
        progress_callback: Optional callback receiving ProgressInfo after every
                          optimality test.

    Returns:
        Solution containing:
        - profit_matrix / transportation_plan over the balanced problem
        - is_balanced, is_feasible, is_optimal flags and a status of
          'optimal', 'stagnated' or 'iteration_limit'
        - financial totals and routes over real (non-fictitious) flows
        - iterations and execution_time (seconds)

    Raises:
        InvalidProblemError: If the problem has no suppliers/customers, non-positive
            supply/demand or negative prices. Raised before any computation.

    Examples:
        >>> from middleman_solver import build_problem, solve_middleman_problem
        >>> problem = build_problem(
        ...     suppliers=[
        ...         {"id": "S1", "name": "Factory A", "supply": 50, "purchase_cost": 8},
        ...         {"id": "S2", "name": "Factory B", "supply": 70, "purchase_cost": 10},
        ...     ],
        ...     customers=[
        ...         {"id": "C1", "name": "Store X", "demand": 40, "selling_price": 20},
        ...         {"id": "C2", "name": "Store Y", "demand": 60, "selling_price": 25},
        ...     ],
        ...     transportation_costs=[[2, 4], [3, 1]],
        ... )
        >>> solution = solve_middleman_problem(problem)
        >>> print(f"Status: {solution.status}, profit: {solution.total_profit:.2f}")
        Status: optimal, profit: 1240.00

    Note:
        Non-convergence is not an error: check ``solution.is_optimal`` or
        ``solution.status``.
    """
    # Instantiate a fresh solver each call to avoid cross-run state sharing.
    solver = MiddlemanSolver(problem, options=options)
    return solver.solve(progress_callback=progress_callback)


def load_problem(path: str | Path) -> MiddlemanProblem:
    """Load a middleman problem from a JSON file.

    Raises:
        FileNotFoundError: If file does not exist.
        InvalidProblemError: If JSON is malformed or the problem is invalid.
    """
    return load_problem_file(path)


def save_solution(path: str | Path, solution: Solution) -> None:
    """Save a solution to a JSON file."""
    save_solution_file(path, solution)
