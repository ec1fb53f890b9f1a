"""Utility functions for checking and benchmarking transportation plans."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.optimize import linprog

from .balancing import balance_problem
from .data import MiddlemanProblem
from .profit import calculate_profit_matrix
from .validation import normalize_transportation_costs


@dataclass
class PlanValidation:
    """Results from validating a transportation plan.

    Attributes:
        is_valid: True if the plan satisfies all constraints.
        errors: List of validation error messages (empty if valid).
        row_totals: Shipped quantity per supplier row.
        column_totals: Received quantity per customer column.
    """

    is_valid: bool
    errors: list[str]
    row_totals: NDArray[np.float64]
    column_totals: NDArray[np.float64]


@dataclass
class LPReference:
    """Exact optimum of the balanced problem computed by a general LP solver.

    Attributes:
        objective: Maximum of sum(Z * X) over feasible plans.
        plan: An optimal plan.
        status: 'optimal' or the solver's failure message.
    """

    objective: float
    plan: NDArray[np.float64]
    status: str


def plan_objective(profit_matrix: ArrayLike, plan: ArrayLike) -> float:
    """Return sum(Z * X), fictitious cells included."""
    return float(np.sum(np.asarray(profit_matrix, dtype=float) * np.asarray(plan, dtype=float)))


def validate_plan(
    plan: ArrayLike,
    supplies: ArrayLike,
    demands: ArrayLike,
    tolerance: float = 1e-3,
    require_equality: bool = False,
) -> PlanValidation:
    """Check a plan for non-negativity and supply/demand capacities.

    With ``require_equality`` every row and column total must match its capacity
    (within tolerance), which is the terminal condition for a balanced problem.

    Examples:
        >>> check = validate_plan([[40, 0, 10], [0, 60, 10]], [50, 70], [40, 60, 20],
        ...                       require_equality=True)
        >>> check.is_valid
        True
    """
    flows = np.asarray(plan, dtype=float)
    supply = np.asarray(supplies, dtype=float)
    demand = np.asarray(demands, dtype=float)
    errors: list[str] = []

    if flows.shape != (supply.size, demand.size):
        errors.append(
            f"Plan shape {flows.shape} does not match {supply.size} suppliers x "
            f"{demand.size} customers"
        )
        return PlanValidation(False, errors, np.zeros(0), np.zeros(0))

    for i, j in np.argwhere(flows < -tolerance):
        errors.append(f"Negative flow {flows[i, j]:.6f} at [{i}][{j}]")

    row_totals = flows.sum(axis=1)
    column_totals = flows.sum(axis=0)

    for i, (shipped, cap) in enumerate(zip(row_totals, supply)):
        if shipped > cap + tolerance:
            errors.append(f"Supplier row {i} ships {shipped:.6f}, exceeding supply {cap:.6f}")
        elif require_equality and shipped < cap - tolerance:
            errors.append(f"Supplier row {i} ships {shipped:.6f}, below supply {cap:.6f}")

    for j, (received, cap) in enumerate(zip(column_totals, demand)):
        if received > cap + tolerance:
            errors.append(f"Customer column {j} receives {received:.6f}, exceeding demand {cap:.6f}")
        elif require_equality and received < cap - tolerance:
            errors.append(f"Customer column {j} receives {received:.6f}, below demand {cap:.6f}")

    return PlanValidation(
        is_valid=not errors,
        errors=errors,
        row_totals=row_totals,
        column_totals=column_totals,
    )


def solve_lp_reference(problem: MiddlemanProblem) -> LPReference:
    """Solve the balanced problem exactly with ``scipy.optimize.linprog``.

    The heuristic improvement step can stop short of the optimum; comparing its
    objective with this reference measures the gap.

    Examples:
        >>> reference = solve_lp_reference(problem)
        >>> solution = solve_middleman_problem(problem)
        >>> gap = reference.objective - plan_objective(solution.profit_matrix,
        ...                                             solution.transportation_plan)
    """
    problem.validate()
    balanced = balance_problem(problem.suppliers, problem.customers)
    costs = normalize_transportation_costs(
        problem.transportation_costs, len(problem.suppliers), len(problem.customers)
    ).matrix
    profit = calculate_profit_matrix(balanced.suppliers, balanced.customers, costs)
    rows, cols = profit.shape

    a_eq = np.zeros((rows + cols, rows * cols))
    for i in range(rows):
        a_eq[i, i * cols:(i + 1) * cols] = 1.0
    for j in range(cols):
        a_eq[rows + j, j::cols] = 1.0
    b_eq = np.concatenate([balanced.supplies, balanced.demands])

    # linprog minimizes, so negate the profit.
    result = linprog(
        c=-profit.ravel(),
        A_eq=a_eq,
        b_eq=b_eq,
        bounds=(0, None),
        method="highs",
    )
    if result.status != 0:
        return LPReference(objective=float("nan"), plan=np.zeros((rows, cols)), status=result.message)

    plan = result.x.reshape(rows, cols)
    return LPReference(objective=float(-result.fun), plan=plan, status="optimal")
