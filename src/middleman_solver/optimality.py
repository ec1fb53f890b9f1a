"""Optimality test based on reduced profits."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

from .data import DualVariables, ImprovementOpportunity, OptimalityCheck
from .duals import compute_dual_variables


def check_optimality(
    profit_matrix: ArrayLike,
    plan: ArrayLike,
    tolerance: float = 1e-3,
    max_passes: int = 50,
    dual_variables: DualVariables | None = None,
) -> OptimalityCheck:
    """Test a plan for optimality under the profit-maximization sign convention.

    For every non-basic cell (flow <= tolerance) the reduced profit
    ``delta = Z[i][j] - alpha[i] - beta[j]`` is computed. Cells with
    ``delta > tolerance`` are improvement opportunities; they are returned sorted by
    delta, largest first, with row-major order kept among equal deltas. The plan is
    optimal iff there are none.

    Args:
        profit_matrix: Unit profit per cell.
        plan: Current plan.
        tolerance: Numerical tolerance (epsilon).
        max_passes: Sweep limit for the dual variable propagation.
        dual_variables: Precomputed potentials; computed from the plan when omitted.
    """
    profit = np.asarray(profit_matrix, dtype=float)
    flows = np.asarray(plan, dtype=float)
    duals = dual_variables
    if duals is None:
        duals = compute_dual_variables(profit, flows, max_passes=max_passes)

    reduced = reduced_profits(profit, duals)
    candidates = (flows <= tolerance) & (reduced > tolerance)

    improvements = [
        ImprovementOpportunity(
            supplier_index=int(i),
            customer_index=int(j),
            improvement=float(reduced[i, j]),
            current_profit=0.0,
            potential_profit=float(profit[i, j]),
        )
        for i, j in np.argwhere(candidates)
    ]
    # sort is stable, so equal deltas keep their row-major order
    improvements.sort(key=lambda opportunity: opportunity.improvement, reverse=True)

    return OptimalityCheck(
        is_optimal=not improvements,
        improvements=improvements,
        dual_variables=duals,
    )


def reduced_profits(profit_matrix: ArrayLike, duals: DualVariables) -> np.ndarray:
    """Return the full matrix of ``Z[i][j] - alpha[i] - beta[j]``."""
    profit = np.asarray(profit_matrix, dtype=float)
    return profit - duals.alpha[:, np.newaxis] - duals.beta[np.newaxis, :]
