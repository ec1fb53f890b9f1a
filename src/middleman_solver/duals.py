"""Dual variable (row/column potential) computation."""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike

from .data import DualVariables

logger = logging.getLogger(__name__)


def compute_dual_variables(
    profit_matrix: ArrayLike,
    plan: ArrayLike,
    max_passes: int = 50,
) -> DualVariables:
    """Derive potentials with ``Z[i][j] = alpha[i] + beta[j]`` on every basic cell.

    Basic cells are cells with strictly positive flow. The alpha of the first row
    holding a basic cell is pinned to 0, then the basic cells are swept in row-major
    order, each sweep deriving any potential whose partner on a basic cell is
    already known. Sweeping stops once a pass derives nothing new or after
    ``max_passes`` passes.

    Potentials that cannot be reached (a degenerate basis spans too few rows and
    columns) stay unresolved and hold 0.0; ``DualVariables.is_complete`` reports it.
    """
    profit = np.asarray(profit_matrix, dtype=float)
    flows = np.asarray(plan, dtype=float)
    rows, cols = profit.shape

    alpha = np.zeros(rows, dtype=float)
    beta = np.zeros(cols, dtype=float)
    alpha_known = np.zeros(rows, dtype=bool)
    beta_known = np.zeros(cols, dtype=bool)

    basic_cells = [(int(i), int(j)) for i, j in np.argwhere(flows > 0)]
    if not basic_cells:
        return DualVariables(alpha, beta, alpha_known, beta_known)

    # argwhere is row-major, so the first basic cell sits in the first basic row.
    alpha_known[basic_cells[0][0]] = True

    passes = 0
    changed = True
    while changed and passes < max_passes:
        changed = False
        for i, j in basic_cells:
            if alpha_known[i] and not beta_known[j]:
                beta[j] = profit[i, j] - alpha[i]
                beta_known[j] = True
                changed = True
            elif beta_known[j] and not alpha_known[i]:
                alpha[i] = profit[i, j] - beta[j]
                alpha_known[i] = True
                changed = True
        passes += 1

    if not (alpha_known.all() and beta_known.all()):
        logger.debug(
            "Dual variables incomplete, defaulting unresolved potentials to 0",
            extra={
                "unresolved_alpha": int((~alpha_known).sum()),
                "unresolved_beta": int((~beta_known).sum()),
                "passes": passes,
            },
        )

    return DualVariables(alpha, beta, alpha_known, beta_known)
