"""Initial feasible plan via the Maximum Element Method."""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)


def maximum_element_method(
    profit_matrix: ArrayLike,
    supplies: ArrayLike,
    demands: ArrayLike,
) -> NDArray[np.float64]:
    """Build a feasible plan by repeatedly filling the most profitable open cell.

    A cell is open while its row still has remaining supply and its column still
    has remaining demand. Each step allocates ``min(remaining supply, remaining
    demand)`` to the open cell with the largest unit profit; ties go to the first
    cell in row-major order. The remaining-capacity buffers are local to the call.

    For a balanced problem the result satisfies every row and column total with
    equality after at most ``rows + cols - 1`` allocations.

    Args:
        profit_matrix: Unit profit per cell (rows x cols).
        supplies: Capacity per row.
        demands: Capacity per column.

    Returns:
        New (rows x cols) plan.

    Examples:
        >>> maximum_element_method([[10, 13, -8], [7, 14, -10]], [50, 70], [40, 60, 20]).tolist()
        [[40.0, 0.0, 10.0], [0.0, 60.0, 10.0]]
    """
    profit = np.asarray(profit_matrix, dtype=float)
    remaining_supply = np.array(supplies, dtype=float)
    remaining_demand = np.array(demands, dtype=float)
    plan = np.zeros(profit.shape, dtype=float)

    steps = 0
    while (remaining_supply > 0).any() and (remaining_demand > 0).any():
        open_cells = (remaining_supply > 0)[:, np.newaxis] & (remaining_demand > 0)[np.newaxis, :]
        if not open_cells.any():
            logger.debug("No open cell left, stopping allocation early")
            break

        # argmax returns the first maximum in row-major order, which is the tie-break.
        masked = np.where(open_cells, profit, -np.inf)
        i, j = np.unravel_index(int(np.argmax(masked)), masked.shape)

        allocation = min(remaining_supply[i], remaining_demand[j])
        plan[i, j] += allocation
        remaining_supply[i] -= allocation
        remaining_demand[j] -= allocation
        steps += 1

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Allocated {allocation:g} units to [{i}][{j}] (unit profit {profit[i, j]:g})",
                extra={"step": steps, "row": int(i), "col": int(j)},
            )

    logger.debug("Maximum Element Method completed", extra={"allocation_steps": steps})
    return plan
