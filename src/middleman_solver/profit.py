"""Profit matrix construction."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .data import Customer, Supplier


def calculate_profit_matrix(
    suppliers: Sequence[Supplier],
    customers: Sequence[Customer],
    transportation_costs: ArrayLike,
) -> NDArray[np.float64]:
    """Return ``Z[i][j] = selling_price[j] - purchase_cost[i] - transport_cost[i][j]``.

    ``transportation_costs`` may be smaller than (suppliers x customers); missing
    rows or columns (e.g. those of a fictitious node) count as zero cost. The result
    is a fresh read-only array.

    Examples:
        >>> z = calculate_profit_matrix(
        ...     [Supplier("S1", "A", 50, 8), Supplier("S2", "B", 70, 10)],
        ...     [Customer("C1", "X", 40, 20), Customer("C2", "Y", 60, 25)],
        ...     [[2, 4], [3, 1]],
        ... )
        >>> z.tolist()
        [[10.0, 13.0], [7.0, 14.0]]
    """
    rows, cols = len(suppliers), len(customers)
    costs = np.zeros((rows, cols), dtype=float)
    given = np.asarray(transportation_costs, dtype=float)
    if given.ndim == 2:
        r = min(rows, given.shape[0])
        c = min(cols, given.shape[1])
        costs[:r, :c] = given[:r, :c]

    prices = np.array([c.selling_price for c in customers], dtype=float)
    purchase = np.array([s.purchase_cost for s in suppliers], dtype=float)

    profit = prices[np.newaxis, :] - purchase[:, np.newaxis] - costs
    profit.setflags(write=False)
    return profit
