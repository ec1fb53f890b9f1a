"""Financial totals and route extraction for a finished plan."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

from .data import BalancedProblem, FinancialSummary, Route


def _real_flow_cells(plan: np.ndarray, balanced: BalancedProblem):
    # Row-major walk over positive cells whose endpoints are both real.
    for i, j in np.argwhere(plan > 0):
        supplier = balanced.suppliers[i]
        customer = balanced.customers[j]
        if supplier.fictitious or customer.fictitious:
            continue
        yield int(i), int(j), supplier, customer


def _cost_at(costs: np.ndarray, i: int, j: int) -> float:
    if i < costs.shape[0] and j < costs.shape[1]:
        return float(costs[i, j])
    return 0.0


def calculate_results(
    plan: ArrayLike,
    balanced: BalancedProblem,
    transportation_costs: ArrayLike,
) -> FinancialSummary:
    """Compute revenue, purchase cost, transportation cost and profit.

    Purchase and transportation cost count only flows between a real supplier and
    a real customer. Revenue depends on the customer leg alone: every unit that
    reaches a real customer is sold, including units covered by the fictitious
    supplier. Flow to the fictitious customer earns nothing.
    """
    flows = np.asarray(plan, dtype=float)
    costs = np.atleast_2d(np.asarray(transportation_costs, dtype=float))

    purchase = 0.0
    transport = 0.0
    revenue = 0.0
    for i, j in np.argwhere(flows > 0):
        supplier = balanced.suppliers[i]
        customer = balanced.customers[j]
        if customer.fictitious:
            continue
        quantity = float(flows[i, j])
        revenue += quantity * customer.selling_price
        if not supplier.fictitious:
            purchase += quantity * supplier.purchase_cost
            transport += quantity * _cost_at(costs, int(i), int(j))

    return FinancialSummary(
        total_purchase_cost=purchase,
        total_transportation_cost=transport,
        total_revenue=revenue,
        total_profit=revenue - purchase - transport,
    )


def create_routes(
    plan: ArrayLike,
    balanced: BalancedProblem,
    transportation_costs: ArrayLike,
    profit_matrix: ArrayLike,
) -> list[Route]:
    """List real routes with positive flow in row-major order."""
    flows = np.asarray(plan, dtype=float)
    costs = np.atleast_2d(np.asarray(transportation_costs, dtype=float))
    profit = np.asarray(profit_matrix, dtype=float)

    return [
        Route(
            supplier_id=supplier.id,
            customer_id=customer.id,
            quantity=float(flows[i, j]),
            unit_profit=float(profit[i, j]),
            purchase_cost=supplier.purchase_cost,
            transportation_cost=_cost_at(costs, i, j),
            selling_price=customer.selling_price,
        )
        for i, j, supplier, customer in _real_flow_cells(flows, balanced)
    ]
