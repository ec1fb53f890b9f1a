"""Input validation and transportation-cost normalization for middleman problems.

Structural problems (no suppliers, non-positive supply, negative prices, ...) are
reported as errors and make the problem unsolvable. Everything else, including
malformed transportation-cost cells, is reported as a warning: cost cells that
cannot be read are repaired to zero so that the solver can still run.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from .data import TransportationCost

if TYPE_CHECKING:
    from .data import MiddlemanProblem

HIGH_QUANTITY_THRESHOLD = 10000.0
IMBALANCE_RATIO_THRESHOLD = 2.0


@dataclass
class ValidationResult:
    """Results from validating a problem definition.

    Attributes:
        is_valid: True if the problem can be solved.
        errors: Structural errors (empty if valid).
        warnings: Non-fatal observations about the input.
    """

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class CostNormalization:
    """A dense cost matrix plus a record of every cell that had to be repaired."""

    matrix: NDArray[np.float64]
    issues: list[str] = field(default_factory=list)

    @property
    def repaired(self) -> bool:
        return bool(self.issues)


def _is_row(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _coerce_cost(cell: Any) -> float | None:
    if isinstance(cell, TransportationCost):
        value = cell.cost
    elif isinstance(cell, Mapping):
        if "cost" not in cell:
            return None
        value = cell["cost"]
    else:
        value = cell

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def normalize_transportation_costs(
    raw: Any,
    supplier_count: int,
    customer_count: int,
) -> CostNormalization:
    """Coerce transportation-cost input into a dense (suppliers x customers) matrix.

    Accepted inputs are ``None``, a numpy array, or a nested sequence whose cells are
    numbers, numeric strings, TransportationCost records or mappings with a
    ``cost`` key. Cells that are missing, unreadable or non-finite become 0; cells
    outside the expected shape are ignored. Each repair is recorded in ``issues``.

    Examples:
        >>> result = normalize_transportation_costs([[2, 4], [3]], 2, 2)
        >>> result.matrix.tolist()
        [[2.0, 4.0], [3.0, 0.0]]
        >>> result.issues
        ['Missing transportation cost at [1][1], using 0']
    """
    matrix = np.zeros((supplier_count, customer_count), dtype=float)
    issues: list[str] = []

    if raw is None:
        if supplier_count and customer_count:
            issues.append("No transportation costs specified, using zeros")
        return CostNormalization(matrix=matrix, issues=issues)

    if isinstance(raw, np.ndarray):
        raw = raw.tolist()

    if not _is_row(raw):
        issues.append(
            f"Unrecognized transportation cost format ({type(raw).__name__}), using zeros"
        )
        return CostNormalization(matrix=matrix, issues=issues)

    if len(raw) > supplier_count:
        issues.append(
            f"Transportation costs have {len(raw)} rows, expected {supplier_count}; "
            f"extra rows ignored"
        )

    for i in range(supplier_count):
        if i >= len(raw):
            issues.append(f"Missing transportation cost row {i}, using zeros")
            continue
        row = raw[i]
        if isinstance(row, np.ndarray):
            row = row.tolist()
        if not _is_row(row):
            issues.append(f"Transportation cost row {i} is not a sequence, using zeros")
            continue
        if len(row) > customer_count:
            issues.append(
                f"Transportation cost row {i} has {len(row)} entries, expected "
                f"{customer_count}; extra entries ignored"
            )
        for j in range(customer_count):
            if j >= len(row) or row[j] is None:
                issues.append(f"Missing transportation cost at [{i}][{j}], using 0")
                continue
            value = _coerce_cost(row[j])
            if value is None:
                issues.append(f"Invalid transportation cost at [{i}][{j}]: {row[j]!r}, using 0")
                continue
            matrix[i, j] = value

    return CostNormalization(matrix=matrix, issues=issues)


def validate_problem(problem: MiddlemanProblem) -> ValidationResult:
    """Check a problem for structural errors and collect warnings.

    Errors:
        - no suppliers or no customers
        - non-positive supply/demand
        - negative purchase cost/selling price
        - duplicate supplier or customer ids

    Warnings:
        - zero purchase cost or selling price
        - very high supply/demand values
        - strongly imbalanced totals
        - average purchase cost not below average selling price
        - unprofitable routes and negative or repaired transportation costs
    """
    errors: list[str] = []
    warnings_list: list[str] = []

    suppliers = problem.suppliers or []
    customers = problem.customers or []

    if not suppliers:
        errors.append("Problem must have at least one supplier")
    seen_suppliers: set[str] = set()
    for supplier in suppliers:
        if supplier.id in seen_suppliers:
            errors.append(f"Duplicate supplier id '{supplier.id}'")
        seen_suppliers.add(supplier.id)
        if not (math.isfinite(supplier.supply) and supplier.supply > 0):
            errors.append(f"Supplier {supplier.name} must have positive supply")
        if not math.isfinite(supplier.purchase_cost):
            errors.append(f"Supplier {supplier.name} must have a finite purchase cost")
        elif supplier.purchase_cost < 0:
            errors.append(f"Supplier {supplier.name} cannot have negative purchase cost")
        elif supplier.purchase_cost == 0:
            warnings_list.append(
                f"Supplier {supplier.name}: purchase cost is 0 - verify this is intentional"
            )
        if supplier.supply > HIGH_QUANTITY_THRESHOLD:
            warnings_list.append(
                f"Supplier {supplier.name}: very high supply value - verify this is correct"
            )

    if not customers:
        errors.append("Problem must have at least one customer")
    seen_customers: set[str] = set()
    for customer in customers:
        if customer.id in seen_customers:
            errors.append(f"Duplicate customer id '{customer.id}'")
        seen_customers.add(customer.id)
        if not (math.isfinite(customer.demand) and customer.demand > 0):
            errors.append(f"Customer {customer.name} must have positive demand")
        if not math.isfinite(customer.selling_price):
            errors.append(f"Customer {customer.name} must have a finite selling price")
        elif customer.selling_price < 0:
            errors.append(f"Customer {customer.name} cannot have negative selling price")
        elif customer.selling_price == 0:
            warnings_list.append(
                f"Customer {customer.name}: selling price is 0 - no revenue will be generated"
            )
        if customer.demand > HIGH_QUANTITY_THRESHOLD:
            warnings_list.append(
                f"Customer {customer.name}: very high demand value - verify this is correct"
            )

    if errors:
        return ValidationResult(is_valid=False, errors=errors, warnings=warnings_list)

    costs = normalize_transportation_costs(
        problem.transportation_costs, len(suppliers), len(customers)
    )
    warnings_list.extend(costs.issues)
    warnings_list.extend(_check_profitability(problem, costs.matrix))

    return ValidationResult(is_valid=True, errors=errors, warnings=warnings_list)


def _check_profitability(problem: MiddlemanProblem, costs: NDArray[np.float64]) -> list[str]:
    warnings_list: list[str] = []
    suppliers = problem.suppliers
    customers = problem.customers

    total_supply = sum(s.supply for s in suppliers)
    total_demand = sum(c.demand for c in customers)
    if total_supply > total_demand * IMBALANCE_RATIO_THRESHOLD:
        warnings_list.append("Supply significantly exceeds demand - consider reducing supply")
    if total_demand > total_supply * IMBALANCE_RATIO_THRESHOLD:
        warnings_list.append("Demand significantly exceeds supply - consider increasing supply")

    avg_purchase = sum(s.purchase_cost for s in suppliers) / len(suppliers)
    avg_price = sum(c.selling_price for c in customers) / len(customers)
    if avg_purchase >= avg_price:
        warnings_list.append(
            "Average purchase cost is higher than average selling price - profit may be limited"
        )

    for i, supplier in enumerate(suppliers):
        for j, customer in enumerate(customers):
            cost = costs[i, j]
            if cost < 0:
                warnings_list.append(
                    f"Negative transportation cost for {supplier.id} -> {customer.id}"
                )
            unit_profit = customer.selling_price - supplier.purchase_cost - cost
            if unit_profit <= 0:
                warnings_list.append(
                    f"Route {supplier.name} -> {customer.name} appears unprofitable "
                    f"(profit: {unit_profit:.2f})"
                )
    return warnings_list
