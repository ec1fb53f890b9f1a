"""Supply/demand balancing via fictitious nodes."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .data import BalancedProblem, Customer, Supplier

logger = logging.getLogger(__name__)

FICTITIOUS_SUPPLIER_ID = "fictitious-supplier"
FICTITIOUS_CUSTOMER_ID = "fictitious-customer"


def balance_problem(
    suppliers: Sequence[Supplier],
    customers: Sequence[Customer],
    tolerance: float = 1e-9,
) -> BalancedProblem:
    """Equalize total supply and total demand.

    Excess supply is absorbed by a fictitious customer with a selling price of 0;
    excess demand is covered by a fictitious supplier with a purchase cost of 0.
    The inputs are never mutated; new lists are returned.

    Args:
        suppliers: Real suppliers.
        customers: Real customers.
        tolerance: Totals closer than this are treated as equal.

    Returns:
        BalancedProblem with at most one fictitious node appended.

    Examples:
        >>> balanced = balance_problem(
        ...     [Supplier("S1", "A", 50, 8), Supplier("S2", "B", 70, 10)],
        ...     [Customer("C1", "X", 40, 20), Customer("C2", "Y", 60, 25)],
        ... )
        >>> balanced.fictitious_customer.demand
        20.0
    """
    total_supply = float(sum(s.supply for s in suppliers))
    total_demand = float(sum(c.demand for c in customers))

    balanced_suppliers = list(suppliers)
    balanced_customers = list(customers)
    fictitious_supplier: Supplier | None = None
    fictitious_customer: Customer | None = None

    difference = total_supply - total_demand
    if difference > tolerance:
        fictitious_customer = Customer(
            id=FICTITIOUS_CUSTOMER_ID,
            name="Fictitious Customer",
            demand=difference,
            selling_price=0.0,
            fictitious=True,
        )
        balanced_customers.append(fictitious_customer)
    elif -difference > tolerance:
        fictitious_supplier = Supplier(
            id=FICTITIOUS_SUPPLIER_ID,
            name="Fictitious Supplier",
            supply=-difference,
            purchase_cost=0.0,
            fictitious=True,
        )
        balanced_suppliers.append(fictitious_supplier)

    is_balanced = fictitious_supplier is None and fictitious_customer is None
    if not is_balanced:
        logger.info(
            "Balanced problem with a fictitious %s",
            "customer" if fictitious_customer is not None else "supplier",
            extra={"total_supply": total_supply, "total_demand": total_demand},
        )

    return BalancedProblem(
        suppliers=balanced_suppliers,
        customers=balanced_customers,
        is_balanced=is_balanced,
        fictitious_supplier=fictitious_supplier,
        fictitious_customer=fictitious_customer,
        original_supply_total=total_supply,
        original_demand_total=total_demand,
    )
