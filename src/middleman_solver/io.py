"""File I/O helpers for middleman problems."""

from __future__ import annotations

import json
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any

from .data import MiddlemanProblem, Solution, build_problem
from .exceptions import InvalidProblemError


def load_problem(path: str | Path) -> MiddlemanProblem:
    """Load a middleman problem from a JSON file.

    The payload holds ``suppliers`` and ``customers`` arrays plus an optional
    ``transportation_costs`` (or ``transportationCosts``) matrix.
    """
    with Path(path).open("r", encoding="utf-8") as fh:
        payload: MutableMapping[str, Any] = json.load(fh)
    if not isinstance(payload, Mapping):
        raise InvalidProblemError(
            f"Invalid problem format: expected a JSON object, got {type(payload).__name__}"
        )
    suppliers = payload.get("suppliers")
    customers = payload.get("customers")
    if not isinstance(suppliers, list) or not isinstance(customers, list):
        raise InvalidProblemError(
            "Invalid problem format: JSON must include 'suppliers' and 'customers' arrays. "
            f"Got suppliers type: {type(suppliers).__name__}, "
            f"customers type: {type(customers).__name__}"
        )
    costs = payload.get("transportation_costs", payload.get("transportationCosts"))
    # Defer to the core builder so validation rules remain centralized in one place.
    return build_problem(suppliers=suppliers, customers=customers, transportation_costs=costs)


def solution_to_dict(solution: Solution) -> dict[str, Any]:
    """Convert a Solution into JSON-serializable primitives."""
    return {
        "status": solution.status,
        "algorithm": solution.algorithm,
        "is_balanced": solution.is_balanced,
        "is_feasible": solution.is_feasible,
        "is_optimal": solution.is_optimal,
        "iterations": solution.iterations,
        "execution_time": solution.execution_time,
        "total_purchase_cost": solution.total_purchase_cost,
        "total_transportation_cost": solution.total_transportation_cost,
        "total_revenue": solution.total_revenue,
        "total_profit": solution.total_profit,
        "profit_matrix": solution.profit_matrix.tolist(),
        "transportation_plan": solution.transportation_plan.tolist(),
        "routes": [
            {
                "supplier_id": route.supplier_id,
                "customer_id": route.customer_id,
                "quantity": route.quantity,
                "unit_profit": route.unit_profit,
                "purchase_cost": route.purchase_cost,
                "transportation_cost": route.transportation_cost,
                "selling_price": route.selling_price,
            }
            for route in solution.optimal_routes
        ],
        "warnings": list(solution.warnings),
    }


def save_solution(path: str | Path, solution: Solution) -> None:
    """Persist a solution to JSON."""
    with Path(path).open("w", encoding="utf-8") as fh:
        json.dump(solution_to_dict(solution), fh, indent=2, sort_keys=False)
