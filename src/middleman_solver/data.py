"""Core data structures for the middleman (profit-maximizing transportation) problem."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from .exceptions import InvalidProblemError, SolverConfigurationError

IMPROVEMENT_STRATEGIES = ("local", "stepping_stone")


@dataclass(frozen=True)
class Supplier:
    """A source of goods the middleman can buy from.

    Attributes:
        id: Unique identifier for the supplier.
        name: Display name.
        supply: Maximum quantity this supplier can sell (must be > 0).
        purchase_cost: Cost per unit bought from this supplier (must be >= 0).
        fictitious: True only for the synthetic supplier added during balancing.

    Examples:
        >>> factory = Supplier(id="S1", name="Factory A", supply=50.0, purchase_cost=8.0)
    """

    id: str
    name: str
    supply: float
    purchase_cost: float
    fictitious: bool = False


@dataclass(frozen=True)
class Customer:
    """A buyer the middleman can sell to.

    Attributes:
        id: Unique identifier for the customer.
        name: Display name.
        demand: Maximum quantity this customer wants (must be > 0).
        selling_price: Revenue per unit sold to this customer (must be >= 0).
        fictitious: True only for the synthetic customer added during balancing.

    Examples:
        >>> store = Customer(id="C1", name="Store X", demand=40.0, selling_price=20.0)
    """

    id: str
    name: str
    demand: float
    selling_price: float
    fictitious: bool = False


@dataclass(frozen=True)
class TransportationCost:
    """Per-unit shipping cost between one supplier and one customer."""

    supplier_id: str
    customer_id: str
    cost: float


@dataclass
class MiddlemanProblem:
    """Encapsulates a middleman problem instance.

    Attributes:
        suppliers: Suppliers in row order.
        customers: Customers in column order.
        transportation_costs: Either a dense matrix of numbers or a dense matrix of
            TransportationCost records (or mappings with a ``cost`` key), indexed to
            match supplier/customer order. Missing or malformed cells count as 0.

    Examples:
        >>> problem = MiddlemanProblem(
        ...     suppliers=[Supplier("S1", "Factory A", 50.0, 8.0)],
        ...     customers=[Customer("C1", "Store X", 40.0, 20.0)],
        ...     transportation_costs=[[2.0]],
        ... )
        >>> problem.validate()

    See Also:
        - build_problem(): Construct from dictionaries (useful for JSON input).
        - solve_middleman_problem(): Solve the problem.
    """

    suppliers: list[Supplier]
    customers: list[Customer]
    transportation_costs: Any = None

    def validate(self) -> None:
        """Raise InvalidProblemError if the problem is structurally invalid."""
        from .validation import validate_problem

        result = validate_problem(self)
        if not result.is_valid:
            raise InvalidProblemError(
                f"Invalid problem: {', '.join(result.errors)}", errors=result.errors
            )


@dataclass
class BalancedProblem:
    """Supplier/customer lists extended so that total supply equals total demand.

    Attributes:
        suppliers: Original suppliers plus the fictitious supplier, if one was added.
        customers: Original customers plus the fictitious customer, if one was added.
        is_balanced: True when the original totals were already equal.
        fictitious_supplier: Added when total demand exceeded total supply.
        fictitious_customer: Added when total supply exceeded total demand.
        original_supply_total: Total supply before balancing.
        original_demand_total: Total demand before balancing.
    """

    suppliers: list[Supplier]
    customers: list[Customer]
    is_balanced: bool
    fictitious_supplier: Supplier | None = None
    fictitious_customer: Customer | None = None
    original_supply_total: float = 0.0
    original_demand_total: float = 0.0

    @property
    def supplies(self) -> NDArray[np.float64]:
        return np.array([s.supply for s in self.suppliers], dtype=float)

    @property
    def demands(self) -> NDArray[np.float64]:
        return np.array([c.demand for c in self.customers], dtype=float)

    @property
    def shape(self) -> tuple[int, int]:
        return len(self.suppliers), len(self.customers)


@dataclass
class DualVariables:
    """Row (alpha) and column (beta) potentials of the current plan.

    ``alpha_resolved`` and ``beta_resolved`` mark which potentials were actually
    derived from basic cells. Unresolved entries hold 0.0, which is only an
    approximation when the basis is degenerate.
    """

    alpha: NDArray[np.float64]
    beta: NDArray[np.float64]
    alpha_resolved: NDArray[np.bool_]
    beta_resolved: NDArray[np.bool_]

    @property
    def is_complete(self) -> bool:
        return bool(self.alpha_resolved.all() and self.beta_resolved.all())


@dataclass(frozen=True)
class ImprovementOpportunity:
    """A non-basic cell whose reduced profit is positive.

    Attributes:
        supplier_index: Row of the cell in the balanced problem.
        customer_index: Column of the cell in the balanced problem.
        improvement: Reduced profit (delta) per unit entering this cell.
        current_profit: Profit currently earned on the cell (always 0, it is unused).
        potential_profit: Unit profit of the cell.
    """

    supplier_index: int
    customer_index: int
    improvement: float
    current_profit: float
    potential_profit: float


@dataclass
class OptimalityCheck:
    """Outcome of the optimality test for one plan."""

    is_optimal: bool
    improvements: list[ImprovementOpportunity]
    dual_variables: DualVariables


@dataclass(frozen=True)
class Route:
    """A real supplier-to-customer route carrying positive flow."""

    supplier_id: str
    customer_id: str
    quantity: float
    unit_profit: float
    purchase_cost: float
    transportation_cost: float
    selling_price: float


@dataclass(frozen=True)
class FinancialSummary:
    """Totals over real (non-fictitious) flows."""

    total_purchase_cost: float
    total_transportation_cost: float
    total_revenue: float
    total_profit: float


@dataclass
class SolutionStep:
    """One entry of the optional solution trace."""

    step_number: int
    description: str
    transportation_plan: NDArray[np.float64]
    current_profit: float
    improvements: list[ImprovementOpportunity] = field(default_factory=list)


@dataclass
class Solution:
    """Represents the output of a middleman solve.

    Attributes:
        profit_matrix: Unit profit per cell of the balanced problem (read-only).
        transportation_plan: Quantity shipped per cell of the balanced problem (read-only).
        is_balanced: Whether the original supply and demand totals were equal.
        is_feasible: Whether the plan respects every supply and demand capacity.
        is_optimal: Whether the optimality test found no improving cell.
        total_purchase_cost: Purchase cost of real flows.
        total_transportation_cost: Transportation cost of real flows.
        total_revenue: Revenue of real flows.
        total_profit: Revenue minus purchase and transportation cost.
        optimal_routes: Real routes with positive flow, in row-major order.
        algorithm: Name of the algorithm used.
        execution_time: Wall-clock solve time in seconds.
        iterations: Number of accepted improvement steps.
        status: 'optimal', 'stagnated' (improver made no acceptable change) or
                'iteration_limit'.
        dual_variables: Potentials of the terminal plan.
        degenerate: True when the terminal basis is degenerate.
        alternative_optimal: True when an optimal plan has a zero-delta non-basic cell.
        steps: Solution trace, populated when SolverOptions.record_steps is set.
        warnings: Input repairs and other non-fatal diagnostics.
        diagnostics: Convergence summary from the iteration controller.

    Examples:
        >>> solution = solve_middleman_problem(problem)
        >>> print(f"Profit: {solution.total_profit:.2f}, optimal={solution.is_optimal}")
        Profit: 1240.00, optimal=True
    """

    profit_matrix: NDArray[np.float64]
    transportation_plan: NDArray[np.float64]
    is_balanced: bool
    is_feasible: bool
    is_optimal: bool
    total_purchase_cost: float
    total_transportation_cost: float
    total_revenue: float
    total_profit: float
    optimal_routes: list[Route]
    algorithm: str
    execution_time: float
    iterations: int
    status: str = "optimal"
    dual_variables: DualVariables | None = None
    degenerate: bool = False
    alternative_optimal: bool = False
    steps: list[SolutionStep] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    diagnostics: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProgressInfo:
    """Progress information provided during solver execution.

    Attributes:
        iteration: Accepted improvement steps so far.
        max_iterations: Maximum allowed iterations.
        objective: Objective (sum of unit profit times flow) of the current plan,
                   fictitious cells included.
        opportunities: Number of improving cells found by the latest optimality test.
        elapsed_time: Elapsed time in seconds since solve started.
    """

    iteration: int
    max_iterations: int
    objective: float
    opportunities: int
    elapsed_time: float


# Type alias for progress callback function
ProgressCallback = Callable[[ProgressInfo], None]


@dataclass
class SolverOptions:
    """Configuration options for the middleman solver.

    Attributes:
        max_iterations: Hard cap on accepted improvement steps (default: 20).
        tolerance: Numerical tolerance for basic-cell detection, reduced profits and
                  plan comparison (default: 1e-3).
        dual_max_passes: Maximum sweeps over the basic cells when propagating
                        dual variables (default: 50).
        improvement_strategy: How an improving cell is brought into the plan:
                             - "local" (default): single-unit shifts along the
                               entering cell's row or column
                             - "stepping_stone": full cycle reallocation through
                               basic cells
        record_steps: Keep a SolutionStep trace of every iteration (default: False).
        warn_on_cost_repair: Emit a UserWarning when transportation costs had to be
                            repaired (default: True).

    Examples:
        >>> options = SolverOptions(improvement_strategy="stepping_stone", record_steps=True)
    """

    max_iterations: int = 20
    tolerance: float = 1e-3
    dual_max_passes: int = 50
    improvement_strategy: str = "local"
    record_steps: bool = False
    warn_on_cost_repair: bool = True

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise SolverConfigurationError(
                f"max_iterations must be positive, got {self.max_iterations}."
            )
        if self.tolerance <= 0:
            raise SolverConfigurationError(
                f"Tolerance must be positive, got {self.tolerance}. "
                f"Tolerance controls numerical precision for optimality checks."
            )
        if self.dual_max_passes <= 0:
            raise SolverConfigurationError(
                f"dual_max_passes must be positive, got {self.dual_max_passes}."
            )
        if self.improvement_strategy not in IMPROVEMENT_STRATEGIES:
            raise SolverConfigurationError(
                f"Invalid improvement strategy '{self.improvement_strategy}'. "
                f"Must be 'local' or 'stepping_stone'."
            )


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return default


def build_problem(
    suppliers: Iterable[Mapping[str, Any]],
    customers: Iterable[Mapping[str, Any]],
    transportation_costs: Any = None,
) -> MiddlemanProblem:
    """Factory helper used by the IO layer to assemble a MiddlemanProblem.

    Keys are accepted in snake_case or camelCase (``purchase_cost``/``purchaseCost``,
    ``selling_price``/``sellingPrice``). Names default to the id.
    """
    supplier_objs: list[Supplier] = []
    for index, raw in enumerate(suppliers):
        supplier_id = str(_pick(raw, "id", default=f"S{index + 1}"))
        supplier_objs.append(
            Supplier(
                id=supplier_id,
                name=str(_pick(raw, "name", default=supplier_id)),
                supply=float(_pick(raw, "supply", default=0.0)),
                purchase_cost=float(_pick(raw, "purchase_cost", "purchaseCost", default=0.0)),
            )
        )

    customer_objs: list[Customer] = []
    for index, raw in enumerate(customers):
        customer_id = str(_pick(raw, "id", default=f"C{index + 1}"))
        customer_objs.append(
            Customer(
                id=customer_id,
                name=str(_pick(raw, "name", default=customer_id)),
                demand=float(_pick(raw, "demand", default=0.0)),
                selling_price=float(_pick(raw, "selling_price", "sellingPrice", default=0.0)),
            )
        )

    problem = MiddlemanProblem(
        suppliers=supplier_objs,
        customers=customer_objs,
        transportation_costs=transportation_costs,
    )
    problem.validate()
    return problem
