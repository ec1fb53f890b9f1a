"""High-level entrypoints for the middleman (profit transportation) solver library."""

from .balancing import balance_problem
from .data import (
    BalancedProblem,
    Customer,
    DualVariables,
    FinancialSummary,
    ImprovementOpportunity,
    MiddlemanProblem,
    OptimalityCheck,
    ProgressCallback,
    ProgressInfo,
    Route,
    Solution,
    SolutionStep,
    SolverOptions,
    Supplier,
    TransportationCost,
    build_problem,
)
from .diagnostics import ConvergenceMonitor
from .duals import compute_dual_variables
from .engine import MiddlemanSolver, SolverState
from .exceptions import InvalidProblemError, MiddlemanSolverError, SolverConfigurationError
from .improvement import find_stepping_stone_cycle, improve_solution, plans_equal
from .initial import maximum_element_method
from .optimality import check_optimality
from .profit import calculate_profit_matrix
from .results import calculate_results, create_routes
from .solver import load_problem, save_solution, solve_middleman_problem
from .utils import LPReference, PlanValidation, plan_objective, solve_lp_reference, validate_plan
from .validation import (
    CostNormalization,
    ValidationResult,
    normalize_transportation_costs,
    validate_problem,
)

__version__ = "0.1.0"

__all__ = [
    # Main API
    "build_problem",
    "load_problem",
    "solve_middleman_problem",
    "save_solution",
    "MiddlemanSolver",
    "SolverState",
    # Configuration
    "SolverOptions",
    # Problem and solution types
    "Supplier",
    "Customer",
    "TransportationCost",
    "MiddlemanProblem",
    "BalancedProblem",
    "DualVariables",
    "ImprovementOpportunity",
    "OptimalityCheck",
    "Route",
    "FinancialSummary",
    "Solution",
    "SolutionStep",
    # Progress tracking
    "ProgressCallback",
    "ProgressInfo",
    # Algorithm components
    "balance_problem",
    "calculate_profit_matrix",
    "maximum_element_method",
    "compute_dual_variables",
    "check_optimality",
    "improve_solution",
    "find_stepping_stone_cycle",
    "plans_equal",
    "calculate_results",
    "create_routes",
    # Validation
    "validate_problem",
    "normalize_transportation_costs",
    "ValidationResult",
    "CostNormalization",
    # Utilities
    "validate_plan",
    "plan_objective",
    "solve_lp_reference",
    "PlanValidation",
    "LPReference",
    # Diagnostics
    "ConvergenceMonitor",
    # Exceptions
    "MiddlemanSolverError",
    "InvalidProblemError",
    "SolverConfigurationError",
    # Version
    "__version__",
]
