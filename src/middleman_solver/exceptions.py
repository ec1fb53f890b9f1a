"""Custom exceptions for the middleman solver library."""

from __future__ import annotations


class MiddlemanSolverError(Exception):
    """Base exception for all middleman solver errors.

    All custom exceptions in the middleman_solver package inherit from this class,
    allowing users to catch all solver-related errors with a single except clause.

    Example:
        try:
            solution = solve_middleman_problem(problem)
        except MiddlemanSolverError as e:
            print(f"Solver error: {e}")
    """


class InvalidProblemError(MiddlemanSolverError):
    """Raised when a problem definition is structurally invalid.

    This includes:
    - No suppliers or no customers
    - Non-positive supply or demand
    - Negative purchase cost or selling price
    - Duplicate supplier or customer identifiers
    - Malformed JSON input

    Malformed transportation costs are not an error: they are repaired to zero and
    reported as warnings instead.

    Example:
        InvalidProblemError(
            "Invalid problem: Supplier Factory A must have positive supply",
            errors=["Supplier Factory A must have positive supply"],
        )
    """

    def __init__(self, message: str, errors: list[str] | None = None):
        """Initialize with message and the individual validation errors."""
        super().__init__(message)
        self.errors = list(errors) if errors else []


class SolverConfigurationError(MiddlemanSolverError):
    """Raised when solver configuration or options are invalid.

    This includes:
    - Non-positive iteration limits or tolerances
    - Unknown improvement strategies

    Example:
        SolverConfigurationError("max_iterations must be positive, got -1")
    """
