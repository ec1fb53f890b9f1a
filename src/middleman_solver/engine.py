"""Iteration controller for the middleman problem."""

from __future__ import annotations

import logging
import time
import warnings
from enum import Enum

import numpy as np

from .balancing import balance_problem
from .data import (
    MiddlemanProblem,
    OptimalityCheck,
    ProgressCallback,
    ProgressInfo,
    Solution,
    SolutionStep,
    SolverOptions,
)
from .diagnostics import ConvergenceMonitor
from .duals import compute_dual_variables
from .exceptions import InvalidProblemError, SolverConfigurationError
from .improvement import improve_solution, plans_equal
from .initial import maximum_element_method
from .optimality import check_optimality, reduced_profits
from .profit import calculate_profit_matrix
from .results import calculate_results, create_routes
from .utils import plan_objective, validate_plan
from .validation import normalize_transportation_costs, validate_problem

ALGORITHM_NAME = "Maximum Element Method with Dual Variable Optimality Check"


class SolverState(Enum):
    BUILD_INITIAL = "build_initial"
    CHECK_OPTIMAL = "check_optimal"
    IMPROVE = "improve"
    DONE = "done"


class MiddlemanSolver:
    """Drives one solve of a middleman problem.

    The controller is a small state machine:

        BUILD_INITIAL -> CHECK_OPTIMAL <-> IMPROVE -> DONE

    BUILD_INITIAL runs the Maximum Element Method once. CHECK_OPTIMAL computes
    dual variables and reduced profits and finishes when no cell improves the plan.
    IMPROVE moves flow into the best improving cell; it finishes on stagnation
    (the plan did not change, or the objective or the real profit would drop) or
    as soon as the accepted step reaches the iteration cap, without a further
    optimality test. DONE is terminal: a solver instance solves exactly once.

    Attributes:
        problem: The validated input problem.
        options: Solver configuration.
        balanced: Supplier/customer lists after balancing.
        transportation_costs: Dense cost matrix over the balanced problem.
        profit_matrix: Unit profit per balanced cell (read-only).
        plan: Current plan, None before BUILD_INITIAL.
        iterations: Accepted improvement steps.

    Note:
        Use solve_middleman_problem() instead of instantiating this class directly.
    """

    def __init__(self, problem: MiddlemanProblem, options: SolverOptions | None = None):
        self.options = options if options is not None else SolverOptions()
        self.logger = logging.getLogger(__name__)

        validation = validate_problem(problem)
        if not validation.is_valid:
            raise InvalidProblemError(
                f"Invalid problem: {', '.join(validation.errors)}", errors=validation.errors
            )
        self.problem = problem
        self.warnings = list(validation.warnings)

        self.balanced = balance_problem(problem.suppliers, problem.customers)
        real_rows, real_cols = len(problem.suppliers), len(problem.customers)
        normalization = normalize_transportation_costs(
            problem.transportation_costs, real_rows, real_cols
        )
        if normalization.repaired:
            self.logger.warning(
                f"Repaired {len(normalization.issues)} transportation cost entries to 0",
                extra={"issues": normalization.issues},
            )
            if self.options.warn_on_cost_repair:
                warnings.warn(
                    "Transportation costs were repaired to 0: " + "; ".join(normalization.issues),
                    UserWarning,
                    stacklevel=3,
                )

        rows, cols = self.balanced.shape
        self.transportation_costs = np.zeros((rows, cols), dtype=float)
        self.transportation_costs[:real_rows, :real_cols] = normalization.matrix
        self.transportation_costs.setflags(write=False)

        self.profit_matrix = calculate_profit_matrix(
            self.balanced.suppliers, self.balanced.customers, self.transportation_costs
        )
        self.supplies = self.balanced.supplies
        self.demands = self.balanced.demands

        self.state = SolverState.BUILD_INITIAL
        self.plan: np.ndarray | None = None
        self.iterations = 0
        self.is_optimal = False
        self.last_check: OptimalityCheck | None = None
        self.monitor = ConvergenceMonitor(tolerance=self.options.tolerance)
        self.steps: list[SolutionStep] = []
        self._progress_callback: ProgressCallback | None = None
        self._start_time = 0.0

    def solve(self, progress_callback: ProgressCallback | None = None) -> Solution:
        """Run the state machine to completion and return the Solution."""
        if self.state is not SolverState.BUILD_INITIAL:
            raise SolverConfigurationError(
                "This solver has already finished; create a new MiddlemanSolver to solve again."
            )
        self._progress_callback = progress_callback
        self._start_time = time.perf_counter()

        rows, cols = self.balanced.shape
        self.logger.info(
            f"Starting middleman optimization: {len(self.problem.suppliers)} suppliers x "
            f"{len(self.problem.customers)} customers",
            extra={
                "balanced_shape": (rows, cols),
                "is_balanced": self.balanced.is_balanced,
                "improvement_strategy": self.options.improvement_strategy,
            },
        )

        while self.state is not SolverState.DONE:
            if self.state is SolverState.BUILD_INITIAL:
                self._build_initial()
            elif self.state is SolverState.CHECK_OPTIMAL:
                self._check_optimal()
            elif self.state is SolverState.IMPROVE:
                self._improve()

        elapsed = time.perf_counter() - self._start_time
        solution = self._build_solution(elapsed)
        self.logger.info(
            f"Solve finished: status={solution.status}, profit={solution.total_profit:.2f}, "
            f"iterations={solution.iterations}",
            extra={"elapsed_time": elapsed, "is_optimal": solution.is_optimal},
        )
        return solution

    def _build_initial(self) -> None:
        self.plan = maximum_element_method(self.profit_matrix, self.supplies, self.demands)
        self.monitor.record_iteration(
            plan_objective(self.profit_matrix, self.plan), self._real_profit(self.plan)
        )
        self._record_step("Initial solution (Maximum Element Method)")
        self.state = SolverState.CHECK_OPTIMAL

    def _check_optimal(self) -> None:
        plan = self._require_plan()
        check = check_optimality(
            self.profit_matrix,
            plan,
            tolerance=self.options.tolerance,
            max_passes=self.options.dual_max_passes,
        )
        self.last_check = check
        self._report_progress(len(check.improvements))

        if check.is_optimal:
            self.is_optimal = True
            self.monitor.finish("optimal")
            self.logger.info(
                "Plan is optimal", extra={"iterations": self.iterations}
            )
            self.state = SolverState.DONE
            return

        if self.logger.isEnabledFor(logging.DEBUG):
            best = check.improvements[0]
            self.logger.debug(
                f"Iteration {self.iterations + 1}: {len(check.improvements)} improvements, "
                f"best [{best.supplier_index}][{best.customer_index}] = {best.improvement:.3f}",
                extra={"iteration": self.iterations},
            )
        self.state = SolverState.IMPROVE

    def _improve(self) -> None:
        plan = self._require_plan()
        check = self._require_check()
        if not check.improvements:
            self._finish("stagnated")
            return

        best = check.improvements[0]
        candidate = improve_solution(
            plan,
            best,
            self.supplies,
            self.demands,
            strategy=self.options.improvement_strategy,
        )
        if plans_equal(plan, candidate, self.options.tolerance):
            self.logger.info("No plan change detected, terminating")
            self.monitor.record_rejection()
            self._finish("stagnated")
            return

        previous = plan_objective(self.profit_matrix, plan)
        objective = plan_objective(self.profit_matrix, candidate)
        previous_profit = self._real_profit(plan)
        profit = self._real_profit(candidate)
        if not (
            self.monitor.accepts(previous, objective)
            and self.monitor.accepts(previous_profit, profit)
        ):
            self.logger.info(
                "Improvement step would lower the objective or the profit, terminating",
                extra={
                    "previous": previous,
                    "candidate": objective,
                    "previous_profit": previous_profit,
                    "candidate_profit": profit,
                },
            )
            self.monitor.record_rejection()
            self._finish("stagnated")
            return

        self.plan = candidate
        self.iterations += 1
        self.monitor.record_iteration(objective, profit)
        self._record_step(
            f"Iteration {self.iterations}: moved flow into "
            f"[{best.supplier_index}][{best.customer_index}] (delta {best.improvement:.3f})"
        )

        if self.iterations >= self.options.max_iterations:
            self.logger.warning(
                f"Iteration limit reached after {self.iterations} iterations",
                extra={"max_iterations": self.options.max_iterations},
            )
            self._finish("iteration_limit")
            return
        self.state = SolverState.CHECK_OPTIMAL

    def _finish(self, reason: str) -> None:
        self.monitor.finish(reason)
        self.state = SolverState.DONE

    def _require_plan(self) -> np.ndarray:
        if self.plan is None:
            raise SolverConfigurationError(
                f"No transportation plan in state {self.state.value}; the initial plan is "
                "built by solve()."
            )
        return self.plan

    def _require_check(self) -> OptimalityCheck:
        if self.last_check is None:
            raise SolverConfigurationError(
                f"No optimality check in state {self.state.value}; plans are improved "
                "only after an optimality test."
            )
        return self.last_check

    def _real_profit(self, plan: np.ndarray) -> float:
        return calculate_results(plan, self.balanced, self.transportation_costs).total_profit

    def _record_step(self, description: str) -> None:
        if not self.options.record_steps:
            return
        plan = self._require_plan()
        improvements = list(self.last_check.improvements) if self.last_check else []
        self.steps.append(
            SolutionStep(
                step_number=len(self.steps),
                description=description,
                transportation_plan=plan.copy(),
                current_profit=self._real_profit(plan),
                improvements=improvements,
            )
        )

    def _report_progress(self, opportunities: int) -> None:
        if self._progress_callback is None:
            return
        self._progress_callback(
            ProgressInfo(
                iteration=self.iterations,
                max_iterations=self.options.max_iterations,
                objective=plan_objective(self.profit_matrix, self._require_plan()),
                opportunities=opportunities,
                elapsed_time=time.perf_counter() - self._start_time,
            )
        )

    def _build_solution(self, elapsed: float) -> Solution:
        plan = self._require_plan().copy()
        plan.setflags(write=False)

        summary = calculate_results(plan, self.balanced, self.transportation_costs)
        routes = create_routes(plan, self.balanced, self.transportation_costs, self.profit_matrix)
        feasibility = validate_plan(
            plan,
            self.supplies,
            self.demands,
            tolerance=self.options.tolerance,
            require_equality=True,
        )

        # The last check predates the final step when the iteration cap stops the loop.
        duals = compute_dual_variables(
            self.profit_matrix, plan, max_passes=self.options.dual_max_passes
        )
        rows, cols = plan.shape
        basic = plan > 0
        degenerate = int(basic.sum()) < rows + cols - 1 or not duals.is_complete
        alternative_optimal = False
        if self.is_optimal:
            reduced = reduced_profits(self.profit_matrix, duals)
            non_basic = plan <= self.options.tolerance
            alternative_optimal = bool(
                np.any(non_basic & (np.abs(reduced) <= self.options.tolerance))
            )

        return Solution(
            profit_matrix=self.profit_matrix,
            transportation_plan=plan,
            is_balanced=self.balanced.is_balanced,
            is_feasible=feasibility.is_valid,
            is_optimal=self.is_optimal,
            total_purchase_cost=summary.total_purchase_cost,
            total_transportation_cost=summary.total_transportation_cost,
            total_revenue=summary.total_revenue,
            total_profit=summary.total_profit,
            optimal_routes=routes,
            algorithm=ALGORITHM_NAME,
            execution_time=elapsed,
            iterations=self.iterations,
            status=self.monitor.termination_reason,
            dual_variables=duals,
            degenerate=degenerate,
            alternative_optimal=alternative_optimal,
            steps=self.steps,
            warnings=list(self.warnings),
            diagnostics=self.monitor.get_diagnostic_summary(),
        )
