"""Tests for the iteration controller."""

import sys
import warnings
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from middleman_solver import (  # noqa: E402
    Customer,
    InvalidProblemError,
    MiddlemanProblem,
    MiddlemanSolver,
    SolverConfigurationError,
    SolverOptions,
    SolverState,
    Supplier,
    build_problem,
    solve_middleman_problem,
)
from middleman_solver.engine import ALGORITHM_NAME  # noqa: E402


def _small_problem(costs=((2, 4), (3, 1))):
    return build_problem(
        suppliers=[
            {"id": "S1", "name": "Factory A", "supply": 50, "purchase_cost": 8},
            {"id": "S2", "name": "Factory B", "supply": 70, "purchase_cost": 10},
        ],
        customers=[
            {"id": "C1", "name": "Store X", "demand": 40, "selling_price": 20},
            {"id": "C2", "name": "Store Y", "demand": 60, "selling_price": 25},
        ],
        transportation_costs=[list(row) for row in costs],
    )


def _medium_problem():
    return build_problem(
        suppliers=[
            {"id": "S1", "supply": 100, "purchase_cost": 15},
            {"id": "S2", "supply": 120, "purchase_cost": 12},
            {"id": "S3", "supply": 80, "purchase_cost": 18},
        ],
        customers=[
            {"id": "C1", "demand": 90, "selling_price": 35},
            {"id": "C2", "demand": 110, "selling_price": 40},
            {"id": "C3", "demand": 70, "selling_price": 45},
        ],
        transportation_costs=[[5, 8, 6], [7, 3, 9], [4, 6, 2]],
    )


def _balanced_problem():
    return build_problem(
        suppliers=[
            {"id": "S1", "supply": 10, "purchase_cost": 5},
            {"id": "S2", "supply": 12, "purchase_cost": 6},
            {"id": "S3", "supply": 8, "purchase_cost": 7},
        ],
        customers=[
            {"id": "C1", "demand": 9, "selling_price": 20},
            {"id": "C2", "demand": 11, "selling_price": 18},
            {"id": "C3", "demand": 10, "selling_price": 17},
        ],
        transportation_costs=[[5, 5, 5], [5, 9, 10], [5, 9, 9]],
    )


def _excess_demand_problem():
    return build_problem(
        suppliers=[
            {"id": "S1", "supply": 60, "purchase_cost": 12},
            {"id": "S2", "supply": 40, "purchase_cost": 15},
        ],
        customers=[
            {"id": "C1", "demand": 150, "selling_price": 35},
            {"id": "C2", "demand": 100, "selling_price": 40},
        ],
        transportation_costs=[[6, 4], [5, 7]],
    )


def _flat_problem(demands):
    return build_problem(
        suppliers=[{"id": "S1", "supply": 10, "purchase_cost": 0},
                   {"id": "S2", "supply": 10, "purchase_cost": 0}],
        customers=[{"id": f"C{k + 1}", "demand": d, "selling_price": 5}
                   for k, d in enumerate(demands)],
        transportation_costs=[[0, 0], [0, 0]],
    )


class TestSolveSmallProblem:
    def test_optimal_without_iterations(self):
        solution = solve_middleman_problem(_small_problem())

        assert solution.status == "optimal"
        assert solution.is_optimal
        assert solution.iterations == 0
        assert solution.algorithm == ALGORITHM_NAME
        assert solution.execution_time >= 0

    def test_balanced_plan_and_flags(self):
        solution = solve_middleman_problem(_small_problem())

        assert solution.is_balanced is False
        assert solution.is_feasible is True
        assert solution.transportation_plan.tolist() == [[40.0, 0.0, 10.0], [0.0, 60.0, 10.0]]
        assert solution.profit_matrix.tolist() == [[10.0, 13.0, -8.0], [7.0, 14.0, -10.0]]

    def test_financial_totals(self):
        solution = solve_middleman_problem(_small_problem())

        assert solution.total_revenue == pytest.approx(2300.0)
        assert solution.total_purchase_cost == pytest.approx(920.0)
        assert solution.total_transportation_cost == pytest.approx(140.0)
        assert solution.total_profit == pytest.approx(1240.0)
        assert [(r.supplier_id, r.customer_id, r.quantity) for r in solution.optimal_routes] == [
            ("S1", "C1", 40.0),
            ("S2", "C2", 60.0),
        ]

    def test_dual_variables_and_basis_flags(self):
        solution = solve_middleman_problem(_small_problem())

        assert solution.dual_variables is not None
        assert solution.dual_variables.alpha.tolist() == pytest.approx([0.0, -2.0])
        assert solution.degenerate is False
        assert solution.alternative_optimal is False

    def test_result_arrays_are_read_only(self):
        solution = solve_middleman_problem(_small_problem())

        with pytest.raises(ValueError):
            solution.transportation_plan[0, 0] = 1.0
        with pytest.raises(ValueError):
            solution.profit_matrix[0, 0] = 1.0


class TestTermination:
    def test_local_strategy_stagnates(self):
        solution = solve_middleman_problem(_medium_problem())

        assert solution.status == "stagnated"
        assert solution.is_optimal is False
        assert solution.iterations == 0
        assert solution.total_profit == pytest.approx(5860.0)
        assert solution.diagnostics["rejected_steps"] == 1

    def test_stepping_stone_reaches_optimum(self):
        options = SolverOptions(improvement_strategy="stepping_stone")

        solution = solve_middleman_problem(_balanced_problem(), options=options)

        assert solution.status == "optimal"
        assert solution.iterations == 2
        assert solution.transportation_plan.tolist() == [
            [0.0, 8.0, 2.0],
            [9.0, 3.0, 0.0],
            [0.0, 0.0, 8.0],
        ]
        assert solution.total_profit == pytest.approx(176.0)
        assert solution.diagnostics["total_improvement"] == pytest.approx(38.0)
        assert solution.diagnostics["profit_improvement"] == pytest.approx(38.0)
        assert solution.diagnostics["is_monotone"] is True
        assert solution.alternative_optimal is True

    def test_step_lowering_profit_is_rejected(self):
        # The first cycle raises sum(Z * X) while the real profit drops from 5860 to 5850.
        options = SolverOptions(improvement_strategy="stepping_stone")

        solution = solve_middleman_problem(_medium_problem(), options=options)

        assert solution.status == "stagnated"
        assert solution.iterations == 0
        assert solution.total_profit == pytest.approx(5860.0)
        assert solution.diagnostics["rejected_steps"] == 1

    def test_iteration_limit(self):
        options = SolverOptions(improvement_strategy="stepping_stone", max_iterations=1)

        solution = solve_middleman_problem(_balanced_problem(), options=options)

        assert solution.status == "iteration_limit"
        assert solution.iterations == 1
        assert solution.is_optimal is False
        assert solution.is_feasible is True
        assert solution.total_profit == pytest.approx(174.0)

    def test_cap_stops_without_final_optimality_test(self):
        # Two steps reach the optimum, but the cap ends the run before it is confirmed.
        progress_calls = []
        options = SolverOptions(improvement_strategy="stepping_stone", max_iterations=2)

        solution = solve_middleman_problem(
            _balanced_problem(), options=options, progress_callback=progress_calls.append
        )

        assert solution.status == "iteration_limit"
        assert solution.is_optimal is False
        assert solution.iterations == 2
        assert solution.total_profit == pytest.approx(176.0)
        assert [info.iteration for info in progress_calls] == [0, 1]
        assert solution.dual_variables.beta.tolist() == pytest.approx([14.0, 8.0, 7.0])

    def test_cap_above_needed_steps_reports_optimal(self):
        options = SolverOptions(improvement_strategy="stepping_stone", max_iterations=3)

        solution = solve_middleman_problem(_balanced_problem(), options=options)

        assert solution.status == "optimal"
        assert solution.iterations == 2

    def test_degenerate_initial_plan(self):
        solution = solve_middleman_problem(_flat_problem([10, 10]))

        assert solution.is_balanced is True
        assert solution.degenerate is True
        assert solution.status == "stagnated"
        assert solution.total_profit == pytest.approx(100.0)

    def test_alternative_optimum_is_flagged(self):
        solution = solve_middleman_problem(_flat_problem([5, 15]))

        assert solution.transportation_plan.tolist() == [[5.0, 5.0], [0.0, 10.0]]
        assert solution.status == "optimal"
        assert solution.degenerate is False
        assert solution.alternative_optimal is True


class TestSolverLifecycle:
    def test_states_advance_to_done(self):
        solver = MiddlemanSolver(_small_problem())
        assert solver.state is SolverState.BUILD_INITIAL

        solver.solve()

        assert solver.state is SolverState.DONE

    def test_solver_cannot_be_reused(self):
        solver = MiddlemanSolver(_small_problem())
        solver.solve()

        with pytest.raises(SolverConfigurationError):
            solver.solve()

    def test_invalid_problem_rejected_before_solving(self):
        problem = MiddlemanProblem(
            suppliers=[Supplier("S1", "A", 10.0, 1.0)],
            customers=[Customer("C1", "B", 10.0, -2.0)],
        )

        with pytest.raises(InvalidProblemError) as exc_info:
            solve_middleman_problem(problem)

        assert exc_info.value.errors == ["Customer B cannot have negative selling price"]

    def test_non_finite_purchase_cost_rejected_before_solving(self):
        problem = MiddlemanProblem(
            suppliers=[Supplier("S1", "A", 10.0, float("nan"))],
            customers=[Customer("C1", "B", 10.0, 20.0)],
        )

        with pytest.raises(InvalidProblemError) as exc_info:
            solve_middleman_problem(problem)

        assert exc_info.value.errors == ["Supplier A must have a finite purchase cost"]

    def test_improving_without_a_plan_is_a_configuration_error(self):
        solver = MiddlemanSolver(_small_problem())

        with pytest.raises(SolverConfigurationError, match="No transportation plan"):
            solver._improve()
        with pytest.raises(SolverConfigurationError, match="No transportation plan"):
            solver._check_optimal()

    def test_repeated_solves_are_deterministic(self):
        first = solve_middleman_problem(_medium_problem())
        second = solve_middleman_problem(_medium_problem())

        assert np.array_equal(first.transportation_plan, second.transportation_plan)
        assert first.total_profit == second.total_profit


class TestSolutionSteps:
    def test_steps_are_empty_by_default(self):
        assert solve_middleman_problem(_medium_problem()).steps == []

    def test_steps_are_recorded(self):
        options = SolverOptions(improvement_strategy="stepping_stone", record_steps=True)

        solution = solve_middleman_problem(_balanced_problem(), options=options)

        assert [step.step_number for step in solution.steps] == [0, 1, 2]
        assert "Initial" in solution.steps[0].description
        assert solution.steps[0].improvements == []
        assert solution.steps[0].current_profit == pytest.approx(138.0)
        assert len(solution.steps[1].improvements) == 3
        assert solution.steps[-1].current_profit == pytest.approx(solution.total_profit)
        assert solution.steps[0].transportation_plan.tolist() == [
            [9.0, 1.0, 0.0],
            [0.0, 10.0, 2.0],
            [0.0, 0.0, 8.0],
        ]

    @pytest.mark.parametrize(
        "problem_factory", [_medium_problem, _balanced_problem, _excess_demand_problem]
    )
    def test_recorded_profit_never_decreases(self, problem_factory):
        options = SolverOptions(improvement_strategy="stepping_stone", record_steps=True)

        solution = solve_middleman_problem(problem_factory(), options=options)

        profits = [step.current_profit for step in solution.steps]
        assert all(later >= earlier - 1e-9 for earlier, later in zip(profits, profits[1:]))
        assert profits[-1] == pytest.approx(solution.total_profit)


class TestCostRepair:
    def test_invalid_cost_emits_user_warning(self):
        problem = _small_problem(costs=((2, "x"), (3, 1)))

        with pytest.warns(UserWarning, match="repaired to 0"):
            solution = solve_middleman_problem(problem)

        assert any("Invalid transportation cost at [0][1]" in w for w in solution.warnings)
        assert solution.profit_matrix[0, 1] == pytest.approx(17.0)

    def test_warning_can_be_disabled(self):
        problem = _small_problem(costs=((2, "x"), (3, 1)))

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            solution = solve_middleman_problem(
                problem, options=SolverOptions(warn_on_cost_repair=False)
            )

        assert not [w for w in caught if "repaired" in str(w.message)]
        assert any("Invalid transportation cost" in w for w in solution.warnings)

    def test_missing_costs_default_to_zero(self):
        problem = build_problem(
            suppliers=[{"id": "S1", "supply": 10, "purchase_cost": 2}],
            customers=[{"id": "C1", "demand": 10, "selling_price": 5}],
        )

        with pytest.warns(UserWarning):
            solution = solve_middleman_problem(problem)

        assert solution.total_transportation_cost == 0.0
        assert solution.total_profit == pytest.approx(30.0)
