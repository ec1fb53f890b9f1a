import json
import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from middleman_solver import SolverOptions, plan_objective, solve_lp_reference  # noqa: E402
from middleman_solver.solver import load_problem, save_solution, solve_middleman_problem  # noqa: E402

EXAMPLES_DIR = PROJECT_ROOT / "examples"

LOCAL = SolverOptions()
STEPPING_STONE = SolverOptions(improvement_strategy="stepping_stone")


def _solve(name, options):
    return solve_middleman_problem(load_problem(EXAMPLES_DIR / name), options=options)


def test_solver_end_to_end(tmp_path: Path):
    # Exercise the public facade by round-tripping the small JSON instance.
    solution = _solve("small_problem.json", LOCAL)

    assert solution.status == "optimal"
    assert solution.total_profit == pytest.approx(1240.0)

    result_path = tmp_path / "solution.json"
    save_solution(result_path, solution)

    saved = json.loads(result_path.read_text(encoding="utf-8"))
    assert saved["status"] == "optimal"
    assert saved["is_optimal"] is True
    assert saved["total_revenue"] == pytest.approx(2300.0)
    assert saved["routes"] == [
        {
            "supplier_id": "S1",
            "customer_id": "C1",
            "quantity": 40.0,
            "unit_profit": 10.0,
            "purchase_cost": 8.0,
            "transportation_cost": 2.0,
            "selling_price": 20.0,
        },
        {
            "supplier_id": "S2",
            "customer_id": "C2",
            "quantity": 60.0,
            "unit_profit": 14.0,
            "purchase_cost": 10.0,
            "transportation_cost": 1.0,
            "selling_price": 25.0,
        },
    ]


@pytest.mark.parametrize(
    "name, options, status, iterations, profit",
    [
        ("medium_problem.json", LOCAL, "stagnated", 0, 5860.0),
        ("medium_problem.json", STEPPING_STONE, "stagnated", 0, 5860.0),
        ("balanced_problem.json", LOCAL, "stagnated", 0, 138.0),
        ("balanced_problem.json", STEPPING_STONE, "optimal", 2, 176.0),
        ("unbalanced_supply_problem.json", LOCAL, "stagnated", 0, 3200.0),
        ("unbalanced_supply_problem.json", STEPPING_STONE, "stagnated", 0, 3200.0),
        ("unbalanced_demand_problem.json", LOCAL, "stagnated", 0, 7370.0),
        ("unbalanced_demand_problem.json", STEPPING_STONE, "optimal", 1, 7490.0),
    ],
)
def test_example_outcomes(name, options, status, iterations, profit):
    solution = _solve(name, options)

    assert solution.status == status
    assert solution.iterations == iterations
    assert solution.total_profit == pytest.approx(profit)
    assert solution.is_feasible
    assert solution.diagnostics["is_monotone"] is True


def test_excess_supply_goes_to_fictitious_customer():
    solution = _solve("unbalanced_supply_problem.json", LOCAL)

    assert solution.is_balanced is False
    assert solution.transportation_plan.shape == (2, 3)
    assert solution.transportation_plan.tolist() == [[0.0, 120.0, 80.0], [80.0, 0.0, 20.0]]
    assert solution.total_revenue == pytest.approx(5600.0)
    assert solution.total_purchase_cost == pytest.approx(1840.0)
    assert solution.total_transportation_cost == pytest.approx(560.0)
    assert all(route.customer_id.startswith("C") for route in solution.optimal_routes)


def test_cycle_that_sells_less_is_rejected():
    # The cycle reaches the LP objective but leaves the cheaper supplier's units unsold.
    problem = load_problem(EXAMPLES_DIR / "unbalanced_supply_problem.json")

    solution = solve_middleman_problem(problem, options=STEPPING_STONE)
    reference = solve_lp_reference(problem)

    assert reference.objective == pytest.approx(2320.0)
    assert plan_objective(solution.profit_matrix, solution.transportation_plan) == pytest.approx(
        2240.0
    )
    assert solution.total_profit == pytest.approx(3200.0)
    assert solution.diagnostics["rejected_steps"] == 1


def test_excess_demand_comes_from_fictitious_supplier():
    solution = _solve("unbalanced_demand_problem.json", STEPPING_STONE)

    assert solution.transportation_plan.shape == (3, 2)
    assert solution.transportation_plan.tolist() == [[0.0, 60.0], [40.0, 0.0], [110.0, 40.0]]
    # Units covered by the fictitious supplier still earn the customer's price.
    assert solution.total_revenue == pytest.approx(9250.0)
    assert solution.total_purchase_cost == pytest.approx(1320.0)
    assert solution.total_transportation_cost == pytest.approx(440.0)
    assert solution.total_profit == pytest.approx(7490.0)
    assert [(r.supplier_id, r.customer_id) for r in solution.optimal_routes] == [
        ("S1", "C2"),
        ("S2", "C1"),
    ]


@pytest.mark.parametrize(
    "name",
    [
        "small_problem.json",
        "medium_problem.json",
        "balanced_problem.json",
        "unbalanced_supply_problem.json",
        "unbalanced_demand_problem.json",
    ],
)
def test_objective_never_exceeds_lp_reference(name):
    problem = load_problem(EXAMPLES_DIR / name)
    reference = solve_lp_reference(problem)

    for options in (LOCAL, STEPPING_STONE):
        solution = solve_middleman_problem(problem, options=options)
        objective = plan_objective(solution.profit_matrix, solution.transportation_plan)
        assert objective <= reference.objective + 1e-6
        assert np.all(solution.transportation_plan >= 0)


def test_optimal_status_matches_lp_reference():
    problem = load_problem(EXAMPLES_DIR / "balanced_problem.json")

    solution = solve_middleman_problem(problem, options=STEPPING_STONE)
    reference = solve_lp_reference(problem)

    assert solution.status == "optimal"
    assert reference.objective == pytest.approx(176.0)
    assert plan_objective(solution.profit_matrix, solution.transportation_plan) == pytest.approx(
        176.0
    )
