#!/usr/bin/env python3
"""Quick verification script to test package installation."""

import sys
from pathlib import Path

# Fall back to the source tree when the package is not installed.
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))


def main():
    """Verify the middleman_solver package is properly installed."""
    print("=" * 60)
    print("Middleman Solver - Installation Verification")
    print("=" * 60)

    # Test 1: Import package
    print("\n[1/4] Testing package import...")
    try:
        import middleman_solver

        print("    ✓ Package imported successfully")
        print(f"    ✓ Version: {middleman_solver.__version__}")
    except ImportError as e:
        print(f"    ✗ Failed to import package: {e}")
        return 1

    # Test 2: Check dependencies
    print("\n[2/4] Testing dependencies...")
    try:
        import numpy as np
        import scipy

        print(f"    ✓ NumPy {np.__version__}")
        print(f"    ✓ SciPy {scipy.__version__}")
    except ImportError as e:
        print(f"    ✗ Missing dependency: {e}")
        return 1

    # Test 3: Solve the two-supplier, two-customer worked example
    print("\n[3/4] Testing solver with a small problem...")
    from middleman_solver import build_problem, solve_lp_reference, solve_middleman_problem

    problem = build_problem(
        suppliers=[
            {"id": "S1", "supply": 50, "purchase_cost": 8},
            {"id": "S2", "supply": 70, "purchase_cost": 10},
        ],
        customers=[
            {"id": "C1", "demand": 40, "selling_price": 20},
            {"id": "C2", "demand": 60, "selling_price": 25},
        ],
        transportation_costs=[[2, 4], [3, 1]],
    )
    solution = solve_middleman_problem(problem)
    if solution.status != "optimal" or abs(solution.total_profit - 1240.0) > 1e-6:
        print(f"    ✗ Unexpected result: {solution.status}, {solution.total_profit}")
        return 1
    print(f"    ✓ Status: {solution.status}, Profit: {solution.total_profit:.2f}")

    # Test 4: LP reference through scipy
    print("\n[4/4] Testing LP reference...")
    reference = solve_lp_reference(problem)
    if reference.status != "optimal" or abs(reference.objective - 1060.0) > 1e-6:
        print(f"    ✗ Unexpected LP result: {reference.status}, {reference.objective}")
        return 1
    print(f"    ✓ LP objective: {reference.objective:.2f}")

    print("\n" + "=" * 60)
    print("✓ All checks passed! Package is ready to use.")
    print("=" * 60)
    print("\nTry running an example:")
    print("    python examples/solve_example.py")
    print("\nOr run the test suite:")
    print("    pytest")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
