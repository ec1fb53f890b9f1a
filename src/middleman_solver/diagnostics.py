"""Convergence diagnostics for the iteration controller.

This module tracks the objective and the real profit of every accepted plan and
records why the improvement loop stopped.
"""

from __future__ import annotations

from dataclasses import dataclass, field


def _non_decreasing(history: list[float], tolerance: float) -> bool:
    return all(later >= earlier - tolerance for earlier, later in zip(history, history[1:]))


@dataclass
class ConvergenceMonitor:
    """Records objective history and stagnation for one solve.

    Attributes:
        tolerance: Drops larger than this count as a regression.
        objective_history: Objective (sum of Z * X, fictitious cells included) of the
                           initial plan followed by every accepted plan.
        profit_history: Real profit of the same plans, as reported in the solution.
        rejected_steps: Candidate plans that were unchanged or lowered the objective
                        or the profit.
        termination_reason: Why the loop stopped ('optimal', 'stagnated',
                            'iteration_limit'); empty while running.

    Examples:
        >>> monitor = ConvergenceMonitor(tolerance=1e-3)
        >>> monitor.record_iteration(100.0, 80.0)
        >>> monitor.accepts(100.0, 120.0)
        True
        >>> monitor.accepts(120.0, 90.0)
        False
    """

    tolerance: float = 1e-3
    objective_history: list[float] = field(default_factory=list)
    profit_history: list[float] = field(default_factory=list)
    rejected_steps: int = 0
    termination_reason: str = ""

    def record_iteration(self, objective: float, profit: float) -> None:
        self.objective_history.append(objective)
        self.profit_history.append(profit)

    def accepts(self, previous: float, candidate: float) -> bool:
        """Return True unless the candidate value drops below the previous one."""
        return candidate >= previous - self.tolerance

    def record_rejection(self) -> None:
        self.rejected_steps += 1

    def finish(self, reason: str) -> None:
        self.termination_reason = reason

    def is_monotone(self) -> bool:
        """Check that no accepted plan lowered the objective or the profit."""
        return _non_decreasing(self.objective_history, self.tolerance) and _non_decreasing(
            self.profit_history, self.tolerance
        )

    def get_total_improvement(self) -> float:
        if len(self.objective_history) < 2:
            return 0.0
        return self.objective_history[-1] - self.objective_history[0]

    def get_profit_improvement(self) -> float:
        if len(self.profit_history) < 2:
            return 0.0
        return self.profit_history[-1] - self.profit_history[0]

    def get_diagnostic_summary(self) -> dict[str, float | bool | int | str]:
        """Get summary of convergence diagnostics.

        Returns:
            Dictionary with diagnostic metrics
        """
        return {
            "accepted_steps": max(len(self.objective_history) - 1, 0),
            "rejected_steps": self.rejected_steps,
            "initial_objective": self.objective_history[0] if self.objective_history else 0.0,
            "final_objective": self.objective_history[-1] if self.objective_history else 0.0,
            "total_improvement": self.get_total_improvement(),
            "initial_profit": self.profit_history[0] if self.profit_history else 0.0,
            "final_profit": self.profit_history[-1] if self.profit_history else 0.0,
            "profit_improvement": self.get_profit_improvement(),
            "is_monotone": self.is_monotone(),
            "termination_reason": self.termination_reason,
        }
