"""Plan improvement steps.

Two strategies bring an improving cell into the plan:

- ``local``: a bounded greedy heuristic. It fills the entering cell directly when
  its row has spare supply and its column unmet demand; otherwise it tries to shift
  at most one unit from another cell of the same row, then of the same column.
  On a fully allocated balanced plan both limits are zero, so it cannot move
  anything and the controller stops on stagnation.
- ``stepping_stone``: the classical cycle reallocation. The entering cell and a
  path of basic cells form a closed loop; flow is added and removed alternately
  around the loop by the largest amount that keeps every cell non-negative.
"""

from __future__ import annotations

import logging
from collections import deque

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .data import ImprovementOpportunity

logger = logging.getLogger(__name__)

LOCAL_SHIFT_LIMIT = 1.0


def plans_equal(first: ArrayLike, second: ArrayLike, tolerance: float = 1e-3) -> bool:
    """Element-wise plan comparison within ``tolerance``."""
    a = np.asarray(first, dtype=float)
    b = np.asarray(second, dtype=float)
    if a.shape != b.shape:
        return False
    return bool(np.all(np.abs(a - b) <= tolerance))


def improve_solution(
    plan: ArrayLike,
    opportunity: ImprovementOpportunity,
    supplies: ArrayLike,
    demands: ArrayLike,
    strategy: str = "local",
) -> NDArray[np.float64]:
    """Return a new plan with flow moved into the opportunity's cell.

    The input plan is never modified. Callers must compare the result with the
    previous plan (see plans_equal) to detect a step that changed nothing.
    """
    if strategy == "stepping_stone":
        return stepping_stone_step(plan, opportunity, supplies, demands)
    return local_reallocation_step(plan, opportunity, supplies, demands)


def local_reallocation_step(
    plan: ArrayLike,
    opportunity: ImprovementOpportunity,
    supplies: ArrayLike,
    demands: ArrayLike,
) -> NDArray[np.float64]:
    new_plan = np.array(plan, dtype=float)
    supply = np.asarray(supplies, dtype=float)
    demand = np.asarray(demands, dtype=float)
    i, j = opportunity.supplier_index, opportunity.customer_index
    rows, cols = new_plan.shape

    available_supply = supply[i] - new_plan[i, :].sum()
    unmet_demand = demand[j] - new_plan[:, j].sum()

    direct = min(available_supply, unmet_demand)
    if direct > 0:
        new_plan[i, j] += direct
        return new_plan

    for k in range(cols):
        if k != j and new_plan[i, k] > 0:
            shift = min(new_plan[i, k], unmet_demand, LOCAL_SHIFT_LIMIT)
            if shift > 0:
                new_plan[i, k] -= shift
                new_plan[i, j] += shift
                return new_plan

    for k in range(rows):
        if k != i and new_plan[k, j] > 0:
            shift = min(new_plan[k, j], available_supply, LOCAL_SHIFT_LIMIT)
            if shift > 0:
                new_plan[k, j] -= shift
                new_plan[i, j] += shift
                return new_plan

    return new_plan


def find_stepping_stone_cycle(
    plan: ArrayLike, row: int, col: int
) -> list[tuple[int, int]] | None:
    """Return the closed loop through ``(row, col)`` and basic cells, or None.

    The first cell is the entering cell; signs alternate +, -, +, ... along the
    returned list. The path is found by breadth-first search over the bipartite
    graph whose vertices are rows and columns and whose edges are basic cells.
    """
    flows = np.asarray(plan, dtype=float)
    rows = flows.shape[0]
    basic = flows > 0
    basic[row, col] = False

    start = row
    target = rows + col
    parent: dict[int, int | None] = {start: None}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        if node == target:
            break
        if node < rows:
            neighbours = [rows + int(c) for c in np.flatnonzero(basic[node, :])]
        else:
            neighbours = [int(r) for r in np.flatnonzero(basic[:, node - rows])]
        for neighbour in neighbours:
            if neighbour not in parent:
                parent[neighbour] = node
                queue.append(neighbour)

    if target not in parent:
        return None

    vertices = [target]
    while parent[vertices[-1]] is not None:
        vertices.append(parent[vertices[-1]])  # type: ignore[arg-type]
    vertices.reverse()

    cycle = [(row, col)]
    for a, b in zip(vertices, vertices[1:]):
        r, c = (a, b - rows) if a < rows else (b, a - rows)
        cycle.append((r, c))
    return cycle


def stepping_stone_step(
    plan: ArrayLike,
    opportunity: ImprovementOpportunity,
    supplies: ArrayLike,
    demands: ArrayLike,
) -> NDArray[np.float64]:
    new_plan = np.array(plan, dtype=float)
    i, j = opportunity.supplier_index, opportunity.customer_index

    cycle = find_stepping_stone_cycle(new_plan, i, j)
    if cycle is None:
        logger.debug(
            "No stepping-stone cycle through entering cell, using local reallocation",
            extra={"row": i, "col": j},
        )
        return local_reallocation_step(new_plan, opportunity, supplies, demands)

    donors = cycle[1::2]
    leaving = min(donors, key=lambda cell: new_plan[cell])
    theta = float(new_plan[leaving])
    if theta <= 0:
        return new_plan

    for position, cell in enumerate(cycle):
        if position % 2 == 0:
            new_plan[cell] += theta
        else:
            new_plan[cell] -= theta
    new_plan[leaving] = 0.0

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"Stepping-stone moved {theta:g} units around a {len(cycle)}-cell cycle",
            extra={"entering": (i, j), "leaving": leaving},
        )
    return new_plan
