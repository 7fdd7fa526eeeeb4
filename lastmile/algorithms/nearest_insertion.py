"""
Nearest Insertion construction heuristic for a single-depot delivery tour.

The tour is grown one address at a time. Each new address goes into the
gap that makes the closed loop depot -> ... -> depot grow the least.
"""

from typing import Callable, List, Sequence


def nearest_insertion(addresses: Sequence[str],
                      depot_id: str,
                      distance_fn: Callable[[str, str], float]) -> List[str]:
    """
    Build an initial visiting order with Nearest Insertion.

    Parameters
    ----------
    addresses : sequence of str
        Address node ids to visit. Processed in the given order, so the
        result is deterministic for a deterministic input.
    depot_id : str
        The depot. It is the implicit neighbour before the first and after
        the last stop and is never part of the returned tour.
    distance_fn : function(a: str, b: str) -> float
        Distance callback, e.g. a NetworkDistanceService.

    Returns
    -------
    list[str]
        Every address exactly once, depot excluded.

    Complexity
    ----------
    O(n) positions per insertion and n insertions, O(n^2) distance
    lookups overall (three per evaluated position).
    """
    remaining = list(addresses)
    if not remaining:
        return []

    route = [remaining.pop(0)]

    while remaining:
        next_address = remaining.pop(0)
        best_position = 0
        smallest_increase = float("inf")

        for i in range(len(route) + 1):
            predecessor = depot_id if i == 0 else route[i - 1]
            successor = depot_id if i == len(route) else route[i]

            increase = (
                distance_fn(predecessor, next_address) +
                distance_fn(next_address, successor) -
                distance_fn(predecessor, successor)
            )

            # Strict comparison keeps the earliest position on ties
            if increase < smallest_increase:
                smallest_increase = increase
                best_position = i

        route.insert(best_position, next_address)

    return route
