"""
Standalone implementation of the 2-opt local search improvement for tours.

Works on any visiting order, whichever construction heuristic produced it
(Nearest Insertion, Clarke-Wright). The depot is implicit at both ends of
the tour and never moves.
"""

import logging
from typing import Callable, List, Optional, Sequence

from lastmile.utils.cancellation import CancellationToken, is_cancelled


logger = logging.getLogger(__name__)


def two_opt(initial_tour: Sequence[str],
            distance_fn: Callable[[str, str], float],
            depot_id: str,
            cancel_token: Optional[CancellationToken] = None) -> List[str]:
    """
    Apply 2-opt local search to a given tour.

    Parameters
    ----------
    initial_tour : sequence of str
        Address ids in visiting order, depot excluded, e.g.
            ['A03', 'A01', 'A02']
    distance_fn : function(a: str, b: str) -> float
        A callback that returns the distance between two node ids.
        This keeps the 2-opt code independent of how distance is computed
        (network distance, straight line, ...).
    depot_id : str
        Start and end of the closed loop.
    cancel_token : CancellationToken, optional
        Checked between passes; the best tour so far is returned once set.

    Returns
    -------
    list[str]
        The locally improved tour. Its length (depot -> ... -> depot) is
        never greater than the input's.

    Strategy
    --------
    First improvement: the first shorter candidate is adopted and the scan
    restarts from the beginning. A full pass without improvement ends it.
    O(n^2) candidates per pass, each costing O(n) to measure.
    """
    best_tour = list(initial_tour)
    if len(best_tour) < 2:
        return best_tour

    best_distance = tour_length(best_tour, depot_id, distance_fn)
    improved = True
    passes = 0

    # Continue attempting improvements until a full pass gives no gain
    while improved:
        if is_cancelled(cancel_token):
            logger.debug("2-opt cancelled after %d passes", passes)
            break
        improved = False
        passes += 1

        for i in range(len(best_tour) - 1):
            for k in range(i + 1, len(best_tour)):
                candidate = _two_opt_swap(best_tour, i, k)
                candidate_distance = tour_length(candidate, depot_id, distance_fn)

                if candidate_distance < best_distance:
                    best_tour = candidate
                    best_distance = candidate_distance
                    improved = True
                    # Restart the search from the beginning of the tour
                    break
            if improved:
                break

    logger.debug("2-opt finished after %d passes, length %.3f km", passes, best_distance)
    return best_tour


def _two_opt_swap(tour: List[str], i: int, k: int) -> List[str]:
    """
    Returns a new tour where the section tour[i:k+1] has been reversed.

    This is the fundamental 2-opt operation:
      ... A - B ---- C - D ...
    becomes:
      ... A - C ---- B - D ...
    """
    return tour[0:i] + tour[i:k + 1][::-1] + tour[k + 1:]


def tour_length(tour: Sequence[str],
                depot_id: str,
                distance_fn: Callable[[str, str], float]) -> float:
    """Total length of depot -> tour[0] -> ... -> tour[-1] -> depot."""
    if not tour:
        return 0.0
    total = distance_fn(depot_id, tour[0])
    for idx in range(len(tour) - 1):
        total += distance_fn(tour[idx], tour[idx + 1])
    total += distance_fn(tour[-1], depot_id)
    return total
