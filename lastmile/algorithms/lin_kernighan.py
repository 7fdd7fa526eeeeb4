# Variable-depth local search in the style of Lin-Kernighan.
#
# ORGANIZED AS A CLASS:
# - LinKernighanSearch: candidate lists, don't-look bits, 2-opt and 3-opt
#   moves, plus counters for analysis.
# - improve_tour(...): plain function wrapper used by the planner.
#
# Instead of trying every pair of edges like plain 2-opt, each node only
# looks at its k nearest neighbours as partners for a new edge. A move
# starts as a 2-opt exchange and is deepened to a 3-opt exchange when the
# 2-opt closure does not pay off.
#
# Moves are evaluated on the closed tour [depot, a1, ..., an] (the depot is
# kept at index 0), so every accepted gain is a real reduction of the
# depot -> ... -> depot length.

import logging
from typing import Callable, Dict, List, Optional, Sequence

from lastmile.settings import settings
from lastmile.utils.cancellation import CancellationToken, is_cancelled


logger = logging.getLogger(__name__)


class LinKernighanSearch:

    def __init__(self,
                 distance_fn: Callable[[str, str], float],
                 candidate_k: Optional[int] = None,
                 max_iterations: Optional[int] = None,
                 epsilon: Optional[float] = None):
        self.distance_fn = distance_fn
        self.candidate_k = candidate_k or settings.candidate_k
        self.max_iterations = max_iterations or settings.max_iterations
        self.epsilon = settings.gain_epsilon if epsilon is None else epsilon

        # Stats for analysis / benchmark output
        self.iterations = 0
        self.two_opt_moves = 0
        self.three_opt_moves = 0
        self.total_gain = 0.0

    # ------------------------------------------------------------------
    # Candidate lists
    # ------------------------------------------------------------------
    def build_candidate_sets(self, nodes: Sequence[str]) -> Dict[str, List[str]]:
        # k nearest neighbours of every node, computed once per search.
        candidates: Dict[str, List[str]] = {}
        for node in nodes:
            others = [other for other in nodes if other != node]
            # sorted() is stable, ties keep tour order
            others = sorted(others, key=lambda other: self.distance_fn(node, other))
            candidates[node] = others[:self.candidate_k]
        return candidates

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def solve(self,
              initial_tour: Sequence[str],
              depot_id: str,
              cancel_token: Optional[CancellationToken] = None) -> List[str]:
        self.reset_stats()

        tour = list(initial_tour)
        if len(tour) < 3:
            # Any closed loop over three nodes or fewer is already optimal
            return tour

        closed = [depot_id] + tour
        candidates = self.build_candidate_sets(closed)
        dont_look = set()

        for iteration in range(self.max_iterations):
            if is_cancelled(cancel_token):
                logger.debug("Variable-depth search cancelled at iteration %d", iteration)
                break
            self.iterations = iteration + 1

            improved = False
            for pos in range(1, len(closed)):
                t1 = closed[pos]
                if t1 in dont_look:
                    continue

                new_closed = self._move_from(closed, pos, candidates)
                if new_closed is not None:
                    closed = new_closed
                    improved = True
                    # The move may have opened up gains anywhere in the tour
                    dont_look.clear()
                    break
                dont_look.add(t1)

            if not improved:
                break
        else:
            logger.debug("Variable-depth search hit the iteration cap (%d)",
                         self.max_iterations)

        return closed[1:]

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------
    def _move_from(self,
                   closed: List[str],
                   pos: int,
                   candidates: Dict[str, List[str]]) -> Optional[List[str]]:
        # Try to find an improving move that breaks the edge (t1, t2).
        #
        # Returns the new closed tour, or None if nothing improves.
        d = self.distance_fn
        m = len(closed)
        position = {node: idx for idx, node in enumerate(closed)}

        t1 = closed[pos]
        t2 = closed[(pos + 1) % m]
        t1_prev = closed[pos - 1]
        removed = d(t1, t2)

        for t3 in candidates[t1]:
            if t3 == t2 or t3 == t1_prev:
                continue

            gain = removed - d(t1, t3)
            if gain <= 0:
                continue

            # Offset of t3 walking forward from t1, always in [2, m - 2]
            off3 = (position[t3] - pos) % m
            t4 = closed[(position[t3] + 1) % m]

            gain_2opt = gain + d(t3, t4) - d(t2, t4)
            if gain_2opt > self.epsilon:
                self.two_opt_moves += 1
                self.total_gain += gain_2opt
                return self._apply_2opt(closed, pos, off3)

            extended = self._try_3opt(closed, pos, off3, gain, candidates, position)
            if extended is not None:
                return extended

        return None

    def _try_3opt(self,
                  closed: List[str],
                  pos: int,
                  off3: int,
                  gain: float,
                  candidates: Dict[str, List[str]],
                  position: Dict[str, int]) -> Optional[List[str]]:
        # Deepen (t1,t2) -> (t1,t3) by also breaking (t3,t4) and (t5,t6).
        #
        # Walking forward from t1 the tour reads
        #     t1 | t2 ... t5 | t6 ... t3 | t4 ...
        # and is reconnected as
        #     t1 | t3 ... t6 | t2 ... t5 | t4 ...
        # i.e. added edges (t1,t3), (t6,t2), (t5,t4). Only this one of the
        # possible 3-opt reconnections is tried.
        d = self.distance_fn
        m = len(closed)
        t1 = closed[pos]
        t2 = closed[(pos + 1) % m]
        t3 = closed[(pos + off3) % m]
        t4 = closed[(pos + off3 + 1) % m]
        gain_open = gain + d(t3, t4)

        for t5 in candidates[t3]:
            if t5 == t4 or t5 == t1:
                continue
            off5 = (position[t5] - pos) % m
            if off5 < 2 or off5 >= off3:
                continue

            partial = gain_open - d(t4, t5)
            if partial <= 0:
                continue

            t6 = closed[(pos + off5 + 1) % m]
            gain_3opt = partial + d(t5, t6) - d(t6, t2)
            if gain_3opt > self.epsilon:
                self.three_opt_moves += 1
                self.total_gain += gain_3opt
                return self._apply_3opt(closed, pos, off5, off3)

        return None

    @staticmethod
    def _rotated(closed: List[str], pos: int) -> List[str]:
        return closed[pos:] + closed[:pos]

    @staticmethod
    def _depot_first(rotated: List[str], depot_id: str) -> List[str]:
        idx = rotated.index(depot_id)
        return rotated[idx:] + rotated[:idx]

    def _apply_2opt(self, closed: List[str], pos: int, off3: int) -> List[str]:
        # Reverse t2 ... t3
        r = self._rotated(closed, pos)
        new = r[:1] + r[1:off3 + 1][::-1] + r[off3 + 1:]
        return self._depot_first(new, closed[0])

    def _apply_3opt(self, closed: List[str], pos: int, off5: int, off3: int) -> List[str]:
        r = self._rotated(closed, pos)
        new = r[:1] + r[off5 + 1:off3 + 1][::-1] + r[1:off5 + 1] + r[off3 + 1:]
        return self._depot_first(new, closed[0])

    def reset_stats(self):
        self.iterations = 0
        self.two_opt_moves = 0
        self.three_opt_moves = 0
        self.total_gain = 0.0

    def get_stats(self) -> dict:
        return {
            "iterations": self.iterations,
            "two_opt_moves": self.two_opt_moves,
            "three_opt_moves": self.three_opt_moves,
            "total_gain_km": self.total_gain,
        }


# ----------------------------------------------------------------------
# Function API
# ----------------------------------------------------------------------
def improve_tour(initial_tour: Sequence[str],
                 depot_id: str,
                 distance_fn: Callable[[str, str], float],
                 cancel_token: Optional[CancellationToken] = None) -> List[str]:
    search = LinKernighanSearch(distance_fn)
    return search.solve(initial_tour, depot_id, cancel_token=cancel_token)
