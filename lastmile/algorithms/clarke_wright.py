# Clarke-Wright Savings construction heuristic, single-vehicle variant.
#
# ORGANIZED AS A CLASS:
# - ClarkeWrightSolver: encapsulates the savings/merge logic and its stats.
# - clarke_wright_savings(...): plain function wrapper used by the planner.
#
# Instead of serving depot->i->depot and depot->j->depot separately, the
# vehicle can go depot->i->j->depot and save d(depot,i) + d(depot,j) - d(i,j).
# Routes are merged greedily in order of decreasing saving.

import logging
from typing import Callable, Dict, List, Sequence, Tuple


logger = logging.getLogger(__name__)


class ClarkeWrightSolver:

    def __init__(self, distance_fn: Callable[[str, str], float]):
        self.distance_fn = distance_fn

        # Stats for analysis / benchmark output
        self.savings_evaluated = 0
        self.merges = 0

    def compute_savings(self,
                        addresses: Sequence[str],
                        depot_id: str) -> List[Tuple[float, str, str]]:
        # All unordered pairs, best saving first. The sort is stable, so
        # equal savings keep their pair generation order.
        savings = []
        for idx, addr_i in enumerate(addresses[:-1]):
            for addr_j in addresses[idx + 1:]:
                value = (
                    self.distance_fn(depot_id, addr_i) +
                    self.distance_fn(depot_id, addr_j) -
                    self.distance_fn(addr_i, addr_j)
                )
                savings.append((value, addr_i, addr_j))
        self.savings_evaluated = len(savings)
        savings.sort(key=lambda s: s[0], reverse=True)
        return savings

    def solve(self, addresses: Sequence[str], depot_id: str) -> List[str]:
        self.reset_stats()
        addresses = list(addresses)

        if not addresses:
            return []
        if len(addresses) == 1:
            return addresses

        savings = self.compute_savings(addresses, depot_id)

        # Every address starts on its own route
        routes: List[List[str]] = [[addr] for addr in addresses]
        route_of: Dict[str, int] = {addr: idx for idx, addr in enumerate(addresses)}

        for _, addr_i, addr_j in savings:
            if route_of[addr_i] == route_of[addr_j]:
                continue
            if not (self._is_route_end(routes, route_of, addr_i) and
                    self._is_route_end(routes, route_of, addr_j)):
                continue
            self._merge(routes, route_of, addr_i, addr_j)

        remaining = [route for route in routes if route]
        if len(remaining) != 1:
            # Cannot happen on a complete distance function; keep going anyway
            logger.warning("Savings merge left %d route fragments, using input order",
                           len(remaining))
            return addresses
        return remaining[0]

    @staticmethod
    def _is_route_end(routes: List[List[str]], route_of: Dict[str, int], addr: str) -> bool:
        route = routes[route_of[addr]]
        return route[0] == addr or route[-1] == addr

    def _merge(self,
               routes: List[List[str]],
               route_of: Dict[str, int],
               addr_1: str,
               addr_2: str) -> bool:
        idx_1 = route_of[addr_1]
        idx_2 = route_of[addr_2]
        route_1 = routes[idx_1]
        route_2 = routes[idx_2]

        if route_1[-1] == addr_1 and route_2[0] == addr_2:
            # tail -> head
            merged = route_1 + route_2
        elif route_1[0] == addr_1 and route_2[-1] == addr_2:
            # head <- tail
            merged = route_2 + route_1
        elif route_1[-1] == addr_1 and route_2[-1] == addr_2:
            # tail -> tail
            merged = route_1 + route_2[::-1]
        elif route_1[0] == addr_1 and route_2[0] == addr_2:
            # head <- head
            merged = route_1[::-1] + route_2
        else:
            return False

        routes[idx_1] = merged
        routes[idx_2] = []
        for addr in merged:
            route_of[addr] = idx_1
        self.merges += 1
        return True

    def reset_stats(self):
        self.savings_evaluated = 0
        self.merges = 0

    def get_stats(self) -> dict:
        return {
            "savings_evaluated": self.savings_evaluated,
            "merges": self.merges,
        }


# ----------------------------------------------------------------------
# Function API
# ----------------------------------------------------------------------
def clarke_wright_savings(addresses: Sequence[str],
                          depot_id: str,
                          distance_fn: Callable[[str, str], float]) -> List[str]:
    solver = ClarkeWrightSolver(distance_fn)
    return solver.solve(addresses, depot_id)
