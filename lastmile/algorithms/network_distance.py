"""
Driving distance between two nodes through the street network.

Two addresses that are close as the crow flies can be far apart by road,
so every heuristic in lastmile.algorithms is fed these distances rather
than straight lines. Results are memoised in a DistanceCache owned by the
service instance.
"""

import logging
from threading import Lock
from typing import Dict, Optional, Tuple

from lastmile.algorithms.pathfinding import find_detour, path_length
from lastmile.models.road_network import RoadNetwork


logger = logging.getLogger(__name__)


class DistanceCache:
    # Symmetric memo of network distances, keyed by node-id pairs.
    #
    # Every value is stored under both (a, b) and (b, a). The lock only
    # matters if the planner is ever called from several threads.

    def __init__(self) -> None:
        self._lock = Lock()
        self._items: Dict[Tuple[str, str], float] = {}
        self._hits = 0
        self._misses = 0

    def get(self, from_id: str, to_id: str) -> Optional[float]:
        with self._lock:
            value = self._items.get((from_id, to_id))
            if value is None:
                value = self._items.get((to_id, from_id))
            if value is None:
                self._misses += 1
            else:
                self._hits += 1
            return value

    def put(self, from_id: str, to_id: str, distance: float) -> None:
        with self._lock:
            self._items[(from_id, to_id)] = distance
            self._items[(to_id, from_id)] = distance

    def clear(self) -> int:
        with self._lock:
            cleared = len(self._items)
            self._items.clear()
            self._hits = 0
            self._misses = 0
            return cleared

    def stats(self) -> dict:
        with self._lock:
            return {
                "size": len(self._items),
                "entries": len(self._items),
                "hits": self._hits,
                "misses": self._misses,
            }

    def __len__(self) -> int:
        return len(self._items)


class NetworkDistanceService:
    # Network distance lookups for one road network.
    #
    # Instances are callable, so they can be handed straight to the tour
    # heuristics as their distance function:
    #
    #     distance = NetworkDistanceService(network)
    #     tour = nearest_insertion(addresses, depot_id, distance)

    def __init__(self, network: RoadNetwork, cache: Optional[DistanceCache] = None):
        self.network = network
        self.cache = cache if cache is not None else DistanceCache()

        # Stats for analysis / benchmark output
        self.pathfinding_calls = 0
        self.euclidean_fallbacks = 0

    def __call__(self, from_id: str, to_id: str) -> float:
        return self.calculate_network_distance(from_id, to_id)

    def calculate_network_distance(self, from_id: str, to_id: str) -> float:
        """
        Driving distance in km between two nodes.

        Order of resolution:
          1. cached value (either direction)
          2. a direct unblocked edge between the two coincident groups
          3. shortest path between the groups' junction representatives
          4. straight-line distance, if no legal path exists
        Returns inf only when one of the ids is unknown.
        """
        cached = self.cache.get(from_id, to_id)
        if cached is not None:
            return cached

        network = self.network

        # Adjacent nodes never go through pathfinding.
        direct = network.direct_edge(from_id, to_id)
        if direct is not None:
            distance = direct.length_km or 0.0
            self.cache.put(from_id, to_id, distance)
            return distance

        # Addresses and the depot are dead-end leaves; search between the
        # junctions they are attached to.
        from_rep = network.primary_node(network.group(from_id))
        to_rep = network.primary_node(network.group(to_id))

        self.pathfinding_calls += 1
        path = find_detour(network, from_rep, to_rep)
        if path is not None:
            distance = path_length(path)
            self.cache.put(from_id, to_id, distance)
            return distance

        euclidean = network.euclidean_km(from_id, to_id)
        if euclidean is None:
            logger.debug("Unknown node in distance query %s -> %s", from_id, to_id)
            return float("inf")

        self.euclidean_fallbacks += 1
        logger.debug("No road path %s -> %s, using straight line %.3f km",
                     from_id, to_id, euclidean)
        self.cache.put(from_id, to_id, euclidean)
        return euclidean

    def clear_distance_cache(self) -> None:
        self.cache.clear()
        self.pathfinding_calls = 0
        self.euclidean_fallbacks = 0

    def get_cache_stats(self) -> dict:
        stats = self.cache.stats()
        stats["pathfinding_calls"] = self.pathfinding_calls
        stats["euclidean_fallbacks"] = self.euclidean_fallbacks
        return stats
