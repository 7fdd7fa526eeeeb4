"""
Shortest-path search over the road network.

find_detour() is the single pathfinding primitive of the planner. It is used
to measure network distances, to route around blocked roads, and to bridge
gaps in hand-drawn routes.
"""

import heapq
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from lastmile.models.road_network import Edge, RoadNetwork


logger = logging.getLogger(__name__)


def _usable_adjacency(network: RoadNetwork,
                      excluded: frozenset) -> Dict[str, List[Tuple[str, Edge]]]:
    graph: Dict[str, List[Tuple[str, Edge]]] = {}
    for edge in network.edges:
        # Construction zones are never usable, whatever the caller excludes.
        if edge.blocked or edge.id in excluded:
            continue
        graph.setdefault(edge.a, []).append((edge.b, edge))
        graph.setdefault(edge.b, []).append((edge.a, edge))
    return graph


def find_detour(network: RoadNetwork,
                start_id: str,
                end_id: str,
                excluded_edge_ids: Iterable[str] = ()) -> Optional[List[Edge]]:
    """
    Shortest path from start_id to end_id avoiding blocked and excluded edges.

    Parameters
    ----------
    network : RoadNetwork
    start_id, end_id : str
        Node ids. Unknown ids never have a path.
    excluded_edge_ids : iterable of str
        Extra edge ids to treat as unusable for this call only.

    Returns
    -------
    list[Edge] or None
        Edges in travel order from start to end, [] when start == end,
        None when no legal path exists.

    Ties between equally distant nodes go to the node loaded first, so the
    same inputs always give the same path.
    """
    if network.node(start_id) is None or network.node(end_id) is None:
        return None
    if start_id == end_id:
        return []

    graph = _usable_adjacency(network, frozenset(excluded_edge_ids))
    order = network.node_order

    distances: Dict[str, float] = {start_id: 0.0}
    previous: Dict[str, Tuple[str, Edge]] = {}
    settled = set()
    frontier = [(0.0, order[start_id], start_id)]

    while frontier:
        dist, _, current = heapq.heappop(frontier)
        if current in settled:
            continue
        if current == end_id:
            break
        settled.add(current)

        for neighbour, edge in graph.get(current, ()):
            if neighbour in settled:
                continue
            new_dist = dist + edge.length_km
            if new_dist < distances.get(neighbour, float("inf")):
                distances[neighbour] = new_dist
                previous[neighbour] = (current, edge)
                heapq.heappush(frontier, (new_dist, order.get(neighbour, len(order)), neighbour))

    if end_id not in previous:
        logger.debug("No path from %s to %s", start_id, end_id)
        return None

    path: List[Edge] = []
    node = end_id
    while node != start_id:
        node, edge = previous[node]
        path.append(edge)
    path.reverse()
    return path


def path_length(path: Iterable[Edge]) -> float:
    return sum(edge.length_km for edge in path)
