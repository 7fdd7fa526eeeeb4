"""
route_builder.py
----------------

Expands a visiting order (address ids) into a planned edge sequence that
starts and ends at the depot.

Consecutive stops joined by a road use that road directly, even if it is
blocked. The detour engine reroutes blocked roads afterwards, which keeps
construction zones visible as detours. Stops without a direct road are
connected through the shortest path between their junctions.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from lastmile.algorithms.pathfinding import find_detour
from lastmile.models.road_network import Edge, RoadNetwork


logger = logging.getLogger(__name__)


@dataclass
class RouteBuild:
    sequence: List[str]
    edges: List[Edge] = field(default_factory=list)
    unreachable: List[str] = field(default_factory=list)


def _connect(network: RoadNetwork, from_id: str, to_id: str) -> Optional[List[Edge]]:
    direct = network.direct_edge(from_id, to_id, include_blocked=True)
    if direct is not None:
        return [direct]

    from_rep = network.primary_node(network.group(from_id))
    to_rep = network.primary_node(network.group(to_id))
    return find_detour(network, from_rep, to_rep)


def sequence_to_edges(sequence: Sequence[str], network: RoadNetwork) -> RouteBuild:
    """
    Build the planned edges for depot -> sequence... -> depot.

    A stop that cannot be reached from the previous position is recorded in
    RouteBuild.unreachable and skipped; the next stop is then connected from
    the last position actually reached.
    """
    depot_id = network.depot_id
    build = RouteBuild(sequence=list(sequence))
    current = depot_id

    for stop in build.sequence:
        if network.same_place(current, stop):
            continue
        leg = _connect(network, current, stop)
        if leg is None:
            logger.warning("No road from %s to stop %s", current, stop)
            build.unreachable.append(stop)
            continue
        build.edges.extend(leg)
        current = stop

    if not network.same_place(current, depot_id):
        leg = _connect(network, current, depot_id)
        if leg is None:
            logger.warning("No road back to depot from %s", current)
        else:
            build.edges.extend(leg)

    return build
