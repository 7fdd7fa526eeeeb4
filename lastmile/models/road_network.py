from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from lastmile.utils.geometry import pixel_distance_km


NODE_TYPES = ("depot", "address", "junction", "mid")


@dataclass(frozen=True)
class Node:
    # A fixed point on the road network.
    #
    # Coordinates are canvas pixels; convert with the network's scale.

    id: str
    x: float
    y: float
    type: str

    @property
    def as_tuple(self) -> Tuple[float, float]:
        return self.x, self.y

    def __str__(self) -> str:
        return f"{self.id} [{self.type}] ({self.x:g}, {self.y:g})"


@dataclass(frozen=True)
class Edge:
    # Undirected road segment between nodes a and b.
    #
    # The direction of travel is decided by whoever walks the edge.
    # is_detour is only ever set on edges emitted by the detour engine.

    id: str
    a: str
    b: str
    length_km: float
    blocked: bool = False
    is_detour: bool = False

    def touches(self, node_id: str) -> bool:
        return self.a == node_id or self.b == node_id

    def other_end(self, node_id: str) -> Optional[str]:
        if self.a == node_id:
            return self.b
        if self.b == node_id:
            return self.a
        return None


@dataclass(frozen=True)
class DetourRecord:
    original_edge: Edge
    detour_edges: Tuple[Edge, ...]
    start_node: str
    end_node: str

    @property
    def detour_km(self) -> float:
        return sum(edge.length_km for edge in self.detour_edges)


# ----------------------------------------------------------------------
# Index builders
# ----------------------------------------------------------------------
def build_node_index(nodes: Iterable[Node]) -> Dict[str, Node]:
    return {node.id: node for node in nodes}


def build_adjacency(edges: Iterable[Edge]) -> Dict[str, List[Edge]]:
    adjacency: Dict[str, List[Edge]] = {}
    for edge in edges:
        adjacency.setdefault(edge.a, []).append(edge)
        adjacency.setdefault(edge.b, []).append(edge)
    return adjacency


def build_coincident_groups(nodes: Iterable[Node]) -> Dict[str, Tuple[str, ...]]:
    # Groups nodes sitting on exactly the same (x, y).
    #
    # The depot usually shares its position with an address, so "does this
    # edge touch the depot" has to be answered for the whole group.
    # Coordinates are compared exactly, no tolerance.
    by_position: Dict[Tuple[float, float], List[str]] = {}
    for node in nodes:
        by_position.setdefault((node.x, node.y), []).append(node.id)

    groups: Dict[str, Tuple[str, ...]] = {}
    for members in by_position.values():
        group = tuple(members)
        for node_id in group:
            groups[node_id] = group
    return groups


@dataclass
class RoadNetwork:
    # Static road network: nodes, edges and the lookups built from them.
    #
    # Built once at load time and never mutated afterwards. All algorithms
    # in lastmile.algorithms take a RoadNetwork instead of global data.

    nodes: List[Node]
    edges: List[Edge]
    scale_px_per_km: float
    width: float = 0.0
    height: float = 0.0

    nodes_by_id: Dict[str, Node] = field(init=False, repr=False)
    adjacency: Dict[str, List[Edge]] = field(init=False, repr=False)
    coincident: Dict[str, Tuple[str, ...]] = field(init=False, repr=False)
    node_order: Dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.nodes_by_id = build_node_index(self.nodes)
        self.adjacency = build_adjacency(self.edges)
        self.coincident = build_coincident_groups(self.nodes)
        self.node_order = {node.id: idx for idx, node in enumerate(self.nodes)}

    @classmethod
    def from_raw(cls,
                 nodes: Iterable[Node],
                 raw_edges: Iterable[dict],
                 scale_px_per_km: float,
                 width: float = 0.0,
                 height: float = 0.0) -> "RoadNetwork":
        # Builds Edge objects, filling in missing lengths from coordinates.
        nodes = list(nodes)
        index = build_node_index(nodes)
        edges = []
        for raw in raw_edges:
            length = raw.get("length_km")
            if length is None:
                node_a = index.get(raw["a"])
                node_b = index.get(raw["b"])
                if node_a is None or node_b is None:
                    length = 0.0
                else:
                    length = pixel_distance_km(node_a.as_tuple, node_b.as_tuple,
                                               scale_px_per_km)
            edges.append(Edge(
                id=raw["id"],
                a=raw["a"],
                b=raw["b"],
                length_km=float(length),
                blocked=bool(raw.get("blocked", False)),
            ))
        return cls(nodes=nodes, edges=edges, scale_px_per_km=scale_px_per_km,
                   width=width, height=height)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def node(self, node_id: str) -> Optional[Node]:
        return self.nodes_by_id.get(node_id)

    def edges_at(self, node_id: str) -> List[Edge]:
        return self.adjacency.get(node_id, [])

    def edge(self, edge_id: str) -> Optional[Edge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    @property
    def depot_id(self) -> str:
        for node in self.nodes:
            if node.type == "depot":
                return node.id
        raise LookupError("Road network has no depot node.")

    @property
    def address_ids(self) -> List[str]:
        return [node.id for node in self.nodes if node.type == "address"]

    def group(self, node_id: str) -> Tuple[str, ...]:
        # Unknown ids form a group of their own.
        return self.coincident.get(node_id, (node_id,))

    def same_place(self, first: str, second: str) -> bool:
        return second in self.group(first)

    def primary_node(self, group: Iterable[str]) -> Optional[str]:
        # Junctions sit on the routable skeleton; addresses and the depot
        # are leaves hanging off it.
        group = list(group)
        for node_id in group:
            node = self.node(node_id)
            if node is not None and node.type == "junction":
                return node_id
        return group[0] if group else None

    def direct_edge(self, from_id: str, to_id: str,
                    include_blocked: bool = False) -> Optional[Edge]:
        # First edge joining the two coincident groups, in group order.
        for from_node in self.group(from_id):
            for to_node in self.group(to_id):
                for edge in self.edges_at(from_node):
                    if edge.blocked and not include_blocked:
                        continue
                    if edge.other_end(from_node) == to_node:
                        return edge
        return None

    # ------------------------------------------------------------------
    # Distances
    # ------------------------------------------------------------------
    def euclidean_km(self, from_id: str, to_id: str) -> Optional[float]:
        node_a = self.node(from_id)
        node_b = self.node(to_id)
        if node_a is None or node_b is None:
            return None
        return pixel_distance_km(node_a.as_tuple, node_b.as_tuple,
                                 self.scale_px_per_km)

    def route_distance(self, edges: Iterable[Edge]) -> float:
        return sum(edge.length_km for edge in edges)

    def visited_addresses(self, edges: Iterable[Edge]) -> Set[str]:
        # Addresses reached by a walk, counting coincident nodes too.
        visited: Set[str] = set()
        for edge in edges:
            for end in (edge.a, edge.b):
                for node_id in self.group(end):
                    node = self.node(node_id)
                    if node is not None and node.type == "address":
                        visited.add(node_id)
        return visited
