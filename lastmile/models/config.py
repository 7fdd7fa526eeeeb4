"""
config.py
---------

Validated input format for a road network.

The network arrives as one static object:

    {
        "canvas": {"width": 960, "height": 640, "scalePxPerKm": 110},
        "nodes": [{"id": "N00", "x": 480, "y": 320, "type": "depot"}, ...],
        "edges": [{"id": "E01", "a": "N00", "b": "J01", "lengthKm": 1.2}, ...]
    }

load_network() checks it once at the boundary and returns a RoadNetwork.
Everything past this point trusts the data.
"""

import json
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from lastmile.models.road_network import Node, RoadNetwork
from lastmile.settings import settings


class NetworkConfigError(ValueError):
    pass


class CanvasModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    width: float = 0.0
    height: float = 0.0
    scale_px_per_km: float = Field(
        default_factory=lambda: settings.default_scale_px_per_km,
        alias="scalePxPerKm",
        gt=0.0,
    )


class NodeModel(BaseModel):
    # Display-only fields (labels, time windows) are tolerated and dropped.
    model_config = ConfigDict(extra="ignore")
    id: str = Field(min_length=1)
    x: float
    y: float
    type: Literal["depot", "address", "junction", "mid"]


class EdgeModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    id: str = Field(min_length=1)
    a: str
    b: str
    length_km: Optional[float] = Field(default=None, alias="lengthKm")
    blocked: bool = False

    @field_validator("length_km")
    @classmethod
    def _length_non_negative(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("edge length must not be negative")
        return v


class NetworkConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    canvas: CanvasModel = Field(default_factory=CanvasModel)
    nodes: List[NodeModel]
    edges: List[EdgeModel] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_graph(self) -> "NetworkConfig":
        node_ids = [n.id for n in self.nodes]
        seen = set()
        for node_id in node_ids:
            if node_id in seen:
                raise ValueError(f"duplicate node id {node_id!r}")
            seen.add(node_id)

        depots = [n.id for n in self.nodes if n.type == "depot"]
        if len(depots) != 1:
            raise ValueError(f"expected exactly one depot, found {len(depots)}")

        edge_ids = set()
        for edge in self.edges:
            if edge.id in edge_ids:
                raise ValueError(f"duplicate edge id {edge.id!r}")
            edge_ids.add(edge.id)
            for end in (edge.a, edge.b):
                if end not in seen:
                    raise ValueError(f"edge {edge.id!r} references unknown node {end!r}")
        return self

    def to_network(self) -> RoadNetwork:
        nodes = [Node(id=n.id, x=n.x, y=n.y, type=n.type) for n in self.nodes]
        raw_edges = [
            {"id": e.id, "a": e.a, "b": e.b, "length_km": e.length_km, "blocked": e.blocked}
            for e in self.edges
        ]
        return RoadNetwork.from_raw(
            nodes,
            raw_edges,
            scale_px_per_km=self.canvas.scale_px_per_km,
            width=self.canvas.width,
            height=self.canvas.height,
        )


def load_network(source: Union[dict, str, Path]) -> RoadNetwork:
    """
    Parse and validate a network definition.

    source may be an already-decoded dict, a JSON string or a path to a
    JSON file. Raises NetworkConfigError on any structural problem.
    """
    data: Any = source
    if isinstance(source, Path) or (isinstance(source, str) and not source.lstrip().startswith("{")):
        try:
            data = json.loads(Path(source).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise NetworkConfigError(f"Cannot read network file {source}: {e}") from e
    elif isinstance(source, str):
        try:
            data = json.loads(source)
        except json.JSONDecodeError as e:
            raise NetworkConfigError(f"Invalid network JSON: {e}") from e

    try:
        config = NetworkConfig.model_validate(data)
    except ValidationError as e:
        raise NetworkConfigError(str(e)) from e
    return config.to_network()
