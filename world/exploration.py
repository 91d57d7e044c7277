"""
Wayfarer — world/exploration.py
ExplorationGraph: discovered world topology with revisit accounting.
Tracks one node per visited coordinate across an unbounded world,
directed traversal edges, and the breadcrumb trail.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from world.coords import Direction, GridCoordinate

ORIGIN_NODE_ID = "origin"
MAX_DEPTH_TIER = 6
NODES_PER_DEPTH_TIER = 3


@dataclass
class ExplorationNode:
    id: str
    heading: Direction
    x: int
    y: int
    z: int        # visual depth tier, grows with discovery order
    visits: int = 1
    cleared: bool = False

    @property
    def coordinate(self) -> GridCoordinate:
        return GridCoordinate(self.x, self.y)


@dataclass
class ExplorationEdge:
    id: str
    from_id: str
    to_id: str
    traversals: int = 1


def node_id_for(coordinate: GridCoordinate) -> str:
    return f"node-{coordinate.x}-{coordinate.y}"


def edge_id_for(from_id: str, to_id: str) -> str:
    return f"{from_id}->{to_id}"


class Trail:
    """Ordered node ids walked this session. Never shorter than one entry."""

    def __init__(self, start_id: str):
        self._ids: List[str] = [start_id]

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def last(self) -> str:
        return self._ids[-1]

    def append(self, node_id: str) -> None:
        self._ids.append(node_id)

    def pop(self) -> Optional[str]:
        """Removes and returns the newest id, or None when only the start remains."""
        if len(self._ids) <= 1:
            return None
        return self._ids.pop()

    def snapshot(self) -> Tuple[str, ...]:
        return tuple(self._ids)


class ExplorationGraph:
    def __init__(
        self,
        origin: GridCoordinate = GridCoordinate(0, 0),
        heading: Direction = Direction.N,
        origin_id: str = ORIGIN_NODE_ID,
    ):
        # Insertion order doubles as discovery order
        self._nodes: Dict[str, ExplorationNode] = {}
        self._by_coordinate: Dict[GridCoordinate, str] = {}
        self._edges: Dict[str, ExplorationEdge] = {}

        self.origin_id = origin_id
        self._add_node(origin_id, origin, heading)
        self.trail = Trail(origin_id)

    # ----------------------------------------------------------
    # Nodes
    # ----------------------------------------------------------

    def _add_node(self, node_id: str, coordinate: GridCoordinate, heading: Direction) -> ExplorationNode:
        depth = min(MAX_DEPTH_TIER, len(self._nodes) // NODES_PER_DEPTH_TIER)
        node = ExplorationNode(id=node_id, heading=heading, x=coordinate.x, y=coordinate.y, z=depth)
        self._nodes[node_id] = node
        self._by_coordinate[coordinate] = node_id
        return node

    def upsert_node(self, coordinate: GridCoordinate, heading: Direction) -> str:
        """
        Returns the id of the node at coordinate, creating it on first arrival.
        Arriving at a known coordinate bumps visits and records the new heading.
        """
        if not isinstance(coordinate, GridCoordinate):
            raise TypeError(f"Expected GridCoordinate, got {type(coordinate).__name__}")

        existing_id = self._by_coordinate.get(coordinate)
        if existing_id is not None:
            node = self._nodes[existing_id]
            node.visits += 1
            node.heading = heading
            return existing_id

        return self._add_node(node_id_for(coordinate), coordinate, heading).id

    def mark_cleared(self, node_id: str) -> None:
        """Cleared is monotonic; once set it never reverts."""
        self._nodes[node_id].cleared = True

    def get_node(self, node_id: str) -> ExplorationNode:
        return self._nodes[node_id]

    def node_at(self, coordinate: GridCoordinate) -> Optional[ExplorationNode]:
        node_id = self._by_coordinate.get(coordinate)
        return self._nodes[node_id] if node_id is not None else None

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> List[ExplorationNode]:
        """Copies in discovery order; mutating them does not touch the graph."""
        return [replace(n) for n in self._nodes.values()]

    # ----------------------------------------------------------
    # Edges
    # ----------------------------------------------------------

    def upsert_edge(self, from_id: str, to_id: str) -> str:
        if from_id not in self._nodes or to_id not in self._nodes:
            raise KeyError(f"Unknown node in edge {from_id!r} -> {to_id!r}")

        edge_id = edge_id_for(from_id, to_id)
        edge = self._edges.get(edge_id)
        if edge is not None:
            edge.traversals += 1
        else:
            self._edges[edge_id] = ExplorationEdge(id=edge_id, from_id=from_id, to_id=to_id)
        return edge_id

    def edge_between(self, from_id: str, to_id: str) -> Optional[ExplorationEdge]:
        return self._edges.get(edge_id_for(from_id, to_id))

    @property
    def edges(self) -> List[ExplorationEdge]:
        return [replace(e) for e in self._edges.values()]

    # ----------------------------------------------------------
    # Trail
    # ----------------------------------------------------------

    def append_trail(self, node_id: str) -> None:
        if node_id not in self._nodes:
            raise KeyError(f"Unknown node {node_id!r}")
        self.trail.append(node_id)

    def pop_trail(self) -> Optional[str]:
        return self.trail.pop()
