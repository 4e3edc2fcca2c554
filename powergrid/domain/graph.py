"""
Domain Rule — Connection Graph

Builds an in-memory node graph from the flat list of connection edges and
walks it sinks-first: a node is visited only once the node it feeds has
already been visited.

The graph is an arena. Nodes live in one mapping keyed by (type, id) and
point at each other through those keys, so the doubly-linked structure
carries no object references between nodes. A graph is built fresh for
every traversal and thrown away afterwards.
"""

import enum
import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


class NodeType(str, enum.Enum):
    BATTERY = "BATTERY"
    SOLAR = "SOLAR"
    LOAD = "LOAD"

    def __str__(self):
        return self.value

    @classmethod
    def values(cls):
        return [member.value for member in cls]


NodeKey = Tuple[str, str]


@dataclass
class PowerNode:
    """One battery, solar array or load taking part in at least one connection."""

    id: str
    type: str
    source: Optional[NodeKey] = None
    source_connection_id: Optional[str] = None
    sink: Optional[NodeKey] = None
    sink_connection_id: Optional[str] = None

    @property
    def key(self) -> NodeKey:
        return (self.type, self.id)


class PowerGraph(dict):
    """Arena of nodes; source/sink references are resolved through it."""

    def source_of(self, node: PowerNode) -> Optional[PowerNode]:
        return self.get(node.source) if node.source else None

    def sink_of(self, node: PowerNode) -> Optional[PowerNode]:
        return self.get(node.sink) if node.sink else None

    def _node(self, node_type, node_id) -> PowerNode:
        key = (node_type, node_id)
        if key not in self:
            self[key] = PowerNode(id=node_id, type=node_type)
        return self[key]


def build_graph(edges: Iterable) -> PowerGraph:
    """
    Converts connection edges into a PowerGraph.

    Edges missing any of source_id/source_type/sink_id/sink_type are skipped.
    A node has at most one source and one sink: when several edges share an
    endpoint the last one read wins.
    """
    graph = PowerGraph()
    for edge in edges:
        if not (edge.source_id and edge.source_type and edge.sink_id and edge.sink_type):
            logger.debug("Skipping incomplete connection %s", getattr(edge, "id", None))
            continue

        source = graph._node(str(edge.source_type), edge.source_id)
        sink = graph._node(str(edge.sink_type), edge.sink_id)

        source.sink = sink.key
        source.sink_connection_id = edge.id
        sink.source = source.key
        sink.source_connection_id = edge.id
    return graph


def _cycle_from(graph: PowerGraph, start: PowerNode) -> bool:
    # Sources mirror sinks, so following sinks alone finds every loop.
    visited = set()
    queue = deque([start])
    while queue:
        current = queue.popleft()
        if current.key in visited:
            return True
        visited.add(current.key)
        sink = graph.sink_of(current)
        if sink is not None:
            queue.append(sink)
    return False


def has_cycle(graph: PowerGraph) -> bool:
    return any(_cycle_from(graph, node) for node in graph.values())


def traverse(graph: PowerGraph, visit: Callable[[PowerNode], bool]) -> bool:
    """
    Visits every node sinks-first and returns True only if every visit succeeded.

    Nothing is visited when the graph has a cycle. A visit that returns a
    falsy value or raises counts as a failure but does not stop the walk.
    """
    if has_cycle(graph):
        logger.error("Found unexpected cycle in connection graph")
        return False

    visited = set()
    queue = deque(graph.values())
    all_succeeded = True

    while queue:
        current = queue.popleft()
        if current.key in visited:
            continue
        if current.sink is not None and current.sink not in visited:
            queue.append(current)
            continue

        visited.add(current.key)
        try:
            succeeded = bool(visit(current))
        except Exception:
            logger.exception("Visiting node %s %s failed", current.type, current.id)
            succeeded = False
        all_succeeded = all_succeeded and succeeded

    return all_succeeded
