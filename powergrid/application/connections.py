"""
Application Use Cases — Connections and Graph Export
"""

import logging

from powergrid.application.store import CONNECTIONS, STORES_BY_NODE_TYPE, append_event
from powergrid.domain.exceptions import EntityNotFound, GraphCycleDetected, InvalidConnection
from powergrid.domain.graph import NodeType, build_graph, has_cycle, traverse

logger = logging.getLogger(__name__)


def _check_endpoint(role, node_type, node_id):
    if node_type not in NodeType.values():
        raise InvalidConnection(
            f"{role}_type must be one of {', '.join(NodeType.values())}"
        )
    if not node_id:
        raise InvalidConnection(f"{role}_id is required")

    store = STORES_BY_NODE_TYPE[node_type]
    if store.read(node_id) is None:
        raise EntityNotFound(store.kind, node_id)


def new_connection(source_type, source_id, sink_type, sink_id):
    """
    Creates a directed connection from source to sink with a fresh transfer session.

    Multiple connections may share a source or sink; the graph keeps the
    last one read for each endpoint.
    """
    _check_endpoint("source", source_type, source_id)
    _check_endpoint("sink", sink_type, sink_id)

    connection_id = CONNECTIONS.create(
        source_type=source_type,
        source_id=source_id,
        sink_type=sink_type,
        sink_id=sink_id,
    )
    append_event(
        f"CREATED new connection with ID {connection_id} "
        f"with source {source_type} {source_id} "
        f"and sink {sink_type} {sink_id}"
    )
    logger.info(
        "Created connection %s: %s %s -> %s %s",
        connection_id, source_type, source_id, sink_type, sink_id,
    )
    return CONNECTIONS.read(connection_id).to_record()


def get_connection(connection_id):
    connection = CONNECTIONS.read(connection_id)
    if connection is None:
        raise EntityNotFound(CONNECTIONS.kind, connection_id)
    return connection.to_record()


def export_graph():
    """
    Returns the current graph as a flat list of nodes, sinks first.

    Each entry is {id, type, sourceType, sourceId, sinkType, sinkId} with
    empty strings where a node has no source or sink.
    """
    graph = build_graph(CONNECTIONS.read_all())
    if has_cycle(graph):
        logger.error("Cannot export connection graph with a cycle")
        raise GraphCycleDetected()

    nodes = []

    def visit(node):
        source = graph.source_of(node)
        sink = graph.sink_of(node)
        nodes.append({
            "id": node.id,
            "type": node.type,
            "sourceType": source.type if source else "",
            "sourceId": source.id if source else "",
            "sinkType": sink.type if sink else "",
            "sinkId": sink.id if sink else "",
        })
        return True

    traverse(graph, visit)
    return nodes
