"""Upstream dependency discovery for the execution scheduler."""

from collections.abc import Sequence

from mediaflow.models.edge import Edge
from mediaflow.models.node import Node


def get_upstream_executable(
    node_id: str,
    nodes: Sequence[Node],
    edges: Sequence[Edge],
) -> set[str]:
    """Collect every executable node reachable backwards from ``node_id``.

    Traversal continues through non-executable nodes, so an executable two
    hops upstream behind a plain file node is still a dependency. Each node is
    visited once, which makes the walk safe on cyclic graphs.
    """
    by_id = {node.id: node for node in nodes}
    incoming: dict[str, list[str]] = {}
    for edge in edges:
        incoming.setdefault(edge.target, []).append(edge.source)

    upstream: set[str] = set()
    visited: set[str] = set()
    stack = [node_id]

    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)

        for source_id in incoming.get(current, []):
            source = by_id.get(source_id)
            if source is None:
                continue
            if source.is_executable:
                upstream.add(source.id)
            stack.append(source.id)

    return upstream


def build_dependency_map(
    nodes: Sequence[Node], edges: Sequence[Edge]
) -> dict[str, set[str]]:
    """Map each executable node id to its upstream executable dependencies."""
    return {
        node.id: get_upstream_executable(node.id, nodes, edges)
        for node in nodes
        if node.is_executable
    }
