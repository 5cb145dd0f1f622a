"""Copy/paste of node selections within a graph store."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from mediaflow.graph.store import GraphStore, generate_id
from mediaflow.models.edge import Edge
from mediaflow.models.node import Node

logger = logging.getLogger(__name__)

DEFAULT_PASTE_OFFSET = (50.0, 50.0)

# Generated media never travels with a paste
_CLEARED_MEDIA_FIELDS = ("image_url", "video_url")


@dataclass(frozen=True)
class ClipboardPayload:
    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]


def _clear_generated_media(node: Node) -> Node:
    fields = type(node.data).model_fields
    updates: dict[str, object] = {"is_generating": False}
    for name in _CLEARED_MEDIA_FIELDS:
        if name in fields:
            updates[name] = None
    return node.with_data(updates)


class ClipboardManager:
    """Holds one copied selection and pastes fresh copies of it."""

    def __init__(self, store: GraphStore) -> None:
        self._store = store
        self._payload: ClipboardPayload | None = None

    @property
    def has_data(self) -> bool:
        return self._payload is not None

    @property
    def payload(self) -> ClipboardPayload | None:
        return self._payload

    def copy(self, selected_node_ids: Iterable[str]) -> bool:
        """Copy the selected nodes and the edges fully inside the selection.

        Returns False (and keeps the previous payload) when nothing is selected.
        """
        selection = set(selected_node_ids)
        if not selection:
            return False

        nodes = tuple(n for n in self._store.nodes if n.id in selection)
        if not nodes:
            return False
        edges = tuple(
            e
            for e in self._store.edges
            if e.source in selection and e.target in selection
        )
        self._payload = ClipboardPayload(nodes=nodes, edges=edges)
        logger.debug(f"Copied {len(nodes)} node(s) and {len(edges)} edge(s)")
        return True

    def paste(
        self, offset: tuple[float, float] = DEFAULT_PASTE_OFFSET
    ) -> tuple[list[Node], list[Edge]]:
        """Insert a fresh copy of the clipboard into the store.

        Returns the pasted nodes and edges; both lists are empty when the
        clipboard is empty.
        """
        if self._payload is None:
            return [], []

        dx, dy = offset
        id_map: dict[str, str] = {}
        new_nodes: list[Node] = []
        for node in self._payload.nodes:
            new_id = generate_id("node")
            id_map[node.id] = new_id
            copied = _clear_generated_media(node).model_copy(
                update={
                    "id": new_id,
                    "position": node.position.offset(dx, dy),
                    "selected": True,
                }
            )
            new_nodes.append(copied)

        new_edges: list[Edge] = []
        for edge in self._payload.edges:
            if edge.source not in id_map or edge.target not in id_map:
                continue
            new_edges.append(
                edge.model_copy(
                    update={
                        "id": generate_id("edge"),
                        "source": id_map[edge.source],
                        "target": id_map[edge.target],
                        "selected": False,
                    }
                )
            )

        self._store.add_subgraph(new_nodes, new_edges)
        logger.debug(f"Pasted {len(new_nodes)} node(s) and {len(new_edges)} edge(s)")
        return new_nodes, new_edges
