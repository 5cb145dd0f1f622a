"""GraphStore - In-memory node/edge state for one editing session.

Every mutation replaces the node and edge collections in a single synchronous
step, so readers never observe a half-applied change. Mutations feed the
history manager: structural edits are snapshotted immediately, drags are
debounced so a continuous move becomes one undo step.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from mediaflow.graph.history import GraphSnapshot, HistoryManager
from mediaflow.models.changes import (
    STRUCTURAL_CHANGES,
    EdgeAddChange,
    EdgeChange,
    EdgeRemoveChange,
    EdgeSelectChange,
    NodeAddChange,
    NodeChange,
    NodePositionChange,
    NodeRemoveChange,
    NodeSelectChange,
)
from mediaflow.models.edge import Connection, Edge, is_compatible
from mediaflow.models.node import (
    BaseNodeData,
    Node,
    NodeKind,
    Position,
    default_node_data,
)

logger = logging.getLogger(__name__)

# Quiet period before a run of position changes is committed to history
HISTORY_DEBOUNCE_SECONDS = 0.3

DEFAULT_NODE_POSITION = Position(x=250, y=250)


def generate_id(prefix: str = "node") -> str:
    """Generate a unique node or edge ID."""
    return f"{prefix}-{uuid.uuid4()}"


class GraphStore:
    """Holds the current graph and applies change-sets to it."""

    def __init__(
        self,
        history: HistoryManager | None = None,
        on_node_select: Callable[[str | None], None] | None = None,
        debounce_seconds: float = HISTORY_DEBOUNCE_SECONDS,
    ) -> None:
        self._nodes: tuple[Node, ...] = ()
        self._edges: tuple[Edge, ...] = ()
        self.history = history or HistoryManager()
        self.selected_node_id: str | None = None
        self._on_node_select = on_node_select
        self._debounce_seconds = debounce_seconds
        self._pending_save: asyncio.TimerHandle | None = None

    # ==================== Read access ====================

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes)

    @property
    def edges(self) -> list[Edge]:
        return list(self._edges)

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(nodes=self._nodes, edges=self._edges)

    def get_node(self, node_id: str) -> Node | None:
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    def incoming_edges(self, node_id: str) -> list[Edge]:
        return [edge for edge in self._edges if edge.target == node_id]

    def outgoing_edges(self, node_id: str) -> list[Edge]:
        return [edge for edge in self._edges if edge.source == node_id]

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # ==================== History plumbing ====================

    def _commit(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
        self._nodes = tuple(nodes)
        self._edges = tuple(edges)

    def _save_history(self) -> None:
        self._cancel_pending_save()
        self.history.save(self._nodes, self._edges)

    def _cancel_pending_save(self) -> None:
        if self._pending_save is not None:
            self._pending_save.cancel()
            self._pending_save = None

    def _schedule_history_save(self) -> None:
        """Save after a quiet period, restarting the timer on every call."""
        self._cancel_pending_save()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop to debounce on
            self.history.save(self._nodes, self._edges)
            return
        self._pending_save = loop.call_later(
            self._debounce_seconds, self._flush_scheduled_save
        )

    def _flush_scheduled_save(self) -> None:
        self._pending_save = None
        self.history.save(self._nodes, self._edges)

    @property
    def has_pending_save(self) -> bool:
        return self._pending_save is not None

    def flush_pending_history(self) -> None:
        """Commit a debounced snapshot now, if one is waiting."""
        if self._pending_save is not None:
            self._save_history()

    # ==================== Change-sets ====================

    def apply_node_changes(self, changes: Sequence[NodeChange]) -> list[Node]:
        """Apply a batch of node changes and return the new node list.

        Removing a node also removes every edge touching it.
        """
        change_types = {change.change_type for change in changes}
        structural = bool(change_types & STRUCTURAL_CHANGES)
        if structural:
            self.flush_pending_history()

        nodes = list(self._nodes)
        edges = list(self._edges)

        for change in changes:
            if isinstance(change, NodeAddChange):
                if any(n.id == change.item.id for n in nodes):
                    logger.warning(f"Ignoring add for existing node {change.item.id}")
                    continue
                nodes.append(change.item)
            elif isinstance(change, NodeRemoveChange):
                nodes = [n for n in nodes if n.id != change.id]
                edges = [e for e in edges if not e.touches(change.id)]
            elif isinstance(change, NodePositionChange):
                if change.position is None:
                    continue
                nodes = [
                    n.model_copy(update={"position": change.position})
                    if n.id == change.id
                    else n
                    for n in nodes
                ]
            elif isinstance(change, NodeSelectChange):
                nodes = [
                    n.model_copy(update={"selected": change.selected})
                    if n.id == change.id
                    else n
                    for n in nodes
                ]

        self._commit(nodes, edges)

        if structural:
            self._save_history()
        elif "position" in change_types:
            self._schedule_history_save()

        return self.nodes

    def apply_edge_changes(self, changes: Sequence[EdgeChange]) -> list[Edge]:
        """Apply a batch of edge changes and return the new edge list."""
        change_types = {change.change_type for change in changes}
        structural = bool(change_types & STRUCTURAL_CHANGES)
        if structural:
            self.flush_pending_history()

        node_ids = {n.id for n in self._nodes}
        edges = list(self._edges)

        for change in changes:
            if isinstance(change, EdgeAddChange):
                edge = change.item
                if edge.source not in node_ids or edge.target not in node_ids:
                    logger.warning(f"Ignoring edge {edge.id} with missing endpoint")
                    continue
                if any(e.id == edge.id for e in edges):
                    continue
                edges.append(edge)
            elif isinstance(change, EdgeRemoveChange):
                edges = [e for e in edges if e.id != change.id]
            elif isinstance(change, EdgeSelectChange):
                edges = [
                    e.model_copy(update={"selected": change.selected})
                    if e.id == change.id
                    else e
                    for e in edges
                ]

        self._commit(self._nodes, edges)

        if structural:
            self._save_history()

        return self.edges

    def connect(self, connection: Connection) -> list[Edge] | None:
        """Create an edge if the handles are compatible.

        Returns the new edge list, or None when the connection is rejected.
        """
        node_ids = {n.id for n in self._nodes}
        if connection.source not in node_ids or connection.target not in node_ids:
            logger.debug(f"Rejected connection with unknown endpoint: {connection}")
            return None
        if connection.source == connection.target:
            logger.debug(f"Rejected self-connection on {connection.source}")
            return None
        if not is_compatible(connection.source_handle, connection.target_handle):
            logger.debug(
                f"Rejected connection {connection.source_handle} -> "
                f"{connection.target_handle}: incompatible handles"
            )
            return None
        for edge in self._edges:
            if (
                edge.target == connection.target
                and edge.target_handle == connection.target_handle
            ):
                logger.debug(
                    f"Rejected connection: {connection.target}.{connection.target_handle} "
                    f"is already connected"
                )
                return None

        self.flush_pending_history()
        edge = Edge(
            id=generate_id("edge"),
            source=connection.source,
            target=connection.target,
            source_handle=connection.source_handle,
            target_handle=connection.target_handle,
        )
        self._commit(self._nodes, [*self._edges, edge])
        self._save_history()
        return self.edges

    # ==================== Node operations ====================

    def add_node(
        self,
        kind: NodeKind,
        position: Position | None = None,
        data: BaseNodeData | dict[str, Any] | None = None,
    ) -> Node:
        """Add a node of ``kind`` with default data unless ``data`` is given."""
        node = Node(
            id=generate_id("node"),
            kind=kind,
            position=position or DEFAULT_NODE_POSITION,
            data=data if data is not None else default_node_data(kind),
        )
        self.apply_node_changes([NodeAddChange(item=node)])
        return node

    def delete_node(self, node_id: str) -> bool:
        """Remove a node and all edges touching it as one undoable step."""
        if self.get_node(node_id) is None:
            return False

        self.flush_pending_history()
        self._commit(
            (n for n in self._nodes if n.id != node_id),
            (e for e in self._edges if not e.touches(node_id)),
        )
        self._save_history()

        if self.selected_node_id == node_id:
            self.clear_selection()
        return True

    def update_node_data(
        self,
        node_id: str,
        updates: dict[str, Any],
        record_history: bool = True,
    ) -> Node | None:
        """Shallow-merge ``updates`` into a node's data.

        Args:
            node_id: The node to update
            updates: Field values keyed by attribute name or wire alias
            record_history: Snapshot the result. Only transient flags such as
                ``isGenerating`` are written without a snapshot.

        Returns:
            The updated node, or None if it does not exist
        """
        current = self.get_node(node_id)
        if current is None:
            return None

        updated = current.with_data(updates)
        self._commit(
            (updated if n.id == node_id else n for n in self._nodes),
            self._edges,
        )
        if record_history:
            self.flush_pending_history()
            self._save_history()
        return updated

    def reset_generating_flags(self) -> list[str]:
        """Force ``isGenerating`` off on every node. Returns the affected ids."""
        reset_ids = [n.id for n in self._nodes if n.data.is_generating]
        if reset_ids:
            self._commit(
                (
                    n.with_data({"is_generating": False}) if n.data.is_generating else n
                    for n in self._nodes
                ),
                self._edges,
            )
        return reset_ids

    def add_subgraph(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> None:
        """Insert nodes and edges, selecting only the inserted nodes."""
        self.flush_pending_history()
        existing = [n.model_copy(update={"selected": False}) for n in self._nodes]
        self._commit([*existing, *nodes], [*self._edges, *edges])
        self._save_history()

    # ==================== Selection ====================

    def select_node(self, node_id: str) -> None:
        self.selected_node_id = node_id
        if self._on_node_select:
            self._on_node_select(node_id)

    def clear_selection(self) -> None:
        self.selected_node_id = None
        if self._on_node_select:
            self._on_node_select(None)

    def select_all(self) -> None:
        self._commit(
            (n.model_copy(update={"selected": True}) for n in self._nodes),
            self._edges,
        )

    def selected_node_ids(self) -> list[str]:
        return [n.id for n in self._nodes if n.selected]

    # ==================== Undo / redo ====================

    def _restore(self, snapshot: GraphSnapshot) -> None:
        # Snapshots hold no generating flags; keep those of calls still in flight
        generating = {n.id for n in self._nodes if n.data.is_generating}
        self._commit(
            (
                n.with_data({"is_generating": True}) if n.id in generating else n
                for n in snapshot.nodes
            ),
            snapshot.edges,
        )
        # Consumed by the history manager's echo guard
        self.history.save(self._nodes, self._edges)

    def undo(self) -> bool:
        self._cancel_pending_save()
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    def redo(self) -> bool:
        self._cancel_pending_save()
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    # ==================== Whole-graph replacement ====================

    def reset(self) -> None:
        """Start a new, empty workflow."""
        self._cancel_pending_save()
        self._commit((), ())
        self.history.reset()
        self.clear_selection()

    def load(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> None:
        """Replace the graph with a saved one, dropping dangling edges."""
        self._cancel_pending_save()
        node_ids = {n.id for n in nodes}
        kept = [e for e in edges if e.source in node_ids and e.target in node_ids]
        if len(kept) != len(edges):
            logger.warning(f"Dropped {len(edges) - len(kept)} dangling edge(s) on load")
        initial = GraphSnapshot.of(nodes, kept)
        self._commit(initial.nodes, initial.edges)
        self.history.reset(initial)
        self.selected_node_id = None
