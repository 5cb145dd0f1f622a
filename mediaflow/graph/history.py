"""Undo/redo history over immutable graph snapshots."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from mediaflow.models.edge import Edge
from mediaflow.models.node import Node

logger = logging.getLogger(__name__)

MAX_HISTORY_SIZE = 50


@dataclass(frozen=True)
class GraphSnapshot:
    """An immutable ``(nodes, edges)`` pair."""

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()

    @classmethod
    def of(cls, nodes: Sequence[Node], edges: Sequence[Edge]) -> "GraphSnapshot":
        """Snapshot a graph at rest. ``isGenerating`` is never recorded."""
        return cls(
            nodes=tuple(
                n.with_data({"is_generating": False}) if n.data.is_generating else n
                for n in nodes
            ),
            edges=tuple(edges),
        )


class HistoryManager:
    """Linear undo/redo stack with a cursor.

    The stack always holds at least one snapshot and ``cursor`` always points
    at a valid index. Pushing after an undo discards the redo branch.

    ``undo`` and ``redo`` arm a one-shot flag so that the store write that
    restores the snapshot does not push it back onto the stack.
    """

    def __init__(
        self,
        initial: GraphSnapshot | None = None,
        max_size: int = MAX_HISTORY_SIZE,
    ) -> None:
        self._max_size = max_size
        self._stack: list[GraphSnapshot] = [initial or GraphSnapshot()]
        self._cursor = 0
        self._suppress_next = False
        self.can_undo = False
        self.can_redo = False

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def current(self) -> GraphSnapshot:
        return self._stack[self._cursor]

    def _update_flags(self) -> None:
        self.can_undo = self._cursor > 0
        self.can_redo = self._cursor < len(self._stack) - 1

    def save(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> bool:
        """Push a snapshot. Returns False when the write was an undo/redo echo."""
        if self._suppress_next:
            self._suppress_next = False
            return False

        del self._stack[self._cursor + 1 :]
        self._stack.append(GraphSnapshot.of(nodes, edges))

        if len(self._stack) > self._max_size:
            evicted = len(self._stack) - self._max_size
            del self._stack[:evicted]

        self._cursor = len(self._stack) - 1
        self._update_flags()
        return True

    def undo(self) -> GraphSnapshot | None:
        """Step back one snapshot. Returns the snapshot to restore, if any."""
        if self._cursor == 0:
            return None
        self._suppress_next = True
        self._cursor -= 1
        self._update_flags()
        logger.debug(f"Undo to snapshot {self._cursor}/{len(self._stack) - 1}")
        return self._stack[self._cursor]

    def redo(self) -> GraphSnapshot | None:
        """Step forward one snapshot. Returns the snapshot to restore, if any."""
        if self._cursor == len(self._stack) - 1:
            return None
        self._suppress_next = True
        self._cursor += 1
        self._update_flags()
        logger.debug(f"Redo to snapshot {self._cursor}/{len(self._stack) - 1}")
        return self._stack[self._cursor]

    def reset(self, initial: GraphSnapshot | None = None) -> None:
        """Drop all history and start over from ``initial``."""
        self._stack = [initial or GraphSnapshot()]
        self._cursor = 0
        self._suppress_next = False
        self._update_flags()
