"""Pending-generation tracking for one session.

Lets a client that reconnects (or a second view on the same session) see
which nodes still have generation calls in flight.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def _now() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class PendingGeneration:
    node_id: str
    kind: str
    workflow_id: str | None = None
    started_at: str = field(default_factory=_now)


class GenerationTracker:
    """Registry of nodes with an in-flight generation call."""

    def __init__(self, workflow_id: str | None = None) -> None:
        self.workflow_id = workflow_id
        self._pending: dict[str, PendingGeneration] = {}

    def add(self, node_id: str, kind: str) -> None:
        self._pending[node_id] = PendingGeneration(
            node_id=node_id, kind=kind, workflow_id=self.workflow_id
        )

    def remove(self, node_id: str) -> None:
        self._pending.pop(node_id, None)

    def clear(self) -> None:
        if self._pending:
            logger.debug(f"Clearing {len(self._pending)} pending generation(s)")
        self._pending.clear()

    @property
    def is_executing(self) -> bool:
        return bool(self._pending)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def executing_node_ids(self) -> set[str]:
        return set(self._pending)

    def pending(self) -> list[PendingGeneration]:
        return list(self._pending.values())
