"""Workflow editing sessions and their lifecycle.

A session owns everything scoped to one open workflow: the graph store with
its history, the clipboard, the generation tracker and the scheduler.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from mediaflow.collaborators.base import GenerationClient
from mediaflow.graph.clipboard import ClipboardManager
from mediaflow.graph.store import GraphStore
from mediaflow.media.resolver import MediaResolver
from mediaflow.services.generation_tracker import GenerationTracker
from mediaflow.services.scheduler import ExecutionScheduler

logger = logging.getLogger(__name__)

# Singleton manager instance
_manager: "SessionManager | None" = None


class WorkflowSession:
    """One open workflow being edited and run."""

    def __init__(
        self,
        client: GenerationClient,
        resolver: MediaResolver | None = None,
        workflow_id: str | None = None,
        name: str = "Untitled Workflow",
        **scheduler_options: Any,
    ) -> None:
        self.session_id = str(uuid.uuid4())
        self.workflow_id = workflow_id
        self.name = name
        self.created_at = datetime.now()
        self.last_activity = self.created_at

        self.store = GraphStore()
        self.clipboard = ClipboardManager(self.store)
        self.tracker = GenerationTracker(workflow_id)
        self.scheduler = ExecutionScheduler(
            self.store,
            client,
            resolver=resolver,
            tracker=self.tracker,
            **scheduler_options,
        )

    def touch(self) -> None:
        self.last_activity = datetime.now()

    def info(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "workflow_id": self.workflow_id,
            "name": self.name,
            "node_count": len(self.store.nodes),
            "edge_count": len(self.store.edges),
            "can_undo": self.store.can_undo,
            "can_redo": self.store.can_redo,
            "is_executing": self.scheduler.is_executing,
            "executing_node_ids": sorted(self.tracker.executing_node_ids()),
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }

    async def close(self) -> None:
        """Stop any running workflow and commit pending history saves."""
        if self.scheduler.is_executing:
            self.scheduler.stop()
        self.store.flush_pending_history()


class SessionManager:
    """Manages workflow session lifecycle.

    Sessions live in memory only and are dropped after a period of
    inactivity.
    """

    def __init__(
        self,
        client_factory: Callable[[], GenerationClient],
        resolver: MediaResolver | None = None,
        session_timeout_minutes: int = 60,
    ):
        """Initialize the session manager.

        Args:
            client_factory: Returns the generation client for new sessions.
            resolver: Media resolver shared by all sessions.
            session_timeout_minutes: How long idle sessions live before cleanup.
        """
        self._client_factory = client_factory
        self._resolver = resolver or MediaResolver()
        self._sessions: dict[str, WorkflowSession] = {}
        self._session_timeout = timedelta(minutes=session_timeout_minutes)
        self._cleanup_task: asyncio.Task | None = None

    @property
    def active_session_count(self) -> int:
        return len(self._sessions)

    def create_session(
        self,
        workflow_id: str | None = None,
        name: str = "Untitled Workflow",
    ) -> WorkflowSession:
        session = WorkflowSession(
            self._client_factory(),
            resolver=self._resolver,
            workflow_id=workflow_id,
            name=name,
        )
        self._sessions[session.session_id] = session
        logger.info(
            f"Created session {session.session_id} "
            f"(total sessions: {len(self._sessions)})"
        )
        return session

    def get_session(self, session_id: str) -> WorkflowSession | None:
        session = self._sessions.get(session_id)
        if session:
            session.touch()
        return session

    def list_sessions(self) -> list[dict[str, Any]]:
        return [s.info() for s in self._sessions.values()]

    async def close_session(self, session_id: str) -> bool:
        """Close and remove a session.

        Returns:
            True if session was found and closed, False otherwise.
        """
        session = self._sessions.pop(session_id, None)
        if session:
            await session.close()
            logger.info(f"Closed session {session_id}")
            return True
        return False

    async def cleanup_expired(self) -> int:
        """Close sessions that have been idle too long.

        Sessions with a run in progress are kept.

        Returns:
            Number of sessions cleaned up.
        """
        now = datetime.now()
        expired_ids = [
            sid
            for sid, s in self._sessions.items()
            if now - s.last_activity > self._session_timeout
            and not s.scheduler.is_executing
        ]

        for session_id in expired_ids:
            await self.close_session(session_id)

        if expired_ids:
            logger.info(f"Cleaned up {len(expired_ids)} expired session(s)")

        return len(expired_ids)

    async def start_cleanup_task(self) -> None:
        """Start the background cleanup task."""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("Started session cleanup background task")

    async def stop_cleanup_task(self) -> None:
        """Stop the background cleanup task."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            logger.info("Stopped session cleanup background task")

    async def _cleanup_loop(self) -> None:
        """Background loop that cleans up expired sessions."""
        while True:
            try:
                await asyncio.sleep(60)  # Check every minute
                await self.cleanup_expired()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception(f"Error in session cleanup task: {e}")

    async def shutdown(self) -> None:
        """Shutdown the manager and close all sessions."""
        await self.stop_cleanup_task()
        for session_id in list(self._sessions):
            await self.close_session(session_id)
        logger.info("Session manager shutdown complete")


def get_session_manager() -> SessionManager:
    """Get the singleton session manager instance."""
    global _manager
    if _manager is None:
        from mediaflow.collaborators.http import get_generation_client

        _manager = SessionManager(client_factory=get_generation_client)
    return _manager


async def init_session_manager() -> SessionManager:
    """Initialize the session manager and start background tasks."""
    manager = get_session_manager()
    await manager.start_cleanup_task()
    return manager


async def shutdown_session_manager() -> None:
    """Shutdown the session manager."""
    global _manager
    if _manager:
        await _manager.shutdown()
        _manager = None
