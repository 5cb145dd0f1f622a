"""Tests for editing sessions and the generation tracker."""

from datetime import datetime, timedelta

import pytest

from mediaflow.models.changes import NodePositionChange
from mediaflow.models.node import NodeKind, Position
from mediaflow.services.generation_tracker import GenerationTracker


class TestGenerationTracker:
    """Tests for GenerationTracker."""

    def test_add_remove(self):
        tracker = GenerationTracker("wf-1")
        tracker.add("n1", "kling26")
        tracker.add("n2", "videoTrim")

        assert tracker.is_executing
        assert tracker.executing_node_ids() == {"n1", "n2"}
        assert tracker.pending()[0].workflow_id == "wf-1"

        tracker.remove("n1")
        tracker.remove("missing")
        assert tracker.executing_node_ids() == {"n2"}

    def test_clear(self):
        tracker = GenerationTracker()
        tracker.add("n1", "kling26")
        tracker.clear()
        assert not tracker.is_executing
        assert tracker.pending_count == 0


class TestSessionManager:
    """Tests for SessionManager."""

    def test_sessions_are_isolated(self, session_manager):
        a = session_manager.create_session(name="A")
        b = session_manager.create_session(name="B")
        a.store.add_node(NodeKind.PROMPT)

        assert len(a.store.nodes) == 1
        assert b.store.nodes == []
        assert a.tracker is not b.tracker
        assert session_manager.active_session_count == 2

    def test_info(self, session_manager):
        session = session_manager.create_session(workflow_id="wf-9", name="Named")
        info = session.info()
        assert info["workflow_id"] == "wf-9"
        assert info["name"] == "Named"
        assert info["is_executing"] is False
        assert info["executing_node_ids"] == []

    @pytest.mark.asyncio
    async def test_close_session(self, session_manager):
        session = session_manager.create_session()
        assert await session_manager.close_session(session.session_id) is True
        assert await session_manager.close_session(session.session_id) is False
        assert session_manager.get_session(session.session_id) is None

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, session_manager):
        idle = session_manager.create_session()
        busy = session_manager.create_session()
        fresh = session_manager.create_session()
        long_ago = datetime.now() - timedelta(hours=2)
        idle.last_activity = long_ago
        busy.last_activity = long_ago
        busy.scheduler.is_executing = True

        assert await session_manager.cleanup_expired() == 1

        remaining = {s["session_id"] for s in session_manager.list_sessions()}
        assert remaining == {busy.session_id, fresh.session_id}

    @pytest.mark.asyncio
    async def test_shutdown_closes_everything(self, session_manager):
        session_manager.create_session()
        session_manager.create_session()
        await session_manager.start_cleanup_task()

        await session_manager.shutdown()

        assert session_manager.active_session_count == 0

    @pytest.mark.asyncio
    async def test_close_commits_pending_history(self, session_manager):
        session = session_manager.create_session()
        node = session.store.add_node(NodeKind.PROMPT)
        session.store.apply_node_changes(
            [NodePositionChange(id=node.id, position=Position(x=40, y=0), dragging=True)]
        )
        assert session.store.has_pending_save

        await session.close()

        assert not session.store.has_pending_save
        assert session.store.history.current.nodes[0].position.x == 40
