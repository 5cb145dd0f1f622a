"""Tests for saved workflow persistence."""

import pytest

from mediaflow.db.workflow_store import WorkflowStore
from mediaflow.models.edge import Edge
from mediaflow.models.node import Node, NodeKind


@pytest.fixture
def workflows():
    return WorkflowStore()


def _graph():
    prompt = Node.model_validate(
        {"id": "p1", "type": "prompt", "data": {"prompt": "sunrise"}, "selected": True}
    )
    kling = Node.model_validate(
        {
            "id": "k1",
            "type": "kling26",
            "position": {"x": 300, "y": 40},
            "data": {"videoUrl": "https://cdn.test/v.mp4", "isGenerating": True},
        }
    )
    edge = Edge(id="e1", source="p1", target="k1", source_handle="prompt", target_handle="prompt")
    return [prompt, kling], [edge]


class TestWorkflowStore:
    """Tests for WorkflowStore."""

    @pytest.mark.asyncio
    async def test_save_and_get(self, workflows):
        nodes, edges = _graph()
        saved = await workflows.save_workflow("Sunrise", nodes, edges)

        loaded = await workflows.get_workflow(saved.id)
        assert loaded.name == "Sunrise"
        assert [n.id for n in loaded.nodes] == ["p1", "k1"]
        assert loaded.nodes[1].kind == NodeKind.KLING_26
        assert loaded.nodes[1].data.video_url == "https://cdn.test/v.mp4"
        assert loaded.nodes[1].position.x == 300
        assert loaded.edges[0].source_handle == "prompt"

    @pytest.mark.asyncio
    async def test_session_state_not_persisted(self, workflows):
        nodes, edges = _graph()
        saved = await workflows.save_workflow("Sunrise", nodes, edges)

        loaded = await workflows.get_workflow(saved.id)
        assert not loaded.nodes[0].selected
        assert not loaded.nodes[1].data.is_generating

    @pytest.mark.asyncio
    async def test_save_with_id_overwrites(self, workflows):
        nodes, edges = _graph()
        saved = await workflows.save_workflow("Draft", nodes, edges)

        updated = await workflows.save_workflow("Final", nodes[:1], [], workflow_id=saved.id)

        assert updated.id == saved.id
        assert updated.name == "Final"
        assert updated.created_at == saved.created_at
        assert len(await workflows.list_workflows()) == 1

    @pytest.mark.asyncio
    async def test_save_with_unknown_id_inserts(self, workflows):
        nodes, edges = _graph()
        saved = await workflows.save_workflow("Imported", nodes, edges, workflow_id="wf-fixed")
        assert saved.id == "wf-fixed"
        assert await workflows.get_workflow("wf-fixed") is not None

    @pytest.mark.asyncio
    async def test_list_has_counts(self, workflows):
        nodes, edges = _graph()
        await workflows.save_workflow("One", nodes, edges)
        await workflows.save_workflow("Two", nodes[:1], [])

        summaries = await workflows.list_workflows()
        assert {s.name: (s.node_count, s.edge_count) for s in summaries} == {
            "One": (2, 1),
            "Two": (1, 0),
        }

    @pytest.mark.asyncio
    async def test_delete(self, workflows):
        saved = await workflows.save_workflow("Gone", [], [])
        assert await workflows.delete_workflow(saved.id) is True
        assert await workflows.get_workflow(saved.id) is None
        assert await workflows.delete_workflow(saved.id) is False
