"""Tests for GraphStore change application and history integration."""

import asyncio

import pytest

from mediaflow.graph.store import GraphStore
from mediaflow.models.changes import (
    EdgeAddChange,
    EdgeRemoveChange,
    NodePositionChange,
    NodeRemoveChange,
    NodeSelectChange,
)
from mediaflow.models.edge import Connection, Edge
from mediaflow.models.node import Node, NodeKind, Position, PromptNodeData, default_node_data


def _connect(store: GraphStore, source: str, target: str, source_handle: str, target_handle: str):
    return store.connect(
        Connection(
            source=source,
            target=target,
            source_handle=source_handle,
            target_handle=target_handle,
        )
    )


@pytest.fixture
def pipeline(store):
    """prompt -> kling <- image, kling -> concat"""
    prompt = store.add_node(NodeKind.PROMPT)
    image = store.add_node(NodeKind.IMAGE_INPUT)
    kling = store.add_node(NodeKind.KLING_26)
    concat = store.add_node(NodeKind.VIDEO_CONCAT)
    _connect(store, prompt.id, kling.id, "prompt", "prompt")
    _connect(store, image.id, kling.id, "image", "image")
    _connect(store, kling.id, concat.id, "video", "video1")
    return {"prompt": prompt, "image": image, "kling": kling, "concat": concat}


class TestNodeOperations:
    """Tests for adding, updating and deleting nodes."""

    def test_add_node_uses_kind_defaults(self, store):
        node = store.add_node(NodeKind.KLING_26)
        assert node.data.label == "Kling 2.6 Pro"
        assert node.data.aspect_ratio == "16:9"
        assert node.position == Position(x=250, y=250)
        assert store.get_node(node.id) == node
        assert store.can_undo

    def test_ids_are_unique(self, store):
        ids = {store.add_node(NodeKind.PROMPT).id for _ in range(20)}
        assert len(ids) == 20

    def test_delete_cascades_to_edges(self, store, pipeline):
        assert len(store.edges) == 3

        assert store.delete_node(pipeline["kling"].id) is True

        assert {n.id for n in store.nodes} == {
            pipeline["prompt"].id,
            pipeline["image"].id,
            pipeline["concat"].id,
        }
        assert store.edges == []

    def test_delete_is_one_undo_step(self, store, pipeline):
        store.delete_node(pipeline["kling"].id)
        store.undo()
        assert len(store.nodes) == 4
        assert len(store.edges) == 3

    def test_delete_unknown_node(self, store):
        assert store.delete_node("missing") is False

    def test_delete_clears_selection(self):
        selections = []
        store = GraphStore(on_node_select=selections.append)
        node = store.add_node(NodeKind.PROMPT)
        store.select_node(node.id)

        store.delete_node(node.id)
        assert store.selected_node_id is None
        assert selections == [node.id, None]

    def test_update_node_data_merges(self, store):
        node = store.add_node(NodeKind.PROMPT)
        updated = store.update_node_data(node.id, {"prompt": "a red fox"})
        assert updated.data.prompt == "a red fox"
        assert updated.data.label == "Prompt"
        assert store.get_node(node.id).data.prompt == "a red fox"

    def test_update_unknown_node(self, store):
        assert store.update_node_data("missing", {"prompt": "x"}) is None

    def test_transient_update_skips_history(self, store):
        node = store.add_node(NodeKind.KLING_26)
        before = len(store.history)
        store.update_node_data(node.id, {"is_generating": True}, record_history=False)
        assert len(store.history) == before

    def test_reset_generating_flags(self, store):
        a = store.add_node(NodeKind.KLING_26)
        b = store.add_node(NodeKind.WAN_26)
        store.update_node_data(a.id, {"is_generating": True}, record_history=False)

        assert store.reset_generating_flags() == [a.id]
        assert not store.get_node(a.id).data.is_generating
        assert not store.get_node(b.id).data.is_generating


class TestConnect:
    """Tests for connection validation."""

    def test_compatible_connection(self, store):
        prompt = store.add_node(NodeKind.PROMPT)
        kling = store.add_node(NodeKind.KLING_26)
        edges = _connect(store, prompt.id, kling.id, "prompt", "prompt")
        assert len(edges) == 1
        assert edges[0].id.startswith("edge-")
        assert edges[0].source_handle == "prompt"

    def test_incompatible_handles_rejected(self, store):
        prompt = store.add_node(NodeKind.PROMPT)
        kling = store.add_node(NodeKind.KLING_26)
        assert _connect(store, prompt.id, kling.id, "prompt", "image") is None
        assert store.edges == []

    def test_self_loop_rejected(self, store):
        concat = store.add_node(NodeKind.VIDEO_CONCAT)
        assert _connect(store, concat.id, concat.id, "video", "video1") is None

    def test_unknown_endpoint_rejected(self, store):
        prompt = store.add_node(NodeKind.PROMPT)
        assert _connect(store, prompt.id, "missing", "prompt", "prompt") is None

    def test_occupied_target_handle_rejected(self, store):
        a = store.add_node(NodeKind.PROMPT)
        b = store.add_node(NodeKind.PROMPT)
        kling = store.add_node(NodeKind.KLING_26)
        _connect(store, a.id, kling.id, "prompt", "prompt")
        assert _connect(store, b.id, kling.id, "prompt", "prompt") is None
        assert len(store.edges) == 1


class TestChangeSets:
    """Tests for batched node and edge changes."""

    def test_remove_change_cascades(self, store, pipeline):
        store.apply_node_changes([NodeRemoveChange(id=pipeline["prompt"].id)])
        assert len(store.nodes) == 3
        assert all(not e.touches(pipeline["prompt"].id) for e in store.edges)
        assert len(store.edges) == 2

    def test_select_change_has_no_history(self, store):
        node = store.add_node(NodeKind.PROMPT)
        before = len(store.history)
        store.apply_node_changes([NodeSelectChange(id=node.id, selected=True)])
        assert store.get_node(node.id).selected
        assert len(store.history) == before

    def test_edge_with_missing_endpoint_ignored(self, store):
        node = store.add_node(NodeKind.PROMPT)
        edge = Edge(id="e1", source=node.id, target="missing")
        assert store.apply_edge_changes([EdgeAddChange(item=edge)]) == []

    def test_edge_add_and_remove(self, store):
        a = store.add_node(NodeKind.PROMPT)
        b = store.add_node(NodeKind.KLING_26)
        edge = Edge(id="e1", source=a.id, target=b.id, source_handle="prompt", target_handle="prompt")

        store.apply_edge_changes([EdgeAddChange(item=edge)])
        assert [e.id for e in store.edges] == ["e1"]
        store.apply_edge_changes([EdgeRemoveChange(id="e1")])
        assert store.edges == []

    def test_position_change_without_loop_saves_immediately(self, store):
        node = store.add_node(NodeKind.PROMPT)
        before = len(store.history)
        store.apply_node_changes(
            [NodePositionChange(id=node.id, position=Position(x=10, y=20))]
        )
        assert store.get_node(node.id).position == Position(x=10, y=20)
        assert len(store.history) == before + 1

    @pytest.mark.asyncio
    async def test_position_changes_are_debounced(self, store):
        node = store.add_node(NodeKind.PROMPT)
        before = len(store.history)

        for x in range(5):
            store.apply_node_changes(
                [NodePositionChange(id=node.id, position=Position(x=x, y=0), dragging=True)]
            )
            await asyncio.sleep(0.01)

        assert store.has_pending_save
        assert len(store.history) == before

        await asyncio.sleep(0.1)
        assert not store.has_pending_save
        assert len(store.history) == before + 1
        assert store.history.current.nodes[0].position.x == 4

    @pytest.mark.asyncio
    async def test_structural_change_flushes_pending_drag(self, store):
        node = store.add_node(NodeKind.PROMPT)
        before = len(store.history)
        store.apply_node_changes(
            [NodePositionChange(id=node.id, position=Position(x=99, y=0))]
        )
        store.add_node(NodeKind.VIDEO)

        assert not store.has_pending_save
        # The drag and the add are separate undo steps
        assert len(store.history) == before + 2
        store.undo()
        assert len(store.nodes) == 1
        assert store.nodes[0].position.x == 99


class TestUndoRedo:
    """Tests for undo/redo through the store."""

    def test_round_trip(self, store):
        store.add_node(NodeKind.PROMPT)
        store.add_node(NodeKind.VIDEO)
        after_two = store.nodes

        assert store.undo() is True
        assert len(store.nodes) == 1
        assert store.redo() is True
        assert store.nodes == after_two

    def test_undo_does_not_grow_history(self, store):
        store.add_node(NodeKind.PROMPT)
        store.add_node(NodeKind.VIDEO)
        size = len(store.history)
        store.undo()
        store.redo()
        assert len(store.history) == size

    def test_edit_after_undo_discards_redo(self, store):
        store.add_node(NodeKind.PROMPT)
        store.add_node(NodeKind.VIDEO)
        store.undo()
        store.add_node(NodeKind.OUTPUT)

        assert not store.can_redo
        assert store.redo() is False
        assert [n.kind for n in store.nodes] == [NodeKind.PROMPT, NodeKind.OUTPUT]

    def test_undo_on_empty_history(self, store):
        assert store.undo() is False

    @pytest.mark.asyncio
    async def test_undo_after_parallel_run_has_no_generating_flags(
        self, store, scheduler, fake_client
    ):
        fake_client.delay = 0.02
        for text in ("left frame", "right frame"):
            prompt = store.add_node(NodeKind.PROMPT)
            store.update_node_data(prompt.id, {"prompt": text})
            nano = store.add_node(NodeKind.NANO_BANANA_PRO)
            _connect(store, prompt.id, nano.id, "prompt", "prompt")

        result = await scheduler.execute_all()
        assert result.success
        left_start, left_end = fake_client.windows("left frame")
        right_start, right_end = fake_client.windows("right frame")
        assert left_start < right_end and right_start < left_end

        assert store.undo() is True
        assert [n.id for n in store.nodes if n.data.is_generating] == []
        assert all(not n.data.is_generating for n in store.history.current.nodes)

    def test_undo_keeps_flag_of_node_in_flight(self, store):
        kling = store.add_node(NodeKind.KLING_26)
        store.update_node_data(kling.id, {"is_generating": True}, record_history=False)
        store.add_node(NodeKind.PROMPT)

        assert store.undo() is True
        assert store.get_node(kling.id).data.is_generating
        assert not store.history.current.nodes[0].data.is_generating


class TestWholeGraph:
    """Tests for reset and load."""

    def test_reset(self, store, pipeline):
        store.reset()
        assert store.nodes == []
        assert store.edges == []
        assert not store.can_undo

    def test_load_drops_dangling_edges(self, store):
        node = Node(id="p1", kind=NodeKind.PROMPT, data=PromptNodeData())
        good = Edge(id="e1", source="p1", target="p1")
        dangling = Edge(id="e2", source="p1", target="gone")

        store.load([node], [good, dangling])
        assert [e.id for e in store.edges] == ["e1"]
        assert not store.can_undo

    def test_select_all(self, store):
        store.add_node(NodeKind.PROMPT)
        store.add_node(NodeKind.VIDEO)
        store.select_all()
        assert len(store.selected_node_ids()) == 2

    def test_load_clears_generating_flags(self, store):
        node = Node(
            id="k1",
            kind=NodeKind.KLING_26,
            data=default_node_data(NodeKind.KLING_26).model_copy(
                update={"is_generating": True}
            ),
        )

        store.load([node], [])
        assert not store.get_node("k1").data.is_generating
        assert not store.history.current.nodes[0].data.is_generating
