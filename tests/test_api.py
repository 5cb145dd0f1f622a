"""Tests for the HTTP API."""

import pytest

API = "/api/v1"


async def _create_session(client) -> str:
    response = await client.post(f"{API}/sessions", json={"name": "Test"})
    assert response.status_code == 201
    return response.json()["session_id"]


async def _add_node(client, session_id: str, kind: str, **data) -> dict:
    body = {"type": kind}
    if data:
        body["data"] = data
    response = await client.post(f"{API}/sessions/{session_id}/nodes", json=body)
    assert response.status_code == 201
    return response.json()


async def _connect(client, session_id, source, target, source_handle, target_handle):
    return await client.post(
        f"{API}/sessions/{session_id}/connect",
        json={
            "source": source,
            "target": target,
            "sourceHandle": source_handle,
            "targetHandle": target_handle,
        },
    )


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestSessions:
    """Tests for session endpoints."""

    @pytest.mark.asyncio
    async def test_create_get_delete(self, client):
        session_id = await _create_session(client)

        response = await client.get(f"{API}/sessions/{session_id}")
        assert response.status_code == 200
        assert response.json()["name"] == "Test"
        assert response.json()["node_count"] == 0

        listed = await client.get(f"{API}/sessions")
        assert [s["session_id"] for s in listed.json()] == [session_id]

        response = await client.delete(f"{API}/sessions/{session_id}")
        assert response.json() == {"deleted": True}
        response = await client.get(f"{API}/sessions/{session_id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_session(self, client):
        response = await client.get(f"{API}/sessions/missing/graph")
        assert response.status_code == 404
        assert response.json()["detail"] == "Session not found"


class TestGraphEditing:
    """Tests for graph editing endpoints."""

    @pytest.mark.asyncio
    async def test_add_node_with_data(self, client):
        session_id = await _create_session(client)
        node = await _add_node(client, session_id, "prompt", prompt="sunset")

        assert node["type"] == "prompt"
        assert node["data"]["prompt"] == "sunset"
        assert node["data"]["isGenerating"] is False

    @pytest.mark.asyncio
    async def test_add_node_with_bad_data(self, client):
        session_id = await _create_session(client)
        response = await client.post(
            f"{API}/sessions/{session_id}/nodes",
            json={"type": "prompt", "data": {"videoUrl": "x"}},
        )
        assert response.status_code == 400

        graph = await client.get(f"{API}/sessions/{session_id}/graph")
        assert graph.json()["nodes"] == []
        assert graph.json()["canUndo"] is False
        assert graph.json()["canRedo"] is False

    @pytest.mark.asyncio
    async def test_add_node_with_data_is_one_undo_step(self, client):
        session_id = await _create_session(client)
        await _add_node(client, session_id, "prompt", prompt="sunset")

        response = await client.post(f"{API}/sessions/{session_id}/undo")
        assert response.json()["nodes"] == []
        assert response.json()["canUndo"] is False

    @pytest.mark.asyncio
    async def test_connect_and_reject(self, client):
        session_id = await _create_session(client)
        prompt = await _add_node(client, session_id, "prompt")
        kling = await _add_node(client, session_id, "kling26")

        response = await _connect(client, session_id, prompt["id"], kling["id"], "prompt", "prompt")
        assert response.status_code == 200
        assert len(response.json()["edges"]) == 1
        assert response.json()["edges"][0]["targetHandle"] == "prompt"

        response = await _connect(client, session_id, prompt["id"], kling["id"], "prompt", "image")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_data(self, client):
        session_id = await _create_session(client)
        node = await _add_node(client, session_id, "videoTrim")

        response = await client.patch(
            f"{API}/sessions/{session_id}/nodes/{node['id']}/data",
            json={"startTime": 2, "endTime": 4},
        )
        assert response.status_code == 200
        assert response.json()["data"]["startTime"] == 2

        response = await client.patch(
            f"{API}/sessions/{session_id}/nodes/{node['id']}/data",
            json={"bogus": 1},
        )
        assert response.status_code == 400

        response = await client.patch(
            f"{API}/sessions/{session_id}/nodes/missing/data", json={"startTime": 1}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_change_batches(self, client):
        session_id = await _create_session(client)
        a = await _add_node(client, session_id, "prompt")
        b = await _add_node(client, session_id, "kling26")
        await _connect(client, session_id, a["id"], b["id"], "prompt", "prompt")

        response = await client.post(
            f"{API}/sessions/{session_id}/node-changes",
            json=[
                {"type": "position", "id": a["id"], "position": {"x": 5, "y": 6}},
                {"type": "select", "id": b["id"], "selected": True},
            ],
        )
        assert response.status_code == 200
        nodes = {n["id"]: n for n in response.json()["nodes"]}
        assert nodes[a["id"]]["position"] == {"x": 5, "y": 6}
        assert nodes[b["id"]]["selected"] is True

        response = await client.post(
            f"{API}/sessions/{session_id}/node-changes",
            json=[{"type": "remove", "id": a["id"]}],
        )
        assert [n["id"] for n in response.json()["nodes"]] == [b["id"]]
        assert response.json()["edges"] == []

    @pytest.mark.asyncio
    async def test_undo_redo(self, client):
        session_id = await _create_session(client)
        await _add_node(client, session_id, "prompt")

        response = await client.post(f"{API}/sessions/{session_id}/undo")
        assert response.json()["nodes"] == []
        assert response.json()["canRedo"] is True

        response = await client.post(f"{API}/sessions/{session_id}/redo")
        assert len(response.json()["nodes"]) == 1
        assert response.json()["canUndo"] is True

    @pytest.mark.asyncio
    async def test_delete_node(self, client):
        session_id = await _create_session(client)
        node = await _add_node(client, session_id, "prompt")

        response = await client.delete(f"{API}/sessions/{session_id}/nodes/{node['id']}")
        assert response.json() == {"deleted": True}
        response = await client.delete(f"{API}/sessions/{session_id}/nodes/{node['id']}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_copy_paste(self, client):
        session_id = await _create_session(client)
        a = await _add_node(client, session_id, "prompt")
        b = await _add_node(client, session_id, "kling26")
        await _connect(client, session_id, a["id"], b["id"], "prompt", "prompt")

        response = await client.post(
            f"{API}/sessions/{session_id}/copy", json={"nodeIds": [a["id"], b["id"]]}
        )
        assert response.json() == {"copied": True}

        response = await client.post(f"{API}/sessions/{session_id}/paste", json={})
        pasted = response.json()
        assert len(pasted["nodes"]) == 2
        assert len(pasted["edges"]) == 1
        assert {n["id"] for n in pasted["nodes"]}.isdisjoint({a["id"], b["id"]})

        graph = await client.get(f"{API}/sessions/{session_id}/graph")
        assert len(graph.json()["nodes"]) == 4

    @pytest.mark.asyncio
    async def test_select(self, client):
        session_id = await _create_session(client)
        node = await _add_node(client, session_id, "prompt")

        response = await client.post(
            f"{API}/sessions/{session_id}/select", json={"nodeId": node["id"]}
        )
        assert response.json()["selectedNodeId"] == node["id"]

        response = await client.post(f"{API}/sessions/{session_id}/select", json={})
        assert response.json()["selectedNodeId"] is None


class TestExecution:
    """Tests for execution endpoints."""

    @pytest.mark.asyncio
    async def test_can_execute_and_run(self, client, fake_client):
        session_id = await _create_session(client)
        prompt = await _add_node(client, session_id, "prompt", prompt="ocean")
        kling = await _add_node(client, session_id, "kling26")

        response = await client.get(
            f"{API}/sessions/{session_id}/nodes/{kling['id']}/can-execute"
        )
        assert response.json() == {"canExecute": False, "reason": "Connect a Prompt node"}

        await _connect(client, session_id, prompt["id"], kling["id"], "prompt", "prompt")
        response = await client.get(
            f"{API}/sessions/{session_id}/nodes/{kling['id']}/can-execute"
        )
        assert response.json()["canExecute"] is True

        response = await client.post(
            f"{API}/sessions/{session_id}/nodes/{kling['id']}/execute"
        )
        assert response.json()["success"] is True

        graph = await client.get(f"{API}/sessions/{session_id}/graph")
        node = next(n for n in graph.json()["nodes"] if n["id"] == kling["id"])
        assert node["data"]["videoUrl"].startswith("https://cdn.test/")
        assert node["data"]["isGenerating"] is False

    @pytest.mark.asyncio
    async def test_execute_all(self, client):
        session_id = await _create_session(client)
        prompt = await _add_node(client, session_id, "prompt", prompt="forest")
        kling = await _add_node(client, session_id, "kling26")
        trim = await _add_node(client, session_id, "videoTrim")
        await _connect(client, session_id, prompt["id"], kling["id"], "prompt", "prompt")
        await _connect(client, session_id, kling["id"], trim["id"], "video", "video")

        response = await client.post(f"{API}/sessions/{session_id}/execute-all")

        body = response.json()
        assert body["success"] is True
        assert body["completed"] == 2
        assert sorted(body["completedNodeIds"]) == sorted([kling["id"], trim["id"]])

        state = await client.get(f"{API}/sessions/{session_id}/execution")
        assert state.json() == {"isExecuting": False, "executingNodeIds": [], "error": None}

    @pytest.mark.asyncio
    async def test_stop_when_idle(self, client):
        session_id = await _create_session(client)
        response = await client.post(f"{API}/sessions/{session_id}/stop")
        assert response.status_code == 200
        assert response.json()["isExecuting"] is False


class TestWorkflows:
    """Tests for saving and opening workflows."""

    @pytest.mark.asyncio
    async def test_save_list_open_delete(self, client):
        session_id = await _create_session(client)
        prompt = await _add_node(client, session_id, "prompt", prompt="dunes")
        kling = await _add_node(client, session_id, "kling26")
        await _connect(client, session_id, prompt["id"], kling["id"], "prompt", "prompt")

        response = await client.post(
            f"{API}/sessions/{session_id}/save", json={"name": "Dunes"}
        )
        assert response.status_code == 200
        workflow_id = response.json()["id"]

        # Saving again overwrites the same workflow
        response = await client.post(
            f"{API}/sessions/{session_id}/save", json={"name": "Dunes v2"}
        )
        assert response.json()["id"] == workflow_id

        listed = (await client.get(f"{API}/workflows")).json()
        assert [(w["name"], w["node_count"], w["edge_count"]) for w in listed] == [
            ("Dunes v2", 2, 1)
        ]

        response = await client.post(f"{API}/workflows/{workflow_id}/open")
        assert response.status_code == 201
        opened = response.json()
        assert opened["workflow_id"] == workflow_id
        assert opened["node_count"] == 2
        assert opened["can_undo"] is False

        graph = await client.get(f"{API}/sessions/{opened['session_id']}/graph")
        assert len(graph.json()["edges"]) == 1

        response = await client.delete(f"{API}/workflows/{workflow_id}")
        assert response.json() == {"deleted": True}
        response = await client.get(f"{API}/workflows/{workflow_id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_open_unknown_workflow(self, client):
        response = await client.post(f"{API}/workflows/missing/open")
        assert response.status_code == 404
