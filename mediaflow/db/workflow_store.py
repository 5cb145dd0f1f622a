"""WorkflowStore - Persistence for named workflow graphs."""

import json
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

import aiosqlite

from mediaflow.db.database import get_db
from mediaflow.models.edge import Edge
from mediaflow.models.node import Node
from mediaflow.models.workflow import SavedWorkflow, WorkflowSummary


def _generate_id() -> str:
    """Generate a unique ID."""
    return str(uuid.uuid4())


def _now() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def _dump_nodes(nodes: Sequence[Node]) -> str:
    # Selection and in-flight flags are session state, not part of the workflow
    return json.dumps(
        [
            node.model_copy(update={"selected": False})
            .with_data({"is_generating": False})
            .model_dump(mode="json", by_alias=True)
            for node in nodes
        ]
    )


def _dump_edges(edges: Sequence[Edge]) -> str:
    return json.dumps(
        [
            edge.model_copy(update={"selected": False}).model_dump(
                mode="json", by_alias=True
            )
            for edge in edges
        ]
    )


def _row_to_workflow(row: aiosqlite.Row) -> SavedWorkflow:
    return SavedWorkflow(
        id=row["id"],
        name=row["name"],
        nodes=[Node.model_validate(n) for n in json.loads(row["nodes_json"])],
        edges=[Edge.model_validate(e) for e in json.loads(row["edges_json"])],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class WorkflowStore:
    """Storage for saved ``(nodes, edges)`` workflows."""

    async def save_workflow(
        self,
        name: str,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        workflow_id: str | None = None,
    ) -> SavedWorkflow:
        """Insert a new workflow, or overwrite ``workflow_id`` if it exists."""
        db = await get_db()
        now = _now()
        nodes_json = _dump_nodes(nodes)
        edges_json = _dump_edges(edges)

        if workflow_id is not None:
            cursor = await db.execute(
                """
                UPDATE workflows
                SET name = ?, nodes_json = ?, edges_json = ?, updated_at = ?
                WHERE id = ?
                """,
                (name, nodes_json, edges_json, now, workflow_id),
            )
            if cursor.rowcount > 0:
                await db.commit()
                saved = await self.get_workflow(workflow_id)
                assert saved is not None
                return saved

        workflow_id = workflow_id or _generate_id()
        await db.execute(
            """
            INSERT INTO workflows (id, name, nodes_json, edges_json, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (workflow_id, name, nodes_json, edges_json, now, now),
        )
        await db.commit()

        return SavedWorkflow(
            id=workflow_id,
            name=name,
            nodes=json.loads(nodes_json),
            edges=json.loads(edges_json),
            created_at=now,
            updated_at=now,
        )

    async def get_workflow(self, workflow_id: str) -> SavedWorkflow | None:
        """Get a saved workflow by ID."""
        db = await get_db()
        cursor = await db.execute(
            """
            SELECT id, name, nodes_json, edges_json, created_at, updated_at
            FROM workflows WHERE id = ?
            """,
            (workflow_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_workflow(row)

    async def list_workflows(self) -> list[WorkflowSummary]:
        """List saved workflows, most recently updated first."""
        db = await get_db()
        cursor = await db.execute(
            """
            SELECT id, name, nodes_json, edges_json, updated_at
            FROM workflows ORDER BY updated_at DESC
            """
        )
        rows = await cursor.fetchall()
        return [
            WorkflowSummary(
                id=row["id"],
                name=row["name"],
                node_count=len(json.loads(row["nodes_json"])),
                edge_count=len(json.loads(row["edges_json"])),
                updated_at=row["updated_at"],
            )
            for row in rows
        ]

    async def delete_workflow(self, workflow_id: str) -> bool:
        """Delete a saved workflow."""
        db = await get_db()
        cursor = await db.execute(
            "DELETE FROM workflows WHERE id = ?",
            (workflow_id,),
        )
        await db.commit()
        return cursor.rowcount > 0


# Global store instance
workflow_store = WorkflowStore()
