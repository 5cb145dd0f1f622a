"""Execution scheduler - Runs single nodes and whole workflows.

``execute_all`` dispatches every executable node as soon as all of its
upstream executable dependencies have completed, polling while nodes are in
flight. Independent branches therefore overlap while dependent nodes always
start after their inputs are written.
"""

import asyncio
import logging

from mediaflow.adapters import create_adapters
from mediaflow.adapters.base import NodeAdapter
from mediaflow.collaborators.base import GenerationClient
from mediaflow.graph.store import GraphStore
from mediaflow.media.resolver import MediaResolver
from mediaflow.models.execution import ExecutionResult, Readiness, RunAllResult
from mediaflow.models.node import NodeKind
from mediaflow.services.dependency_resolver import build_dependency_map
from mediaflow.services.generation_tracker import GenerationTracker
from mediaflow.services.input_extractor import connected_inputs

logger = logging.getLogger(__name__)

# Pause before each dispatch so upstream writes are visible
DISPATCH_DELAY = 0.05  # seconds
# Wait between checks while nodes are still in flight
POLL_INTERVAL = 0.1  # seconds

DEADLOCK_MESSAGE = "Dependencies could not be satisfied"
STOPPED_MESSAGE = "Execution stopped by user"
ALREADY_EXECUTING_MESSAGE = "Workflow is already executing"


class ExecutionScheduler:
    """Dependency-aware executor bound to one graph store."""

    def __init__(
        self,
        store: GraphStore,
        client: GenerationClient,
        resolver: MediaResolver | None = None,
        tracker: GenerationTracker | None = None,
        dispatch_delay: float = DISPATCH_DELAY,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self.store = store
        self.tracker = tracker or GenerationTracker()
        self.adapters: dict[NodeKind, NodeAdapter] = create_adapters(
            store, client, resolver or MediaResolver()
        )
        self.dispatch_delay = dispatch_delay
        self.poll_interval = poll_interval

        self.is_executing = False
        self.executing_node_ids: set[str] = set()
        self.last_error: str | None = None
        self._abort: asyncio.Event | None = None

    # ==================== Single node ====================

    def can_execute(self, node_id: str) -> Readiness:
        """Check whether a node's connected inputs are enough to run it."""
        node = self.store.get_node(node_id)
        if node is None:
            return Readiness(can_execute=False, reason="Node not found")

        adapter = self.adapters.get(node.kind)
        if adapter is None:
            return Readiness(
                can_execute=False, reason="Node type does not support execution"
            )
        inputs = connected_inputs(node_id, self.store.nodes, self.store.edges)
        return adapter.readiness(node, inputs)

    async def execute_node(self, node_id: str) -> ExecutionResult:
        """Run one node. Never raises; failures come back as a result."""
        node = self.store.get_node(node_id)
        if node is None:
            return ExecutionResult.failure("Node not found")

        adapter = self.adapters.get(node.kind)
        if adapter is None:
            return ExecutionResult.failure(
                f'Node type "{node.kind.value}" does not support execution'
            )

        self.executing_node_ids.add(node_id)
        self.tracker.add(node_id, node.kind.value)
        try:
            inputs = connected_inputs(node_id, self.store.nodes, self.store.edges)
            result = await adapter.execute(node, inputs)
        except Exception as e:
            logger.exception(f"Unexpected error executing node {node_id}: {e}")
            result = ExecutionResult.failure(str(e) or "Execution failed")
        finally:
            self.executing_node_ids.discard(node_id)
            self.tracker.remove(node_id)

        self.last_error = None if result.success else result.error
        return result

    # ==================== Whole workflow ====================

    def stop(self) -> None:
        """Stop launching nodes and clear every ``isGenerating`` flag.

        Calls already in flight are not interrupted; their results are
        ignored by the running ``execute_all``.
        """
        if self._abort is not None:
            self._abort.set()
        reset = self.store.reset_generating_flags()
        self.tracker.clear()
        self.last_error = STOPPED_MESSAGE
        logger.info(f"Execution stopped, reset {len(reset)} generating node(s)")

    def _stopped_result(
        self, completed: set[str], failed: set[str], errors: list[str]
    ) -> RunAllResult:
        self.store.reset_generating_flags()
        self.last_error = STOPPED_MESSAGE
        return RunAllResult(
            success=False,
            completed=set(completed),
            failed=set(failed),
            errors=list(errors),
            stopped=True,
        )

    async def execute_all(self) -> RunAllResult:
        """Run every executable node in dependency order.

        A node is dispatched as soon as all of its upstream executable nodes
        have completed. Only one run may be active per scheduler; a second
        call while one is executing returns a failed result immediately.

        Returns:
            Aggregate outcome. ``errors`` holds ``"<node_id>: <message>"``
            entries; a failed branch never stops independent ones.
        """
        if self.is_executing:
            logger.warning("execute_all called while a run is already executing")
            return RunAllResult(success=False, errors=[ALREADY_EXECUTING_MESSAGE])

        nodes = self.store.nodes
        edges = self.store.edges
        dependencies = build_dependency_map(nodes, edges)
        if not dependencies:
            return RunAllResult(success=True)

        order = [node.id for node in nodes if node.id in dependencies]
        completed: set[str] = set()
        failed: set[str] = set()
        executing: set[str] = set()
        errors: list[str] = []
        tasks: list[asyncio.Task] = []
        abort = asyncio.Event()

        self._abort = abort
        self.is_executing = True
        self.last_error = None
        logger.info(f"Executing workflow with {len(order)} executable node(s)")

        def is_ready(node_id: str) -> bool:
            if node_id in completed or node_id in failed or node_id in executing:
                return False
            return dependencies[node_id] <= completed

        async def execute_and_track(node_id: str) -> None:
            try:
                await asyncio.sleep(self.dispatch_delay)
                if abort.is_set():
                    return
                result = await self.execute_node(node_id)
                if abort.is_set():
                    return
                if result.success:
                    completed.add(node_id)
                else:
                    failed.add(node_id)
                    errors.append(f"{node_id}: {result.error or 'Unknown error'}")
            finally:
                executing.discard(node_id)

        try:
            while len(completed) + len(failed) < len(order):
                if abort.is_set():
                    break

                ready = [node_id for node_id in order if is_ready(node_id)]
                if not ready:
                    if executing:
                        await asyncio.sleep(self.poll_interval)
                        continue
                    remaining = [
                        node_id
                        for node_id in order
                        if node_id not in completed and node_id not in failed
                    ]
                    logger.warning(
                        f"Deadlock: {len(remaining)} node(s) have unsatisfiable dependencies"
                    )
                    for node_id in remaining:
                        failed.add(node_id)
                        errors.append(f"{node_id}: {DEADLOCK_MESSAGE}")
                    break

                logger.debug(f"Dispatching {len(ready)} node(s)")
                for node_id in ready:
                    executing.add(node_id)
                    tasks.append(asyncio.create_task(execute_and_track(node_id)))

            # In-flight calls settle before the run returns
            await asyncio.gather(*tasks)

            if abort.is_set():
                return self._stopped_result(completed, failed, errors)
        finally:
            self.is_executing = False
            self._abort = None

        self.last_error = "; ".join(errors) if errors else None
        result = RunAllResult(
            success=not failed,
            completed=completed,
            failed=failed,
            errors=errors,
        )
        logger.info(
            f"Workflow finished: {result.completed_count} completed, "
            f"{result.failed_count} failed"
        )
        return result
