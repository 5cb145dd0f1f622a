"""Base node execution adapter.

Every executable node kind has one adapter. ``execute`` runs the shared
template and subclasses fill in the kind-specific steps:

1. ``validate`` - check connected inputs before anything is touched
2. ``build_request`` - resolve media references and normalize parameters
3. ``call`` - invoke the generation/edit collaborator
4. ``result_updates`` - node data to write back on success

``isGenerating`` is raised after validation and cleared on every exit path.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any, ClassVar

from pydantic import BaseModel

from mediaflow.collaborators.base import CollaboratorError, GenerationClient, MediaResult
from mediaflow.graph.store import GraphStore
from mediaflow.media.aspect_ratio import SUPPORTED_RATIOS, normalize_to_standard_ratio
from mediaflow.media.resolver import MediaConversionError, MediaResolver
from mediaflow.models.execution import ExecutionResult, Readiness
from mediaflow.models.node import Node, NodeKind
from mediaflow.services.input_extractor import ConnectedInput

logger = logging.getLogger(__name__)


class AdapterInputError(Exception):
    """An input could not be prepared; the message is shown to the user."""


class NodeAdapter(ABC):
    """Executes one kind of node against a generation collaborator."""

    kind: ClassVar[NodeKind]

    def __init__(
        self,
        store: GraphStore,
        client: GenerationClient,
        resolver: MediaResolver,
    ) -> None:
        self.store = store
        self.client = client
        self.resolver = resolver

    # =========================================================================
    # Abstract Methods (must implement)
    # =========================================================================

    @abstractmethod
    def readiness(self, node: Node, inputs: Sequence[ConnectedInput]) -> Readiness:
        """Whether the connected inputs are enough to run the node.

        This looks at connections only; upstream nodes may not have produced
        their media yet.
        """
        pass

    @abstractmethod
    def validate(self, node: Node, inputs: Sequence[ConnectedInput]) -> str | None:
        """Return a user-facing error if the node cannot run right now."""
        pass

    @abstractmethod
    async def build_request(
        self, node: Node, inputs: Sequence[ConnectedInput]
    ) -> BaseModel:
        """Build the normalized collaborator request.

        Raises:
            AdapterInputError: If a referenced input cannot be prepared
        """
        pass

    @abstractmethod
    async def call(self, request: Any) -> MediaResult:
        """Send the request to the collaborator."""
        pass

    @abstractmethod
    def result_updates(
        self, node: Node, request: Any, result: MediaResult
    ) -> dict[str, Any]:
        """Node data fields to write after a successful call."""
        pass

    # =========================================================================
    # Template
    # =========================================================================

    def describe(self, node: Node, request: Any, result: MediaResult) -> dict[str, Any]:
        """Payload returned in ``ExecutionResult.data``."""
        return result.raw or {"url": result.url}

    async def execute(
        self, node: Node, inputs: Sequence[ConnectedInput]
    ) -> ExecutionResult:
        error = self.validate(node, inputs)
        if error:
            logger.info(f"Node {node.id} ({self.kind.value}) not runnable: {error}")
            return ExecutionResult.failure(error)

        async with self.generating(node.id):
            try:
                request = await self.build_request(node, inputs)
            except AdapterInputError as e:
                return ExecutionResult.failure(str(e))

            try:
                result = await self.call(request)
            except CollaboratorError as e:
                logger.warning(f"Node {node.id} ({self.kind.value}) failed: {e}")
                return ExecutionResult.failure(str(e))

            updates = self.result_updates(node, request, result)
            updates["is_generating"] = False
            self.store.update_node_data(node.id, updates)
            logger.info(f"Node {node.id} ({self.kind.value}) produced {result.url[:80]}")

        self.push_aspect_ratio(node.id)
        return ExecutionResult(success=True, data=self.describe(node, request, result))

    @asynccontextmanager
    async def generating(self, node_id: str) -> AsyncIterator[None]:
        """Hold ``isGenerating`` on the node for the duration of the block."""
        self.store.update_node_data(node_id, {"is_generating": True}, record_history=False)
        try:
            yield
        finally:
            current = self.store.get_node(node_id)
            if current is not None and current.data.is_generating:
                self.store.update_node_data(
                    node_id, {"is_generating": False}, record_history=False
                )

    async def resolve_image(self, reference: str | None, failure_message: str) -> str | None:
        """Resolve a local image reference, mapping failures to ``failure_message``."""
        try:
            return await self.resolver.resolve_image(reference)
        except MediaConversionError as e:
            logger.warning(f"Media conversion failed for {e.reference}: {e}")
            raise AdapterInputError(failure_message) from e

    def push_aspect_ratio(self, node_id: str) -> None:
        """Copy this node's aspect ratio onto its immediate downstream nodes.

        Each target gets the closest ratio it supports; kinds without a
        ratio setting are left alone.
        """
        node = self.store.get_node(node_id)
        if node is None or not node.data.aspect_ratio:
            return

        for edge in self.store.outgoing_edges(node_id):
            target = self.store.get_node(edge.target)
            if target is None or target.kind not in SUPPORTED_RATIOS:
                continue
            ratio = normalize_to_standard_ratio(
                node.data.aspect_ratio, SUPPORTED_RATIOS[target.kind]
            )
            if target.data.aspect_ratio != ratio:
                logger.debug(f"Aspect ratio {ratio} pushed from {node_id} to {target.id}")
                self.store.update_node_data(
                    target.id, {"aspect_ratio": ratio}, record_history=False
                )
