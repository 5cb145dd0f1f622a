"""Services for the mediaflow workflow engine.

The scheduler and session modules depend on the adapters package, which in
turn uses the input extractor, so they are imported from their own modules.
"""

from mediaflow.services.dependency_resolver import (
    build_dependency_map,
    get_upstream_executable,
)
from mediaflow.services.generation_tracker import GenerationTracker
from mediaflow.services.input_extractor import ConnectedInput, connected_inputs

__all__ = [
    "ConnectedInput",
    "GenerationTracker",
    "build_dependency_map",
    "connected_inputs",
    "get_upstream_executable",
]
