"""Graph state: store, undo/redo history and clipboard."""

from mediaflow.graph.clipboard import ClipboardManager
from mediaflow.graph.history import GraphSnapshot, HistoryManager
from mediaflow.graph.store import GraphStore

__all__ = ["ClipboardManager", "GraphSnapshot", "GraphStore", "HistoryManager"]
