"""Result types for node and workflow execution."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ExecutionResult:
    """Outcome of executing a single node."""

    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> "ExecutionResult":
        return cls(success=False, error=error)


@dataclass
class Readiness:
    """Whether a node's currently connected inputs are sufficient to run it."""

    can_execute: bool
    reason: str | None = None


@dataclass
class RunAllResult:
    """Aggregate outcome of running every executable node in a workflow."""

    success: bool
    completed: set[str] = field(default_factory=set)
    failed: set[str] = field(default_factory=set)
    errors: list[str] = field(default_factory=list)
    stopped: bool = False

    @property
    def completed_count(self) -> int:
        return len(self.completed)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def summary(self) -> dict[str, Any]:
        """JSON-friendly summary with counts instead of id sets."""
        return {
            "success": self.success,
            "completed": self.completed_count,
            "failed": self.failed_count,
            "errors": list(self.errors),
            "stopped": self.stopped,
        }
