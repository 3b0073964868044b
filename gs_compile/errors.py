"""
Errors and diagnostics raised while compiling a Guesstimate model.

Fatal problems are exceptions derived from CompileError. Problems that only
drop a node from the output (or leave a reference unresolved) are reported
as Diagnostic values on the compile result.
"""

from dataclasses import dataclass
from typing import Optional


class CompileError(Exception):
    """Base exception for compilation failures."""

    pass


class MissingMetricError(CompileError):
    """Raised when a guesstimate references a metric that does not exist."""

    def __init__(self, metric_id: str):
        self.metric_id = metric_id
        super().__init__(f"Metric not found: {metric_id}")


class BrokenDependencyError(CompileError):
    """Raised when the dependency map lacks an entry for a referenced id."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Broken dependency: no entry for {node_id}")


class CycleDetectedError(CompileError):
    """Raised when a cycle is detected in the dependency graph."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        # Format cycle for message (remove duplicate final node)
        if len(cycle) > 1 and cycle[0] == cycle[-1]:
            cycle_ids = cycle[:-1]
        else:
            cycle_ids = cycle
        cycle_str = " -> ".join(cycle_ids) + f" -> {cycle_ids[0]}"
        super().__init__(f"Cycle detected in dependency graph: {cycle_str}")


class DanglingReferenceError(CompileError):
    """Raised in strict mode when a function references an unknown metric."""

    def __init__(self, node_id: str, reference_ids: list[str]):
        self.node_id = node_id
        self.reference_ids = reference_ids
        refs = ", ".join(reference_ids)
        super().__init__(
            f"Function {node_id} references unknown metric(s): {refs}"
        )


class UnknownBackendError(CompileError, KeyError):
    """Raised when asking for a backend that was never registered."""

    def __init__(self, name: str, available: Optional[list[str]] = None):
        self.name = name
        self.available = available or []
        message = f"Unknown backend: {name}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


UNPARSABLE_DISTRIBUTION_SHAPE = "unparsable_distribution_shape"
DANGLING_REFERENCE = "dangling_reference"
MISSING_DATA = "missing_data"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while compiling one node."""

    kind: str
    node_id: str
    message: str

    def __str__(self) -> str:
        return f"{self.node_id}: {self.message}"
