"""
Dependency graph construction for Guesstimate models.

This module provides tools to:
1. Merge metrics and guesstimates into named graph nodes
2. Resolve ${metric:<id>} references inside function bodies
3. Perform topological sorting for a valid emission order
"""

import re
from collections.abc import Iterable
from typing import Optional

from gs_compile.config import CompilerConfig
from gs_compile.errors import (
    DANGLING_REFERENCE,
    BrokenDependencyError,
    CycleDetectedError,
    DanglingReferenceError,
    Diagnostic,
    MissingMetricError,
)
from gs_compile.model import GraphNode, GuesstimateKind, GuesstimateModel
from gs_compile.naming import sanitize_name

# Any embedded reference, resolved or not
REFERENCE_PATTERN = re.compile(r"\$\{metric:([^}]*)\}")

_IN_PROGRESS = 1
_DONE = 2


def reference_token(metric_id: str) -> str:
    """The text a function body uses to point at another metric."""
    return "${metric:" + metric_id + "}"


def resolve_references(
    text: str, id_to_name: dict[str, str]
) -> tuple[str, set[str]]:
    """
    Replace embedded references with resolved identifiers.

    Function bodies are treated as opaque text: every ${metric:<id>} whose id
    is in ``id_to_name`` is substituted with the mapped name, and the id is
    recorded as a dependency. Unknown ids are left in place.

    Returns:
        The rewritten text and the set of referenced ids
    """
    references = set()
    for metric_id, name in id_to_name.items():
        token = reference_token(metric_id)
        if token in text:
            references.add(metric_id)
            text = text.replace(token, name)
    return text, references


def find_dangling_references(text: str) -> list[str]:
    """Ids of references still left in a body after resolution."""
    dangling = []
    for match in REFERENCE_PATTERN.finditer(text):
        if match.group(1) not in dangling:
            dangling.append(match.group(1))
    return dangling


def normalize_nodes(
    model: GuesstimateModel,
    config: Optional[CompilerConfig] = None,
    reserved_names: Iterable[str] = (),
) -> dict[str, GraphNode]:
    """
    Merge every guesstimate with its metric into a named GraphNode.

    Guesstimates are processed in input order, which decides who keeps the
    plain identifier when two labels sanitize to the same string. Names in
    ``reserved_names`` count as taken from the start.

    Raises:
        MissingMetricError: If a guesstimate points at an unknown metric
    """
    config = config or CompilerConfig()
    metrics_by_id = {metric.id: metric for metric in model.metrics}

    nodes: dict[str, GraphNode] = {}
    used_names: set[str] = set(reserved_names)

    for guesstimate in model.guesstimates:
        metric = metrics_by_id.get(guesstimate.metric)
        if metric is None:
            raise MissingMetricError(guesstimate.metric)

        name = sanitize_name(
            metric.name,
            used_names,
            max_length=config.max_name_length,
            replacements=dict(config.name_replacements),
        )
        used_names.add(name)

        nodes[metric.id] = GraphNode(
            id=metric.id,
            label=metric.name,
            name=name,
            kind=guesstimate.kind,
            expression=guesstimate.expression,
            description=guesstimate.description,
            data=guesstimate.data,
        )

    return nodes


def extract_dependencies(
    nodes: dict[str, GraphNode],
    config: Optional[CompilerConfig] = None,
) -> tuple[dict[str, set[str]], list[Diagnostic]]:
    """
    Build the edge map and rewrite function bodies in place.

    Function expressions start with a one character marker ("=") that is
    stripped before references are resolved. Other kinds have no edges.

    Returns:
        Edge map (node id -> ids it depends on) and dangling reference
        diagnostics

    Raises:
        DanglingReferenceError: In strict mode, for unknown references
    """
    config = config or CompilerConfig()
    id_to_name = {node_id: node.name for node_id, node in nodes.items()}

    edges: dict[str, set[str]] = {}
    diagnostics: list[Diagnostic] = []

    for node_id, node in nodes.items():
        edges[node_id] = set()
        if node.kind != GuesstimateKind.FUNCTION:
            continue

        body = (node.expression or "")[1:]
        body, references = resolve_references(body, id_to_name)
        node.expression = body
        edges[node_id] = references

        dangling = find_dangling_references(body)
        if dangling:
            if config.strict_references:
                raise DanglingReferenceError(node_id, dangling)
            diagnostics.append(
                Diagnostic(
                    kind=DANGLING_REFERENCE,
                    node_id=node_id,
                    message=(
                        "references unknown metric(s) "
                        + ", ".join(dangling)
                    ),
                )
            )

    return edges, diagnostics


def topological_sort(edges: dict[str, set[str]]) -> list[str]:
    """
    Sort node ids so every id comes after all of its dependencies.

    Depth-first, starting from roots in the edge map's key order; the
    dependencies of a node are visited in that same order so the result is
    deterministic.

    Raises:
        BrokenDependencyError: If a dependency has no entry in ``edges``
        CycleDetectedError: If the graph is not acyclic
    """
    position = {node_id: index for index, node_id in enumerate(edges)}

    def ordered(dependencies: set[str]) -> list[str]:
        end = len(position)
        return sorted(
            dependencies, key=lambda dep: (position.get(dep, end), dep)
        )

    state: dict[str, int] = {}
    result: list[str] = []

    for root in edges:
        if root in state:
            continue

        state[root] = _IN_PROGRESS
        path = [root]
        stack = [iter(ordered(edges[root]))]

        while stack:
            for dep in stack[-1]:
                if dep not in edges:
                    raise BrokenDependencyError(dep)
                mark = state.get(dep)
                if mark is None:
                    state[dep] = _IN_PROGRESS
                    path.append(dep)
                    stack.append(iter(ordered(edges[dep])))
                    break
                if mark == _IN_PROGRESS:
                    cycle = path[path.index(dep):] + [dep]
                    raise CycleDetectedError(cycle)
            else:
                # All dependencies of the top node are done
                stack.pop()
                node_id = path.pop()
                state[node_id] = _DONE
                result.append(node_id)

    return result


class DependencyGraph:
    """Named nodes and their dependency edges for one compilation."""

    def __init__(
        self,
        nodes: dict[str, GraphNode],
        edges: dict[str, set[str]],
        diagnostics: Optional[list[Diagnostic]] = None,
    ):
        self.nodes = nodes
        self.edges = edges
        self.diagnostics = diagnostics or []

    def topological_sort(self) -> list[str]:
        """Node ids in dependency order (dependencies first)."""
        return topological_sort(self.edges)


def build_dependency_graph(
    model: GuesstimateModel,
    config: Optional[CompilerConfig] = None,
    reserved_names: Iterable[str] = (),
) -> DependencyGraph:
    """
    Normalize a model and extract its dependencies.

    Every call builds fresh name sets and maps, so graphs are never shared
    between compilations.
    """
    nodes = normalize_nodes(model, config, reserved_names)
    edges, diagnostics = extract_dependencies(nodes, config)
    return DependencyGraph(nodes, edges, diagnostics)
