"""
Compile Guesstimate models into probabilistic programs.

Pipeline: normalize nodes -> resolve references and build edges -> order
nodes -> translate each node with a backend -> join the assignments.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

# Importing the reference backends registers them
import gs_compile.python_backend  # noqa: F401
import gs_compile.squiggle_backend  # noqa: F401
from gs_compile.backends import Backend, get_backend, translate_node
from gs_compile.config import CompilerConfig
from gs_compile.errors import Diagnostic
from gs_compile.graph import build_dependency_graph
from gs_compile.model import GuesstimateModel, RenderedNode


@dataclass
class CompileResult:
    """Output of a successful compilation."""

    header: str
    body: str
    order: list[str] = field(default_factory=list)
    nodes: dict[str, RenderedNode] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def code(self) -> str:
        """The complete generated source, header included."""
        return self.header + self.body

    @property
    def emitted(self) -> list[RenderedNode]:
        """Nodes that produced an assignment, in output order."""
        return [
            self.nodes[node_id]
            for node_id in self.order
            if self.nodes[node_id].code
        ]


def emit(rendered: list[RenderedNode], backend: Backend) -> str:
    """Join the assignments of nodes that have code, in the given order."""
    lines = []
    for node in rendered:
        if not node.code:
            continue
        line = backend.render_assignment(node)
        if line:
            lines.append(line)
    return "\n".join(lines)


def compile_model(
    model: GuesstimateModel,
    backend: Union[str, Backend] = "squiggle",
    config: Optional[CompilerConfig] = None,
) -> CompileResult:
    """
    Compile a model into source code for one backend.

    Args:
        model: Metrics and guesstimates to compile
        backend: A Backend instance or the name of a registered backend
        config: Naming and strictness settings

    Returns:
        The generated code (header included) with the emission order,
        rendered nodes and non-fatal diagnostics

    Raises:
        CompileError: On missing metrics, cycles or (in strict mode)
            dangling references; no partial output is produced
    """
    backend = get_backend(backend)
    config = config or CompilerConfig()

    graph = build_dependency_graph(model, config, backend.reserved_names)
    order = graph.topological_sort()
    diagnostics = list(graph.diagnostics)

    rendered: dict[str, RenderedNode] = {}
    for node_id in order:
        node = graph.nodes[node_id]
        code, diagnostic = translate_node(node, backend)
        if diagnostic is not None:
            diagnostics.append(diagnostic)
        rendered[node_id] = RenderedNode(
            id=node.id,
            name=node.name,
            label=node.label,
            kind=node.kind,
            code=code,
            dependencies=frozenset(graph.edges[node_id]),
        )

    body = emit([rendered[node_id] for node_id in order], backend)

    return CompileResult(
        header=backend.header(model.url),
        body=body,
        order=order,
        nodes=rendered,
        diagnostics=diagnostics,
    )


def get_code(
    model: GuesstimateModel,
    backend: Union[str, Backend] = "squiggle",
    config: Optional[CompilerConfig] = None,
) -> str:
    """Generated assignments only, without the backend header."""
    return compile_model(model, backend, config).body


def get_squiggle_code(
    model: GuesstimateModel, config: Optional[CompilerConfig] = None
) -> str:
    """Compile a model into a Squiggle script."""
    return compile_model(model, "squiggle", config).code


def get_python_code(
    model: GuesstimateModel, config: Optional[CompilerConfig] = None
) -> str:
    """Compile a model into a numpy/matplotlib Python script."""
    return compile_model(model, "python", config).code
