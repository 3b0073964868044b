"""
gs-compile: Compile Guesstimate models into probabilistic programs.

This package turns a Guesstimate graph (metrics plus their distributions
and formulas) into a script in a target language, with every assignment
placed after the quantities it depends on. Squiggle and Python backends
are included; further backends can be registered by name.
"""

__version__ = "0.1.0"

from gs_compile.backends import (
    Backend,
    available_backends,
    get_backend,
    parse_bounds,
    register_backend,
)
from gs_compile.compiler import (
    CompileResult,
    compile_model,
    get_code,
    get_python_code,
    get_squiggle_code,
)
from gs_compile.config import CompilerConfig
from gs_compile.errors import (
    BrokenDependencyError,
    CompileError,
    CycleDetectedError,
    DanglingReferenceError,
    Diagnostic,
    MissingMetricError,
    UnknownBackendError,
)
from gs_compile.graph import (
    DependencyGraph,
    build_dependency_graph,
    resolve_references,
    topological_sort,
)
from gs_compile.loader import load_model, parse_model_json
from gs_compile.model import (
    Guesstimate,
    GuesstimateKind,
    GuesstimateModel,
    Metric,
    RenderedNode,
)
from gs_compile.naming import sanitize_name

__all__ = [
    "Backend",
    "available_backends",
    "get_backend",
    "parse_bounds",
    "register_backend",
    "CompileResult",
    "compile_model",
    "get_code",
    "get_python_code",
    "get_squiggle_code",
    "CompilerConfig",
    "CompileError",
    "MissingMetricError",
    "BrokenDependencyError",
    "CycleDetectedError",
    "DanglingReferenceError",
    "UnknownBackendError",
    "Diagnostic",
    "DependencyGraph",
    "build_dependency_graph",
    "resolve_references",
    "topological_sort",
    "load_model",
    "parse_model_json",
    "Guesstimate",
    "GuesstimateKind",
    "GuesstimateModel",
    "Metric",
    "RenderedNode",
    "sanitize_name",
]
