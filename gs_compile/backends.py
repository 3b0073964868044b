"""
Backend contract and node translation.

A backend knows how to render each guesstimate kind in one target language,
how to turn a rendered node into an assignment statement, and what header
goes at the top of the generated file. Backends register themselves by
name, so new target languages plug in without touching the graph code.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Callable, Optional, Union

from gs_compile.errors import (
    MISSING_DATA,
    UNPARSABLE_DISTRIBUTION_SHAPE,
    Diagnostic,
    UnknownBackendError,
)
from gs_compile.model import GraphNode, GuesstimateKind, RenderedNode

# "[low, high]" and "low to high"
BRACKET_BOUNDS = re.compile(r"\[(.*),(.*)\]")
TO_BOUNDS = re.compile(r"(.*)to(.*)")

_DISTRIBUTION_KINDS = (
    GuesstimateKind.UNIFORM,
    GuesstimateKind.NORMAL,
    GuesstimateKind.LOGNORMAL,
)


class Backend(ABC):
    """Rendering rules for one target language."""

    name: str = ""
    # Identifiers generated names must avoid (keywords, runtime helpers)
    reserved_names: frozenset[str] = frozenset()

    @abstractmethod
    def header(self, url: str) -> str:
        """Text placed before the first assignment."""

    @abstractmethod
    def point(self, value: str) -> str:
        pass

    @abstractmethod
    def data(self, values: Sequence[float]) -> str:
        pass

    @abstractmethod
    def uniform(self, low: str, high: str) -> str:
        pass

    @abstractmethod
    def normal(self, low: str, high: str) -> str:
        pass

    @abstractmethod
    def lognormal(self, low: str, high: str) -> str:
        pass

    @abstractmethod
    def function(self, body: str) -> str:
        """Render a function body whose references are already resolved."""

    @abstractmethod
    def render_assignment(self, node: RenderedNode) -> str:
        """Render the full statement for a node whose code is set."""


_REGISTRY: dict[str, type[Backend]] = {}


def register_backend(name: str) -> Callable[[type[Backend]], type[Backend]]:
    """
    Class decorator that makes a backend available by name.

    Usage:
        @register_backend("stan")
        class StanBackend(Backend):
            ...
    """

    def decorator(cls: type[Backend]) -> type[Backend]:
        cls.name = name
        _REGISTRY[name] = cls
        return cls

    return decorator


def available_backends() -> list[str]:
    """Names of all registered backends, sorted."""
    return sorted(_REGISTRY)


def get_backend(backend: Union[str, Backend]) -> Backend:
    """Return a backend instance for a registered name, or pass one on."""
    if isinstance(backend, Backend):
        return backend
    try:
        return _REGISTRY[backend]()
    except KeyError:
        raise UnknownBackendError(backend, available_backends()) from None


def parse_bounds(text: Optional[str]) -> Optional[tuple[str, str]]:
    """
    Split a distribution expression into its low and high operands.

    Accepts "[low, high]" and "low to high". Operands are stripped of
    surrounding whitespace. Returns None if neither shape matches.
    """
    text = text or ""
    match = BRACKET_BOUNDS.fullmatch(text) or TO_BOUNDS.fullmatch(text)
    if match is None:
        return None
    return match.group(1).strip(), match.group(2).strip()


def translate_node(
    node: GraphNode, backend: Backend
) -> tuple[Optional[str], Optional[Diagnostic]]:
    """
    Render a node's expression with a backend.

    Function nodes must already have their references resolved.

    Returns:
        The backend code (None if the node has nothing to emit) and a
        diagnostic explaining why a node was dropped, if any
    """
    kind = node.kind

    if kind == GuesstimateKind.POINT:
        if not node.expression:
            return None, None
        return (backend.point(node.expression) or None), None

    if kind == GuesstimateKind.DATA:
        if node.data is None:
            return None, Diagnostic(
                kind=MISSING_DATA,
                node_id=node.id,
                message="data guesstimate has no samples",
            )
        return backend.data(list(node.data)), None

    if kind in _DISTRIBUTION_KINDS:
        bounds = parse_bounds(node.expression)
        if bounds is None:
            return None, Diagnostic(
                kind=UNPARSABLE_DISTRIBUTION_SHAPE,
                node_id=node.id,
                message=(
                    f"cannot read bounds from {node.expression!r} "
                    f"for {kind.value.lower()} distribution"
                ),
            )
        low, high = bounds
        if kind == GuesstimateKind.UNIFORM:
            return backend.uniform(low, high), None
        if kind == GuesstimateKind.NORMAL:
            return backend.normal(low, high), None
        return backend.lognormal(low, high), None

    if kind == GuesstimateKind.FUNCTION:
        return (backend.function(node.expression or "") or None), None

    raise ValueError(f"Unknown guesstimate kind: {kind}")
