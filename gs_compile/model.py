"""
Data model for Guesstimate graphs.

Metric and Guesstimate are the read-only inputs. GraphNode is the mutable
working unit of a single compilation; RenderedNode is the immutable value
handed to backends once a node has been translated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class GuesstimateKind(str, Enum):
    """How a guesstimate's expression is interpreted."""

    FUNCTION = "FUNCTION"
    LOGNORMAL = "LOGNORMAL"
    NORMAL = "NORMAL"
    UNIFORM = "UNIFORM"
    POINT = "POINT"
    DATA = "DATA"


@dataclass(frozen=True)
class Metric:
    """Identity of a quantity being modeled."""

    id: str
    name: str


@dataclass(frozen=True)
class Guesstimate:
    """The probabilistic or formula definition attached to a metric."""

    metric: str
    kind: GuesstimateKind
    expression: Optional[str] = None
    description: str = ""
    data: Optional[tuple[float, ...]] = None


@dataclass(frozen=True)
class GuesstimateModel:
    """A complete input graph plus the URL it was exported from."""

    url: str
    metrics: tuple[Metric, ...] = ()
    guesstimates: tuple[Guesstimate, ...] = ()


@dataclass
class GraphNode:
    """A metric merged with its guesstimate, with a resolved identifier."""

    id: str
    label: str
    name: str
    kind: GuesstimateKind
    expression: Optional[str] = None
    description: str = ""
    data: Optional[tuple[float, ...]] = None


@dataclass(frozen=True)
class RenderedNode:
    """
    A node after translation into backend code.

    ``label`` is the metric's original display name; backends use it to
    document the assignment. ``code`` is None when the node has nothing to
    emit.
    """

    id: str
    name: str
    label: str
    kind: GuesstimateKind
    code: Optional[str] = None
    dependencies: frozenset[str] = field(default_factory=frozenset)
