"""
Squiggle code generation.

Squiggle understands distributions natively, so most guesstimates become a
one-line assignment:

    revenue = 10 to 20 // Revenue
    growth = uniform(0.1, 0.3) // Growth
"""

import json
from collections.abc import Sequence

from gs_compile.backends import Backend, register_backend
from gs_compile.model import RenderedNode


@register_backend("squiggle")
class SquiggleBackend(Backend):
    """Backend emitting a Squiggle script."""

    def header(self, url: str) -> str:
        return f"// Generated from {url}\n"

    def point(self, value: str) -> str:
        return value

    def data(self, values: Sequence[float]) -> str:
        # Compact JSON keeps the samples exactly as given
        samples = json.dumps(list(values), separators=(",", ":"))
        return f"fromSamples({samples})"

    def uniform(self, low: str, high: str) -> str:
        return f"uniform({low}, {high})"

    def normal(self, low: str, high: str) -> str:
        # Squiggle's "to" is a lognormal; normal bounds share it for now
        return f"{low} to {high}"

    def lognormal(self, low: str, high: str) -> str:
        return f"{low} to {high}"

    def function(self, body: str) -> str:
        return body

    def render_assignment(self, node: RenderedNode) -> str:
        return f"{node.name} = {node.code} // {node.label}"
