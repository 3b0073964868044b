"""
Standalone Python code generation from Guesstimate models.

The generated script samples every distribution with numpy and plots each
non-point quantity with matplotlib. Bounds are read as 5th and 95th
percentiles; the conversion to distribution parameters lives in a small
runtime preamble written at the top of the script.
"""

import json
import keyword
from collections.abc import Sequence

from gs_compile.backends import Backend, register_backend
from gs_compile.model import GuesstimateKind, RenderedNode

SAMPLE_COUNT = 1_000_000

# Guesstimate magnitude suffixes, first occurrence of each is expanded
MAGNITUDE_SUFFIXES = {
    "K": " * 1_000",
    "M": " * 1_000_000",
    "B": " * 1_000_000_000",
}

# Builtins that do not broadcast over numpy arrays
FUNCTION_REPLACEMENTS = {
    "min(": "np.minimum(",
    "max(": "np.maximum(",
}

# Names bound by the runtime preamble
RUNTIME_NAMES = frozenset(
    {
        "inspect",
        "plt",
        "np",
        "norm",
        "make_uniform",
        "make_normal",
        "make_lognormal",
        "show",
    }
)

RUNTIME_PREAMBLE = [
    "import inspect",
    "",
    "import matplotlib.pyplot as plt",
    "import numpy as np",
    "from scipy.stats import norm",
    "",
    f"SAMPLES = {SAMPLE_COUNT:_}",
    "",
    "",
    "def make_uniform(perc_5, perc_95):",
    "    assert perc_95 > perc_5",
    "    size = (perc_95 - perc_5) / 0.9",
    "    minimum = perc_5 - size * 0.05",
    "    maximum = minimum + size",
    "    return np.random.uniform(minimum, maximum, SAMPLES)",
    "",
    "",
    "def make_normal(perc_5, perc_95):",
    "    assert perc_95 > perc_5",
    "    mean = (perc_5 + perc_95) / 2",
    "    stdev = (perc_95 - perc_5) / (norm.ppf(0.95) - norm.ppf(0.05))",
    "    return np.random.normal(mean, stdev, SAMPLES)",
    "",
    "",
    "def make_lognormal(perc_5, perc_95):",
    "    assert perc_5 > 0",
    "    assert perc_95 > 0",
    "    return np.exp(make_normal(np.log(perc_5), np.log(perc_95)))",
    "",
    "",
    "def show(dist):",
    "    title_lines = []",
    "    frame = inspect.currentframe()",
    "    names = [",
    "        name for name, val in frame.f_back.f_locals.items()",
    "        if val is dist",
    "    ]",
    "    if names:",
    "        title_lines.append(names[0])",
    '    title_lines.append(f"mean: {np.mean(dist):,.2f}")',
    '    title_lines.append(f"stdev: {np.std(dist):,.2f}")',
    "    five, ninety_five = np.quantile(dist, [0.05, 0.95])",
    '    title_lines.append(f"5% to 95%: {five:,.2f} to {ninety_five:,.2f}")',
    '    plt.title("\\n".join(title_lines))',
    "    plt.hist(dist, bins=100)",
    "    plt.show()",
    "",
    "",
]


def expand_magnitude(text: str) -> str:
    """
    Expand Guesstimate magnitude suffixes into multiplications.

    "5K" -> "5 * 1_000", "2.5M" -> "2.5 * 1_000_000"
    """
    for suffix, replacement in MAGNITUDE_SUFFIXES.items():
        text = text.replace(suffix, replacement, 1)
    return text


def vectorize_function(body: str) -> str:
    """Swap scalar builtins for their numpy equivalents."""
    for old, new in FUNCTION_REPLACEMENTS.items():
        body = body.replace(old, new)
    return body


@register_backend("python")
class PythonBackend(Backend):
    """Backend emitting a numpy/scipy/matplotlib script."""

    reserved_names = frozenset(keyword.kwlist) | RUNTIME_NAMES

    def header(self, url: str) -> str:
        lines = ["", f"# Generated from {url}", ""]
        lines.extend(RUNTIME_PREAMBLE)
        return "\n".join(lines) + "\n"

    def point(self, value: str) -> str:
        return value

    def data(self, values: Sequence[float]) -> str:
        return f"np.array({json.dumps(list(values), separators=(',', ':'))})"

    def uniform(self, low: str, high: str) -> str:
        return (
            f"make_uniform({expand_magnitude(low)}, "
            f"{expand_magnitude(high)})"
        )

    def normal(self, low: str, high: str) -> str:
        return (
            f"make_normal({expand_magnitude(low)}, "
            f"{expand_magnitude(high)})"
        )

    def lognormal(self, low: str, high: str) -> str:
        return (
            f"make_lognormal({expand_magnitude(low)}, "
            f"{expand_magnitude(high)})"
        )

    def function(self, body: str) -> str:
        return vectorize_function(body)

    def render_assignment(self, node: RenderedNode) -> str:
        code = f"\n# {node.label}\n{node.name} = {node.code}"
        if node.kind != GuesstimateKind.POINT:
            code += f"\nshow({node.name})"
        return code
