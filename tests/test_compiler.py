"""Tests for compiling whole models."""

import re

import pytest

from gs_compile import (
    Backend,
    CompileError,
    CompilerConfig,
    CycleDetectedError,
    DanglingReferenceError,
    Guesstimate,
    GuesstimateKind,
    GuesstimateModel,
    Metric,
    MissingMetricError,
    UnknownBackendError,
    available_backends,
    compile_model,
    get_backend,
    get_code,
    get_python_code,
    get_squiggle_code,
    register_backend,
)
from gs_compile.compiler import emit
from gs_compile.model import RenderedNode

URL = "https://www.getguesstimate.com/models/42"


def make_model(*entries, url=URL):
    """Build a model from (id, name, kind, expression) tuples."""
    metrics = tuple(Metric(id=i, name=n) for i, n, _, _ in entries)
    guesstimates = tuple(
        Guesstimate(metric=i, kind=GuesstimateKind(k), expression=e)
        for i, _, k, e in entries
    )
    return GuesstimateModel(
        url=url, metrics=metrics, guesstimates=guesstimates
    )


class RecordingBackend(Backend):
    """Backend that records the arguments each kind function receives."""

    def __init__(self):
        self.calls = []

    def header(self, url):
        return f"# {url}\n"

    def point(self, value):
        self.calls.append(("point", value))
        return value

    def data(self, values):
        self.calls.append(("data", list(values)))
        return repr(list(values))

    def uniform(self, low, high):
        self.calls.append(("uniform", low, high))
        return f"U({low}, {high})"

    def normal(self, low, high):
        self.calls.append(("normal", low, high))
        return f"N({low}, {high})"

    def lognormal(self, low, high):
        self.calls.append(("lognormal", low, high))
        return f"LN({low}, {high})"

    def function(self, body):
        self.calls.append(("function", body))
        return body

    def render_assignment(self, node):
        return f"{node.name} := {node.code}"


class TestScenarios:
    """End-to-end compilation of small models."""

    def test_colliding_display_names(self):
        """Two metrics with the same name get different identifiers."""
        model = make_model(
            ("m1", "Revenue %", "POINT", "5"),
            ("m2", "Revenue %", "POINT", "5"),
        )
        code = get_code(model, "squiggle")
        lines = code.split("\n")
        assert lines == [
            "revenue_perc_ = 5 // Revenue %",
            "revenue_perc__2 = 5 // Revenue %",
        ]

    def test_uniform_brackets(self):
        """[10, 20] gives the uniform renderer both operands."""
        backend = RecordingBackend()
        model = make_model(("m1", "Range", "UNIFORM", "[10, 20]"))
        compile_model(model, backend)
        assert backend.calls == [("uniform", "10", "20")]

        code = get_code(model, "squiggle")
        assert code == "range = uniform(10, 20) // Range"

    def test_function_after_dependency(self):
        """A function is emitted after the node it references."""
        model = make_model(
            ("f", "Total", "FUNCTION", "=${metric:m1} + 1"),
            ("m1", "x", "POINT", "3"),
        )
        code = get_code(model, "squiggle")
        assert code.split("\n") == [
            "x = 3 // x",
            "total = x + 1 // Total",
        ]

    def test_missing_metric(self):
        """A guesstimate for an unknown metric aborts compilation."""
        model = GuesstimateModel(
            url=URL,
            metrics=(Metric(id="m1", name="x"),),
            guesstimates=(
                Guesstimate(
                    metric="m2", kind=GuesstimateKind.POINT, expression="1"
                ),
            ),
        )
        with pytest.raises(MissingMetricError):
            compile_model(model, "squiggle")

    def test_normal_to_shape(self):
        """The "low to high" shape gives trimmed operands."""
        backend = RecordingBackend()
        compile_model(make_model(("m1", "n", "NORMAL", "3 to 9")), backend)
        assert backend.calls == [("normal", "3", "9")]

    def test_lognormal_brackets(self):
        """Lognormal bounds also accept the bracket shape."""
        backend = RecordingBackend()
        compile_model(
            make_model(("m1", "n", "LOGNORMAL", "[1,100]")), backend
        )
        assert backend.calls == [("lognormal", "1", "100")]


class TestDroppedNodes:
    """Nodes that produce no assignment."""

    def test_unparsable_shape_dropped(self):
        """Distribution text in neither shape is skipped with a warning."""
        model = make_model(
            ("m1", "a", "NORMAL", "about ten"),
            ("m2", "b", "POINT", "1"),
        )
        result = compile_model(model, "squiggle")
        assert result.body == "b = 1 // b"
        assert [d.kind for d in result.diagnostics] == [
            "unparsable_distribution_shape"
        ]
        assert result.nodes["m1"].code is None
        assert result.order == ["m1", "m2"]

    def test_empty_point_dropped(self):
        """A point without a value is not emitted."""
        model = make_model(
            ("m1", "a", "POINT", None),
            ("m2", "b", "POINT", ""),
        )
        result = compile_model(model, "squiggle")
        assert result.body == ""
        assert result.diagnostics == []

    def test_data_without_samples_dropped(self):
        """A data node with no samples is reported and skipped."""
        model = make_model(("m1", "a", "DATA", None))
        result = compile_model(model, "squiggle")
        assert result.body == ""
        assert result.diagnostics[0].kind == "missing_data"

    def test_empty_model(self):
        """No guesstimates gives just the header."""
        result = compile_model(GuesstimateModel(url=URL), "squiggle")
        assert result.body == ""
        assert result.code == f"// Generated from {URL}\n"


class TestProperties:
    """Invariants of the generated code."""

    @pytest.fixture
    def model(self):
        return make_model(
            ("total", "Total profit", "FUNCTION",
             "=${metric:rev} - ${metric:cost}"),
            ("cost", "Cost", "FUNCTION", "=${metric:units} * ${metric:unit}"),
            ("rev", "Revenue", "LOGNORMAL", "[1000, 5000]"),
            ("units", "Units", "UNIFORM", "[10, 20]"),
            ("unit", "Unit cost", "POINT", "3"),
            ("margin", "Margin %", "FUNCTION",
             "=${metric:total} / ${metric:rev}"),
        )

    def test_no_forward_references(self, model):
        """Each line only uses names defined on earlier lines."""
        result = compile_model(model, "squiggle")
        names = {node.name for node in result.nodes.values()}
        defined = set()
        for line in result.body.split("\n"):
            name, _, rest = line.partition(" = ")
            expression = rest.split(" // ")[0]
            used = set(re.findall(r"[A-Za-z_]\w*", expression)) & names
            assert used <= defined, line
            defined.add(name)

    def test_unique_names(self, model):
        """No two emitted identifiers are equal."""
        result = compile_model(model, "squiggle")
        names = [node.name for node in result.emitted]
        assert len(names) == len(set(names)) == 6

    def test_dependencies_recorded(self, model):
        """Rendered nodes carry their edges."""
        result = compile_model(model, "squiggle")
        assert result.nodes["total"].dependencies == {"rev", "cost"}
        assert result.nodes["unit"].dependencies == frozenset()

    def test_deterministic(self, model):
        """Compiling twice gives the same code."""
        assert get_squiggle_code(model) == get_squiggle_code(model)
        assert get_python_code(model) == get_python_code(model)

    def test_data_round_trip(self):
        """Samples appear verbatim and in order."""
        model = GuesstimateModel(
            url=URL,
            metrics=(Metric(id="d", name="Samples"),),
            guesstimates=(
                Guesstimate(
                    metric="d",
                    kind=GuesstimateKind.DATA,
                    expression=None,
                    data=(3, 1.5, -2, 10),
                ),
            ),
        )
        assert "[3,1.5,-2,10]" in get_code(model, "squiggle")
        assert "[3,1.5,-2,10]" in get_code(model, "python")


class TestFailures:
    """Fatal errors abort with no output."""

    def test_cycle(self):
        """Mutually dependent functions are rejected."""
        model = make_model(
            ("a", "A", "FUNCTION", "=${metric:b} + 1"),
            ("b", "B", "FUNCTION", "=${metric:a} + 1"),
        )
        with pytest.raises(CycleDetectedError) as exc_info:
            compile_model(model, "squiggle")
        assert set(exc_info.value.cycle) == {"a", "b"}

    def test_self_reference(self):
        """A function referencing itself is a cycle."""
        model = make_model(("a", "A", "FUNCTION", "=${metric:a} * 2"))
        with pytest.raises(CycleDetectedError):
            compile_model(model, "python")

    def test_dangling_reference_kept(self):
        """By default unknown references stay in the output."""
        model = make_model(("a", "A", "FUNCTION", "=${metric:zz} * 2"))
        result = compile_model(model, "squiggle")
        assert result.body == "a = ${metric:zz} * 2 // A"
        assert result.diagnostics[0].kind == "dangling_reference"

    def test_dangling_reference_strict(self):
        """Strict mode rejects unknown references."""
        model = make_model(("a", "A", "FUNCTION", "=${metric:zz} * 2"))
        config = CompilerConfig(strict_references=True)
        with pytest.raises(DanglingReferenceError):
            compile_model(model, "squiggle", config)

    def test_errors_share_base(self):
        """All fatal errors derive from CompileError."""
        assert issubclass(MissingMetricError, CompileError)
        assert issubclass(CycleDetectedError, CompileError)
        assert issubclass(DanglingReferenceError, CompileError)


class TestBackendRegistry:
    """Test selecting and adding backends."""

    def test_reference_backends_available(self):
        """Squiggle and Python ship by default."""
        assert {"squiggle", "python"} <= set(available_backends())

    def test_unknown_backend(self):
        """Asking for an unregistered backend fails clearly."""
        with pytest.raises(UnknownBackendError) as exc_info:
            get_backend("cobol")
        assert "cobol" in str(exc_info.value)
        assert isinstance(exc_info.value, KeyError)

    def test_register_custom_backend(self):
        """A new backend works without changes to the compiler."""

        @register_backend("recording-test")
        class RegisteredRecording(RecordingBackend):
            pass

        model = make_model(
            ("m1", "x", "POINT", "2"),
            ("m2", "y", "FUNCTION", "=${metric:m1} ** 2"),
        )
        result = compile_model(model, "recording-test")
        assert RegisteredRecording.name == "recording-test"
        assert "recording-test" in available_backends()
        assert result.code == f"# {URL}\nx := 2\ny := x ** 2"

    def test_emit_skips_nodes_without_code(self):
        """Only nodes with code are rendered."""
        nodes = [
            RenderedNode(id="a", name="a", label="A",
                         kind=GuesstimateKind.POINT, code="1"),
            RenderedNode(id="b", name="b", label="B",
                         kind=GuesstimateKind.NORMAL, code=None),
            RenderedNode(id="c", name="c", label="C",
                         kind=GuesstimateKind.POINT, code="2"),
        ]
        assert emit(nodes, RecordingBackend()) == "a := 1\nc := 2"
