"""
Command-line interface for gs-compile.

Usage:
    gs-compile model.json -b squiggle -o model.squiggle
    gs-compile model.json -b python -o model.py
    cat model.json | gs-compile - --dry-run
"""

from typing import Optional

import click

from gs_compile import __version__
from gs_compile.backends import available_backends
from gs_compile.compiler import CompileResult, compile_model
from gs_compile.config import DEFAULT_MAX_NAME_LENGTH, CompilerConfig
from gs_compile.errors import CompileError
from gs_compile.loader import parse_model_json


def print_dry_run(result: CompileResult) -> None:
    """List nodes in emission order with their dependencies."""
    click.echo("Nodes in emission order:")
    for node_id in result.order:
        node = result.nodes[node_id]
        deps = ", ".join(
            result.nodes[dep].name
            for dep in result.order
            if dep in node.dependencies
        )
        status = node.kind.value if node.code else "SKIPPED"
        deps = deps or "(none)"
        click.echo(f"  [{status}] {node.name}: depends on [{deps}]")


@click.command()
@click.argument("input_file", type=click.File("r"))
@click.option(
    "--backend",
    "-b",
    type=click.Choice(available_backends()),
    default="squiggle",
    show_default=True,
    help="Target language",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    help="Output file path (stdout if not specified)",
)
@click.option(
    "--url",
    default=None,
    help="Source URL for the header comment (default: the model's url)",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Fail on references to metrics that do not exist",
)
@click.option(
    "--max-name-length",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_NAME_LENGTH,
    show_default=True,
    help="Maximum length of generated identifiers",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show the emission order without generating code",
)
@click.version_option(version=__version__)
def main(
    input_file,
    backend: str,
    output: Optional[str],
    url: Optional[str],
    strict: bool,
    max_name_length: int,
    dry_run: bool,
) -> None:
    """
    Compile a Guesstimate model into a probabilistic program.

    INPUT_FILE is a Guesstimate JSON export, or - to read from stdin.

    Examples:

        gs-compile model.json -b squiggle

        gs-compile model.json -b python -o model.py

        gs-compile model.json --strict --dry-run
    """
    try:
        model = parse_model_json(input_file.read(), url=url)
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(
        f"Compiling {len(model.guesstimates)} guesstimate(s) "
        f"to {backend}...",
        err=True,
    )

    config = CompilerConfig(
        max_name_length=max_name_length,
        strict_references=strict,
    )
    try:
        result = compile_model(model, backend, config)
    except CompileError as e:
        raise click.ClickException(str(e))

    for diagnostic in result.diagnostics:
        click.echo(f"Warning: {diagnostic}", err=True)

    if dry_run:
        print_dry_run(result)
        return

    click.echo(
        f"Emitted {len(result.emitted)} of {len(result.order)} node(s)",
        err=True,
    )

    code = result.code

    # Output
    if output:
        with open(output, "w") as f:
            f.write(code)
        click.echo(f"Written to {output}", err=True)
        click.echo(f"Code size: {len(code):,} bytes", err=True)
    else:
        click.echo(code)


if __name__ == "__main__":
    main()
