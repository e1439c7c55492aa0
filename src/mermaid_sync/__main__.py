"""CLI entry point for mermaid-sync."""

import logging
import sys

import click

from mermaid_sync.config import GeneratorOptions
from mermaid_sync.generators import generate
from mermaid_sync.ir.graph import GraphIR
from mermaid_sync.parsers import DIAGRAM_TYPES, detect_type, parse


def _format_stats(diagram_type: str, gir: GraphIR) -> str:
    lines = [
        f"type: {diagram_type}",
        f"nodes: {gir.node_count()}",
        f"edges: {gir.edge_count()}",
        f"acyclic: {'yes' if gir.is_dag() else 'no'}",
    ]
    isolated = gir.isolated()
    if isolated:
        lines.append(f"isolated: {', '.join(isolated)}")
    return "\n".join(lines) + "\n"


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option("--type", "-t", "diagram_type", type=click.Choice(DIAGRAM_TYPES), default=None, help="Diagram dialect (auto-detected from the header when omitted)")
@click.option("--indent", "-i", "indent", type=click.IntRange(min=0), default=4, help="Spaces per indentation level in generated text")
@click.option("--check", is_flag=True, help="Only validate the input; print nothing on success")
@click.option("--stats", is_flag=True, help="Print a graph summary instead of regenerated text")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@click.option("--verbose", "-v", is_flag=True, help="Log parser and generator decisions to stderr")
def main(
    input: str | None,
    diagram_type: str | None,
    indent: int,
    check: bool,
    stats: bool,
    output: str | None,
    verbose: bool,
) -> None:
    """Parse Mermaid ER, flowchart or sequence text and print it back in canonical form."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if input:
        try:
            with open(input) as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)
    else:
        text = sys.stdin.read()

    diagram_type = diagram_type or detect_type(text)
    result = parse(text, diagram_type)
    if not result.success:
        click.echo("parse error:", err=True)
        for error in result.errors:
            click.echo(f"  {error}", err=True)
        sys.exit(1)

    if check:
        return

    if stats:
        rendered = _format_stats(diagram_type, GraphIR.from_diagram(result.diagram))
    else:
        rendered = generate(result.diagram, GeneratorOptions(indent_size=indent)) + "\n"

    if output:
        try:
            with open(output, "w") as f:
                f.write(rendered)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered, nl=False)


if __name__ == "__main__":
    main()
