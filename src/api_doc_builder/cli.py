"""CLI entry point for api-doc-builder."""

import importlib
from pathlib import Path

import click

from api_doc_builder.document import DocumentBuilder, find_dangling_refs, render_document, resolve_format, write_document
from api_doc_builder.exceptions import TargetResolutionError
from api_doc_builder.logging import configure_logging


def _load_builder(target: str) -> DocumentBuilder:
    """Resolve ``module:attribute`` to a builder, calling the attribute if it is a factory."""
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise TargetResolutionError(f"expected 'module:attribute', got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise TargetResolutionError(f"cannot import {module_name!r}: {e}") from e
    try:
        obj = getattr(module, attr)
    except AttributeError as e:
        raise TargetResolutionError(f"{module_name!r} has no attribute {attr!r}") from e

    if not isinstance(obj, DocumentBuilder) and callable(obj):
        obj = obj()
    if not isinstance(obj, DocumentBuilder):
        raise TargetResolutionError(f"{target!r} is not a DocumentBuilder")
    return obj


def _build(target: str) -> dict:
    try:
        builder = _load_builder(target)
    except TargetResolutionError as e:
        raise click.ClickException(str(e)) from e
    return builder.build()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Doc Builder — assemble an OpenAPI document from route descriptors."""
    configure_logging(debug=verbose)


@main.command()
@click.argument("target")
@click.option("-o", "--output", default="openapi.json", show_default=True, type=click.Path(path_type=Path), help="Output file path.")
@click.option("--format", "fmt", default="auto", type=click.Choice(["auto", "json", "yaml"]), help="Output format, from the suffix when auto.")
def build(target: str, output: Path, fmt: str):
    """Build the document from TARGET (module:attribute) and write it."""
    click.echo(f"Loading {target}...")
    document = _build(target)
    click.echo(f"Found {len(document['paths'])} paths, {len(document['components']['schemas'])} schemas.")

    dangling = find_dangling_refs(document)
    write_document(document, output, fmt)
    click.echo(f"Document saved to {output}")

    if dangling:
        for ref in dangling:
            click.echo(f"  Dangling reference: {ref}", err=True)
        raise SystemExit(1)


@main.command()
@click.argument("target")
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Previously written document.")
@click.option("--format", "fmt", default="auto", type=click.Choice(["auto", "json", "yaml"]), help="Output format, from the suffix when auto.")
def check(target: str, output: Path, fmt: str):
    """Verify that OUTPUT matches a fresh build of TARGET."""
    if not output.exists():
        click.echo(f"{output} does not exist. Run 'api-doc build' first.", err=True)
        raise SystemExit(1)

    document = _build(target)
    expected = render_document(document, resolve_format(output, fmt))
    if output.read_text(encoding="utf-8") != expected:
        click.echo(f"{output} is out of date. Run 'api-doc build' to regenerate it.", err=True)
        raise SystemExit(1)
    click.echo(f"{output} is up to date.")
