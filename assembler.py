#!/usr/bin/env python3
"""
Document Assembler

Command line interface for the template resolution engine.
Provides commands for:
- Resolving plain-text templates against case data
- Generating .docx documents from Word templates
- Listing the placeholders a template uses
- Checking a template for unresolved placeholders and markup problems
"""
import io
import json
import logging
import sys
from pathlib import Path

import click
from docx import Document
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config import LOG_LEVEL
from diagnostics import Diagnostics
from docx_adapter import extract_regions, generate_docx
from models import CaseData
from placeholders import scan_placeholders
from resolver import TemplateResolver


console = Console()


def load_case_data(path: Path) -> CaseData:
    """Read a case data JSON file."""
    with open(path, encoding="utf-8") as f:
        return CaseData.from_dict(json.load(f))


def read_template_text(path: Path) -> str:
    """Template text; .docx files are flattened region by region."""
    if path.suffix.lower() == ".docx":
        doc = Document(io.BytesIO(path.read_bytes()))
        return "\n".join(extract_regions(doc, mark_tables=False).values())
    return path.read_text(encoding="utf-8")


def _load_or_exit(data_path: Path) -> CaseData:
    try:
        return load_case_data(data_path)
    except (OSError, ValueError, KeyError, TypeError) as e:
        console.print(f"[red]Could not read case data {data_path}: {escape(str(e))}[/red]")
        sys.exit(1)


def print_diagnostics(diagnostics: Diagnostics):
    if diagnostics.ok:
        console.print("[green]No problems found[/green]")
        return

    if diagnostics.unresolved:
        table = Table(title="Unresolved Placeholders")
        table.add_column("Placeholder", style="cyan")
        table.add_column("Count", justify="right")
        for name, count in diagnostics.unresolved.most_common():
            table.add_row(escape(name), str(count))
        console.print(table)

    for warning in diagnostics.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")


# ============================================================================
# CLI Group
# ============================================================================

@click.group()
@click.version_option(version="1.0.0")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def cli(verbose):
    """
    Document Assembler

    Resolve placeholders, conditional blocks, loops, grammar and article
    numbering in legal document templates.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command()
@click.argument("template", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--data", "-d", "data_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Case data JSON file")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
              help="Write the result here instead of stdout")
@click.option("--prefix", default=None, help="Label for numbered articles")
def resolve(template, data_path, output, prefix):
    """Resolve a plain-text template."""
    case_data = _load_or_exit(data_path)
    resolver = TemplateResolver(numbering_prefix=prefix)
    result = resolver.resolve_text(template.read_text(encoding="utf-8"), case_data=case_data)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.text, encoding="utf-8")
        console.print(f"[green]Written to {output}[/green]")
    else:
        click.echo(result.text)

    if not result.diagnostics.ok:
        print_diagnostics(result.diagnostics)


@cli.command()
@click.argument("template", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--data", "-d", "data_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Case data JSON file")
@click.option("--output", "-o", required=True, type=click.Path(dir_okay=False, path_type=Path),
              help="Output .docx file")
@click.option("--prefix", default=None, help="Label for numbered articles")
def generate(template, data_path, output, prefix):
    """Generate a .docx document from a Word template."""
    case_data = _load_or_exit(data_path)
    resolver = TemplateResolver(numbering_prefix=prefix)

    content, result = generate_docx(template.read_bytes(), case_data, resolver=resolver)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "wb") as f:
        f.write(content)

    console.print(Panel.fit(
        f"[bold]Generated:[/bold] {output}\n"
        f"Regions: {len(result.regions)}\n"
        f"Request: {result.diagnostics.correlation_id}",
        title="Document Generated",
    ))
    if not result.diagnostics.ok:
        print_diagnostics(result.diagnostics)


@cli.command()
@click.argument("template", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def placeholders(template):
    """List the placeholders a template uses."""
    found = scan_placeholders(read_template_text(template))
    if not found:
        console.print("[yellow]No placeholders found[/yellow]")
        return

    table = Table(title=f"Placeholders in {template.name}")
    table.add_column("Name", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Styles")
    table.add_column("Modifiers")
    for item in sorted(found, key=lambda p: p.name.lower()):
        table.add_row(escape(item.name), str(item.occurrences), ", ".join(item.styles), ", ".join(item.modifiers))
    console.print(table)


@cli.command()
@click.argument("template", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--data", "-d", "data_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Case data JSON file")
def check(template, data_path):
    """Resolve a template and report unresolved placeholders and markup problems."""
    case_data = _load_or_exit(data_path)
    result = TemplateResolver().resolve_text(read_template_text(template), case_data=case_data)
    print_diagnostics(result.diagnostics)
    if not result.diagnostics.ok:
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
