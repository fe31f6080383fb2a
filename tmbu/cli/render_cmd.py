"""CLI commands for working with saved messages and the tag table."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from tmbu.config import PATH_LAYOUTS, load_settings
from tmbu.post.canonical import load_table, titlecase
from tmbu.post.pipeline import RENDERED, Pipeline
from tmbu.post.render import write_document

console = Console()


@click.command("render")
@click.argument("eml", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--offline", is_flag=True, help="Do not fetch statuses or link titles")
@click.option("--root", default=None, help="Blog root directory (overrides config)")
@click.option("--layout", type=click.Choice(PATH_LAYOUTS), default=None, help="Path layout")
@click.option("--write", "write_file", is_flag=True, help="Write the post to its path")
def render(eml: Path, offline: bool, root: Optional[str], layout: Optional[str], write_file: bool):
    """Render a saved .eml message as a post.

    \b
    Examples:
        tmbu render message.eml --offline
        tmbu render message.eml --root ~/blog --write
    """
    settings = load_settings()
    if root:
        settings.blog_root = root
    if layout:
        settings.path_layout = layout

    pipeline = Pipeline(settings, offline=offline)
    outcome = pipeline.process(eml.read_bytes())

    if outcome.status != RENDERED:
        console.print(f"[yellow]{outcome.status.capitalize()}:[/yellow] {outcome.reason}")
        raise SystemExit(1)

    doc = outcome.document
    console.print(f"[bold]{doc.path}[/bold]")
    console.print(Syntax(doc.markdown, "markdown"))

    if write_file:
        try:
            write_document(doc)
        except FileExistsError as exc:
            console.print(f"[red]{exc}[/red]")
            raise SystemExit(1)
        console.print(f"[green]✓[/green] Wrote {doc.path}")


@click.command("tags")
@click.argument("tags", nargs=-1, required=True)
def tags(tags: tuple):
    """Show how tags are canonicalized.

    \b
    Example:
        tmbu tags aws github rust
    """
    settings = load_settings()
    table = load_table(settings.canonical_tags_path)

    out = Table(show_header=True, header_style="bold")
    out.add_column("Tag")
    out.add_column("Title-cased")
    out.add_column("Canonical")
    for tag in tags:
        tag = tag.lstrip("#")
        out.add_row(tag, titlecase(tag), table.lookup(tag))
    console.print(out)
