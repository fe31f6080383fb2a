"""CLI command for editing the saved configuration."""

from __future__ import annotations

from typing import Any, Dict, Optional

import click
from rich.console import Console

from tmbu.config import PATH_LAYOUTS, load_settings, save_settings

console = Console()


@click.command("config")
@click.option("--blog-root", default=None, help="Blog repository root")
@click.option("--layout", type=click.Choice(PATH_LAYOUTS), default=None, help="Post path layout")
@click.option("--timeout", type=float, default=None, help="HTTP timeout in seconds")
@click.option("--api-host", "api_hosts", multiple=True, help="Instance that answers ActivityPub (repeatable)")
@click.option("--html-host", "html_hosts", multiple=True, help="Instance to scrape as HTML (repeatable)")
@click.option("--publisher", "publishers", multiple=True, metavar="PREFIX=NAME",
              help="Known publisher for statuses without an author (repeatable)")
def config(
    blog_root: Optional[str],
    layout: Optional[str],
    timeout: Optional[float],
    api_hosts: tuple,
    html_hosts: tuple,
    publishers: tuple,
):
    """Show or update the saved configuration.

    \b
    Examples:
        tmbu config
        tmbu config --blog-root ~/blog --layout flat
        tmbu config --html-host social.example --publisher https://social.example/@news/=News
    """
    stored = load_settings(use_env=False)

    changes: Dict[str, Any] = {}
    if blog_root:
        changes["blog_root"] = blog_root
    if layout:
        changes["path_layout"] = layout
    if timeout is not None:
        changes["http_timeout"] = timeout
    if api_hosts:
        changes["api_hosts"] = sorted(set(stored.api_hosts) | set(api_hosts))
    if html_hosts:
        changes["html_hosts"] = sorted(set(stored.html_hosts) | set(html_hosts))
    if publishers:
        known = dict(stored.known_publishers)
        for item in publishers:
            prefix, sep, name = item.rpartition("=")
            if not sep or not prefix or not name:
                raise click.BadParameter(f"Expected PREFIX=NAME, got {item!r}", param_hint="--publisher")
            known[prefix] = name
        changes["known_publishers"] = known

    if changes:
        console.print(f"[green]✓[/green] Saved {save_settings(changes)}")

    settings = load_settings()

    console.print(f"blog_root:   {settings.blog_root}")
    console.print(f"path_layout: {settings.path_layout}")
    console.print(f"timeout:     {settings.http_timeout}s")
    console.print(f"api_hosts:   {', '.join(settings.api_hosts) or '-'}")
    console.print(f"html_hosts:  {', '.join(settings.html_hosts) or '-'}")
    for prefix, name in sorted(settings.known_publishers.items()):
        console.print(f"publisher:   {prefix} -> {name}")
    console.print(f"imap:        {settings.imap_username or '-'}@{settings.imap_host or '-'}")
