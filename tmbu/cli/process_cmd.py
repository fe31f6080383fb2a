"""CLI command that turns the next inbox message into a blog post."""

from __future__ import annotations

import logging
from typing import Optional

import click
from rich.console import Console
from rich.syntax import Syntax

from tmbu.config import load_settings
from tmbu.errors import VcsError
from tmbu.mail.imap import Mailbox, MailboxError
from tmbu.post.pipeline import ABORTED, SKIPPED, Pipeline
from tmbu.post.render import write_document
from tmbu.prompt import confirm_post
from tmbu.vcs import commit_post

console = Console()
logger = logging.getLogger(__name__)


@click.command("process")
@click.option("--yes", "-y", is_flag=True, help="Accept title and tags without prompting")
@click.option("--no-commit", is_flag=True, help="Write the post but do not git commit it")
@click.option("--dry-run", is_flag=True, help="Print the post; write nothing, delete nothing")
@click.option("--root", default=None, help="Blog root directory (overrides config)")
def process(yes: bool, no_commit: bool, dry_run: bool, root: Optional[str]):
    """Process the first message in the mailbox.

    Only one message is handled per run. A stored post (or a message that
    can never become one) is deleted from the mailbox; aborted messages
    stay for the next run.

    \b
    Examples:
        tmbu process
        tmbu process --yes --no-commit
        tmbu process --dry-run
    """
    settings = load_settings()
    if root:
        settings.blog_root = root

    missing = settings.missing_imap()
    if missing:
        console.print(f"[red]IMAP not configured:[/red] missing {', '.join(missing)}")
        console.print("Set TMBU_IMAP_HOST, TMBU_IMAP_USERNAME and TMBU_IMAP_PASSWORD.")
        return

    pipeline = Pipeline(settings, confirm=None if yes else confirm_post)

    try:
        with Mailbox(
            settings.imap_host,
            settings.imap_username,
            settings.imap_password,
            mailbox=settings.imap_mailbox,
            port=settings.imap_port,
        ) as mailbox:
            fetched = mailbox.fetch_first()
            if fetched is None:
                console.print("[dim]Mailbox empty[/dim]")
                return

            msg_id, raw = fetched
            outcome = pipeline.process(raw)

            if outcome.status == SKIPPED:
                console.print(f"[yellow]Skipped:[/yellow] {outcome.reason}")
                if not dry_run:
                    mailbox.mark_deleted(msg_id)
                return

            if outcome.status == ABORTED:
                console.print(f"[red]Aborted:[/red] {outcome.reason}")
                return

            doc = outcome.document
            if dry_run:
                console.print(f"[bold]{doc.path}[/bold]")
                console.print(Syntax(doc.markdown, "markdown"))
                return

            try:
                write_document(doc)
            except FileExistsError as exc:
                console.print(f"[red]Not stored:[/red] {exc}")
                return

            if not no_commit:
                try:
                    commit_post(settings.root, doc.path, outcome.post.subject)
                except VcsError as exc:
                    # The message stays in the mailbox, so the next run must be able to write it again.
                    doc.path.unlink(missing_ok=True)
                    logger.warning("Removed uncommitted %s", doc.path)
                    console.print(f"[red]Not stored:[/red] {exc}")
                    return

            mailbox.mark_deleted(msg_id)
            console.print(f"[green]✓[/green] Stored {doc.path}")

    except MailboxError as exc:
        console.print(f"[red]Mailbox error:[/red] {exc}")
