"""tmbu CLI — turn shared-link e-mails into blog posts."""

import logging

import click
from rich.logging import RichHandler

from tmbu.cli.config_cmd import config
from tmbu.cli.process_cmd import process
from tmbu.cli.render_cmd import render, tags


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """tmbu — turn shared-link e-mails into blog posts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=verbose)],
    )
    # Keep urllib3 connection chatter out of debug output.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


cli.add_command(process)
cli.add_command(render)
cli.add_command(tags)
cli.add_command(config)


if __name__ == "__main__":
    cli()
