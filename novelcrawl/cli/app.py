"""Typer application entry point for the novelcrawl CLI."""

import typer

from novelcrawl.cli.commands import crawl as crawl_command
from novelcrawl.cli.commands import probe as probe_command

app = typer.Typer(no_args_is_help=True, name="novelcrawl")

app.command(name="crawl", help="Download a novel into one text file")(
    crawl_command.crawl_command
)
app.command(name="probe", help="Check a table-of-contents URL")(
    probe_command.probe_command
)


if __name__ == "__main__":
    app()
