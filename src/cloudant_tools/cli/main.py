"""Main CLI entry point."""

import logging
from pathlib import Path

import click
from dotenv import load_dotenv

from cloudant_tools import __version__
from cloudant_tools.client import CloudantConfig

# Load .env from cwd
_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


@click.group()
@click.version_option(version=__version__, prog_name="cloudant")
def cli():
    """Cloudant CLI - Work with Cloudant and CouchDB databases."""
    logging.basicConfig(
        level=CloudantConfig().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def setup_cli():
    """Register all commands."""
    from .databases import db
    from .documents import doc
    from .find import find
    from .server import server

    cli.add_command(server)
    cli.add_command(db)
    cli.add_command(doc)
    cli.add_command(find)


setup_cli()


def main():
    """Entry point for cloudant CLI."""
    cli()


if __name__ == "__main__":
    main()
