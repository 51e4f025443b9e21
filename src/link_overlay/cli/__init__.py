"""Command-line interface for link-overlay."""

from __future__ import annotations

import logging

import click

from .admin import admin
from .articles import headings, override, render
from .candidates import candidates
from .whitelist import whitelist


@click.group()
@click.version_option(package_name="link-overlay")
@click.option("--verbose", "-v", count=True, help="Log more (-v info, -vv debug)")
def main(verbose: int):
    """Link Overlay - inline links from a curated term whitelist.

    Commands are organized into groups:

    \b
      admin       Database and configuration setup
      whitelist   Manage whitelist terms, aliases and the snapshot
      override    Per-article overrides
      headings    Per-article heading title cache
      candidates  Review LLM-proposed whitelist terms
      render      Resolve and apply links to an article
    """
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# Register command groups
main.add_command(admin)
main.add_command(whitelist)
main.add_command(override)
main.add_command(headings)
main.add_command(candidates)
main.add_command(render)


if __name__ == "__main__":
    main()
