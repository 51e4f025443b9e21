"""Admin CLI commands for database and configuration setup."""

from __future__ import annotations

import click

from ..config import get_config
from ..db import get_db, get_schema_version, init_db

_COUNTED_TABLES = (
    ("link_whitelist", "Whitelist terms"),
    ("link_whitelist_aliases", "Aliases"),
    ("article_link_overrides", "Overrides"),
    ("article_heading_links", "Cached headings"),
    ("link_candidates", "Candidates"),
)


@click.group()
def admin():
    """Database and configuration setup."""
    pass


@admin.command()
def init():
    """Initialize the database and configuration."""
    config = get_config()

    init_db(config)

    # Save default config next to the database if it doesn't exist
    config_path = config.db_path.parent / "config.yaml"
    if not config_path.exists():
        config.save(config_path)

    click.echo(f"Initialized link-overlay at {config.db_path.parent}")
    click.echo(f"  Database: {config.db_path}")
    click.echo(f"  Config: {config_path}")


@admin.command()
def status():
    """Show database location, schema version and row counts."""
    config = get_config()

    version = get_schema_version(config)
    if version is None:
        click.echo(f"Not initialized: {config.db_path}")
        click.echo("Run `link-overlay admin init` first.")
        return

    click.echo(f"Database: {config.db_path}")
    click.echo(f"Schema version: {version}")

    with get_db(config) as conn:
        for table, label in _COUNTED_TABLES:
            count = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            click.echo(f"  {label}: {count}")

        row = conn.execute("SELECT version FROM link_whitelist_snapshot").fetchone()
        click.echo(f"  Snapshot version: {row['version'] if row else '(not built)'}")

    titles = config.titles
    if titles.enabled:
        click.echo(f"Title generation: {titles.backend} / {titles.model}")
    else:
        click.echo("Title generation: not configured")
