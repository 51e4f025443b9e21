"""Whitelist CLI commands: terms, aliases and the snapshot."""

from __future__ import annotations

import json
from typing import Optional

import click

from .. import whitelist as wl
from ..errors import NotFoundError, ValidationError
from .display import format_snapshot, format_term, term_to_dict
from .utils import fail


@click.group()
def whitelist():
    """Manage whitelist terms, aliases and the snapshot."""
    pass


@whitelist.command("add")
@click.argument("term")
@click.option("--title", "-t", "standalone_title", required=True, help="Standalone page title")
@click.option("--description", "-d", help="Admin notes")
@click.option("--alias", "-a", "aliases", multiple=True, help="Alias to attach (repeatable)")
@click.option("--inactive", is_flag=True, help="Create the term disabled")
def add(
    term: str,
    standalone_title: str,
    description: Optional[str],
    aliases: tuple,
    inactive: bool,
):
    """Add a term to the whitelist.

    \b
    Examples:
      link-overlay whitelist add "Machine Learning" -t "Machine Learning" -a ML
    """
    try:
        created = wl.create_whitelist_term(
            term, standalone_title, description=description, is_active=not inactive
        )
        alias_rows = wl.add_aliases(created.id, list(aliases)) if aliases else []
    except ValidationError as e:
        fail(str(e))

    click.echo(f"Whitelist term: {created.id}")
    for alias in alias_rows:
        click.echo(f"  alias: {alias.alias_term}")


@whitelist.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive terms")
@click.option("--json", "json_output", is_flag=True, help="Machine-readable JSON output")
def list_terms(include_inactive: bool, json_output: bool):
    """List whitelist terms."""
    terms = wl.list_whitelist_terms(include_inactive=include_inactive)

    if json_output:
        click.echo(json.dumps([term_to_dict(t) for t in terms], indent=2))
        return

    if not terms:
        click.echo("No whitelist terms.")
        return

    for term in terms:
        click.echo(format_term(term))


@whitelist.command("show")
@click.argument("term_id")
def show(term_id: str):
    """Show a term with its aliases."""
    try:
        term = wl.get_whitelist_term(term_id)
    except NotFoundError as e:
        fail(str(e))

    click.echo(format_term(term, wl.list_aliases(term_id)))


@whitelist.command("update")
@click.argument("term_id")
@click.option("--term", "canonical_term", help="New canonical term")
@click.option("--title", "-t", "standalone_title", help="New standalone title")
@click.option("--description", "-d", help="New admin notes")
@click.option("--active/--inactive", "is_active", default=None, help="Enable or disable the term")
def update(
    term_id: str,
    canonical_term: Optional[str],
    standalone_title: Optional[str],
    description: Optional[str],
    is_active: Optional[bool],
):
    """Update a whitelist term."""
    try:
        term = wl.update_whitelist_term(
            term_id,
            canonical_term=canonical_term,
            standalone_title=standalone_title,
            description=description,
            is_active=is_active,
        )
    except (NotFoundError, ValidationError) as e:
        fail(str(e))

    click.echo(f"Updated whitelist term: {term.id}")


@whitelist.command("delete")
@click.argument("term_id")
def delete(term_id: str):
    """Delete a term and its aliases."""
    try:
        wl.delete_whitelist_term(term_id)
    except NotFoundError as e:
        fail(str(e))

    click.echo(f"Deleted whitelist term: {term_id}")


@whitelist.command("alias-add")
@click.argument("term_id")
@click.argument("aliases", nargs=-1, required=True)
def alias_add(term_id: str, aliases: tuple):
    """Attach one or more aliases to a term."""
    try:
        rows = wl.add_aliases(term_id, list(aliases))
    except (NotFoundError, ValidationError) as e:
        fail(str(e))

    for alias in rows:
        click.echo(f"[{alias.id}] {alias.alias_term}")


@whitelist.command("alias-remove")
@click.argument("alias_id")
def alias_remove(alias_id: str):
    """Remove an alias by ID."""
    try:
        wl.remove_alias(alias_id)
    except NotFoundError as e:
        fail(str(e))

    click.echo(f"Removed alias: {alias_id}")


@whitelist.command("snapshot")
@click.option("--json", "json_output", is_flag=True, help="Machine-readable JSON output")
def snapshot(json_output: bool):
    """Show the current whitelist snapshot."""
    snap = wl.get_snapshot()

    if json_output:
        output = {
            "version": snap.version,
            "updated_at": snap.updated_at,
            "data": {
                key: {
                    "canonical_term": entry.canonical_term,
                    "standalone_title": entry.standalone_title,
                }
                for key, entry in sorted(snap.data.items())
            },
        }
        click.echo(json.dumps(output, indent=2))
        return

    click.echo(format_snapshot(snap))


@whitelist.command("rebuild")
def rebuild():
    """Force a full snapshot rebuild."""
    snap = wl.rebuild_snapshot()
    click.echo(f"Rebuilt snapshot v{snap.version} ({len(snap.data)} keys)")
