"""Per-article CLI commands: overrides, heading titles and rendering."""

from __future__ import annotations

import json
import sys
from typing import Optional

import click

from .. import headings as heading_cache
from .. import overrides as article_overrides
from ..config import get_config
from ..errors import NotFoundError, ValidationError
from ..models import OverrideType
from ..render import render_article
from ..resolver import resolve_links_for_article
from .display import format_link, format_override
from .utils import fail, parse_explanation_id


# --- Overrides ---


@click.group()
def override():
    """Per-article overrides of whitelist terms."""
    pass


@override.command("set")
@click.argument("explanation_id")
@click.argument("term")
@click.option("--disable", is_flag=True, help="Never link this term in the article")
@click.option("--title", "-t", "custom_title", help="Link this term to a different standalone title")
def set_override(explanation_id: str, term: str, disable: bool, custom_title: Optional[str]):
    """Disable a term, or retitle it, for one article.

    \b
    Examples:
      link-overlay override set 42 "machine learning" --disable
      link-overlay override set 42 ML --title "Machine Learning (statistics)"
    """
    eid = parse_explanation_id(explanation_id)

    if disable == bool(custom_title):
        fail("Pass exactly one of --disable or --title")

    override_type = OverrideType.DISABLED if disable else OverrideType.CUSTOM_TITLE
    try:
        result = article_overrides.set_override(eid, term, override_type, custom_title)
    except ValidationError as e:
        fail(str(e))

    click.echo(f"Override for explanation {eid}: {format_override(result)}")


@override.command("list")
@click.argument("explanation_id")
def list_overrides(explanation_id: str):
    """List overrides for an article."""
    eid = parse_explanation_id(explanation_id)
    results = article_overrides.list_overrides(eid)

    if not results:
        click.echo(f"No overrides for explanation {eid}.")
        return

    for result in results:
        click.echo(format_override(result))


@override.command("delete")
@click.argument("explanation_id")
@click.argument("term", required=False)
@click.option("--all", "delete_all", is_flag=True, help="Remove every override for the article")
def delete_override(explanation_id: str, term: Optional[str], delete_all: bool):
    """Remove an override (or all of them with --all)."""
    eid = parse_explanation_id(explanation_id)

    if delete_all:
        count = article_overrides.delete_overrides_for_article(eid)
        click.echo(f"Removed {count} override(s) for explanation {eid}")
        return

    if not term:
        fail("TERM is required unless --all is given")

    try:
        article_overrides.delete_override(eid, term)
    except NotFoundError as e:
        fail(str(e))

    click.echo(f"Removed override for '{term}' in explanation {eid}")


# --- Heading titles ---


@click.group()
def headings():
    """Per-article cache of heading standalone titles."""
    pass


@headings.command("show")
@click.argument("explanation_id")
def show_headings(explanation_id: str):
    """Show cached heading titles for an article."""
    eid = parse_explanation_id(explanation_id)
    cached = heading_cache.get_heading_links_for_article(eid)

    if not cached:
        click.echo(f"No cached headings for explanation {eid}.")
        return

    for heading_text, title in cached.items():
        click.echo(f"{heading_text} -> {title}")


@headings.command("generate")
@click.argument("explanation_id")
@click.argument("file", type=click.File("r"))
@click.option("--title", "-t", "article_title", required=True, help="Article title")
@click.option("--requester", "-r", required=True, help="ID of the user the titles are generated for")
@click.option("--dry-run", is_flag=True, help="Show generated titles without saving them")
def generate_headings(
    explanation_id: str,
    file,
    article_title: str,
    requester: str,
    dry_run: bool,
):
    """Generate and cache standalone titles for an article's headings.

    Requires 'titles' configuration in config.yaml with backend and model settings.
    """
    eid = parse_explanation_id(explanation_id)
    config = get_config()

    if not config.titles.enabled:
        click.echo("Error: Title generation not configured.", err=True)
        click.echo("Add to config.yaml:", err=True)
        click.echo("  titles:", err=True)
        click.echo("    backend: anthropic  # or: openai", err=True)
        click.echo("    model: claude-3-haiku-20240307  # or: gpt-4o-mini", err=True)
        sys.exit(1)

    content = file.read()
    try:
        titles = heading_cache.generate_heading_standalone_titles(
            content, article_title, requester, config=config
        )
    except ValidationError as e:
        fail(str(e))

    if not titles:
        click.echo("No titles generated.")
        return

    for heading_text, title in titles.items():
        click.echo(f"{heading_text} -> {title}")

    if dry_run:
        return

    heading_cache.save_heading_links(eid, titles, config=config)
    click.echo(f"Saved {len(titles)} heading title(s) for explanation {eid}")


@headings.command("clear")
@click.argument("explanation_id")
def clear_headings(explanation_id: str):
    """Delete every cached heading title for an article."""
    eid = parse_explanation_id(explanation_id)
    count = heading_cache.delete_heading_links_for_article(eid)
    click.echo(f"Removed {count} cached heading(s) for explanation {eid}")


# --- Rendering ---


@click.command()
@click.argument("explanation_id")
@click.argument("file", type=click.File("r"))
@click.option("--links-only", is_flag=True, help="List resolved links instead of rendering")
@click.option("--json", "json_output", is_flag=True, help="Machine-readable JSON output (with --links-only)")
def render(explanation_id: str, file, links_only: bool, json_output: bool):
    """Render an article's markdown with inline links applied.

    FILE may be '-' to read from stdin.
    """
    eid = parse_explanation_id(explanation_id)
    content = file.read()

    if not links_only:
        click.echo(render_article(eid, content), nl=False)
        return

    links = resolve_links_for_article(eid, content)

    if json_output:
        click.echo(json.dumps([link.to_dict() for link in links], indent=2))
        return

    if not links:
        click.echo("No links.")
        return

    for link in links:
        click.echo(format_link(link))
