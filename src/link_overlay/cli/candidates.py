"""Candidate review CLI commands."""

from __future__ import annotations

import json
from typing import Optional

import click

from .. import candidates as link_candidates
from ..errors import NotFoundError, ValidationError
from ..models import CandidateStatus
from .display import format_candidate
from .utils import fail


@click.group()
def candidates():
    """Review LLM-proposed whitelist terms."""
    pass


@candidates.command("list")
@click.option("--status", "-s", type=click.Choice([s.value for s in CandidateStatus]),
              help="Only show candidates with this status")
@click.option("--json", "json_output", is_flag=True, help="Machine-readable JSON output")
def list_candidates(status: Optional[str], json_output: bool):
    """List candidates, most frequent first."""
    results = link_candidates.list_candidates(status=status)

    if json_output:
        output = [
            {
                "id": c.id,
                "term": c.term,
                "status": c.status.value,
                "total_occurrences": c.total_occurrences,
                "article_count": c.article_count,
            }
            for c in results
        ]
        click.echo(json.dumps(output, indent=2))
        return

    if not results:
        click.echo("No candidates.")
        return

    for candidate in results:
        click.echo(format_candidate(candidate))


@candidates.command("approve")
@click.argument("candidate_id")
@click.option("--title", "-t", "standalone_title", required=True, help="Standalone page title")
def approve(candidate_id: str, standalone_title: str):
    """Add a candidate to the whitelist."""
    try:
        candidate = link_candidates.approve_candidate(candidate_id, standalone_title)
    except (NotFoundError, ValidationError) as e:
        fail(str(e))

    click.echo(f"Approved '{candidate.term}' -> {standalone_title}")


@candidates.command("reject")
@click.argument("candidate_id")
def reject(candidate_id: str):
    """Reject a candidate."""
    try:
        candidate = link_candidates.reject_candidate(candidate_id)
    except NotFoundError as e:
        fail(str(e))

    click.echo(f"Rejected '{candidate.term}'")
