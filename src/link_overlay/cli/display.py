"""CLI display and formatting functions."""

from __future__ import annotations

from typing import Optional

from ..models import (
    CustomTitleOverride,
    LinkCandidate,
    LinkOverride,
    ResolvedLink,
    WhitelistAlias,
    WhitelistSnapshot,
    WhitelistTerm,
)


def format_term(term: WhitelistTerm, aliases: Optional[list[WhitelistAlias]] = None) -> str:
    """Format a whitelist term for display."""
    lines = [f"[{term.id}] {term.canonical_term}"]
    status = "active" if term.is_active else "inactive"
    lines.append(f"  title: {term.standalone_title} | {status}")

    if term.description:
        lines.append(f"  description: {term.description}")

    if aliases is not None:
        if aliases:
            for alias in aliases:
                lines.append(f"  alias: [{alias.id}] {alias.alias_term}")
        else:
            lines.append("  aliases: (none)")

    return "\n".join(lines)


def term_to_dict(term: WhitelistTerm) -> dict:
    return {
        "id": term.id,
        "canonical_term": term.canonical_term,
        "standalone_title": term.standalone_title,
        "description": term.description,
        "is_active": term.is_active,
    }


def format_override(override: LinkOverride) -> str:
    """Format an override for display."""
    if isinstance(override, CustomTitleOverride):
        return f"{override.term} -> {override.custom_standalone_title}"
    return f"{override.term} (disabled)"


def format_snapshot(snapshot: WhitelistSnapshot) -> str:
    lines = [f"Snapshot v{snapshot.version} ({len(snapshot.data)} keys)"]
    if snapshot.updated_at:
        lines.append(f"  updated: {snapshot.updated_at}")
    for key in sorted(snapshot.data):
        entry = snapshot.data[key]
        lines.append(f"  {key} -> {entry.standalone_title} ({entry.canonical_term})")
    return "\n".join(lines)


def format_candidate(candidate: LinkCandidate) -> str:
    """Format a link candidate for display."""
    return (
        f"[{candidate.id}] {candidate.term} ({candidate.status.value})\n"
        f"  occurrences: {candidate.total_occurrences} in {candidate.article_count} article(s)"
    )


def format_link(link: ResolvedLink) -> str:
    text = link.term.replace("\n", " ")
    return f"{link.start_index:>6}-{link.end_index:<6} [{link.type.value}] {text} -> {link.standalone_title}"
