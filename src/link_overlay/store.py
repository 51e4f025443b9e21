"""Row-level access to the whitelist, override and heading tables.

These functions take an open connection from :func:`link_overlay.db.get_db`
and do no validation of their own; the service modules validate first.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Iterable, Optional

from .models import (
    CustomTitleOverride,
    DisabledOverride,
    HeadingLink,
    LinkOverride,
    OverrideType,
    WhitelistAlias,
    WhitelistCacheEntry,
    WhitelistSnapshot,
    WhitelistTerm,
)

SNAPSHOT_ROW_ID = 1


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def row_to_term(row: sqlite3.Row) -> WhitelistTerm:
    """Convert a link_whitelist row to a WhitelistTerm."""
    return WhitelistTerm(
        id=row["id"],
        canonical_term=row["canonical_term"],
        canonical_term_lower=row["canonical_term_lower"],
        standalone_title=row["standalone_title"],
        description=row["description"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def row_to_alias(row: sqlite3.Row) -> WhitelistAlias:
    """Convert a link_whitelist_aliases row to a WhitelistAlias."""
    return WhitelistAlias(
        id=row["id"],
        whitelist_id=row["whitelist_id"],
        alias_term=row["alias_term"],
        alias_term_lower=row["alias_term_lower"],
        created_at=row["created_at"],
    )


def row_to_override(row: sqlite3.Row) -> LinkOverride:
    """Convert an article_link_overrides row to its tagged variant."""
    if row["override_type"] == OverrideType.CUSTOM_TITLE.value:
        return CustomTitleOverride(
            explanation_id=row["explanation_id"],
            term=row["term"],
            term_lower=row["term_lower"],
            custom_standalone_title=row["custom_standalone_title"],
            id=row["id"],
            created_at=row["created_at"],
        )
    return DisabledOverride(
        explanation_id=row["explanation_id"],
        term=row["term"],
        term_lower=row["term_lower"],
        id=row["id"],
        created_at=row["created_at"],
    )


# --- Whitelist ---


def list_active_terms(conn: sqlite3.Connection) -> list[WhitelistTerm]:
    """All active whitelist terms, ordered by canonical term."""
    cursor = conn.execute(
        "SELECT * FROM link_whitelist WHERE is_active = 1 ORDER BY canonical_term"
    )
    return [row_to_term(row) for row in cursor.fetchall()]


def list_aliases_for_terms(
    conn: sqlite3.Connection, ids: Iterable[str]
) -> list[WhitelistAlias]:
    """Aliases owned by any of the given term ids, in insertion order."""
    ids = list(ids)
    if not ids:
        return []

    placeholders = ",".join("?" * len(ids))
    cursor = conn.execute(
        f"SELECT * FROM link_whitelist_aliases WHERE whitelist_id IN ({placeholders}) "
        "ORDER BY created_at, rowid",
        ids,
    )
    return [row_to_alias(row) for row in cursor.fetchall()]


# --- Snapshot ---


def _decode_snapshot_data(raw: str) -> dict[str, WhitelistCacheEntry]:
    """Decode snapshot JSON, sharing one entry instance per distinct value."""
    shared: dict[tuple[str, str], WhitelistCacheEntry] = {}
    data = {}
    for key, value in json.loads(raw).items():
        ident = (value["canonical_term"], value["standalone_title"])
        entry = shared.get(ident)
        if entry is None:
            entry = shared[ident] = WhitelistCacheEntry(*ident)
        data[key] = entry
    return data


def _encode_snapshot_data(data) -> str:
    return json.dumps(
        {
            key: {
                "canonical_term": entry.canonical_term,
                "standalone_title": entry.standalone_title,
            }
            for key, entry in data.items()
        }
    )


def get_snapshot(conn: sqlite3.Connection) -> Optional[WhitelistSnapshot]:
    """The stored snapshot, or None if it was never built."""
    cursor = conn.execute(
        "SELECT version, data, updated_at FROM link_whitelist_snapshot WHERE id = ?",
        (SNAPSHOT_ROW_ID,),
    )
    row = cursor.fetchone()
    if row is None:
        return None

    return WhitelistSnapshot(
        version=row["version"],
        data=_decode_snapshot_data(row["data"]),
        updated_at=row["updated_at"],
    )


def get_snapshot_version(conn: sqlite3.Connection) -> int:
    """Current snapshot version, 0 when no snapshot exists."""
    cursor = conn.execute(
        "SELECT version FROM link_whitelist_snapshot WHERE id = ?",
        (SNAPSHOT_ROW_ID,),
    )
    row = cursor.fetchone()
    return row["version"] if row else 0


def upsert_snapshot(
    conn: sqlite3.Connection, snapshot: WhitelistSnapshot
) -> WhitelistSnapshot:
    """Replace the single snapshot row. Does not commit."""
    updated_at = snapshot.updated_at or _now()
    conn.execute(
        """
        INSERT INTO link_whitelist_snapshot (id, version, data, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            version = excluded.version,
            data = excluded.data,
            updated_at = excluded.updated_at
        """,
        (SNAPSHOT_ROW_ID, snapshot.version, _encode_snapshot_data(snapshot.data), updated_at),
    )
    return WhitelistSnapshot(
        version=snapshot.version, data=snapshot.data, updated_at=updated_at
    )


# --- Overrides ---


def list_overrides_for_article(
    conn: sqlite3.Connection, explanation_id: int
) -> list[LinkOverride]:
    """All overrides scoped to one article, ordered by term."""
    cursor = conn.execute(
        "SELECT * FROM article_link_overrides WHERE explanation_id = ? ORDER BY term_lower",
        (explanation_id,),
    )
    return [row_to_override(row) for row in cursor.fetchall()]


# --- Heading links ---


def list_heading_links(
    conn: sqlite3.Connection, explanation_id: int
) -> list[HeadingLink]:
    """All cached heading titles for one article."""
    cursor = conn.execute(
        "SELECT * FROM article_heading_links WHERE explanation_id = ? ORDER BY rowid",
        (explanation_id,),
    )
    return [
        HeadingLink(
            explanation_id=row["explanation_id"],
            heading_text=row["heading_text"],
            heading_text_lower=row["heading_text_lower"],
            standalone_title=row["standalone_title"],
            created_at=row["created_at"],
        )
        for row in cursor.fetchall()
    ]


def upsert_heading_links(
    conn: sqlite3.Connection, explanation_id: int, records: list[HeadingLink]
) -> None:
    """Insert or update heading titles by (explanation_id, heading_text_lower)."""
    conn.executemany(
        """
        INSERT INTO article_heading_links
            (explanation_id, heading_text, heading_text_lower, standalone_title)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(explanation_id, heading_text_lower) DO UPDATE SET
            heading_text = excluded.heading_text,
            standalone_title = excluded.standalone_title
        """,
        [
            (explanation_id, r.heading_text, r.heading_text_lower, r.standalone_title)
            for r in records
        ],
    )
