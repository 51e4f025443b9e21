"""Whitelist terms, aliases and the versioned lookup snapshot.

Every mutation here rebuilds the snapshot inside the same transaction, so the
stored lookup map is never left describing a half-applied change. Rebuilds
are always full: the map is regenerated from the current active terms and
their aliases, and the version goes up by exactly one.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from ulid import ULID

from . import store
from .config import Config, get_config
from .db import ensure_initialized, get_db
from .errors import NotFoundError, ValidationError
from .models import (
    WhitelistAlias,
    WhitelistCacheEntry,
    WhitelistSnapshot,
    WhitelistTerm,
)

logger = logging.getLogger(__name__)


def _generate_id() -> str:
    """Generate a new ULID for a whitelist row."""
    return str(ULID())


def _require_text(value: Optional[str], field: str) -> str:
    """Trim a required text field, rejecting empty values."""
    if value is None or not value.strip():
        raise ValidationError(f"{field} must not be empty")
    return value.strip()


def _fetch_term(conn: sqlite3.Connection, term_id: str) -> Optional[WhitelistTerm]:
    cursor = conn.execute("SELECT * FROM link_whitelist WHERE id = ?", (term_id,))
    row = cursor.fetchone()
    return store.row_to_term(row) if row else None


def _alias_owner(conn: sqlite3.Connection, term_lower: str) -> Optional[str]:
    """Id of the term owning an alias with this lowercase text, if any."""
    cursor = conn.execute(
        "SELECT whitelist_id FROM link_whitelist_aliases WHERE alias_term_lower = ?",
        (term_lower,),
    )
    row = cursor.fetchone()
    return row["whitelist_id"] if row else None


# --- Lookup map and snapshot ---


def _build_whitelist_map(conn: sqlite3.Connection) -> dict[str, WhitelistCacheEntry]:
    terms = store.list_active_terms(conn)
    aliases = store.list_aliases_for_terms(conn, [t.id for t in terms])

    data: dict[str, WhitelistCacheEntry] = {}
    entries_by_id: dict[str, WhitelistCacheEntry] = {}

    for term in terms:
        entry = WhitelistCacheEntry(
            canonical_term=term.canonical_term,
            standalone_title=term.standalone_title,
        )
        entries_by_id[term.id] = entry
        data[term.canonical_term_lower] = entry

    # Aliases point at their parent's entry object, never a copy
    for alias in aliases:
        parent = entries_by_id.get(alias.whitelist_id)
        if parent is None:
            continue
        claimed = data.get(alias.alias_term_lower)
        if claimed is not None:
            if claimed is not parent:
                logger.warning(
                    "Alias %r of %r collides with %r; keeping the first",
                    alias.alias_term, parent.canonical_term, claimed.canonical_term,
                )
            continue
        data[alias.alias_term_lower] = parent

    return data


def build_whitelist_map(config: Optional[Config] = None) -> dict[str, WhitelistCacheEntry]:
    """Build the lookup map of active terms and aliases.

    Keys are lowercased canonical terms and aliases. An alias maps to the
    same :class:`WhitelistCacheEntry` instance as its parent term.

    Args:
        config: Configuration to use.

    Returns:
        Dict of lowercase key -> cache entry.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        return _build_whitelist_map(conn)


def write_snapshot(conn: sqlite3.Connection) -> WhitelistSnapshot:
    """Regenerate and store the snapshot on an open connection. Does not commit."""
    version = store.get_snapshot_version(conn) + 1
    data = _build_whitelist_map(conn)
    snapshot = store.upsert_snapshot(conn, WhitelistSnapshot(version=version, data=data))
    logger.info("Rebuilt whitelist snapshot v%d (%d keys)", version, len(data))
    return snapshot


def rebuild_snapshot(config: Optional[Config] = None) -> WhitelistSnapshot:
    """Rebuild the whitelist snapshot from the current tables.

    Args:
        config: Configuration to use.

    Returns:
        The new snapshot, with version one higher than the previous one.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        snapshot = write_snapshot(conn)
        conn.commit()

    return snapshot


def get_snapshot(config: Optional[Config] = None) -> WhitelistSnapshot:
    """Get the stored whitelist snapshot, building it first if absent.

    The stored snapshot is returned as-is. It is only refreshed by
    mutations, never by age.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        snapshot = store.get_snapshot(conn)
        if snapshot is None:
            snapshot = write_snapshot(conn)
            conn.commit()

    return snapshot


# --- Term CRUD ---


def create_whitelist_term(
    canonical_term: str,
    standalone_title: str,
    description: Optional[str] = None,
    is_active: bool = True,
    config: Optional[Config] = None,
) -> WhitelistTerm:
    """Add a term to the whitelist.

    Creating a term whose lowercase form already exists returns the existing
    row unchanged.

    Args:
        canonical_term: The term as it should be displayed.
        standalone_title: Title of the standalone page the term links to.
        description: Optional admin notes.
        is_active: Whether the term takes part in resolution.
        config: Configuration to use.

    Returns:
        The new or existing whitelist term.

    Raises:
        ValidationError: If the term or title is empty, or the term is
            already used as an alias.
    """
    if config is None:
        config = get_config()

    canonical_term = _require_text(canonical_term, "canonical_term")
    standalone_title = _require_text(standalone_title, "standalone_title")
    term_lower = canonical_term.lower()

    ensure_initialized(config)

    with get_db(config) as conn:
        cursor = conn.execute(
            "SELECT * FROM link_whitelist WHERE canonical_term_lower = ?",
            (term_lower,),
        )
        existing = cursor.fetchone()
        if existing is not None:
            return store.row_to_term(existing)

        if _alias_owner(conn, term_lower) is not None:
            raise ValidationError(f"'{canonical_term}' is already an alias of another term")

        term_id = _generate_id()
        conn.execute(
            """
            INSERT INTO link_whitelist
                (id, canonical_term, canonical_term_lower, standalone_title, description, is_active)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (term_id, canonical_term, term_lower, standalone_title, description, int(is_active)),
        )
        write_snapshot(conn)
        conn.commit()

        return _fetch_term(conn, term_id)


def get_whitelist_term(term_id: str, config: Optional[Config] = None) -> WhitelistTerm:
    """Get a whitelist term by ID.

    Raises:
        NotFoundError: If no term has this ID.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        term = _fetch_term(conn, term_id)

    if term is None:
        raise NotFoundError("Whitelist term", term_id)
    return term


def find_whitelist_term(term: str, config: Optional[Config] = None) -> Optional[WhitelistTerm]:
    """Look up a whitelist term by its text (case-insensitive)."""
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        cursor = conn.execute(
            "SELECT * FROM link_whitelist WHERE canonical_term_lower = ?",
            (term.strip().lower(),),
        )
        row = cursor.fetchone()
        return store.row_to_term(row) if row else None


def list_whitelist_terms(
    include_inactive: bool = False,
    config: Optional[Config] = None,
) -> list[WhitelistTerm]:
    """List whitelist terms ordered by canonical term."""
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        if not include_inactive:
            return store.list_active_terms(conn)
        cursor = conn.execute("SELECT * FROM link_whitelist ORDER BY canonical_term")
        return [store.row_to_term(row) for row in cursor.fetchall()]


def update_whitelist_term(
    term_id: str,
    canonical_term: Optional[str] = None,
    standalone_title: Optional[str] = None,
    description: Optional[str] = None,
    is_active: Optional[bool] = None,
    config: Optional[Config] = None,
) -> WhitelistTerm:
    """Update an existing whitelist term.

    ``canonical_term_lower`` follows ``canonical_term``. Fields left as None
    are unchanged; an update that changes nothing does not rebuild.

    Raises:
        NotFoundError: If no term has this ID.
        ValidationError: If a value is empty or the new term collides with
            another term or another term's alias.
    """
    if config is None:
        config = get_config()

    updates = []
    params: list = []

    if canonical_term is not None:
        canonical_term = _require_text(canonical_term, "canonical_term")
        updates.extend(["canonical_term = ?", "canonical_term_lower = ?"])
        params.extend([canonical_term, canonical_term.lower()])
    if standalone_title is not None:
        updates.append("standalone_title = ?")
        params.append(_require_text(standalone_title, "standalone_title"))
    if description is not None:
        updates.append("description = ?")
        params.append(description)
    if is_active is not None:
        updates.append("is_active = ?")
        params.append(int(is_active))

    ensure_initialized(config)

    with get_db(config) as conn:
        existing = _fetch_term(conn, term_id)
        if existing is None:
            raise NotFoundError("Whitelist term", term_id)

        if not updates:
            return existing

        if canonical_term is not None:
            term_lower = canonical_term.lower()
            cursor = conn.execute(
                "SELECT id FROM link_whitelist WHERE canonical_term_lower = ? AND id != ?",
                (term_lower, term_id),
            )
            if cursor.fetchone() is not None:
                raise ValidationError(f"Whitelist term already exists: {canonical_term}")
            owner = _alias_owner(conn, term_lower)
            if owner is not None and owner != term_id:
                raise ValidationError(f"'{canonical_term}' is already an alias of another term")

        updates.append("updated_at = CURRENT_TIMESTAMP")
        params.append(term_id)
        conn.execute(f"UPDATE link_whitelist SET {', '.join(updates)} WHERE id = ?", params)

        write_snapshot(conn)
        conn.commit()

        return _fetch_term(conn, term_id)


def delete_whitelist_term(term_id: str, config: Optional[Config] = None) -> None:
    """Delete a whitelist term and its aliases.

    Raises:
        NotFoundError: If no term has this ID.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        if _fetch_term(conn, term_id) is None:
            raise NotFoundError("Whitelist term", term_id)

        # Cascades to link_whitelist_aliases via FK
        conn.execute("DELETE FROM link_whitelist WHERE id = ?", (term_id,))
        write_snapshot(conn)
        conn.commit()


# --- Aliases ---


def add_aliases(
    whitelist_id: str,
    aliases: list[str],
    config: Optional[Config] = None,
) -> list[WhitelistAlias]:
    """Attach aliases to a whitelist term.

    Aliases this term already owns are returned as-is; only new ones are
    inserted. The snapshot is rebuilt only if something was inserted.

    Args:
        whitelist_id: ID of the parent term.
        aliases: Alias texts to add.
        config: Configuration to use.

    Returns:
        Existing aliases followed by newly inserted ones.

    Raises:
        NotFoundError: If the parent term does not exist.
        ValidationError: If an alias is empty, equals a canonical term, or
            already belongs to a different term.
    """
    if config is None:
        config = get_config()

    if not aliases:
        return []

    # Trim, validate and dedupe by lowercase form, keeping the first spelling
    cleaned: dict[str, str] = {}
    for alias in aliases:
        alias_term = _require_text(alias, "alias_term")
        cleaned.setdefault(alias_term.lower(), alias_term)

    lowers = list(cleaned)
    placeholders = ",".join("?" * len(lowers))

    ensure_initialized(config)

    with get_db(config) as conn:
        if _fetch_term(conn, whitelist_id) is None:
            raise NotFoundError("Whitelist term", whitelist_id)

        cursor = conn.execute(
            f"SELECT canonical_term FROM link_whitelist WHERE canonical_term_lower IN ({placeholders})",
            lowers,
        )
        clash = cursor.fetchone()
        if clash is not None:
            raise ValidationError(
                f"Alias collides with whitelist term '{clash['canonical_term']}'"
            )

        cursor = conn.execute(
            f"SELECT * FROM link_whitelist_aliases WHERE alias_term_lower IN ({placeholders})",
            lowers,
        )
        existing = [store.row_to_alias(row) for row in cursor.fetchall()]
        for alias in existing:
            if alias.whitelist_id != whitelist_id:
                raise ValidationError(
                    f"Alias '{alias.alias_term}' already belongs to another term"
                )

        existing_lowers = {a.alias_term_lower for a in existing}
        created = []
        for alias_lower, alias_term in cleaned.items():
            if alias_lower in existing_lowers:
                continue
            alias_id = _generate_id()
            conn.execute(
                """
                INSERT INTO link_whitelist_aliases (id, whitelist_id, alias_term, alias_term_lower)
                VALUES (?, ?, ?, ?)
                """,
                (alias_id, whitelist_id, alias_term, alias_lower),
            )
            cursor = conn.execute(
                "SELECT * FROM link_whitelist_aliases WHERE id = ?", (alias_id,)
            )
            created.append(store.row_to_alias(cursor.fetchone()))

        if created:
            write_snapshot(conn)
            conn.commit()

    return existing + created


def remove_alias(alias_id: str, config: Optional[Config] = None) -> None:
    """Remove a single alias. The parent term is unaffected.

    Raises:
        NotFoundError: If no alias has this ID.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        cursor = conn.execute(
            "DELETE FROM link_whitelist_aliases WHERE id = ?", (alias_id,)
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Alias", alias_id)

        write_snapshot(conn)
        conn.commit()


def list_aliases(whitelist_id: str, config: Optional[Config] = None) -> list[WhitelistAlias]:
    """Get aliases for a whitelist term, ordered by alias text."""
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        cursor = conn.execute(
            "SELECT * FROM link_whitelist_aliases WHERE whitelist_id = ? ORDER BY alias_term",
            (whitelist_id,),
        )
        return [store.row_to_alias(row) for row in cursor.fetchall()]
