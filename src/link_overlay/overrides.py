"""Per-article link overrides.

An override either disables a whitelist term for one article or points it
at a different standalone page. Overrides are keyed by lowercase term.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from ulid import ULID

from . import store
from .config import Config, get_config
from .db import ensure_initialized, get_db
from .errors import NotFoundError, ValidationError
from .models import CustomTitleOverride, DisabledOverride, LinkOverride, OverrideType
from .whitelist import write_snapshot

logger = logging.getLogger(__name__)


def _coerce_override_type(value: Union[OverrideType, str]) -> OverrideType:
    try:
        return OverrideType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in OverrideType)
        raise ValidationError(f"Invalid override_type {value!r} (expected one of: {allowed})") from None


def set_override(
    explanation_id: int,
    term: str,
    override_type: Union[OverrideType, str],
    custom_standalone_title: Optional[str] = None,
    config: Optional[Config] = None,
) -> LinkOverride:
    """Create or replace the override for a term in one article.

    Args:
        explanation_id: The article ID.
        term: The whitelist term (or alias) to override.
        override_type: ``disabled`` or ``custom_title``.
        custom_standalone_title: Required for ``custom_title``; ignored for
            ``disabled``.
        config: Configuration to use.

    Returns:
        The stored override.

    Raises:
        ValidationError: If the term is empty, the type is unknown, or a
            custom title override has no title.
    """
    if config is None:
        config = get_config()

    if isinstance(explanation_id, bool) or not isinstance(explanation_id, int) or explanation_id <= 0:
        raise ValidationError(f"explanation_id must be a positive integer, got {explanation_id!r}")
    if not term or not term.strip():
        raise ValidationError("term must not be empty")

    term = term.strip()
    kind = _coerce_override_type(override_type)

    # Variant construction validates the custom title
    if kind is OverrideType.CUSTOM_TITLE:
        override: LinkOverride = CustomTitleOverride(
            explanation_id=explanation_id,
            term=term,
            term_lower=term.lower(),
            custom_standalone_title=(custom_standalone_title or "").strip(),
        )
        title = override.custom_standalone_title
    else:
        override = DisabledOverride(
            explanation_id=explanation_id,
            term=term,
            term_lower=term.lower(),
        )
        title = None

    ensure_initialized(config)

    with get_db(config) as conn:
        conn.execute(
            """
            INSERT INTO article_link_overrides
                (id, explanation_id, term, term_lower, override_type, custom_standalone_title)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(explanation_id, term_lower) DO UPDATE SET
                term = excluded.term,
                override_type = excluded.override_type,
                custom_standalone_title = excluded.custom_standalone_title
            """,
            (str(ULID()), explanation_id, term, override.term_lower, kind.value, title),
        )
        write_snapshot(conn)
        conn.commit()

        cursor = conn.execute(
            "SELECT * FROM article_link_overrides WHERE explanation_id = ? AND term_lower = ?",
            (explanation_id, override.term_lower),
        )
        return store.row_to_override(cursor.fetchone())


def list_overrides(explanation_id: int, config: Optional[Config] = None) -> list[LinkOverride]:
    """List overrides for an article, ordered by term."""
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        return store.list_overrides_for_article(conn, explanation_id)


def get_overrides_for_article(
    explanation_id: int,
    config: Optional[Config] = None,
) -> dict[str, LinkOverride]:
    """Get overrides for an article keyed by lowercase term."""
    return {o.term_lower: o for o in list_overrides(explanation_id, config=config)}


def delete_override(explanation_id: int, term: str, config: Optional[Config] = None) -> None:
    """Remove the override for one term in one article.

    Raises:
        NotFoundError: If the article has no override for this term.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        cursor = conn.execute(
            "DELETE FROM article_link_overrides WHERE explanation_id = ? AND term_lower = ?",
            (explanation_id, term.strip().lower()),
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Override", f"{explanation_id}/{term}")

        write_snapshot(conn)
        conn.commit()


def delete_overrides_for_article(explanation_id: int, config: Optional[Config] = None) -> int:
    """Remove every override for an article.

    Returns:
        Number of overrides removed.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        cursor = conn.execute(
            "DELETE FROM article_link_overrides WHERE explanation_id = ?",
            (explanation_id,),
        )
        removed = cursor.rowcount
        if removed:
            write_snapshot(conn)
        conn.commit()

    logger.debug("Removed %d overrides for explanation %s", removed, explanation_id)
    return removed
