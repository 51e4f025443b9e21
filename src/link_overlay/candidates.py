"""Link candidates: terms proposed for the whitelist, awaiting review.

Candidates come from an LLM pass over saved articles. Each candidate keeps a
per-article occurrence count, and ``total_occurrences``/``article_count``
are aggregates over those rows, recalculated whenever they change. Approving
a candidate adds it to the whitelist.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from typing import Optional, Union

from ulid import ULID

from .config import Config, get_config
from .db import ensure_initialized, get_db
from .errors import LinkOverlayError, NotFoundError, ValidationError
from .models import CandidateOccurrence, CandidateStatus, LinkCandidate
from .whitelist import create_whitelist_term

logger = logging.getLogger(__name__)


def count_term_occurrences(content: str, term: str) -> int:
    """Count whole-word, case-insensitive occurrences of a term."""
    pattern = re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)
    return len(pattern.findall(content))


def _row_to_candidate(row: sqlite3.Row) -> LinkCandidate:
    return LinkCandidate(
        id=row["id"],
        term=row["term"],
        term_lower=row["term_lower"],
        source=row["source"],
        status=CandidateStatus(row["status"]),
        total_occurrences=row["total_occurrences"],
        article_count=row["article_count"],
        first_seen_explanation_id=row["first_seen_explanation_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_occurrence(row: sqlite3.Row) -> CandidateOccurrence:
    return CandidateOccurrence(
        id=row["id"],
        candidate_id=row["candidate_id"],
        explanation_id=row["explanation_id"],
        occurrence_count=row["occurrence_count"],
        updated_at=row["updated_at"],
    )


def _fetch_candidate(conn: sqlite3.Connection, candidate_id: str) -> Optional[LinkCandidate]:
    cursor = conn.execute("SELECT * FROM link_candidates WHERE id = ?", (candidate_id,))
    row = cursor.fetchone()
    return _row_to_candidate(row) if row else None


def _upsert_candidate(conn: sqlite3.Connection, term: str, explanation_id: int) -> LinkCandidate:
    if not isinstance(term, str):
        raise ValidationError(f"Candidate term must be a string, got {type(term).__name__}")
    term = term.strip()
    if not term:
        raise ValidationError("Candidate term must not be empty")
    term_lower = term.lower()

    cursor = conn.execute("SELECT * FROM link_candidates WHERE term_lower = ?", (term_lower,))
    row = cursor.fetchone()
    if row is not None:
        return _row_to_candidate(row)

    candidate_id = str(ULID())
    conn.execute(
        """
        INSERT INTO link_candidates (id, term, term_lower, source, status, first_seen_explanation_id)
        VALUES (?, ?, ?, 'llm', ?, ?)
        """,
        (candidate_id, term, term_lower, CandidateStatus.PENDING.value, explanation_id),
    )
    return _fetch_candidate(conn, candidate_id)


def _upsert_occurrence(
    conn: sqlite3.Connection, candidate_id: str, explanation_id: int, count: int
) -> CandidateOccurrence:
    conn.execute(
        """
        INSERT INTO candidate_occurrences (candidate_id, explanation_id, occurrence_count)
        VALUES (?, ?, ?)
        ON CONFLICT(candidate_id, explanation_id) DO UPDATE SET
            occurrence_count = excluded.occurrence_count,
            updated_at = CURRENT_TIMESTAMP
        """,
        (candidate_id, explanation_id, count),
    )
    cursor = conn.execute(
        "SELECT * FROM candidate_occurrences WHERE candidate_id = ? AND explanation_id = ?",
        (candidate_id, explanation_id),
    )
    return _row_to_occurrence(cursor.fetchone())


def _recalculate(conn: sqlite3.Connection, candidate_id: str) -> None:
    conn.execute(
        """
        UPDATE link_candidates SET
            total_occurrences = (
                SELECT COALESCE(SUM(occurrence_count), 0)
                FROM candidate_occurrences WHERE candidate_id = ?
            ),
            article_count = (
                SELECT COUNT(*) FROM candidate_occurrences WHERE candidate_id = ?
            ),
            updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
        """,
        (candidate_id, candidate_id, candidate_id),
    )


# --- Candidate CRUD ---


def upsert_candidate(
    term: str,
    explanation_id: int,
    config: Optional[Config] = None,
) -> LinkCandidate:
    """Get the candidate for a term, creating it if it is new.

    A new candidate starts as ``pending`` with ``explanation_id`` recorded as
    where it was first seen. An existing candidate is returned unchanged.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        candidate = _upsert_candidate(conn, term, explanation_id)
        conn.commit()
        return candidate


def get_candidate(candidate_id: str, config: Optional[Config] = None) -> LinkCandidate:
    """Get a candidate by ID.

    Raises:
        NotFoundError: If no candidate has this ID.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        candidate = _fetch_candidate(conn, candidate_id)

    if candidate is None:
        raise NotFoundError("Candidate", candidate_id)
    return candidate


def list_candidates(
    status: Optional[Union[CandidateStatus, str]] = None,
    config: Optional[Config] = None,
) -> list[LinkCandidate]:
    """List candidates, most frequent first, optionally filtered by status."""
    if config is None:
        config = get_config()

    query = "SELECT * FROM link_candidates"
    params: list = []
    if status is not None:
        try:
            status = CandidateStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid candidate status: {status}") from None
        query += " WHERE status = ?"
        params.append(status.value)
    query += " ORDER BY total_occurrences DESC, term_lower"

    ensure_initialized(config)

    with get_db(config) as conn:
        cursor = conn.execute(query, params)
        return [_row_to_candidate(row) for row in cursor.fetchall()]


def delete_candidate(candidate_id: str, config: Optional[Config] = None) -> None:
    """Delete a candidate and its occurrence rows.

    Raises:
        NotFoundError: If no candidate has this ID.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        cursor = conn.execute("DELETE FROM link_candidates WHERE id = ?", (candidate_id,))
        if cursor.rowcount == 0:
            raise NotFoundError("Candidate", candidate_id)
        conn.commit()


# --- Occurrences ---


def upsert_occurrence(
    candidate_id: str,
    explanation_id: int,
    count: int,
    config: Optional[Config] = None,
) -> CandidateOccurrence:
    """Set how often a candidate occurs in one article.

    Aggregates are not touched; call :func:`recalculate_candidate_aggregates`
    afterwards.
    """
    if config is None:
        config = get_config()

    if count < 0:
        raise ValidationError(f"Occurrence count must be >= 0, got {count}")

    ensure_initialized(config)

    with get_db(config) as conn:
        if _fetch_candidate(conn, candidate_id) is None:
            raise NotFoundError("Candidate", candidate_id)
        occurrence = _upsert_occurrence(conn, candidate_id, explanation_id, count)
        conn.commit()
        return occurrence


def get_occurrences_for_explanation(
    explanation_id: int,
    config: Optional[Config] = None,
) -> list[CandidateOccurrence]:
    """Get every candidate occurrence row recorded for an article."""
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        cursor = conn.execute(
            "SELECT * FROM candidate_occurrences WHERE explanation_id = ? ORDER BY id",
            (explanation_id,),
        )
        return [_row_to_occurrence(row) for row in cursor.fetchall()]


def recalculate_candidate_aggregates(
    candidate_id: Optional[str] = None,
    config: Optional[Config] = None,
) -> None:
    """Recompute total_occurrences and article_count from occurrence rows.

    Args:
        candidate_id: Candidate to recompute. All candidates when None.
        config: Configuration to use.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        if candidate_id is None:
            ids = [row["id"] for row in conn.execute("SELECT id FROM link_candidates")]
        else:
            ids = [candidate_id]

        for cid in ids:
            _recalculate(conn, cid)
        conn.commit()


# --- Article hooks ---


def save_candidates_from_llm(
    explanation_id: int,
    content: str,
    terms: list[str],
    config: Optional[Config] = None,
) -> list[LinkCandidate]:
    """Record LLM-proposed terms for an article.

    Each term is upserted as a candidate and its occurrence count in
    ``content`` stored. A term that fails is logged and skipped; the rest
    are still saved.

    Returns:
        Candidates that were saved, with refreshed aggregates.
    """
    if config is None:
        config = get_config()

    if not terms:
        logger.debug("No candidates to save for explanation %s", explanation_id)
        return []

    ensure_initialized(config)

    affected: list[str] = []
    with get_db(config) as conn:
        for term in terms:
            try:
                candidate = _upsert_candidate(conn, term, explanation_id)
                count = count_term_occurrences(content, term)
                _upsert_occurrence(conn, candidate.id, explanation_id, count)
                conn.commit()
            except (LinkOverlayError, sqlite3.Error) as e:
                conn.rollback()
                logger.error("Error saving candidate %r: %s", term, e)
                continue

            if candidate.id not in affected:
                affected.append(candidate.id)
            logger.debug("Saved candidate %r with %d occurrences", term, count)

        for cid in affected:
            _recalculate(conn, cid)
        conn.commit()

        return [_fetch_candidate(conn, cid) for cid in affected]


def update_occurrences_for_article(
    explanation_id: int,
    content: str,
    config: Optional[Config] = None,
) -> int:
    """Recount the candidates already recorded for an edited article.

    No new candidates are discovered here; only existing occurrence rows
    are refreshed.

    Returns:
        Number of occurrence rows updated.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    updated: list[str] = []
    with get_db(config) as conn:
        cursor = conn.execute(
            """
            SELECT o.candidate_id, c.term
            FROM candidate_occurrences o
            JOIN link_candidates c ON c.id = o.candidate_id
            WHERE o.explanation_id = ?
            ORDER BY o.id
            """,
            (explanation_id,),
        )
        rows = cursor.fetchall()
        if not rows:
            logger.debug("No existing occurrences for explanation %s", explanation_id)
            return 0

        for row in rows:
            count = count_term_occurrences(content, row["term"])
            _upsert_occurrence(conn, row["candidate_id"], explanation_id, count)
            updated.append(row["candidate_id"])
            logger.debug("Updated occurrence for %r: %d", row["term"], count)

        for cid in updated:
            _recalculate(conn, cid)
        conn.commit()

    return len(updated)


# --- Review ---


def _set_status(conn: sqlite3.Connection, candidate_id: str, status: CandidateStatus) -> LinkCandidate:
    conn.execute(
        "UPDATE link_candidates SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
        (status.value, candidate_id),
    )
    return _fetch_candidate(conn, candidate_id)


def approve_candidate(
    candidate_id: str,
    standalone_title: str,
    config: Optional[Config] = None,
) -> LinkCandidate:
    """Add a candidate to the whitelist and mark it approved.

    Raises:
        NotFoundError: If no candidate has this ID.
        ValidationError: If the title is empty or the term is already a
            whitelist alias.
    """
    if config is None:
        config = get_config()

    candidate = get_candidate(candidate_id, config=config)
    create_whitelist_term(candidate.term, standalone_title, config=config)

    with get_db(config) as conn:
        approved = _set_status(conn, candidate_id, CandidateStatus.APPROVED)
        conn.commit()

    logger.info("Approved candidate %r", candidate.term)
    return approved


def reject_candidate(candidate_id: str, config: Optional[Config] = None) -> LinkCandidate:
    """Mark a candidate rejected.

    Raises:
        NotFoundError: If no candidate has this ID.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        if _fetch_candidate(conn, candidate_id) is None:
            raise NotFoundError("Candidate", candidate_id)
        rejected = _set_status(conn, candidate_id, CandidateStatus.REJECTED)
        conn.commit()
        return rejected
