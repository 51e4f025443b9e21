"""Database schema definitions for link-overlay."""

SCHEMA_VERSION = 2

# Schema creation SQL
SCHEMA_SQL = """
-- Metadata table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    value TEXT
);

-- Whitelisted key terms (not headings)
CREATE TABLE IF NOT EXISTS link_whitelist (
    id TEXT PRIMARY KEY,
    canonical_term TEXT NOT NULL,
    canonical_term_lower TEXT NOT NULL UNIQUE,
    standalone_title TEXT NOT NULL,
    description TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Aliases (many-to-one -> whitelist)
CREATE TABLE IF NOT EXISTS link_whitelist_aliases (
    id TEXT PRIMARY KEY,
    whitelist_id TEXT NOT NULL REFERENCES link_whitelist(id) ON DELETE CASCADE,
    alias_term TEXT NOT NULL,
    alias_term_lower TEXT NOT NULL UNIQUE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Single-row snapshot of the lookup map
CREATE TABLE IF NOT EXISTS link_whitelist_snapshot (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    version INTEGER NOT NULL,
    data TEXT NOT NULL,                     -- JSON object: key -> {canonical_term, standalone_title}
    updated_at TIMESTAMP
);

-- Per-article overrides
CREATE TABLE IF NOT EXISTS article_link_overrides (
    id TEXT PRIMARY KEY,
    explanation_id INTEGER NOT NULL,
    term TEXT NOT NULL,
    term_lower TEXT NOT NULL,
    override_type TEXT NOT NULL CHECK (override_type IN ('custom_title', 'disabled')),
    custom_standalone_title TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (explanation_id, term_lower),
    CHECK (override_type = 'disabled' OR custom_standalone_title IS NOT NULL)
);

-- Cached heading titles per article (generated at save time)
CREATE TABLE IF NOT EXISTS article_heading_links (
    explanation_id INTEGER NOT NULL,
    heading_text TEXT NOT NULL,
    heading_text_lower TEXT NOT NULL,
    standalone_title TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (explanation_id, heading_text_lower)
);

-- v2: Link candidates proposed for the whitelist
CREATE TABLE IF NOT EXISTS link_candidates (
    id TEXT PRIMARY KEY,
    term TEXT NOT NULL,
    term_lower TEXT NOT NULL UNIQUE,
    source TEXT NOT NULL DEFAULT 'llm',
    status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'approved', 'rejected')),
    total_occurrences INTEGER DEFAULT 0,
    article_count INTEGER DEFAULT 0,
    first_seen_explanation_id INTEGER,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- v2: Per-article candidate occurrence counts
CREATE TABLE IF NOT EXISTS candidate_occurrences (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    candidate_id TEXT NOT NULL REFERENCES link_candidates(id) ON DELETE CASCADE,
    explanation_id INTEGER NOT NULL,
    occurrence_count INTEGER NOT NULL DEFAULT 1,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (candidate_id, explanation_id)
);

-- Indexes for common query patterns
CREATE INDEX IF NOT EXISTS idx_link_whitelist_active ON link_whitelist(is_active);
CREATE INDEX IF NOT EXISTS idx_link_whitelist_aliases_whitelist ON link_whitelist_aliases(whitelist_id);
CREATE INDEX IF NOT EXISTS idx_article_link_overrides_explanation ON article_link_overrides(explanation_id);
CREATE INDEX IF NOT EXISTS idx_article_heading_links_explanation ON article_heading_links(explanation_id);

-- v2: Indexes for candidates
CREATE INDEX IF NOT EXISTS idx_candidates_status ON link_candidates(status);
CREATE INDEX IF NOT EXISTS idx_candidates_occurrences ON link_candidates(total_occurrences);
CREATE INDEX IF NOT EXISTS idx_co_candidate ON candidate_occurrences(candidate_id);
CREATE INDEX IF NOT EXISTS idx_co_explanation ON candidate_occurrences(explanation_id);
"""
