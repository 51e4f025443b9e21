"""Data types shared across link-overlay."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import ClassVar, Mapping, Optional, Union

from .errors import ValidationError


@dataclass
class WhitelistTerm:
    """A curated term that may be linked inside article bodies."""
    id: str
    canonical_term: str
    canonical_term_lower: str
    standalone_title: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class WhitelistAlias:
    """An alternative spelling that resolves to its parent term."""
    id: str
    whitelist_id: str
    alias_term: str
    alias_term_lower: str
    created_at: Optional[str] = None


@dataclass(frozen=True)
class WhitelistCacheEntry:
    """Value stored in the lookup map. Canonical and alias keys share one instance."""
    canonical_term: str
    standalone_title: str


@dataclass(frozen=True)
class WhitelistSnapshot:
    """Immutable, versioned copy of the whitelist lookup map.

    ``data`` maps lowercased canonical terms and aliases to their
    :class:`WhitelistCacheEntry`. It is always regenerated in full, never
    patched, so readers see either the state before a mutation or the state
    after it.
    """
    version: int
    data: Mapping[str, WhitelistCacheEntry]
    updated_at: Optional[str] = None

    def __post_init__(self):
        if self.version < 0:
            raise ValidationError(f"Snapshot version must be >= 0, got {self.version}")
        if not isinstance(self.data, MappingProxyType):
            object.__setattr__(self, "data", MappingProxyType(dict(self.data)))


class OverrideType(str, Enum):
    """Kinds of per-article override."""
    DISABLED = "disabled"
    CUSTOM_TITLE = "custom_title"


@dataclass(frozen=True)
class DisabledOverride:
    """Suppress a whitelist term for one article."""
    explanation_id: int
    term: str
    term_lower: str
    id: Optional[str] = None
    created_at: Optional[str] = None

    override_type: ClassVar[OverrideType] = OverrideType.DISABLED


@dataclass(frozen=True)
class CustomTitleOverride:
    """Link a whitelist term to a different standalone page for one article."""
    explanation_id: int
    term: str
    term_lower: str
    custom_standalone_title: str
    id: Optional[str] = None
    created_at: Optional[str] = None

    override_type: ClassVar[OverrideType] = OverrideType.CUSTOM_TITLE

    def __post_init__(self):
        if not self.custom_standalone_title or not self.custom_standalone_title.strip():
            raise ValidationError("custom_title override requires a custom_standalone_title")


LinkOverride = Union[DisabledOverride, CustomTitleOverride]


@dataclass
class HeadingLink:
    """A cached standalone title for one heading of one article."""
    explanation_id: int
    heading_text: str
    heading_text_lower: str
    standalone_title: str
    created_at: Optional[str] = None


class LinkType(str, Enum):
    """What produced a resolved link."""
    HEADING = "heading"
    TERM = "term"


@dataclass(frozen=True)
class ResolvedLink:
    """A span of article content that should become a link.

    ``term`` is the exact matched substring (original case). The span is
    ``content[start_index:end_index]``.
    """
    term: str
    start_index: int
    end_index: int
    standalone_title: str
    type: LinkType

    def to_dict(self) -> dict:
        return {
            "term": self.term,
            "startIndex": self.start_index,
            "endIndex": self.end_index,
            "standaloneTitle": self.standalone_title,
            "type": self.type.value,
        }


class CandidateStatus(str, Enum):
    """Review state of a link candidate."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class LinkCandidate:
    """A term proposed for the whitelist, awaiting review."""
    id: str
    term: str
    term_lower: str
    source: str = "llm"
    status: CandidateStatus = CandidateStatus.PENDING
    total_occurrences: int = 0
    article_count: int = 0
    first_seen_explanation_id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class CandidateOccurrence:
    """How often a candidate appears in one article."""
    id: int
    candidate_id: str
    explanation_id: int
    occurrence_count: int
    updated_at: Optional[str] = None
