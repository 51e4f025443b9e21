"""Link Overlay - inline links to standalone pages from a curated term whitelist."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__: str = version("link-overlay")
except PackageNotFoundError:
    __version__: str = "0.0.1-dev"  # fallback for running directly from source

from .errors import (
    LinkOverlayError,
    ValidationError,
    NotFoundError,
    StoreError,
    GenerationError,
)
from .models import (
    WhitelistTerm,
    WhitelistAlias,
    WhitelistSnapshot,
    OverrideType,
    DisabledOverride,
    CustomTitleOverride,
    LinkType,
    ResolvedLink,
)
from .whitelist import (
    create_whitelist_term,
    update_whitelist_term,
    delete_whitelist_term,
    list_whitelist_terms,
    add_aliases,
    remove_alias,
    get_snapshot,
    rebuild_snapshot,
)
from .overrides import (
    set_override,
    delete_override,
    get_overrides_for_article,
)
from .headings import (
    generate_heading_standalone_titles,
    save_heading_links,
    get_heading_links_for_article,
    delete_heading_links_for_article,
)
from .resolver import resolve_links_for_article
from .rewriter import apply_links_to_content
from .render import render_article

__all__ = [
    # Errors
    "LinkOverlayError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "GenerationError",
    # Dataclasses
    "WhitelistTerm",
    "WhitelistAlias",
    "WhitelistSnapshot",
    "OverrideType",
    "DisabledOverride",
    "CustomTitleOverride",
    "LinkType",
    "ResolvedLink",
    # Whitelist
    "create_whitelist_term",
    "update_whitelist_term",
    "delete_whitelist_term",
    "list_whitelist_terms",
    "add_aliases",
    "remove_alias",
    "get_snapshot",
    "rebuild_snapshot",
    # Overrides
    "set_override",
    "delete_override",
    "get_overrides_for_article",
    # Headings
    "generate_heading_standalone_titles",
    "save_heading_links",
    "get_heading_links_for_article",
    "delete_heading_links_for_article",
    # Rendering
    "resolve_links_for_article",
    "apply_links_to_content",
    "render_article",
]
