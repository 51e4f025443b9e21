"""Exception types raised by link-overlay."""

from __future__ import annotations


class LinkOverlayError(Exception):
    """Base class for all link-overlay errors."""


class ValidationError(LinkOverlayError, ValueError):
    """Malformed input to a mutation. Raised before anything is written."""


class NotFoundError(LinkOverlayError, LookupError):
    """A lookup by id or term found nothing."""

    def __init__(self, kind: str, key: object):
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class StoreError(LinkOverlayError):
    """The underlying database call failed."""


class GenerationError(LinkOverlayError):
    """The title generator failed or returned output we could not use."""
