"""Tests for the render-time entry point."""

from __future__ import annotations

import logging

from link_overlay import headings
from link_overlay.config import Config
from link_overlay.errors import StoreError
from link_overlay.render import render_article


class TestRenderArticle:
    """Test resolving and applying links in one call."""

    def test_links_applied(self, ml_whitelist, temp_config):
        """Headings and terms come back as markdown links."""
        headings.save_heading_links(1, {"Basics": "Neural Network Basics"}, config=temp_config)
        content = "## Basics\n\nAn NN learns.\n"

        result = render_article(1, content, config=temp_config)

        assert result == (
            "## [Basics](/standalone-title?t=Neural%20Network%20Basics)\n\n"
            "An [NN](/standalone-title?t=Artificial%20Neural%20Network) learns.\n"
        )

    def test_nothing_to_link(self, temp_config):
        """Content without matches is returned unchanged."""
        content = "Plain prose."

        assert render_article(1, content, config=temp_config) == content

    def test_store_failure_renders_plain(self, ml_whitelist, temp_config, monkeypatch, caplog):
        """A database failure logs a warning and skips linking."""
        def broken(conn):
            raise StoreError("database is locked")

        monkeypatch.setattr("link_overlay.store.get_snapshot", broken)
        content = "machine learning"

        with caplog.at_level(logging.WARNING, logger="link_overlay.render"):
            result = render_article(7, content, config=temp_config)

        assert result == content
        assert "Rendering explanation 7 without links" in caplog.text
        assert "database is locked" in caplog.text

    def test_unusable_db_location_renders_plain(self, temp_dir, caplog):
        """A database path that cannot be created skips linking."""
        blocker = temp_dir / "blocker"
        blocker.write_text("not a directory")
        config = Config(db_path=blocker / "nested" / "links.db")
        content = "Learn about machine learning."

        with caplog.at_level(logging.WARNING, logger="link_overlay.render"):
            result = render_article(1, content, config=config)

        assert result == content
        assert "Rendering explanation 1 without links" in caplog.text

    def test_code_span_left_alone(self, ml_whitelist, temp_config):
        """Terms inside inline code are not rewritten."""
        content = "Run `machine learning` in the shell."

        assert render_article(1, content, config=temp_config) == content
