"""Tests for per-article link overrides."""

from __future__ import annotations

import pytest

from link_overlay import overrides
from link_overlay.errors import NotFoundError, ValidationError
from link_overlay.models import CustomTitleOverride, DisabledOverride, OverrideType

from helpers import count_rows, snapshot_version


class TestOverrideVariants:
    """Test the override dataclasses."""

    def test_custom_title_requires_title(self):
        """A custom title override cannot be built without a title."""
        with pytest.raises(ValidationError):
            CustomTitleOverride(explanation_id=1, term="ML", term_lower="ml", custom_standalone_title="  ")

    def test_variant_types(self):
        """Each variant reports its own override type."""
        disabled = DisabledOverride(explanation_id=1, term="ML", term_lower="ml")
        custom = CustomTitleOverride(
            explanation_id=1, term="ML", term_lower="ml", custom_standalone_title="Markup Language"
        )

        assert disabled.override_type is OverrideType.DISABLED
        assert custom.override_type is OverrideType.CUSTOM_TITLE


class TestSetOverride:
    """Test creating and replacing overrides."""

    def test_set_disabled(self, temp_config):
        """A disabled override is stored and keyed by lowercase term."""
        result = overrides.set_override(1, "Machine Learning", OverrideType.DISABLED, config=temp_config)

        assert isinstance(result, DisabledOverride)
        assert result.id
        stored = overrides.get_overrides_for_article(1, config=temp_config)
        assert list(stored) == ["machine learning"]
        assert stored["machine learning"].term == "Machine Learning"

    def test_set_custom_title(self, temp_config):
        """A custom title override keeps its title."""
        result = overrides.set_override(
            1, "ML", "custom_title", "Markup Language", config=temp_config
        )

        assert isinstance(result, CustomTitleOverride)
        assert result.custom_standalone_title == "Markup Language"

    def test_custom_title_missing_title(self, temp_config):
        """custom_title without a title fails before anything is written."""
        version = snapshot_version(temp_config)

        with pytest.raises(ValidationError):
            overrides.set_override(1, "ML", OverrideType.CUSTOM_TITLE, config=temp_config)

        assert count_rows(temp_config, "article_link_overrides") == 0
        assert snapshot_version(temp_config) == version

    def test_unknown_type(self, temp_config):
        """Unknown override types fail validation."""
        with pytest.raises(ValidationError, match="override_type"):
            overrides.set_override(1, "ML", "hidden", config=temp_config)

    def test_empty_term(self, temp_config):
        """The term is required."""
        with pytest.raises(ValidationError):
            overrides.set_override(1, " ", OverrideType.DISABLED, config=temp_config)

    def test_invalid_explanation_id(self, temp_config):
        """Explanation IDs must be positive integers."""
        with pytest.raises(ValidationError):
            overrides.set_override(0, "ML", OverrideType.DISABLED, config=temp_config)

    def test_set_replaces_existing(self, temp_config):
        """Setting an override again replaces it (matched case-insensitively)."""
        overrides.set_override(1, "ML", OverrideType.DISABLED, config=temp_config)
        overrides.set_override(1, "ml", OverrideType.CUSTOM_TITLE, "Markup Language", config=temp_config)

        stored = overrides.get_overrides_for_article(1, config=temp_config)
        assert count_rows(temp_config, "article_link_overrides") == 1
        assert isinstance(stored["ml"], CustomTitleOverride)
        assert stored["ml"].custom_standalone_title == "Markup Language"

    def test_disabled_drops_custom_title(self, temp_config):
        """Switching to disabled clears the stored title."""
        overrides.set_override(1, "ML", OverrideType.CUSTOM_TITLE, "Markup Language", config=temp_config)
        result = overrides.set_override(1, "ML", OverrideType.DISABLED, "ignored", config=temp_config)

        assert isinstance(result, DisabledOverride)

    def test_set_bumps_snapshot_version(self, temp_config):
        """Override writes rebuild the snapshot."""
        version = snapshot_version(temp_config)

        overrides.set_override(1, "ML", OverrideType.DISABLED, config=temp_config)

        assert snapshot_version(temp_config) == version + 1


class TestReadOverrides:
    """Test listing overrides."""

    def test_scoped_to_article(self, temp_config):
        """Overrides for one article are invisible to another."""
        overrides.set_override(1, "ML", OverrideType.DISABLED, config=temp_config)
        overrides.set_override(2, "NN", OverrideType.DISABLED, config=temp_config)

        assert list(overrides.get_overrides_for_article(1, config=temp_config)) == ["ml"]
        assert list(overrides.get_overrides_for_article(2, config=temp_config)) == ["nn"]
        assert overrides.get_overrides_for_article(3, config=temp_config) == {}

    def test_list_ordered_by_term(self, temp_config):
        """list_overrides orders by lowercase term."""
        overrides.set_override(1, "Neural Networks", OverrideType.DISABLED, config=temp_config)
        overrides.set_override(1, "deep learning", OverrideType.DISABLED, config=temp_config)

        terms = [o.term for o in overrides.list_overrides(1, config=temp_config)]
        assert terms == ["deep learning", "Neural Networks"]


class TestDeleteOverride:
    """Test removing overrides."""

    def test_delete_override(self, temp_config):
        """A deleted override is gone."""
        overrides.set_override(1, "ML", OverrideType.DISABLED, config=temp_config)

        overrides.delete_override(1, "ml", config=temp_config)

        assert overrides.get_overrides_for_article(1, config=temp_config) == {}

    def test_delete_missing_override(self, temp_config):
        """Deleting an absent override raises NotFoundError."""
        with pytest.raises(NotFoundError):
            overrides.delete_override(1, "ML", config=temp_config)

    def test_delete_overrides_for_article(self, temp_config):
        """All overrides of one article are removed, others are kept."""
        overrides.set_override(1, "ML", OverrideType.DISABLED, config=temp_config)
        overrides.set_override(1, "NN", OverrideType.DISABLED, config=temp_config)
        overrides.set_override(2, "ML", OverrideType.DISABLED, config=temp_config)

        removed = overrides.delete_overrides_for_article(1, config=temp_config)

        assert removed == 2
        assert count_rows(temp_config, "article_link_overrides") == 1

    def test_delete_none_keeps_version(self, temp_config):
        """Removing nothing does not rebuild."""
        version = snapshot_version(temp_config)

        assert overrides.delete_overrides_for_article(1, config=temp_config) == 0
        assert snapshot_version(temp_config) == version
