"""Tests for the command-line interface."""

from __future__ import annotations

import json

from click.testing import CliRunner

from link_overlay import candidates, headings, overrides, whitelist
from link_overlay.cli import main
from link_overlay.models import OverrideType


class TestAdminCLI:
    """Test admin commands."""

    def test_init_writes_config(self, global_config):
        """Init creates the database and a config file beside it."""
        runner = CliRunner()
        result = runner.invoke(main, ["admin", "init"])

        assert result.exit_code == 0
        assert "Initialized link-overlay" in result.output
        assert (global_config.db_path.parent / "config.yaml").exists()

    def test_status(self, global_config, ml_whitelist):
        """Status reports the schema version and row counts."""
        runner = CliRunner()
        result = runner.invoke(main, ["admin", "status"])

        assert result.exit_code == 0
        assert "Schema version: 2" in result.output
        assert "Whitelist terms: 4" in result.output
        assert "Aliases: 2" in result.output
        assert "Title generation: not configured" in result.output


class TestWhitelistCLI:
    """Test whitelist commands."""

    def test_add_with_alias(self, global_config):
        """Terms and aliases are created together."""
        runner = CliRunner()
        result = runner.invoke(
            main, ["whitelist", "add", "Machine Learning", "-t", "Machine Learning", "-a", "ML"]
        )

        assert result.exit_code == 0
        assert "Whitelist term:" in result.output
        assert "alias: ML" in result.output
        assert whitelist.find_whitelist_term("machine learning", config=global_config) is not None
        assert "ml" in whitelist.get_snapshot(config=global_config).data

    def test_add_alias_collision(self, global_config, ml_whitelist):
        """Adding a term that is already an alias fails."""
        runner = CliRunner()
        result = runner.invoke(main, ["whitelist", "add", "ML", "-t", "Markup Language"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_list_empty(self, global_config):
        """An empty whitelist says so."""
        runner = CliRunner()
        result = runner.invoke(main, ["whitelist", "list"])

        assert result.exit_code == 0
        assert "No whitelist terms." in result.output

    def test_list_json(self, global_config, ml_whitelist):
        """JSON output lists each term."""
        runner = CliRunner()
        result = runner.invoke(main, ["whitelist", "list", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert {t["canonical_term"] for t in data} == {
            "Machine Learning",
            "Deep Learning",
            "Learning",
            "Neural Networks",
        }

    def test_show_missing(self, global_config):
        """Unknown term IDs exit with an error."""
        runner = CliRunner()
        result = runner.invoke(main, ["whitelist", "show", "nope"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_update_inactive(self, global_config, ml_whitelist):
        """Deactivating a term drops it from the snapshot."""
        runner = CliRunner()
        result = runner.invoke(
            main, ["whitelist", "update", ml_whitelist["deep_learning"], "--inactive"]
        )

        assert result.exit_code == 0
        assert "deep learning" not in whitelist.get_snapshot(config=global_config).data

    def test_snapshot_json(self, global_config, ml_whitelist):
        """The snapshot dump includes aliases as keys."""
        runner = CliRunner()
        result = runner.invoke(main, ["whitelist", "snapshot", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["version"] >= 1
        assert data["data"]["nn"] == {
            "canonical_term": "Neural Networks",
            "standalone_title": "Artificial Neural Network",
        }

    def test_rebuild(self, global_config, ml_whitelist):
        """Rebuilding bumps the version."""
        before = whitelist.get_snapshot(config=global_config).version

        runner = CliRunner()
        result = runner.invoke(main, ["whitelist", "rebuild"])

        assert result.exit_code == 0
        assert f"v{before + 1}" in result.output
        assert "6 keys" in result.output


class TestOverrideCLI:
    """Test override commands."""

    def test_set_disable(self, global_config, ml_whitelist):
        """A disabled override is stored and listed."""
        runner = CliRunner()
        result = runner.invoke(main, ["override", "set", "42", "machine learning", "--disable"])

        assert result.exit_code == 0
        assert "(disabled)" in result.output

        result = runner.invoke(main, ["override", "list", "42"])
        assert "machine learning (disabled)" in result.output

    def test_set_requires_one_mode(self, global_config):
        """Exactly one of --disable and --title is required."""
        runner = CliRunner()

        result = runner.invoke(main, ["override", "set", "42", "ML"])
        assert result.exit_code == 1

        result = runner.invoke(main, ["override", "set", "42", "ML", "--disable", "-t", "X"])
        assert result.exit_code == 1

    def test_invalid_explanation_id(self, global_config):
        """Explanation IDs must be positive integers."""
        runner = CliRunner()
        result = runner.invoke(main, ["override", "list", "abc"])

        assert result.exit_code == 1
        assert "must be an integer" in result.output

    def test_delete_all(self, global_config):
        """--all removes every override for the article."""
        overrides.set_override(42, "ML", OverrideType.DISABLED, config=global_config)
        overrides.set_override(42, "NN", OverrideType.CUSTOM_TITLE, "Nearest Neighbor", config=global_config)

        runner = CliRunner()
        result = runner.invoke(main, ["override", "delete", "42", "--all"])

        assert result.exit_code == 0
        assert "Removed 2 override(s)" in result.output

    def test_delete_missing(self, global_config):
        """Deleting an unknown override fails."""
        runner = CliRunner()
        result = runner.invoke(main, ["override", "delete", "42", "ML"])

        assert result.exit_code == 1


class TestHeadingsCLI:
    """Test heading cache commands."""

    def test_show_and_clear(self, global_config):
        """Cached titles can be listed and cleared."""
        headings.save_heading_links(5, {"Introduction": "NN Introduction"}, config=global_config)

        runner = CliRunner()
        result = runner.invoke(main, ["headings", "show", "5"])
        assert "introduction -> NN Introduction" in result.output

        result = runner.invoke(main, ["headings", "clear", "5"])
        assert "Removed 1 cached heading(s)" in result.output

    def test_generate_not_configured(self, global_config):
        """Generation without an LLM backend exits with an error."""
        runner = CliRunner()
        result = runner.invoke(
            main, ["headings", "generate", "5", "-", "-t", "Title", "-r", "user-1"], input="## A\n"
        )

        assert result.exit_code == 1
        assert "not configured" in result.output


class TestRenderCLI:
    """Test the render command."""

    CONTENT = "## Basics\n\nMachine learning (ML) basics.\n"

    def test_render(self, global_config, ml_whitelist):
        """Rendered markdown is written to stdout."""
        runner = CliRunner()
        result = runner.invoke(main, ["render", "1", "-"], input=self.CONTENT)

        assert result.exit_code == 0
        assert result.output == (
            "## [Basics](/standalone-title?t=Basics)\n\n"
            "[Machine learning](/standalone-title?t=Machine%20Learning) "
            "([ML](/standalone-title?t=Machine%20Learning)) basics.\n"
        )

    def test_links_only_json(self, global_config, ml_whitelist):
        """Resolved links are dumped as JSON."""
        runner = CliRunner()
        result = runner.invoke(main, ["render", "1", "-", "--links-only", "--json"], input=self.CONTENT)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [(d["term"], d["type"]) for d in data] == [
            ("## Basics", "heading"),
            ("Machine learning", "term"),
            ("ML", "term"),
        ]
        assert data[1]["startIndex"] == 11
        assert data[1]["endIndex"] == 27


class TestCandidatesCLI:
    """Test candidate review commands."""

    def test_list_empty(self, global_config):
        """No candidates prints a notice."""
        runner = CliRunner()
        result = runner.invoke(main, ["candidates", "list"])

        assert result.exit_code == 0
        assert "No candidates." in result.output

    def test_approve(self, global_config):
        """Approval adds the term to the whitelist."""
        (candidate,) = candidates.save_candidates_from_llm(
            1, "Entropy rises.", ["Entropy"], config=global_config
        )

        runner = CliRunner()
        result = runner.invoke(main, ["candidates", "approve", candidate.id, "-t", "Entropy (physics)"])

        assert result.exit_code == 0
        assert "Approved 'Entropy'" in result.output
        assert whitelist.find_whitelist_term("entropy", config=global_config) is not None

    def test_reject_missing(self, global_config):
        """Rejecting an unknown candidate fails."""
        runner = CliRunner()
        result = runner.invoke(main, ["candidates", "reject", "nope"])

        assert result.exit_code == 1
        assert "not found" in result.output
