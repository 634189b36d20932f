"""End-to-end tests for the stylesweep CLI."""
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from stylesweep.config import __version__
from stylesweep.main import app

FIXTURES_DIR = Path(__file__).parent / 'fixtures'
STYLES = str(FIXTURES_DIR / 'styles')
COMPONENTS = str(FIXTURES_DIR / 'components')

runner = CliRunner()


def read_styles(project):
    return {
        path.relative_to(project).as_posix(): path.read_text(encoding='utf-8')
        for path in sorted((project / 'styles').rglob('*.scss'))
    }


class TestAudit:
    """The read-only audit command."""

    def test_json_report(self):
        result = runner.invoke(app, ["audit", STYLES, COMPONENTS, "--format", "json"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["summary"] == {
            "totalClasses": 9,
            "excludedClasses": 1,
            "usedClasses": 5,
            "unusedClasses": 2,
            "confidenceLevel": "medium",
        }
        assert report["unusedClasses"] == ["btn__icon", "old-banner"]
        assert report["usedClasses"] == ["btn", "btn--primary", "card-subtitle", "card-title", "header"]

    def test_confidence_option(self):
        result = runner.invoke(app, ["audit", STYLES, COMPONENTS, "-f", "json", "-c", "LOW"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["summary"]["confidenceLevel"] == "low"
        assert "x1" in report["unusedClasses"]

    def test_exclude_option_adds_patterns(self):
        result = runner.invoke(app, ["audit", STYLES, COMPONENTS, "-f", "json", "-e", "old-*"])

        report = json.loads(result.stdout)
        assert report["unusedClasses"] == ["btn__icon"]
        assert report["summary"]["excludedClasses"] == 2

    def test_summary_output(self):
        result = runner.invoke(app, ["audit", STYLES, COMPONENTS])

        assert result.exit_code == 0, result.output
        assert "Class Summary" in result.output
        assert "Unused Classes" in result.output
        assert "old-banner" in result.output

    def test_detailed_output(self):
        result = runner.invoke(app, ["audit", STYLES, COMPONENTS, "--format", "detailed"])

        assert result.exit_code == 0, result.output
        assert "btn__icon" in result.output
        assert "bem_element" in result.output

    def test_output_file(self, tmp_path):
        target = tmp_path / 'reports' / 'unused.json'

        result = runner.invoke(app, ["audit", STYLES, COMPONENTS, "-o", str(target)])

        assert result.exit_code == 0, result.output
        report = json.loads(target.read_text(encoding='utf-8'))
        assert report["summary"]["unusedClasses"] == 2

    def test_environment_defaults(self, monkeypatch):
        monkeypatch.setenv("STYLESWEEP_STYLES_DIR", STYLES)
        monkeypatch.setenv("STYLESWEEP_COMPONENTS_DIR", COMPONENTS)
        monkeypatch.setenv("STYLESWEEP_FORMAT", "json")

        result = runner.invoke(app, ["audit"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["summary"]["totalClasses"] == 9

    def test_missing_styles_root(self, tmp_path):
        result = runner.invoke(app, ["audit", str(tmp_path / 'missing'), COMPONENTS])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Styles directory does not exist" in result.output

    def test_missing_components_root(self, tmp_path):
        result = runner.invoke(app, ["audit", STYLES, str(tmp_path / 'missing')])

        assert result.exit_code == 1
        assert "Components directory does not exist" in result.output

    def test_no_stylesheets(self, tmp_path):
        result = runner.invoke(app, ["audit", str(tmp_path), COMPONENTS])

        assert result.exit_code == 1
        assert "No stylesheet files found" in result.output

    def test_invalid_confidence(self):
        result = runner.invoke(app, ["audit", STYLES, COMPONENTS, "-c", "certain"])
        assert result.exit_code == 2

    def test_invalid_environment_config(self, monkeypatch):
        monkeypatch.setenv("STYLESWEEP_FORMAT", "xml")

        result = runner.invoke(app, ["audit", STYLES, COMPONENTS])

        assert result.exit_code == 1
        assert "STYLESWEEP_FORMAT" in result.output


class TestClean:
    """The clean command, dry run by default."""

    def test_dry_run_by_default(self, project):
        before = read_styles(project)

        result = runner.invoke(app, ["clean", str(project / 'styles'), str(project / 'components')])

        assert result.exit_code == 0, result.output
        assert "DRY RUN" in result.output
        assert read_styles(project) == before, "Dry run must not modify stylesheets"
        assert not list((project / 'styles').rglob('*.bak'))
        assert not (project / 'styles' / '.stylesweep').exists()

    def test_dry_run_json(self, project):
        result = runner.invoke(app, ["clean", str(project / 'styles'), str(project / 'components'), "-f", "json"])

        assert result.exit_code == 0, result.output
        deletion = json.loads(result.stdout)["deletion"]
        assert deletion["dryRun"] is True
        assert deletion["blocksRemoved"] == 2
        assert all(not entry["written"] for entry in deletion["files"])

    def test_live_run_then_restore(self, project):
        styles = project / 'styles'
        before = read_styles(project)

        result = runner.invoke(app, ["clean", str(styles), str(project / 'components'), "--no-dry-run", "--yes"])

        assert result.exit_code == 0, result.output
        after = read_styles(project)
        assert "old-banner" not in after["styles/layout.scss"]
        assert ".header {" in after["styles/layout.scss"]
        assert "&__icon" not in after["styles/components/_button.scss"]
        assert "&--primary" in after["styles/components/_button.scss"]
        assert len(list(styles.rglob('*.bak'))) == 2
        assert (styles / '.stylesweep' / 'manifest.json').exists()

        result = runner.invoke(app, ["restore", str(styles)])

        assert result.exit_code == 0, result.output
        assert "Restored Stylesheets" in result.output
        assert read_styles(project) == before

    def test_live_run_declined(self, project):
        before = read_styles(project)

        result = runner.invoke(
            app, ["clean", str(project / 'styles'), str(project / 'components'), "--no-dry-run"],
            input="n\n",
        )

        assert "Aborted" in result.output
        assert read_styles(project) == before

    def test_no_backup(self, project):
        styles = project / 'styles'

        result = runner.invoke(
            app, ["clean", str(styles), str(project / 'components'), "--no-dry-run", "--no-backup", "-y"]
        )

        assert result.exit_code == 0, result.output
        assert not list(styles.rglob('*.bak'))
        assert "old-banner" not in (styles / 'layout.scss').read_text(encoding='utf-8')

    def test_interactive_per_file(self, project):
        styles = project / 'styles'

        # Files are visited in path order: components/_button.scss, then layout.scss
        result = runner.invoke(
            app, ["clean", str(styles), str(project / 'components'), "--no-dry-run", "--interactive"],
            input="y\nn\n",
        )

        assert result.exit_code == 0, result.output
        after = read_styles(project)
        assert "&__icon" not in after["styles/components/_button.scss"]
        assert "old-banner" in after["styles/layout.scss"]

    def test_nothing_to_remove(self, project):
        result = runner.invoke(app, ["clean", str(project / 'styles'), str(project / 'components'), "-c", "high",
                                     "-e", "old-*", "-e", "btn__*"])

        assert result.exit_code == 0, result.output
        assert "No unused classes to remove" in result.output


class TestRestore:
    """The restore command."""

    def test_nothing_to_restore(self, project):
        result = runner.invoke(app, ["restore", str(project / 'styles')])

        assert result.exit_code == 0, result.output
        assert "No unrestored backups found" in result.output

    def test_unknown_backup_id(self, project):
        result = runner.invoke(app, ["restore", str(project / 'styles'), "--id", "nope"])

        assert result.exit_code == 1
        assert "Backup ID not found" in result.output

    def test_missing_styles_root(self, tmp_path):
        result = runner.invoke(app, ["restore", str(tmp_path / 'missing')])
        assert result.exit_code == 1


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
