"""Tests for the source data validator."""

from pathlib import Path

from worldcountries.config import DataConfig, DatasetConfig
from worldcountries.validate import ValidationReport, Validator, format_report_lines


def _config(root: Path) -> DatasetConfig:
    default = DatasetConfig.default()
    return DatasetConfig(
        source_path=None,
        data=DataConfig(root=root),
        loading=default.loading,
        postal_codes=default.postal_codes,
        logging=default.logging,
    )


class TestValidator:
    """Integrity report over a source tree."""

    def test_clean_tree_is_ok(self, data_dir):
        report = Validator(_config(data_dir)).run()
        assert report.ok
        assert any("Loaded 5 countries" in msg for msg in report.infos)

    def test_orphans_are_warnings(self, data_dir):
        report = Validator(_config(data_dir)).run()
        assert "subdivisions has entries for unknown countries (ignored): ZZ" in report.warnings
        assert "capitals has entries for unknown countries (ignored): ZZ" in report.warnings
        assert "timezones has entries for unknown countries (ignored): ZZ" in report.warnings
        assert any("translations 'en'" in msg and "ZZ" in msg for msg in report.warnings)

    def test_missing_locale_names_are_infos(self, data_dir):
        report = Validator(_config(data_dir)).run()
        assert "Locale 'de' has no name for: AQ" in report.infos

    def test_invalid_postal_format_is_error(self, data_dir):
        (data_dir / "countries" / "c.yaml").write_text(
            "FR:\n  alpha2: FR\n  postal_code_format: '(\\d{5}'\n", encoding="utf-8"
        )
        report = Validator(_config(data_dir)).run()
        assert not report.ok
        assert any("Invalid postal_code_format for FR" in msg for msg in report.errors)

    def test_capital_without_metropolitan_city(self, data_dir):
        (data_dir / "capitals.yaml").write_text("IT: Firenze\n", encoding="utf-8")
        report = Validator(_config(data_dir)).run()
        assert "IT has metropolitan cities but none matches capital 'Firenze'" in report.infos

    def test_load_failure_is_error(self, tmp_path):
        report = Validator(_config(tmp_path / "missing")).run()
        assert not report.ok
        assert "Failed loading sources" in report.errors[0]

    def test_bundled_data_is_clean(self):
        report = Validator(DatasetConfig.default()).run()
        assert report.ok, report.errors
        assert report.warnings == []


class TestFormatReportLines:
    """Rendering a report for logging."""

    def test_ok_report(self):
        report = ValidationReport()
        report.add_info("loaded")
        assert list(format_report_lines(report)) == [
            "[INFO] loaded",
            "[OK] Validation completed with no errors.",
        ]

    def test_failed_report(self):
        report = ValidationReport()
        report.add_warning("odd")
        report.add_error("broken")
        assert list(format_report_lines(report)) == ["[WARN] odd", "[ERROR] broken"]
