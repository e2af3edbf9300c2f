"""Integrity checks for the country data sources."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from .config import DatasetConfig
from .models import METROPOLITAN_CITY
from .sources import DataSources, SourceLoadError, load_sources


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class Validator:
    """Loads the configured sources and reports data problems."""

    def __init__(self, cfg: DatasetConfig) -> None:
        self.cfg = cfg

    def run(self) -> ValidationReport:
        report = ValidationReport()
        try:
            sources = load_sources(self.cfg.data.root, parallel=self.cfg.loading.parallel)
        except (FileNotFoundError, SourceLoadError) as exc:
            report.add_error(f"Failed loading sources from '{self.cfg.data.root}': {exc}")
            return report
        return self.check(sources, report)

    def check(self, sources: DataSources, report: ValidationReport | None = None) -> ValidationReport:
        report = report if report is not None else ValidationReport()
        if not sources.countries:
            report.add_error("Countries source is empty")
            return report
        report.add_info(
            f"Loaded {len(sources.countries)} countries, "
            f"{sum(len(subs) for subs in sources.subdivisions.values())} subdivisions, "
            f"{len(sources.translations)} locales, {len(sources.capitals)} capitals, "
            f"{len(sources.timezones)} timezone groups"
        )
        self._check_postal_formats(report, sources)
        self._check_orphans(report, sources)
        self._check_capitals(report, sources)
        self._check_translations(report, sources)
        return report

    def _check_postal_formats(self, report: ValidationReport, sources: DataSources) -> None:
        for code, country in sorted(sources.countries.items()):
            if not country.has_postal_code():
                continue
            try:
                re.compile(country.postal_code_format)
            except re.error as exc:
                report.add_error(
                    f"Invalid postal_code_format for {code}: {country.postal_code_format!r} ({exc})"
                )

    def _check_orphans(self, report: ValidationReport, sources: DataSources) -> None:
        known = set(sources.countries)
        for source_name in ("subdivisions", "capitals", "timezones"):
            orphans = sorted(set(getattr(sources, source_name)) - known)
            if orphans:
                report.add_warning(
                    f"{source_name} has entries for unknown countries (ignored): {', '.join(orphans)}"
                )
        for locale, names in sorted(sources.translations.items()):
            orphans = sorted(set(names) - known)
            if orphans:
                report.add_warning(
                    f"translations '{locale}' has entries for unknown countries (ignored): "
                    f"{', '.join(orphans)}"
                )

    def _check_capitals(self, report: ValidationReport, sources: DataSources) -> None:
        for code, subdivisions in sorted(sources.subdivisions.items()):
            if code not in sources.countries:
                continue
            metro = [sub for sub in subdivisions.values() if sub.type == METROPOLITAN_CITY]
            if not metro:
                continue
            capital = sources.capitals.get(code, "")
            if not any(sub.is_capital_of(capital) for sub in metro):
                report.add_info(
                    f"{code} has metropolitan cities but none matches capital '{capital}'"
                )

    def _check_translations(self, report: ValidationReport, sources: DataSources) -> None:
        known = set(sources.countries)
        for locale, names in sorted(sources.translations.items()):
            missing = sorted(known - set(names))
            if missing:
                report.add_info(f"Locale '{locale}' has no name for: {', '.join(missing)}")


def format_report_lines(report: ValidationReport) -> Iterable[str]:
    for info in report.infos:
        yield f"[INFO] {info}"
    for warning in report.warnings:
        yield f"[WARN] {warning}"
    for error in report.errors:
        yield f"[ERROR] {error}"
    if report.ok:
        yield "[OK] Validation completed with no errors."
