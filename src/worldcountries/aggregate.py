"""Join the five data sources into one record per country."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from types import MappingProxyType

from .models import Country, Subdivision
from .sources import DataSources, SourceLoadError


POSTAL_POLICY_STRICT = "strict"
POSTAL_POLICY_NEVER_MATCH = "never_match"
POSTAL_POLICIES = (POSTAL_POLICY_STRICT, POSTAL_POLICY_NEVER_MATCH)

# Empty negative lookahead: fails at every position.
_NEVER_MATCHES = re.compile(r"(?!)")

_LOGGER = logging.getLogger("worldcountries.aggregate")


class PostalCodePatternError(SourceLoadError):
    """Raised when a country's postal code format is not a valid regex."""


def compile_postal_pattern(country: Country, policy: str = POSTAL_POLICY_STRICT) -> re.Pattern[str] | None:
    """Compile the country's postal code format once.

    Returns ``None`` when the country has no postal codes. An invalid format
    raises under the ``strict`` policy and becomes a pattern that never
    matches under ``never_match``.
    """
    if policy not in POSTAL_POLICIES:
        raise ValueError(f"Unknown postal code policy '{policy}'")
    if not country.has_postal_code():
        return None
    try:
        return re.compile(country.postal_code_format)
    except re.error as exc:
        if policy == POSTAL_POLICY_STRICT:
            raise PostalCodePatternError(
                f"Invalid postal_code_format for {country.alpha2}: "
                f"{country.postal_code_format!r} ({exc})"
            ) from exc
        _LOGGER.warning(
            "Invalid postal_code_format for %s, postal codes will never match: %r (%s)",
            country.alpha2,
            country.postal_code_format,
            exc,
        )
        return _NEVER_MATCHES


def _merged_subdivisions(capital: str, subdivisions: dict[str, Subdivision]) -> dict[str, Subdivision]:
    merged: dict[str, Subdivision] = {}
    for code, subdivision in subdivisions.items():
        merged[code] = replace(subdivision, capital=subdivision.is_capital_of(capital))
    return merged


def merge_countries(sources: DataSources, *, postal_code_policy: str = POSTAL_POLICY_STRICT) -> list[Country]:
    """Build the merged country list, sorted by alpha-2 code.

    Only codes present in the base countries source produce records; entries
    that exist only in the other sources are dropped. Missing secondary data
    leaves the corresponding field empty.
    """
    merged: list[Country] = []
    for code, base in sources.countries.items():
        capital = sources.capitals.get(code, "")
        subdivisions = _merged_subdivisions(capital, dict(sources.subdivisions.get(code, {})))
        translations = {
            locale: names.get(code, "") for locale, names in sources.translations.items()
        }
        country = replace(
            base,
            capital=capital,
            subdivisions=MappingProxyType(subdivisions),
            timezones=tuple(sources.timezones.get(code, ())),
            translations=MappingProxyType(translations),
        )
        country = replace(country, postal_code_pattern=compile_postal_pattern(country, postal_code_policy))
        merged.append(country)

    known = set(sources.countries)
    for source_name in ("subdivisions", "capitals", "timezones"):
        orphans = sorted(set(getattr(sources, source_name)) - known)
        if orphans:
            _LOGGER.debug("Dropping %s for unknown countries: %s", source_name, ", ".join(orphans))
    for locale, names in sorted(sources.translations.items()):
        orphans = sorted(set(names) - known)
        if orphans:
            _LOGGER.debug(
                "Dropping translations '%s' for unknown countries: %s", locale, ", ".join(orphans)
            )

    merged.sort(key=lambda country: country.alpha2)
    return merged
