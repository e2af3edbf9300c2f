"""Tests for merging the sources into country records."""

import logging
from dataclasses import replace
from types import MappingProxyType

import pytest

from worldcountries.aggregate import (
    POSTAL_POLICY_NEVER_MATCH,
    PostalCodePatternError,
    merge_countries,
)
from worldcountries.models import Country, Subdivision
from worldcountries.sources import DataSources


def _sources(**overrides) -> DataSources:
    values = {
        "countries": {"IT": Country(alpha2="IT", postal_code_format=r"\d{5}")},
        "subdivisions": {},
        "translations": {},
        "capitals": {},
        "timezones": {},
    }
    values.update(overrides)
    return DataSources(**values)


class TestJoin:
    """Every base country becomes exactly one record."""

    def test_one_record_per_base_country(self, sources):
        merged = merge_countries(sources)
        assert [country.alpha2 for country in merged] == ["AQ", "GB", "IT", "NO", "US"]

    def test_codes_outside_base_source_are_dropped(self, sources):
        merged = merge_countries(sources)
        assert "ZZ" not in {country.alpha2 for country in merged}

    def test_orphan_translations_logged(self, caplog):
        sources = _sources(translations={"en": {"IT": "Italy", "ZZ": "Nowhere"}})
        with caplog.at_level(logging.DEBUG, logger="worldcountries.aggregate"):
            merged = merge_countries(sources)
        assert merged[0].translations == {"en": "Italy"}
        assert "Dropping translations 'en' for unknown countries: ZZ" in caplog.text

    def test_missing_secondary_data_is_zero_valued(self, sources):
        antarctica = next(c for c in merge_countries(sources) if c.alpha2 == "AQ")
        assert antarctica.capital == ""
        assert dict(antarctica.subdivisions) == {}
        assert antarctica.timezones == ()

    def test_every_locale_recorded_even_when_missing(self, sources):
        antarctica = next(c for c in merge_countries(sources) if c.alpha2 == "AQ")
        assert dict(antarctica.translations) == {"en": "Antarctica", "de": ""}

    def test_secondary_fields_populated(self, sources):
        usa = next(c for c in merge_countries(sources) if c.alpha2 == "US")
        assert usa.capital == "Washington"
        assert usa.timezones == ("America/New_York", "America/Chicago", "America/Los_Angeles")
        assert usa.translations["de"] == "Vereinigte Staaten"

    def test_sorted_by_ordinal_code(self):
        merged = merge_countries(
            _sources(countries={code: Country(alpha2=code) for code in ("ab", "AB", "Ba", "AA")})
        )
        assert [country.alpha2 for country in merged] == ["AA", "AB", "Ba", "ab"]


class TestCapitalSubdivision:
    """The metropolitan city matching the capital is flagged."""

    def test_metropolitan_city_matching_capital(self, sources):
        italy = next(c for c in merge_countries(sources) if c.alpha2 == "IT")
        assert italy.subdivisions["RM"].capital is True

    def test_same_name_other_type_is_not_capital(self, sources):
        italy = next(c for c in merge_countries(sources) if c.alpha2 == "IT")
        assert italy.subdivisions["RMP"].capital is False

    def test_other_metropolitan_city_is_not_capital(self, sources):
        italy = next(c for c in merge_countries(sources) if c.alpha2 == "IT")
        assert italy.subdivisions["MI"].capital is False

    def test_match_uses_english_translation_not_name(self):
        rome = Subdivision(name="Rome", code="RM", type="metropolitan_city")
        merged = merge_countries(
            _sources(subdivisions={"IT": {"RM": rome}}, capitals={"IT": "Rome"})
        )
        assert merged[0].subdivisions["RM"].capital is False

    def test_flag_from_source_is_recomputed(self):
        stale = Subdivision(name="Milano", code="MI", type="metropolitan_city", capital=True)
        merged = merge_countries(
            _sources(subdivisions={"IT": {"MI": stale}}, capitals={"IT": "Rome"})
        )
        assert merged[0].subdivisions["MI"].capital is False

    def test_inputs_are_not_modified(self):
        rome = Subdivision(
            name="Roma",
            code="RM",
            type="metropolitan_city",
            translations=MappingProxyType({"en": "Rome"}),
        )
        subdivisions = {"IT": {"RM": rome}}
        merge_countries(_sources(subdivisions=subdivisions, capitals={"IT": "Rome"}))
        assert subdivisions["IT"]["RM"].capital is False


class TestPostalPatterns:
    """Postal code formats are compiled while merging."""

    def test_pattern_compiled_once(self, sources):
        italy = next(c for c in merge_countries(sources) if c.alpha2 == "IT")
        assert italy.postal_code_pattern is not None
        assert italy.postal_code_pattern.pattern == r"\d{5}"

    def test_no_pattern_without_postal_code(self, sources):
        gb = next(c for c in merge_countries(sources) if c.alpha2 == "GB")
        assert gb.postal_code_pattern is None

    def test_invalid_pattern_fails_strict(self):
        broken = _sources(countries={"IT": Country(alpha2="IT", postal_code_format="(\\d{5}")})
        with pytest.raises(PostalCodePatternError, match="IT"):
            merge_countries(broken)

    def test_invalid_pattern_never_matches(self):
        broken = _sources(countries={"IT": Country(alpha2="IT", postal_code_format="(\\d{5}")})
        italy = merge_countries(broken, postal_code_policy=POSTAL_POLICY_NEVER_MATCH)[0]
        assert italy.has_postal_code() is True
        assert italy.match_postal_code("00184") is False
        assert italy.match_postal_code("(00184") is False

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="Unknown postal code policy"):
            merge_countries(_sources(), postal_code_policy="lenient")

    def test_merged_records_equal_regardless_of_pattern(self):
        first = merge_countries(_sources())[0]
        assert replace(first, postal_code_pattern=None) == first
