"""The immutable country dataset and its queries."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from functools import lru_cache
from types import MappingProxyType
from typing import Iterator, Sequence

from .aggregate import compile_postal_pattern, merge_countries
from .config import DatasetConfig
from .indices import build_indices
from .models import Country
from .sources import DataSources, load_sources
from .util import sha256_text


_LOGGER = logging.getLogger("worldcountries.dataset")


def _with_postal_pattern(country: Country) -> Country:
    # Records that skipped aggregation are compiled under the strict policy.
    if country.postal_code_pattern is not None or not country.has_postal_code():
        return country
    return replace(country, postal_code_pattern=compile_postal_pattern(country))


class CountryDataset:
    """Merged countries plus derived indices, read-only after construction.

    Countries are kept sorted by alpha-2 code. Records returned by lookups
    are shared frozen values and safe to read from any thread.
    """

    __slots__ = ("_all", "_by_code", "_codes", "_regions", "_subregions")

    def __init__(self, countries: Sequence[Country]) -> None:
        compiled = [_with_postal_pattern(country) for country in countries]
        ordered = tuple(sorted(compiled, key=lambda country: country.alpha2))
        by_code: dict[str, Country] = {}
        for country in ordered:
            if country.alpha2 in by_code:
                raise ValueError(f"Duplicate country code '{country.alpha2}'")
            by_code[country.alpha2] = country
        indices = build_indices(ordered)
        self._all = ordered
        self._by_code = MappingProxyType(by_code)
        self._codes = indices.codes
        self._regions = indices.regions
        self._subregions = indices.subregions

    @property
    def all(self) -> tuple[Country, ...]:
        return self._all

    @property
    def codes(self) -> tuple[str, ...]:
        return self._codes

    @property
    def regions(self) -> tuple[str, ...]:
        return self._regions

    @property
    def subregions(self) -> tuple[str, ...]:
        return self._subregions

    def get(self, code: str) -> Country | None:
        """Country with alpha-2 ``code``, or ``None`` if there is none."""
        return self._by_code.get(code)

    def __getitem__(self, code: str) -> Country:
        return self._by_code[code]

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def __iter__(self) -> Iterator[Country]:
        return iter(self._all)

    def __len__(self) -> int:
        return len(self._all)

    def __repr__(self) -> str:
        return f"CountryDataset({len(self._all)} countries)"

    def in_eu(self) -> list[Country]:
        return [country for country in self._all if country.eu_member]

    def in_region(self, region: str) -> list[Country]:
        return [country for country in self._all if country.region == region]

    def in_subregion(self, subregion: str) -> list[Country]:
        return [country for country in self._all if country.subregion == subregion]

    def to_list(self) -> list[dict]:
        return [country.to_dict() for country in self._all]

    def fingerprint(self) -> str:
        """SHA-256 of the canonical JSON of every record, in dataset order."""
        payload = json.dumps(self.to_list(), sort_keys=True, ensure_ascii=False, separators=(",", ":"))
        return sha256_text(payload)


def load_dataset(
    sources: DataSources | None = None,
    *,
    config: DatasetConfig | None = None,
) -> CountryDataset:
    """Build a dataset from already-loaded sources or from the configured data tree.

    Any loader failure propagates; no partial dataset is ever returned.
    """
    cfg = config if config is not None else DatasetConfig.default()
    if sources is None:
        sources = load_sources(cfg.data.root, parallel=cfg.loading.parallel)
    countries = merge_countries(sources, postal_code_policy=cfg.postal_codes.policy)
    dataset = CountryDataset(countries)
    _LOGGER.info(
        "Built dataset: %d countries, %d regions, %d subregions",
        len(dataset),
        len(dataset.regions),
        len(dataset.subregions),
    )
    return dataset


@lru_cache(maxsize=1)
def default_dataset() -> CountryDataset:
    """Shared dataset over the bundled data, built on first use."""
    return load_dataset()
