"""Derived code, region and subregion lists."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .models import Country


@dataclass(frozen=True, slots=True)
class DatasetIndices:
    codes: tuple[str, ...]
    regions: tuple[str, ...]
    subregions: tuple[str, ...]


def _distinct_sorted(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted({value for value in values if value}))


def build_indices(countries: Sequence[Country]) -> DatasetIndices:
    """Codes keep the order of ``countries``; regions are deduplicated and sorted."""
    return DatasetIndices(
        codes=tuple(country.alpha2 for country in countries),
        regions=_distinct_sorted(country.region for country in countries),
        subregions=_distinct_sorted(country.subregion for country in countries),
    )
