"""Loaders for the five country data sources."""

from __future__ import annotations

import csv
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from .models import Country, Subdivision


COUNTRIES_DIR = "countries"
SUBDIVISIONS_DIR = "subdivisions"
TRANSLATIONS_DIR = "translations"
CAPITALS_FILE = "capitals.yaml"
TIMEZONES_FILE = "timezones.csv"
TRANSLATION_PREFIX = "countries-"

_LOGGER = logging.getLogger("worldcountries.sources")


class SourceLoadError(ValueError):
    """Raised when a data source cannot be read or has the wrong shape."""


class _SourceYamlLoader(yaml.SafeLoader):
    """Safe loader that keeps mapping keys and plain scalars as written.

    Country and subdivision codes such as ``NO``, ``ON`` or ``01`` would
    otherwise resolve to booleans and integers, and prefixes such as ``010``
    to octal numbers. Only ``true``/``false`` and ``null`` are resolved;
    numeric fields convert their text when the record is built.
    """

    def construct_mapping(self, node: yaml.Node, deep: bool = False) -> dict[Any, Any]:
        if not isinstance(node, yaml.MappingNode):
            raise yaml.constructor.ConstructorError(
                None, None, f"expected a mapping node, but found {node.id}", node.start_mark
            )
        self.flatten_mapping(node)
        mapping: dict[Any, Any] = {}
        for key_node, value_node in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    "found a non-scalar key",
                    key_node.start_mark,
                )
            mapping[key_node.value] = self.construct_object(value_node, deep=deep)
        return mapping


_LITERAL_TAGS = frozenset(
    {"tag:yaml.org,2002:bool", "tag:yaml.org,2002:int", "tag:yaml.org,2002:float"}
)

_SourceYamlLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _LITERAL_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_SourceYamlLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


@dataclass(frozen=True, slots=True)
class DataSources:
    """Parsed output of the five loaders, keyed by country code or locale."""

    countries: Mapping[str, Country]
    subdivisions: Mapping[str, Mapping[str, Subdivision]]
    translations: Mapping[str, Mapping[str, str]]
    capitals: Mapping[str, str]
    timezones: Mapping[str, tuple[str, ...]]


def _read_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.load(fh, Loader=_SourceYamlLoader)
        except yaml.YAMLError as exc:
            raise SourceLoadError(f"Failed parsing {path}: {exc}") from exc


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    raw = _read_yaml(path)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SourceLoadError(f"Expected mapping in {path}")
    return raw


def _yaml_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        raise FileNotFoundError(f"Source directory not found: {directory}")
    return sorted(directory.glob("*.yaml"))


def _name(value: Any, key: str, path: Path) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise SourceLoadError(f"Expected string for '{key}' in {path}")


def load_countries(countries_dir: Path) -> dict[str, Country]:
    """Load base country records from every YAML file in ``countries_dir``."""
    countries: dict[str, Country] = {}
    for path in _yaml_files(countries_dir):
        for code, record in _read_yaml_mapping(path).items():
            if not isinstance(record, dict):
                raise SourceLoadError(f"Country '{code}' must be a mapping in {path}")
            try:
                country = Country.from_mapping(record, alpha2=code)
            except ValueError as exc:
                raise SourceLoadError(f"Invalid country '{code}' in {path}: {exc}") from exc
            if country.alpha2 != code:
                raise SourceLoadError(
                    f"Country key '{code}' does not match alpha2 '{country.alpha2}' in {path}"
                )
            if code in countries:
                raise SourceLoadError(f"Duplicate country '{code}' in {path}")
            countries[code] = country
    _LOGGER.debug("Loaded %d base country records from %s", len(countries), countries_dir)
    return countries


def load_subdivisions(subdivisions_dir: Path) -> dict[str, dict[str, Subdivision]]:
    """Load subdivisions; each file is named after its country code."""
    out: dict[str, dict[str, Subdivision]] = {}
    for path in _yaml_files(subdivisions_dir):
        country_code = path.stem
        subdivisions: dict[str, Subdivision] = {}
        for code, record in _read_yaml_mapping(path).items():
            if not isinstance(record, dict):
                raise SourceLoadError(f"Subdivision '{code}' must be a mapping in {path}")
            try:
                subdivisions[code] = Subdivision.from_mapping(record, code=code)
            except ValueError as exc:
                raise SourceLoadError(f"Invalid subdivision '{code}' in {path}: {exc}") from exc
        out[country_code] = subdivisions
    return out


def load_translations(translations_dir: Path) -> dict[str, dict[str, str]]:
    """Load country names per locale from ``countries-<locale>.yaml`` files."""
    out: dict[str, dict[str, str]] = {}
    for path in _yaml_files(translations_dir):
        locale = path.stem.removeprefix(TRANSLATION_PREFIX)
        out[locale] = {
            code: _name(name, code, path) for code, name in _read_yaml_mapping(path).items()
        }
    return out


def load_capitals(capitals_path: Path) -> dict[str, str]:
    if not capitals_path.exists():
        raise FileNotFoundError(f"Capitals file not found: {capitals_path}")
    return {
        code: _name(name, code, capitals_path)
        for code, name in _read_yaml_mapping(capitals_path).items()
    }


def load_timezones(timezones_path: Path) -> dict[str, tuple[str, ...]]:
    """Group ``zone_id,country_code,zone_name`` rows by country code.

    Zones keep the order in which they first appear in the file.
    """
    if not timezones_path.exists():
        raise FileNotFoundError(f"Timezones file not found: {timezones_path}")
    grouped: dict[str, list[str]] = {}
    with timezones_path.open("r", encoding="utf-8", newline="") as fh:
        for line_no, row in enumerate(csv.reader(fh), start=1):
            if not row:
                continue
            if len(row) < 3:
                raise SourceLoadError(
                    f"Expected at least 3 columns on line {line_no} of {timezones_path}"
                )
            grouped.setdefault(row[1], []).append(row[2])
    return {code: tuple(zones) for code, zones in grouped.items()}


def load_sources(data_dir: str | Path, *, parallel: bool = False) -> DataSources:
    """Run all five loaders against the standard layout under ``data_dir``.

    With ``parallel`` the loaders run on a thread pool; the first failure
    is re-raised once every loader has finished.
    """
    root = Path(data_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Data directory not found: {root}")

    loaders: dict[str, Callable[[], Any]] = {
        "countries": partial(load_countries, root / COUNTRIES_DIR),
        "subdivisions": partial(load_subdivisions, root / SUBDIVISIONS_DIR),
        "translations": partial(load_translations, root / TRANSLATIONS_DIR),
        "capitals": partial(load_capitals, root / CAPITALS_FILE),
        "timezones": partial(load_timezones, root / TIMEZONES_FILE),
    }
    if parallel:
        with ThreadPoolExecutor(max_workers=len(loaders)) as executor:
            futures = {name: executor.submit(loader) for name, loader in loaders.items()}
        results = {name: future.result() for name, future in futures.items()}
    else:
        results = {name: loader() for name, loader in loaders.items()}

    _LOGGER.info(
        "Loaded sources from %s: %d countries, %d subdivision files, %d locales",
        root,
        len(results["countries"]),
        len(results["subdivisions"]),
        len(results["translations"]),
    )
    return DataSources(**results)
