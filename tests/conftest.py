"""Shared fixtures: a small source tree written to a temporary directory."""

from pathlib import Path

import pytest

from worldcountries.dataset import CountryDataset, load_dataset
from worldcountries.sources import DataSources, load_sources


COUNTRIES_YAML = r"""
US:
  alpha2: US
  alpha3: USA
  number: "840"
  iso_short_name: United States
  region: Americas
  subregion: Northern America
  postal_code_format: '^\d{5}(-\d{4})?$'
  address_format: "{{recipient}}\n{{street}}\n{{postalcode}} {{city}}\n{{country}}"
  g7_member: true
  national_number_lengths: [10]
IT:
  alpha2: IT
  alpha3: ITA
  number: "380"
  iso_short_name: Italy
  region: Europe
  subregion: Southern Europe
  eu_member: true
  eea_member: true
  postal_code_format: '\d{5}'
  address_format: "{{recipient}}\n{{street}}\n{{postalcode}} {{city}} {{region_short}}\n{{region}}\n{{country}}"
  vat_rates:
    standard: 22
    reduced: [5, 10]
    super_reduced: 4
"""

MORE_COUNTRIES_YAML = r"""
NO:
  alpha2: NO
  alpha3: NOR
  iso_short_name: Norway
  region: Europe
  subregion: Northern Europe
  eea_member: true
  postal_code_format: '\d{4}'
GB:
  alpha2: GB
  alpha3: GBR
  iso_short_name: United Kingdom
  region: Europe
  subregion: Northern Europe
  eea_member: false
AQ:
  alpha2: AQ
  alpha3: ATA
  iso_short_name: Antarctica
  region: ""
"""

IT_SUBDIVISIONS_YAML = """
RM:
  name: Roma
  code: RM
  type: metropolitan_city
  translations:
    en: Rome
    it: Roma
RMP:
  name: Provincia di Roma
  code: RMP
  type: province
  translations:
    en: Rome
MI:
  name: Milano
  code: MI
  type: metropolitan_city
  translations:
    en: Milan
'62':
  name: Lazio
  type: region
  translations:
    en: Lazio
"""

NO_SUBDIVISIONS_YAML = """
'03':
  name: Oslo
  code: '03'
  type: county
"""

ORPHAN_SUBDIVISIONS_YAML = """
A1:
  name: Nowhere
  code: A1
  type: region
"""

CAPITALS_YAML = """
US: Washington
IT: Rome
NO: Oslo
GB: London
ZZ: Atlantis
"""

TRANSLATIONS_EN_YAML = """
US: United States
IT: Italy
NO: Norway
GB: United Kingdom
AQ: Antarctica
ZZ: Atlantis
"""

TRANSLATIONS_DE_YAML = """
US: Vereinigte Staaten
IT: Italien
NO: Norwegen
GB: Vereinigtes Königreich
"""

TIMEZONES_CSV = """1,US,America/New_York
2,IT,Europe/Rome
3,US,America/Chicago
4,ZZ,Atlantic/Atlantis

5,US,America/Los_Angeles
6,NO,Europe/Oslo
"""


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def write_source_tree(root: Path) -> Path:
    _write(root / "countries" / "a.yaml", COUNTRIES_YAML)
    _write(root / "countries" / "b.yaml", MORE_COUNTRIES_YAML)
    _write(root / "subdivisions" / "IT.yaml", IT_SUBDIVISIONS_YAML)
    _write(root / "subdivisions" / "NO.yaml", NO_SUBDIVISIONS_YAML)
    _write(root / "subdivisions" / "ZZ.yaml", ORPHAN_SUBDIVISIONS_YAML)
    _write(root / "translations" / "countries-en.yaml", TRANSLATIONS_EN_YAML)
    _write(root / "translations" / "countries-de.yaml", TRANSLATIONS_DE_YAML)
    _write(root / "capitals.yaml", CAPITALS_YAML)
    _write(root / "timezones.csv", TIMEZONES_CSV)
    return root


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return write_source_tree(tmp_path / "data")


@pytest.fixture
def sources(data_dir: Path) -> DataSources:
    return load_sources(data_dir)


@pytest.fixture
def dataset(sources: DataSources) -> CountryDataset:
    return load_dataset(sources)
