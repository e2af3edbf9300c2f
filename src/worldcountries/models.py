"""Country and subdivision records plus the per-country operations."""

from __future__ import annotations

import re
import string
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


METROPOLITAN_CITY = "metropolitan_city"
GDPR_EXTRA_COUNTRIES = frozenset({"GB"})

_ADDRESS_TOKENS = (
    "{{recipient}}",
    "{{street}}",
    "{{postalcode}}",
    "{{city}}",
    "{{region}}",
    "{{region_short}}",
    "{{country}}",
)

# Regional indicator symbols, one per ASCII letter.
_FLAG_CODE_POINTS: Mapping[str, str] = MappingProxyType(
    {letter: chr(0x1F1E6 + idx) for idx, letter in enumerate(string.ascii_lowercase)}
)


def _text(value: Any, field_name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        raise ValueError(f"Expected string for '{field_name}'")
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    raise ValueError(f"Expected string for '{field_name}'")


def _flag(value: Any, field_name: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _number(value: Any, field_name: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"Expected number for '{field_name}'") from None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected number for '{field_name}'")
    return float(value)


def _whole(value: Any, field_name: str) -> int:
    if isinstance(value, str):
        try:
            return int(value, 10)
        except ValueError:
            raise ValueError(f"Expected integer for '{field_name}'") from None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _int_tuple(value: Any, field_name: str) -> tuple[int, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    return tuple(_whole(item, f"{field_name}[{idx}]") for idx, item in enumerate(value))


def _number_tuple(value: Any, field_name: str) -> tuple[float, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    return tuple(_number(item, f"{field_name}[{idx}]") for idx, item in enumerate(value))


def _str_tuple(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    return tuple(_text(item, f"{field_name}[{idx}]") for idx, item in enumerate(value))


def _sub_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return value


def _frozen_names(value: Any, field_name: str) -> Mapping[str, str]:
    raw = _sub_mapping(value, field_name)
    return MappingProxyType(
        {str(locale): _text(name, f"{field_name}.{locale}") for locale, name in raw.items()}
    )


def _empty_mapping() -> Mapping[Any, Any]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Coord:
    lat: float = 0.0
    lng: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], field_name: str) -> Coord:
        return cls(
            lat=_number(data.get("lat"), f"{field_name}.lat"),
            lng=_number(data.get("lng"), f"{field_name}.lng"),
        )


@dataclass(frozen=True, slots=True)
class Bounds:
    """Bounding box given by its northeast and southwest corners."""

    northeast: Coord = Coord()
    southwest: Coord = Coord()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], field_name: str) -> Bounds:
        return cls(
            northeast=Coord.from_mapping(
                _sub_mapping(data.get("northeast"), f"{field_name}.northeast"),
                f"{field_name}.northeast",
            ),
            southwest=Coord.from_mapping(
                _sub_mapping(data.get("southwest"), f"{field_name}.southwest"),
                f"{field_name}.southwest",
            ),
        )


@dataclass(frozen=True, slots=True)
class Geo:
    """Centroid, extrema and bounding box of a country or subdivision."""

    latitude: float = 0.0
    longitude: float = 0.0
    max_latitude: float = 0.0
    max_longitude: float = 0.0
    min_latitude: float = 0.0
    min_longitude: float = 0.0
    bounds: Bounds = Bounds()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], field_name: str = "geo") -> Geo:
        return cls(
            latitude=_number(data.get("latitude"), f"{field_name}.latitude"),
            longitude=_number(data.get("longitude"), f"{field_name}.longitude"),
            max_latitude=_number(data.get("max_latitude"), f"{field_name}.max_latitude"),
            max_longitude=_number(data.get("max_longitude"), f"{field_name}.max_longitude"),
            min_latitude=_number(data.get("min_latitude"), f"{field_name}.min_latitude"),
            min_longitude=_number(data.get("min_longitude"), f"{field_name}.min_longitude"),
            bounds=Bounds.from_mapping(
                _sub_mapping(data.get("bounds"), f"{field_name}.bounds"), f"{field_name}.bounds"
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "max_latitude": self.max_latitude,
            "max_longitude": self.max_longitude,
            "min_latitude": self.min_latitude,
            "min_longitude": self.min_longitude,
            "bounds": {
                "northeast": {"lat": self.bounds.northeast.lat, "lng": self.bounds.northeast.lng},
                "southwest": {"lat": self.bounds.southwest.lat, "lng": self.bounds.southwest.lng},
            },
        }


@dataclass(frozen=True, slots=True)
class VatRates:
    standard: float = 0.0
    reduced: tuple[float, ...] = ()
    super_reduced: float = 0.0
    parking: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> VatRates:
        return cls(
            standard=_number(data.get("standard"), "vat_rates.standard"),
            reduced=_number_tuple(data.get("reduced"), "vat_rates.reduced"),
            super_reduced=_number(data.get("super_reduced"), "vat_rates.super_reduced"),
            parking=_number(data.get("parking"), "vat_rates.parking"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "standard": self.standard,
            "reduced": list(self.reduced),
            "super_reduced": self.super_reduced,
            "parking": self.parking,
        }


@dataclass(frozen=True, slots=True)
class Subdivision:
    """A region, province, state or metropolitan city of a country.

    Lookups that find nothing return an empty ``Subdivision()``, whose
    name is blank.
    """

    name: str = ""
    code: str = ""
    type: str = ""
    capital: bool = False
    geo: Geo = Geo()
    translations: Mapping[str, str] = field(default_factory=_empty_mapping, hash=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], code: str = "") -> Subdivision:
        """Build a subdivision from a source record.

        ``code`` is the key the record was filed under; it fills in the
        record's own ``code`` when that is missing. The ``capital`` flag is
        never read from source data.
        """
        return cls(
            name=_text(data.get("name"), "name"),
            code=_text(data.get("code"), "code") or code,
            type=_text(data.get("type"), "type"),
            geo=Geo.from_mapping(_sub_mapping(data.get("geo"), "geo")),
            translations=_frozen_names(data.get("translations"), "translations"),
        )

    def is_capital_of(self, capital: str) -> bool:
        return self.type == METROPOLITAN_CITY and self.translations.get("en", "") == capital

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "code": self.code,
            "type": self.type,
            "capital": self.capital,
            "geo": self.geo.to_dict(),
            "translations": dict(sorted(self.translations.items())),
        }


@dataclass(frozen=True, slots=True)
class Country:
    """One country record, merged from every data source.

    ``capital``, ``subdivisions``, ``timezones`` and ``translations`` are
    filled in by the aggregator; base records carry them empty. Records
    handed out by a dataset are shared read-only views.
    """

    alpha2: str
    alpha3: str = ""
    number: str = ""
    gec: str = ""
    ioc: str = ""
    un_locode: str = ""
    iso_short_name: str = ""
    iso_long_name: str = ""
    unofficial_names: tuple[str, ...] = ()
    nationality: str = ""
    continent: str = ""
    region: str = ""
    subregion: str = ""
    world_region: str = ""
    geo: Geo = Geo()
    country_code: str = ""
    international_prefix: str = ""
    national_prefix: str = ""
    national_number_lengths: tuple[int, ...] = ()
    national_destination_code_lengths: tuple[int, ...] = ()
    currency_code: str = ""
    vat_rates: VatRates = VatRates()
    eu_member: bool = False
    eea_member: bool = False
    g7_member: bool = False
    g20_member: bool = False
    esm_member: bool = False
    languages_official: tuple[str, ...] = ()
    languages_spoken: tuple[str, ...] = ()
    start_of_week: str = ""
    postal_code_format: str = ""
    address_format: str = ""
    capital: str = ""
    subdivisions: Mapping[str, Subdivision] = field(default_factory=_empty_mapping, hash=False)
    timezones: tuple[str, ...] = ()
    translations: Mapping[str, str] = field(default_factory=_empty_mapping, hash=False)
    postal_code_pattern: re.Pattern[str] | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], alpha2: str = "") -> Country:
        """Build a base record; ``alpha2`` is the source key, used when the
        record does not name its own code."""
        return cls(
            alpha2=_text(data.get("alpha2"), "alpha2") or alpha2,
            alpha3=_text(data.get("alpha3"), "alpha3"),
            number=_text(data.get("number"), "number"),
            gec=_text(data.get("gec"), "gec"),
            ioc=_text(data.get("ioc"), "ioc"),
            un_locode=_text(data.get("un_locode"), "un_locode"),
            iso_short_name=_text(data.get("iso_short_name"), "iso_short_name"),
            iso_long_name=_text(data.get("iso_long_name"), "iso_long_name"),
            unofficial_names=_str_tuple(data.get("unofficial_names"), "unofficial_names"),
            nationality=_text(data.get("nationality"), "nationality"),
            continent=_text(data.get("continent"), "continent"),
            region=_text(data.get("region"), "region"),
            subregion=_text(data.get("subregion"), "subregion"),
            world_region=_text(data.get("world_region"), "world_region"),
            geo=Geo.from_mapping(_sub_mapping(data.get("geo"), "geo")),
            country_code=_text(data.get("country_code"), "country_code"),
            international_prefix=_text(data.get("international_prefix"), "international_prefix"),
            national_prefix=_text(data.get("national_prefix"), "national_prefix"),
            national_number_lengths=_int_tuple(
                data.get("national_number_lengths"), "national_number_lengths"
            ),
            national_destination_code_lengths=_int_tuple(
                data.get("national_destination_code_lengths"), "national_destination_code_lengths"
            ),
            currency_code=_text(data.get("currency_code"), "currency_code"),
            vat_rates=VatRates.from_mapping(_sub_mapping(data.get("vat_rates"), "vat_rates")),
            eu_member=_flag(data.get("eu_member"), "eu_member"),
            eea_member=_flag(data.get("eea_member"), "eea_member"),
            g7_member=_flag(data.get("g7_member"), "g7_member"),
            g20_member=_flag(data.get("g20_member"), "g20_member"),
            esm_member=_flag(data.get("esm_member"), "esm_member"),
            languages_official=_str_tuple(data.get("languages_official"), "languages_official"),
            languages_spoken=_str_tuple(data.get("languages_spoken"), "languages_spoken"),
            start_of_week=_text(data.get("start_of_week"), "start_of_week"),
            postal_code_format=_text(data.get("postal_code_format"), "postal_code_format"),
            address_format=_text(data.get("address_format"), "address_format"),
        )

    def subdivision(self, code: str) -> Subdivision:
        """Subdivision filed under ``code``, or an empty ``Subdivision()``."""
        return self.subdivisions.get(code, Subdivision())

    def find_subdivision(self, code: str) -> Subdivision | None:
        return self.subdivisions.get(code)

    def subdivision_by_name(self, name: str) -> Subdivision:
        """First subdivision whose name equals ``name``, or an empty one."""
        for subdivision in self.subdivisions.values():
            if subdivision.name == name:
                return subdivision
        return Subdivision()

    def has_postal_code(self) -> bool:
        return self.postal_code_format != ""

    def match_postal_code(self, postal_code: str) -> bool:
        """True if ``postal_code`` contains a match of the country's format.

        The format is searched, not anchored; formats that must match the
        whole string carry their own ``^``/``$``. A record built outside a
        dataset compiles its format here, and an invalid one matches nothing.
        """
        if not self.has_postal_code():
            return False
        pattern = self.postal_code_pattern
        if pattern is None:
            try:
                pattern = re.compile(self.postal_code_format)
            except re.error:
                return False
        return pattern.search(postal_code) is not None

    def format_address(
        self,
        recipient: str,
        street: str,
        postal_code: str,
        city: str,
        region: str,
    ) -> str:
        """Fill the country's address template.

        ``region`` may be a subdivision code or name. The full name and the
        short code fall back to the raw input independently of each other.
        """
        subdivision = self.subdivision(region)
        if subdivision.name == "":
            subdivision = self.subdivision_by_name(region)
        region_name = subdivision.name or region
        region_short = subdivision.code or region

        values = (recipient, street, postal_code, city, region_name, region_short, self.iso_short_name)
        address = self.address_format
        for token, value in zip(_ADDRESS_TOKENS, values):
            address = address.replace(token, value)
        return address

    def gdpr_compliant(self) -> bool:
        """EEA members are GDPR compliant, and so is the United Kingdom."""
        return self.eea_member or self.alpha2 in GDPR_EXTRA_COUNTRIES

    def emoji_flag(self) -> str:
        return "".join(
            _FLAG_CODE_POINTS[ch] for ch in self.alpha2.lower() if ch in _FLAG_CODE_POINTS
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "alpha2": self.alpha2,
            "alpha3": self.alpha3,
            "number": self.number,
            "gec": self.gec,
            "ioc": self.ioc,
            "un_locode": self.un_locode,
            "iso_short_name": self.iso_short_name,
            "iso_long_name": self.iso_long_name,
            "unofficial_names": list(self.unofficial_names),
            "nationality": self.nationality,
            "continent": self.continent,
            "region": self.region,
            "subregion": self.subregion,
            "world_region": self.world_region,
            "geo": self.geo.to_dict(),
            "country_code": self.country_code,
            "international_prefix": self.international_prefix,
            "national_prefix": self.national_prefix,
            "national_number_lengths": list(self.national_number_lengths),
            "national_destination_code_lengths": list(self.national_destination_code_lengths),
            "currency_code": self.currency_code,
            "vat_rates": self.vat_rates.to_dict(),
            "eu_member": self.eu_member,
            "eea_member": self.eea_member,
            "g7_member": self.g7_member,
            "g20_member": self.g20_member,
            "esm_member": self.esm_member,
            "languages_official": list(self.languages_official),
            "languages_spoken": list(self.languages_spoken),
            "start_of_week": self.start_of_week,
            "postal_code_format": self.postal_code_format,
            "address_format": self.address_format,
            "capital": self.capital,
            "subdivisions": {
                code: subdivision.to_dict()
                for code, subdivision in sorted(self.subdivisions.items())
            },
            "timezones": list(self.timezones),
            "translations": dict(sorted(self.translations.items())),
        }
