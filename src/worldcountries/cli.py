"""CLI entrypoint for the worldcountries dataset."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Sequence

from .config import DatasetConfig, load_config
from .dataset import CountryDataset, load_dataset
from .models import Country
from .util import setup_logging, write_json
from .validate import Validator, format_report_lines

LOGGER = logging.getLogger("worldcountries.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="worldcountries",
        description="Query the merged world countries dataset.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default=None, help="Path to YAML config. Defaults to bundled data.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    show_p = subparsers.add_parser("show", help="Print one country as JSON.")
    add_common(show_p)
    show_p.add_argument("code", help="ISO alpha-2 code.")

    list_p = subparsers.add_parser("list", help="List countries, optionally filtered.")
    add_common(list_p)
    scope = list_p.add_mutually_exclusive_group()
    scope.add_argument("--region", default=None, help="Exact region name.")
    scope.add_argument("--subregion", default=None, help="Exact subregion name.")
    scope.add_argument("--eu", action="store_true", help="European Union members only.")

    regions_p = subparsers.add_parser("regions", help="List distinct regions.")
    add_common(regions_p)

    subregions_p = subparsers.add_parser("subregions", help="List distinct subregions.")
    add_common(subregions_p)

    postal_p = subparsers.add_parser(
        "postal",
        help="Check a postal code against a country's format (exit 0 on match).",
    )
    add_common(postal_p)
    postal_p.add_argument("code", help="ISO alpha-2 code.")
    postal_p.add_argument("postal_code", help="Candidate postal code.")

    address_p = subparsers.add_parser("address", help="Format an address for a country.")
    add_common(address_p)
    address_p.add_argument("code", help="ISO alpha-2 code.")
    address_p.add_argument("--recipient", default="")
    address_p.add_argument("--street", default="")
    address_p.add_argument("--postal-code", default="")
    address_p.add_argument("--city", default="")
    address_p.add_argument("--region", default="", help="Subdivision code or name.")

    validate_p = subparsers.add_parser("validate", help="Check the data sources for problems.")
    add_common(validate_p)

    export_p = subparsers.add_parser("export", help="Write every country to a JSON file.")
    add_common(export_p)
    export_p.add_argument("output", help="Output JSON path.")

    return parser


def _load_and_setup(args: argparse.Namespace) -> DatasetConfig:
    cfg = DatasetConfig.default() if args.config is None else load_config(args.config)
    setup_logging(cfg.logging.log_file, verbose=bool(args.verbose) or cfg.logging.verbose)
    return cfg


def _lookup(dataset: CountryDataset, code: str) -> Country | None:
    country = dataset.get(code.strip().upper())
    if country is None:
        LOGGER.error("Unknown country code: %s", code)
    return country


def _country_line(country: Country) -> str:
    return f"{country.alpha2}  {country.emoji_flag()}  {country.iso_short_name}"


def _run_show(dataset: CountryDataset, code: str) -> int:
    country = _lookup(dataset, code)
    if country is None:
        return 1
    print(json.dumps(country.to_dict(), indent=2, ensure_ascii=False))
    return 0


def _run_list(dataset: CountryDataset, args: argparse.Namespace) -> int:
    if args.region is not None:
        countries = dataset.in_region(args.region)
    elif args.subregion is not None:
        countries = dataset.in_subregion(args.subregion)
    elif args.eu:
        countries = dataset.in_eu()
    else:
        countries = list(dataset.all)
    for country in countries:
        print(_country_line(country))
    LOGGER.debug("Listed %d countries.", len(countries))
    return 0


def _run_postal(dataset: CountryDataset, code: str, postal_code: str) -> int:
    country = _lookup(dataset, code)
    if country is None:
        return 1
    if not country.has_postal_code():
        LOGGER.info("%s has no postal codes.", country.alpha2)
        return 1
    matched = country.match_postal_code(postal_code)
    LOGGER.info(
        "%s postal code %r %s format %r",
        country.alpha2,
        postal_code,
        "matches" if matched else "does not match",
        country.postal_code_format,
    )
    return 0 if matched else 1


def _run_address(dataset: CountryDataset, args: argparse.Namespace) -> int:
    country = _lookup(dataset, args.code)
    if country is None:
        return 1
    print(
        country.format_address(
            args.recipient,
            args.street,
            args.postal_code,
            args.city,
            args.region,
        )
    )
    return 0


def _run_validate(cfg: DatasetConfig) -> int:
    report = Validator(cfg).run()
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_export(dataset: CountryDataset, output: str) -> int:
    path = Path(output)
    write_json(path, dataset.to_list())
    LOGGER.info("Exported %d countries to %s (sha256 %s)", len(dataset), path, dataset.fingerprint())
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "validate":
        return _run_validate(cfg)

    dataset = load_dataset(config=cfg)
    if command == "show":
        return _run_show(dataset, args.code)
    if command == "list":
        return _run_list(dataset, args)
    if command == "regions":
        for region in dataset.regions:
            print(region)
        return 0
    if command == "subregions":
        for subregion in dataset.subregions:
            print(subregion)
        return 0
    if command == "postal":
        return _run_postal(dataset, args.code, args.postal_code)
    if command == "address":
        return _run_address(dataset, args)
    if command == "export":
        return _run_export(dataset, args.output)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
