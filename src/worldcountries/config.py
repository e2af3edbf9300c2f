"""Typed configuration loader for the dataset YAML config."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .aggregate import POSTAL_POLICIES, POSTAL_POLICY_STRICT


BUNDLED_DATA_DIR = Path(__file__).resolve().parent / "data"


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class DataConfig:
    root: Path

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> DataConfig:
        root_raw = raw.get("root")
        if root_raw is None:
            return cls(root=BUNDLED_DATA_DIR)
        return cls(root=_path_from_cfg(root_raw, "data.root", root_dir))


@dataclass(frozen=True, slots=True)
class LoadingConfig:
    parallel: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LoadingConfig:
        return cls(parallel=_bool(raw.get("parallel", False), "loading.parallel"))


@dataclass(frozen=True, slots=True)
class PostalCodesConfig:
    policy: str = POSTAL_POLICY_STRICT

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PostalCodesConfig:
        policy = _str(raw.get("policy", POSTAL_POLICY_STRICT), "postal_codes.policy").casefold()
        if policy not in POSTAL_POLICIES:
            raise ValueError("postal_codes.policy must be one of: " + ", ".join(POSTAL_POLICIES))
        return cls(policy=policy)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    verbose: bool = False
    log_file: Path | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> LoggingConfig:
        log_file_raw = raw.get("log_file")
        return cls(
            verbose=_bool(raw.get("verbose", False), "logging.verbose"),
            log_file=(
                None
                if log_file_raw is None
                else _path_from_cfg(log_file_raw, "logging.log_file", root_dir)
            ),
        )


@dataclass(frozen=True, slots=True)
class DatasetConfig:
    source_path: Path | None
    data: DataConfig
    loading: LoadingConfig
    postal_codes: PostalCodesConfig
    logging: LoggingConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> DatasetConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            data=DataConfig.from_mapping(_mapping(raw.get("data"), "data"), root_dir),
            loading=LoadingConfig.from_mapping(_mapping(raw.get("loading"), "loading")),
            postal_codes=PostalCodesConfig.from_mapping(
                _mapping(raw.get("postal_codes"), "postal_codes")
            ),
            logging=LoggingConfig.from_mapping(_mapping(raw.get("logging"), "logging"), root_dir),
        )

    @classmethod
    def default(cls) -> DatasetConfig:
        """Bundled data, serial loading, strict postal code patterns."""
        return cls(
            source_path=None,
            data=DataConfig(root=BUNDLED_DATA_DIR),
            loading=LoadingConfig(),
            postal_codes=PostalCodesConfig(),
            logging=LoggingConfig(),
        )


def load_config(path: str | Path) -> DatasetConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return DatasetConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
