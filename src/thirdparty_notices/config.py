from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

try:  # Python < 3.11 compatibility
    import tomllib  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - exercised in older runtimes
    import tomli as tomllib  # type: ignore

import yaml

from .errors import ConfigError
from .license_expr import parse_requirement
from .types import LicenseRequirement

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("notices.toml")


@dataclass(frozen=True)
class Settings:
    allowed_licenses: tuple[LicenseRequirement, ...] = ()
    ignore_packages: tuple[str, ...] = ()
    license_data_dir: Optional[Path] = None

    def is_ignored(self, name: str) -> bool:
        return name in self.ignore_packages

    def as_dict(self) -> dict:
        return {
            "allowed_licenses": [str(req) for req in self.allowed_licenses],
            "ignore_packages": list(self.ignore_packages),
            "license_data_dir": str(self.license_data_dir) if self.license_data_dir else None,
        }


def _load_raw(path: Path) -> dict:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file {path}: {exc}") from exc
    try:
        if path.suffix in {".yml", ".yaml"}:
            raw = yaml.safe_load(text) or {}
        else:
            raw = tomllib.loads(text)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid configuration file {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid configuration file {path}: expected a table of options")
    return raw


def _string_list(raw: dict, key: str) -> list[str]:
    values = raw.get(key) or []
    if not isinstance(values, list) or not all(isinstance(value, str) for value in values):
        raise ConfigError(f"`{key}` must be a list of strings")
    return values


def parse_settings(raw: dict, base_dir: Path | None = None) -> Settings:
    allowed = tuple(parse_requirement(entry) for entry in _string_list(raw, "allowed_licenses"))
    ignored = tuple(_string_list(raw, "ignore_packages"))

    data_dir = raw.get("license_data_dir")
    license_data_dir = None
    if data_dir:
        if not isinstance(data_dir, str):
            raise ConfigError("`license_data_dir` must be a path string")
        license_data_dir = Path(data_dir)
        if base_dir and not license_data_dir.is_absolute():
            license_data_dir = base_dir / license_data_dir

    return Settings(
        allowed_licenses=allowed,
        ignore_packages=ignored,
        license_data_dir=license_data_dir,
    )


def load_settings(path: Path = DEFAULT_CONFIG_FILE) -> Settings:
    """Load settings from ``path``; a missing file yields the empty defaults."""

    if not path.exists():
        logger.debug("Config file %s not found; using defaults", path)
        return Settings()

    return parse_settings(_load_raw(path), base_dir=path.parent)
