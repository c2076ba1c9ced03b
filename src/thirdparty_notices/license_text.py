from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Protocol

from .errors import LicenseTextNotFoundError
from .types_license import LicenseRequirement

logger = logging.getLogger(__name__)

LICENSE_DATA_ENV = "THIRDPARTY_NOTICES_LICENSE_DATA"
DEFAULT_LICENSE_DATA_DIR = Path("license-list-data")

EXCEPTION_DELIMITER = "\n\nWITH EXCEPTION:\n\n"


class LicenseTextProvider(Protocol):
    def text_for(self, identifier: str) -> str:
        ...


class StaticLicenseTexts:
    """License texts backed by an in-memory mapping of SPDX id to text."""

    def __init__(self, texts: Mapping[str, str]) -> None:
        self._texts = dict(texts)

    def text_for(self, identifier: str) -> str:
        try:
            return self._texts[identifier]
        except KeyError:
            raise LicenseTextNotFoundError(identifier) from None


class SpdxTextDirectory:
    """Read license and exception texts from a local SPDX license-list-data checkout.

    ``root`` may be the repository root, its ``text/`` directory (one
    ``<id>.txt`` per license or exception) or its ``json/`` directory
    (``details/<id>.json`` and ``exceptions/<id>.json``).
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._cache: dict[str, str] = {}
        self.text_dir: Optional[Path] = None
        self.json_dir: Optional[Path] = None

        if (self.root / "text").is_dir():
            self.text_dir = self.root / "text"
        if (self.root / "json" / "details").is_dir():
            self.json_dir = self.root / "json"
        elif (self.root / "details").is_dir():
            self.json_dir = self.root
        if self.text_dir is None and self.json_dir is None:
            self.text_dir = self.root

    def _from_text(self, identifier: str) -> str | None:
        if self.text_dir is None:
            return None
        candidate = self.text_dir / f"{identifier}.txt"
        if not candidate.is_file():
            return None
        return candidate.read_text(encoding="utf-8")

    def _from_json(self, identifier: str) -> str | None:
        if self.json_dir is None:
            return None
        for folder, key in (("details", "licenseText"), ("exceptions", "licenseExceptionText")):
            candidate = self.json_dir / folder / f"{identifier}.json"
            if not candidate.is_file():
                continue
            payload = json.loads(candidate.read_text(encoding="utf-8"))
            text = payload.get(key)
            if text:
                return text
        return None

    def text_for(self, identifier: str) -> str:
        if identifier in self._cache:
            return self._cache[identifier]

        text = self._from_text(identifier) or self._from_json(identifier)
        if text is None:
            raise LicenseTextNotFoundError(identifier, str(self.root))
        self._cache[identifier] = text
        return text


def resolve_license_data_dir(configured: Path | None = None) -> Path:
    if configured:
        return Path(configured)
    env_dir = os.environ.get(LICENSE_DATA_ENV)
    if env_dir:
        return Path(env_dir)
    return DEFAULT_LICENSE_DATA_DIR


def default_provider(configured: Path | None = None) -> SpdxTextDirectory:
    data_dir = resolve_license_data_dir(configured)
    logger.debug("Reading license texts from %s", data_dir)
    return SpdxTextDirectory(data_dir)


def resolve_license_text(requirement: LicenseRequirement, provider: LicenseTextProvider) -> str:
    text = provider.text_for(requirement.license_id)
    if requirement.exception:
        text = f"{text}{EXCEPTION_DELIMITER}{provider.text_for(requirement.exception)}"
    return text
