from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class PackageDescriptor:
    """Raw package metadata as reported by an ecosystem's tooling."""

    name: str
    version: str
    license: Optional[str]
    path: Path
    package_url: str
    authors: tuple[str, ...] = ()


@dataclass(frozen=True)
class DependencyRecord:
    name: str
    package_url: str
    license_id: str
    notices: tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_link(self) -> bool:
        return self.package_url.startswith(("http://", "https://"))

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "package_url": self.package_url,
            "license_id": self.license_id,
            "notices": list(self.notices),
        }
