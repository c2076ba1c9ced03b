from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LicenseRequirement:
    """A single SPDX license id, optionally "or later" and with an exception."""

    license_id: str
    exception: Optional[str] = None
    or_later: bool = False

    def __str__(self) -> str:
        rendered = f"{self.license_id}+" if self.or_later else self.license_id
        if self.exception:
            rendered = f"{rendered} WITH {self.exception}"
        return rendered
