from __future__ import annotations

from dataclasses import dataclass, field

from .license_text import LicenseTextProvider, resolve_license_text
from .types_dependencies import DependencyRecord
from .types_license import LicenseRequirement


@dataclass
class Notices:
    dependencies: list[DependencyRecord] = field(default_factory=list)
    licenses: list[LicenseRequirement] = field(default_factory=list)

    def add_license(self, requirement: LicenseRequirement) -> None:
        if requirement not in self.licenses:
            self.licenses.append(requirement)

    def add_dependency(self, record: DependencyRecord) -> None:
        self.dependencies.append(record)

    def license_texts(self, provider: LicenseTextProvider) -> list[tuple[str, str]]:
        """Return ``(license id, full text)`` pairs in first-seen order.

        Computed on every call so renderers always see the final requirement
        set. Requirements that render to the same id are emitted once.
        """

        texts: list[tuple[str, str]] = []
        seen: set[str] = set()
        for requirement in self.licenses:
            rendered = str(requirement)
            if rendered in seen:
                continue
            seen.add(rendered)
            texts.append((rendered, resolve_license_text(requirement, provider)))
        return texts

    def summary(self) -> dict[str, int]:
        return {
            "dependencies": len(self.dependencies),
            "licenses": len(self.licenses),
        }
