from __future__ import annotations

import json
import logging
import subprocess
from itertools import chain
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional

from .config import Settings
from .errors import ExternalToolError, MissingLicenseError, NoticeFileError, NoticesError
from .license_expr import LicenseExpression, check_license
from .notice_scanner import scan_for_notices
from .types import DependencyRecord, Notices, PackageDescriptor

logger = logging.getLogger(__name__)

CRATES_IO_SOURCES = {
    "registry+https://github.com/rust-lang/crates.io-index",
    "sparse+https://index.crates.io/",
}

CARGO_MANIFEST = "Cargo.toml"
PNPM_LOCKFILE = "pnpm-lock.yaml"


def _run_tool(args: List[str], cwd: Path) -> str:
    command = " ".join(args)
    logger.debug("Running `%s` in %s", command, cwd)
    try:
        result = subprocess.run(args, cwd=cwd, capture_output=True, text=True)
    except OSError as exc:
        raise ExternalToolError(f"Running `{command}` failed: {exc}") from exc
    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise ExternalToolError(
            f"Error running `{command}` (exit code {result.returncode})" + (f": {stderr}" if stderr else "")
        )
    return result.stdout


def _load_tool_json(args: List[str], cwd: Path):
    output = _run_tool(args, cwd)
    try:
        return json.loads(output)
    except json.JSONDecodeError as exc:
        raise ExternalToolError(f"Error parsing `{' '.join(args)}` output: {exc}") from exc


def handle_package_license(license: str, notices: Notices, settings: Settings) -> LicenseExpression:
    """Validate ``license`` against the allow-list and record every requirement it names."""

    expression = check_license(license, settings.allowed_licenses)
    for requirement in expression.requirements():
        notices.add_license(requirement)
    return expression


def add_package(notices: Notices, settings: Settings, package: PackageDescriptor) -> Optional[DependencyRecord]:
    if settings.is_ignored(package.name):
        logger.debug("Ignoring package %s", package.name)
        return None
    if not package.license:
        raise MissingLicenseError(package.name)

    handle_package_license(package.license, notices, settings)

    seed = [f"Authors: {', '.join(package.authors)}"] if package.authors else []
    record = DependencyRecord(
        name=package.name,
        package_url=package.package_url,
        license_id=package.license,
        notices=scan_for_notices(package.path, seed),
    )
    notices.add_dependency(record)
    logger.debug("Added %s %s (%s)", package.name, package.version, package.license)
    return record


def add_packages(notices: Notices, settings: Settings, packages: Iterable[PackageDescriptor]) -> int:
    added = 0
    for package in packages:
        if add_package(notices, settings, package):
            added += 1
    return added


def crate_url(name: str, version: str, source: str) -> str:
    if source in CRATES_IO_SOURCES:
        return f"https://crates.io/crates/{name}/{version}"
    return source


def cargo_packages(metadata: dict) -> Iterator[PackageDescriptor]:
    """Yield every non-local package from ``cargo metadata`` output."""

    for package in metadata.get("packages", []) or []:
        source = package.get("source")
        if not source:
            continue
        try:
            name = package["name"]
            path = Path(package["manifest_path"]).parent
        except (KeyError, TypeError) as exc:
            raise ExternalToolError(f"Malformed `cargo metadata` output: {exc!r}") from exc
        version = str(package.get("version", ""))
        yield PackageDescriptor(
            name=name,
            version=version,
            license=package.get("license"),
            path=path,
            package_url=crate_url(name, version, source),
            authors=tuple(package.get("authors") or ()),
        )


def collect_cargo_notices(notices: Notices, settings: Settings, project_dir: Path) -> int:
    if not (project_dir / CARGO_MANIFEST).exists():
        logger.info("Skipping cargo packages because %s not found", CARGO_MANIFEST)
        return 0

    metadata = _load_tool_json(["cargo", "metadata", "--format-version", "1"], project_dir)
    # TODO: skip build/dev-only crates using the resolve graph's dep_kinds.
    return add_packages(notices, settings, cargo_packages(metadata))


def _declared_license(data: dict) -> Optional[str]:
    license = data.get("license")
    if isinstance(license, str):
        return license
    if isinstance(license, dict):
        return license.get("type")

    legacy = data.get("licenses")
    if isinstance(legacy, list):
        types = [entry.get("type") if isinstance(entry, dict) else entry for entry in legacy]
        types = [str(value) for value in types if value]
        if types:
            return " OR ".join(types)
    return None


def read_package_json(package_dir: Path) -> dict:
    package_json = package_dir / "package.json"
    try:
        return json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise NoticeFileError(package_json, exc) from exc


def pnpm_packages(listing: list, project_dir: Path) -> Iterator[PackageDescriptor]:
    """Yield the direct and dev dependencies of every project in ``pnpm list --json``."""

    for project in listing:
        dependencies = project.get("dependencies") or {}
        dev_dependencies = project.get("devDependencies") or {}
        for _, item in chain(dependencies.items(), dev_dependencies.items()):
            try:
                package_dir = project_dir / item["path"]
            except (KeyError, TypeError) as exc:
                raise ExternalToolError(f"Malformed `pnpm list --json` output: {exc!r}") from exc
            data = read_package_json(package_dir)
            name = data.get("name") or ""
            version = str(data.get("version", ""))
            yield PackageDescriptor(
                name=name,
                version=version,
                license=_declared_license(data),
                path=package_dir,
                package_url=f"https://www.npmjs.com/package/{name}/v/{version}",
            )


def collect_pnpm_notices(notices: Notices, settings: Settings, project_dir: Path) -> int:
    if not (project_dir / PNPM_LOCKFILE).exists():
        logger.info("Skipping pnpm packages because lockfile not found")
        return 0

    listing = _load_tool_json(["pnpm", "list", "--json"], project_dir)
    if not isinstance(listing, list):
        raise ExternalToolError("Error parsing `pnpm list --json` output: expected a list")
    return add_packages(notices, settings, pnpm_packages(listing, project_dir))


Collector = Callable[[Notices, Settings, Path], int]

COLLECTORS: list[tuple[str, Collector]] = [
    ("cargo", collect_cargo_notices),
    ("pnpm", collect_pnpm_notices),
]


def collect_notices(settings: Settings, project_dir: Path = Path(".")) -> Notices:
    notices = Notices()
    for ecosystem, collector in COLLECTORS:
        try:
            added = collector(notices, settings, project_dir)
        except NoticesError as exc:
            raise exc.add_context(f"Collecting {ecosystem} notices failed")
        logger.info("Collected %d %s packages", added, ecosystem)
    return notices
