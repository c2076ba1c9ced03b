from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click

from .config import DEFAULT_CONFIG_FILE, Settings, load_settings
from .dependency_scanner import collect_notices
from .errors import NoticesError
from .license_text import default_provider
from .reporting import write_reports

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def _load(config_file: str, verbose: bool) -> Settings:
    _configure_logging(verbose)
    settings = load_settings(Path(config_file))
    logger.debug("Settings: %s", settings.as_dict())
    return settings


_config_argument = click.argument(
    "config_file",
    default=str(DEFAULT_CONFIG_FILE),
    type=click.Path(dir_okay=False, path_type=str),
)
_project_dir_option = click.option(
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=str),
    default=".",
    show_default=True,
    help="Directory holding Cargo.toml and/or pnpm-lock.yaml.",
)
_verbose_option = click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")


@click.group()
def main() -> None:
    """Third-party license notice generator."""


@main.command()
@_config_argument
@_project_dir_option
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=str),
    default=".",
    show_default=True,
    help="Directory the 3rd-party-notices.{html,json,md} reports are written to.",
)
@click.option(
    "--license-data",
    type=click.Path(exists=True, file_okay=False, path_type=str),
    help=(
        "Local SPDX license-list-data checkout (or its text/ or json/ directory). "
        "Defaults to license_data_dir from the config, THIRDPARTY_NOTICES_LICENSE_DATA, "
        "or ./license-list-data."
    ),
)
@_verbose_option
def generate(
    config_file: str,
    project_dir: str,
    output_dir: str,
    license_data: Optional[str],
    verbose: bool,
) -> None:
    """Validate dependency licenses and write the notices reports."""

    try:
        settings = _load(config_file, verbose)
        notices = collect_notices(settings, Path(project_dir))
        provider = default_provider(Path(license_data) if license_data else settings.license_data_dir)
        write_reports(notices, provider, Path(output_dir))
    except NoticesError as exc:
        logger.error("%s", exc)
        raise SystemExit(1)

    logger.info("Done 🎉")


@main.command()
@_config_argument
@_project_dir_option
@_verbose_option
def check(config_file: str, project_dir: str, verbose: bool) -> None:
    """Validate dependency licenses without writing any report."""

    try:
        settings = _load(config_file, verbose)
        notices = collect_notices(settings, Path(project_dir))
    except NoticesError as exc:
        logger.error("%s", exc)
        raise SystemExit(1)

    summary = notices.summary()
    click.echo(
        f"{summary['dependencies']} dependencies checked; "
        f"{summary['licenses']} distinct license requirements: "
        + (", ".join(str(req) for req in notices.licenses) or "none")
    )


if __name__ == "__main__":
    main()
