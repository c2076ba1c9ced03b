from __future__ import annotations

from pathlib import Path
from typing import Iterable


class NoticesError(Exception):
    """Base class for every failure that aborts a notices run."""

    def add_context(self, context: str) -> "NoticesError":
        """Prefix the message with ``context``, keeping the exception type."""

        self.args = (f"{context}: {self}",) + self.args[1:]
        return self


class ConfigError(NoticesError):
    pass


class MissingLicenseError(NoticesError):
    def __init__(self, package: str) -> None:
        super().__init__(f"Package {package} does not have a license")
        self.package = package


class LicenseParseError(NoticesError):
    def __init__(self, expression: str, reason: str = "") -> None:
        message = f"Unable to parse license expression {expression!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.expression = expression


class LicenseNotAllowedError(NoticesError):
    def __init__(self, failures: Iterable[object]) -> None:
        self.failures = [str(failure) for failure in failures]
        super().__init__(
            "None of the following licenses were allowed in the `allowed_licenses` configuration: "
            + ", ".join(self.failures)
        )


class ExternalToolError(NoticesError):
    pass


class NoticeFileError(NoticesError):
    def __init__(self, path: Path, reason: object) -> None:
        super().__init__(f"Could not read file {str(path)!r}: {reason}")
        self.path = path


class ReportWriteError(NoticesError):
    def __init__(self, path: Path, reason: object) -> None:
        super().__init__(f"Could not write report {str(path)!r}: {reason}")
        self.path = path


class LicenseTextNotFoundError(NoticesError):
    """The identifier passed validation but the license text corpus lacks it."""

    def __init__(self, identifier: str, source: str = "") -> None:
        message = f"No license text found for {identifier!r}"
        if source:
            message = f"{message} in {source}"
        super().__init__(message)
        self.identifier = identifier
