from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List

from .errors import NoticeFileError

COPYRIGHT_FILE_RE = re.compile(r"(license|copying|readme|copyright|notice).*", re.IGNORECASE)

COPYRIGHT_RE = re.compile(r"copyright.*(©|\(c\)).*$", re.IGNORECASE | re.MULTILINE)

# Template placeholders such as "Copyright (c) <year> <copyright holders>"
NOT_COPYRIGHT_RE = re.compile(r"(year|notice|holder|owner|interest|yyyy)", re.IGNORECASE)

NOTICE_FILENAME = "NOTICE"


def is_notice_candidate(filename: str) -> bool:
    return COPYRIGHT_FILE_RE.search(filename) is not None


def extract_copyright_lines(text: str) -> List[str]:
    lines: list[str] = []
    for match in COPYRIGHT_RE.finditer(text):
        statement = match.group(0).rstrip("\r")
        if NOT_COPYRIGHT_RE.search(statement):
            continue
        lines.append(statement)
    return lines


def _read_text(path: Path) -> str:
    try:
        return path.read_bytes().decode("utf-8", errors="replace")
    except OSError as exc:
        raise NoticeFileError(path, exc) from exc


def scan_for_notices(path: Path, seed: Iterable[str] = ()) -> tuple[str, ...]:
    """Collect copyright notices from the files directly inside ``path``.

    A ``NOTICE`` file is kept verbatim (Apache-2.0 requires redistributing
    it). Every file that looks like a license, readme or notice is searched
    for copyright statements. ``seed`` entries come first in the result,
    which is deduplicated and keeps first-seen order.
    """

    found: dict[str, None] = dict.fromkeys(seed)
    if not path.is_dir():
        return tuple(found)

    notice_path = path / NOTICE_FILENAME
    if notice_path.is_file():
        found.setdefault(_read_text(notice_path))

    try:
        entries = sorted(path.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        raise NoticeFileError(path, exc) from exc

    for entry in entries:
        if not entry.is_file() or not is_notice_candidate(entry.name):
            continue
        for statement in extract_copyright_lines(_read_text(entry)):
            found.setdefault(statement)

    return tuple(found)
