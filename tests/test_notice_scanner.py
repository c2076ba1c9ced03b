from pathlib import Path

import pytest

from thirdparty_notices.errors import NoticeFileError
from thirdparty_notices.notice_scanner import (
    extract_copyright_lines,
    is_notice_candidate,
    scan_for_notices,
)


def test_placeholder_copyright_lines_are_discarded():
    text = "Copyright (c) <year> <copyright holders>\nCopyright © 2023 Jane Doe\n"
    assert extract_copyright_lines(text) == ["Copyright © 2023 Jane Doe"]


def test_copyright_match_starts_at_keyword_and_ignores_crlf():
    text = "  // Copyright (C) 2019 The Authors\r\nnothing here\r\n"
    assert extract_copyright_lines(text) == ["Copyright (C) 2019 The Authors"]


@pytest.mark.parametrize("name", ["LICENSE.txt", "license", "COPYING.md", "NOTICE.txt", "Readme.rst", "UNLICENSE"])
def test_candidate_file_names(name):
    assert is_notice_candidate(name)


@pytest.mark.parametrize("name", ["package.json", "main.go", "Cargo.toml"])
def test_non_candidate_file_names(name):
    assert not is_notice_candidate(name)


def test_notice_file_is_kept_verbatim(tmp_path: Path):
    notice = "Apache Foo\nThis product includes software developed at Example.\n"
    (tmp_path / "NOTICE").write_text(notice)

    assert scan_for_notices(tmp_path) == (notice,)


def test_duplicate_statements_collapse_across_files(tmp_path: Path):
    (tmp_path / "LICENSE-MIT").write_text("Copyright (c) 2020 Jane Doe\n")
    (tmp_path / "LICENSE-APACHE").write_text("Copyright (c) 2020 Jane Doe\n")
    (tmp_path / "README.md").write_text("Copyright © 2021 Other Person\n")
    (tmp_path / "lib.rs").write_text("// Copyright (c) 2022 Hidden In Source\n")
    nested = tmp_path / "src"
    nested.mkdir()
    (nested / "LICENSE").write_text("Copyright (c) 2023 Nested\n")

    notices = scan_for_notices(tmp_path)
    assert notices == ("Copyright (c) 2020 Jane Doe", "Copyright © 2021 Other Person")


def test_seed_entries_come_first(tmp_path: Path):
    (tmp_path / "COPYRIGHT").write_text("Copyright (c) 2020 Jane Doe\n")

    notices = scan_for_notices(tmp_path, ["Authors: Jane Doe"])
    assert notices == ("Authors: Jane Doe", "Copyright (c) 2020 Jane Doe")


def test_missing_directory_has_no_notices(tmp_path: Path):
    assert scan_for_notices(tmp_path / "gone") == ()


def test_unreadable_notice_file_raises(monkeypatch, tmp_path: Path):
    license_file = tmp_path / "LICENSE"
    license_file.write_text("Copyright (c) 2020 Jane Doe\n")
    read_bytes = Path.read_bytes

    def failing_read_bytes(self):
        if self.name == "LICENSE":
            raise PermissionError(13, "Permission denied")
        return read_bytes(self)

    monkeypatch.setattr(Path, "read_bytes", failing_read_bytes)

    with pytest.raises(NoticeFileError, match="Permission denied") as excinfo:
        scan_for_notices(tmp_path)
    assert excinfo.value.path == license_file
