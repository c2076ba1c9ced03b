import json
import re
from pathlib import Path

import pytest

from thirdparty_notices.errors import LicenseTextNotFoundError, ReportWriteError
from thirdparty_notices.license_text import StaticLicenseTexts
from thirdparty_notices.reporting import render_html, render_json, render_markdown, write_reports
from thirdparty_notices.types import DependencyRecord, LicenseRequirement, Notices

PROVIDER = StaticLicenseTexts(
    {
        "MIT": "Copyright (c) <year> <copyright holders>\n\nPermission is hereby granted",
        "Apache-2.0": "Apache License\nVersion 2.0, January 2004",
        "LLVM-exception": "---- LLVM Exceptions to the Apache 2.0 License ----",
    }
)


def _notices() -> Notices:
    notices = Notices()
    notices.add_dependency(
        DependencyRecord(
            name="serde",
            package_url="https://crates.io/crates/serde/1.0.0",
            license_id="MIT OR Apache-2.0",
            notices=("Authors: Erick <erick@example.com>", "Copyright (c) 2014 Rust & Friends"),
        )
    )
    notices.add_dependency(
        DependencyRecord(
            name="forked",
            package_url="git+https://github.com/example/forked?rev=abc#abc",
            license_id="Apache-2.0 WITH LLVM-exception",
        )
    )
    notices.add_license(LicenseRequirement("MIT"))
    notices.add_license(LicenseRequirement("Apache-2.0"))
    notices.add_license(LicenseRequirement("Apache-2.0", exception="LLVM-exception"))
    return notices


def test_render_json_payload_shape():
    payload = json.loads(render_json(_notices(), PROVIDER))

    assert set(payload) == {"dependencies", "licenses"}
    assert payload["dependencies"][0] == {
        "name": "serde",
        "package_url": "https://crates.io/crates/serde/1.0.0",
        "license_id": "MIT OR Apache-2.0",
        "notices": ["Authors: Erick <erick@example.com>", "Copyright (c) 2014 Rust & Friends"],
    }
    assert [entry[0] for entry in payload["licenses"]] == [
        "MIT",
        "Apache-2.0",
        "Apache-2.0 WITH LLVM-exception",
    ]
    assert "WITH EXCEPTION:" in payload["licenses"][2][1]


def test_render_html_escapes_notices_and_joins_with_breaks():
    html = render_html(_notices(), PROVIDER)

    assert "Authors: Erick &lt;erick@example.com&gt;<br />Copyright (c) 2014 Rust &amp; Friends" in html
    assert '<a href="https://crates.io/crates/serde/1.0.0">' in html
    assert '<a href="git+https' not in html
    assert "<td>git+https://github.com/example/forked?rev=abc#abc</td>" in html
    assert "&lt;year&gt;" in html


def test_json_and_html_list_the_same_content():
    notices = _notices()
    payload = json.loads(render_json(notices, PROVIDER))
    html = render_html(notices, PROVIDER)

    html_rows = re.findall(r"<tr>\n<td>(.*?)</td><td>.*?</td><td>(.*?)</td>", html)
    assert html_rows == [(dep["name"], dep["license_id"]) for dep in payload["dependencies"]]
    assert re.findall(r"<h3>(.*?)</h3>", html) == [entry[0] for entry in payload["licenses"]]


def test_render_markdown_has_fenced_license_texts():
    markdown = render_markdown(_notices(), PROVIDER)

    assert markdown.startswith("# 3rd Party Notices\n## Dependencies\n")
    assert "<td>serde</td>" in markdown
    assert "### Apache-2.0 WITH LLVM-exception\n```\nApache License" in markdown


def test_write_reports_creates_all_documents(tmp_path: Path):
    (tmp_path / "3rd-party-notices.md").write_text("stale")

    written = write_reports(_notices(), PROVIDER, tmp_path)

    assert sorted(path.name for path in written) == [
        "3rd-party-notices.html",
        "3rd-party-notices.json",
        "3rd-party-notices.md",
    ]
    assert (tmp_path / "3rd-party-notices.md").read_text().startswith("# 3rd Party Notices")


def test_write_reports_leaves_nothing_behind_when_a_text_is_missing(tmp_path: Path):
    notices = _notices()
    notices.add_license(LicenseRequirement("ISC"))

    with pytest.raises(LicenseTextNotFoundError):
        write_reports(notices, PROVIDER, tmp_path)

    assert list(tmp_path.iterdir()) == []


def test_write_reports_raises_when_a_report_cannot_be_written(tmp_path: Path):
    blocked = tmp_path / "3rd-party-notices.html"
    blocked.mkdir()

    with pytest.raises(ReportWriteError, match="3rd-party-notices.html") as excinfo:
        write_reports(_notices(), PROVIDER, tmp_path)
    assert excinfo.value.path == blocked
