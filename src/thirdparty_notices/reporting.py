from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from jinja2 import Environment, select_autoescape
from markupsafe import Markup, escape

from .errors import ReportWriteError
from .license_text import LicenseTextProvider
from .types import Notices

logger = logging.getLogger(__name__)

env = Environment(autoescape=select_autoescape(["html", "xml"]))

REPORT_BASENAME = "3rd-party-notices"

REPORT_FORMATS = {
    "html": "html",
    "json": "json",
    "markdown": "md",
}

DEPENDENCY_TABLE = """
<table>
<thead>
<tr>
<th>Name</th>
<th>Package URL</th>
<th>License ID</th>
<th>Notices</th>
</tr>
</thead>
<tbody>
{% for row in dependencies %}
<tr>
<td>{{ row.name }}</td><td>{% if row.has_link %}<a href="{{ row.package_url }}">{{ row.package_url }}</a>{% else %}{{ row.package_url }}{% endif %}</td><td>{{ row.license_id }}</td><td>{{ row.notices }}</td>
</tr>
{% endfor %}
</tbody>
</table>
"""

HTML_TEMPLATE = """<html>
<head>
<meta charset="utf-8" />
<title>3rd Party Notices</title>
<style>
  table { border-collapse: collapse; }
  a { color: hsl(200, 40%, 50%); }
  body { padding: 1em; color: hsl(0, 0%, 80%) !important; background: hsl(0, 0%, 15%); }
  td { border-bottom: 1px solid hsl(0, 0%, 20%); padding: 4px; }
  pre { margin: 2em; background: hsl(0, 0%, 20%); padding: 2em; }
</style>
</head>
<body>
<h1>3rd Party Notices</h1>
<h2>Dependencies</h2>
{{ table }}
<h2>Licenses</h2>
{% for license_id, text in licenses %}
<h3>{{ license_id }}</h3>
<pre style="text-wrap:wrap">
{{ text }}
</pre>
{% endfor %}
</body>
</html>
"""


def _notices_html(notices: Iterable[str]) -> Markup:
    escaped = escape("\n".join(notices))
    return Markup(str(escaped).replace("\n", "<br />"))


def _dependency_rows(notices: Notices) -> Iterable[dict]:
    for dep in notices.dependencies:
        yield {
            "name": dep.name,
            "package_url": dep.package_url,
            "has_link": dep.has_link,
            "license_id": dep.license_id,
            "notices": _notices_html(dep.notices),
        }


def _dependency_table(notices: Notices) -> Markup:
    template = env.from_string(DEPENDENCY_TABLE)
    return Markup(template.render(dependencies=list(_dependency_rows(notices))))


def render_json(notices: Notices, provider: LicenseTextProvider) -> str:
    payload = {
        "dependencies": [dep.as_dict() for dep in notices.dependencies],
        "licenses": [[license_id, text] for license_id, text in notices.license_texts(provider)],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_markdown(notices: Notices, provider: LicenseTextProvider) -> str:
    lines = [
        "# 3rd Party Notices",
        "## Dependencies",
        str(_dependency_table(notices)),
        "## Licenses",
    ]
    for license_id, text in notices.license_texts(provider):
        lines.append(f"### {license_id}")
        lines.append(f"```\n{text}\n```")
    return "\n".join(lines) + "\n"


def render_html(notices: Notices, provider: LicenseTextProvider) -> str:
    template = env.from_string(HTML_TEMPLATE)
    return template.render(
        table=_dependency_table(notices),
        licenses=notices.license_texts(provider),
    )


def render_report(notices: Notices, fmt: str, provider: LicenseTextProvider) -> str:
    fmt = fmt.lower()
    if fmt == "json":
        return render_json(notices, provider)
    if fmt in {"md", "markdown"}:
        return render_markdown(notices, provider)
    if fmt == "html":
        return render_html(notices, provider)
    raise ValueError(f"Unknown report format: {fmt}")


def write_reports(notices: Notices, provider: LicenseTextProvider, output_dir: Path = Path(".")) -> list[Path]:
    """Render every report format, then write them all.

    Rendering happens before any file is touched so a failure never leaves a
    partial set of reports on disk.
    """

    rendered = {
        output_dir / f"{REPORT_BASENAME}.{suffix}": render_report(notices, fmt, provider)
        for fmt, suffix in REPORT_FORMATS.items()
    }

    written: list[Path] = []
    for destination, content in rendered.items():
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ReportWriteError(destination, exc) from exc
        logger.info("Wrote %s", destination)
        written.append(destination)
    return written
