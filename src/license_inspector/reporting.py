from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from jinja2 import Environment, select_autoescape

from .types import Report


env = Environment(autoescape=select_autoescape(["html", "xml"]))


def _issue_rows(report: Report) -> Iterable[dict]:
    for issue in report.issues:
        yield issue.as_dict()


def render_json(report: Report) -> str:
    """Warnings NG ``issues`` document."""

    return json.dumps({"issues": list(_issue_rows(report))}, indent=2, ensure_ascii=False)


def _summary(report: Report) -> str:
    return ", ".join(f"{label}={count}" for label, count in report.severity_counts.items())


def render_markdown(report: Report) -> str:
    lines = [
        "# License Report",
        "",
        f"Generated at: {report.generated_at.isoformat()}",
        f"Packages: {len(report.issues)} ({_summary(report)})",
        "",
        "| Package | License | Severity | Dependency tree | Manifest |",
        "| --- | --- | --- | --- | --- |",
    ]
    for row in _issue_rows(report):
        location = row["fileName"]
        if "lineStart" in row:
            location = f"{location}:{row['lineStart']}"
        lines.append(
            f"| {row['packageName']} | {row['type']} | {row['severity']} | {row['description']} | {location} |"
        )
    return "\n".join(lines)


def render_html(report: Report) -> str:
    template = env.from_string(
        """
<!doctype html>
<html lang=\"en\">
<head>
  <meta charset=\"utf-8\" />
  <title>License Report</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 2rem; }
    h1 { color: #1f2937; }
    table { border-collapse: collapse; width: 100%; margin-bottom: 1.5rem; }
    th, td { border: 1px solid #d1d5db; padding: 0.5rem; }
    th { background: #f3f4f6; text-align: left; }
    .badge { display: inline-block; padding: 0.35rem 0.6rem; border-radius: 0.4rem; font-weight: 600; }
    .badge.sev-ERROR { background: #fee2e2; color: #991b1b; }
    .badge.sev-HIGH { background: #fef3c7; color: #92400e; }
    .badge.sev-NORMAL { background: #e0f2fe; color: #0369a1; }
    .badge.sev-LOW { background: #d1fae5; color: #065f46; }
  </style>
</head>
<body>
  <h1>License Report</h1>
  <p>Generated at: {{ generated_at }}</p>
  <p>
    {% for label, count in counts.items() %}
    <span class=\"badge sev-{{ label }}\">{{ label }}: {{ count }}</span>
    {% endfor %}
  </p>
  <table>
    <thead><tr><th>Package</th><th>License</th><th>Severity</th><th>Dependency tree</th><th>Manifest</th></tr></thead>
    <tbody>
      {% for row in issues %}
      <tr>
        <td>{{ row.packageName }}</td>
        <td>{{ row.type }}</td>
        <td><span class=\"badge sev-{{ row.severity }}\">{{ row.severity }}</span></td>
        <td>{{ row.description }}</td>
        <td>{{ row.fileName }}{% if row.lineStart %}:{{ row.lineStart }}{% endif %}</td>
      </tr>
      {% endfor %}
    </tbody>
  </table>
</body>
</html>
"""
    )
    return template.render(
        generated_at=report.generated_at.isoformat(),
        counts=report.severity_counts,
        issues=list(_issue_rows(report)),
    )


def render_report(report: Report, fmt: str) -> str:
    fmt = fmt.lower()
    if fmt == "json":
        return render_json(report)
    if fmt in {"md", "markdown"}:
        return render_markdown(report)
    if fmt == "html":
        return render_html(report)
    raise ValueError(f"Unknown report format: {fmt}")


def write_report(report: Report, fmt: str, destination: Path | None) -> str:
    output = render_report(report, fmt)
    if destination:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(output, encoding="utf-8")
    return output
