"""Narrative report of a reconciliation run, rendered as HTML for the host."""
from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
import html
import logging
from pathlib import Path
from typing import List

from .datasets import TempFile
from .host import ConnectionLevel, DatasetModel, Job
from .models import ReportRow
from .naming import unique_path

LOGGER = logging.getLogger(__name__)

SEVERITY_COLOURS = {
    "error": "#d62728",
    "warning": "#ffbf00",
    "success": "#2ca02c",
}
DEFAULT_COLOUR = "#7f7f7f"

_ROUTING_ORDER = ("error", "warning", "success")


class ReportBuilder:
    """Collects success/warning/error lines and renders them."""

    def __init__(self, title: str = "File match report") -> None:
        self.title = title
        self._rows: List[ReportRow] = []
        self._counts: Counter[str] = Counter()

    @property
    def rows(self) -> list[ReportRow]:
        return list(self._rows)

    def add_row(self, severity: str, *messages: object) -> ReportRow:
        row = ReportRow(severity=severity, message=" ".join(str(m) for m in messages))
        self._rows.append(row)
        self._counts[severity] += 1
        return row

    def counts(self) -> dict[str, int]:
        return {severity: self._counts[severity] for severity in _ROUTING_ORDER}

    def highest_severity(self) -> str:
        for severity in _ROUTING_ORDER[:-1]:
            if self._counts[severity]:
                return severity
        return "success"

    def render(self, *, generated: datetime | None = None) -> str:
        generated = generated or datetime.now(timezone.utc)
        lines = [
            "<!DOCTYPE html>",
            '<html><head><meta charset="utf-8">',
            f"<title>{html.escape(self.title)}</title></head>",
            '<body style="font-family: Arial, sans-serif; margin: 20px;">',
            f'<h2 style="margin-bottom: 4px;">{html.escape(self.title)}</h2>',
            '<p style="color: #555;">{error} error(s), {warning} warning(s), {success} success(es)</p>'.format(
                **self.counts()
            ),
            '<ul style="list-style: none; padding: 0;">',
        ]
        for row in self._rows:
            colour = SEVERITY_COLOURS.get(row.severity, DEFAULT_COLOUR)
            lines.append(
                f'<li style="border-left: 6px solid {colour}; padding: 4px 8px; margin: 2px 0;">'
                f'<strong style="color: {colour};">{html.escape(row.severity.upper())}</strong> '
                f"{html.escape(row.message)}</li>"
            )
        lines.append("</ul>")
        lines.append(
            '<p style="color: #999; font-size: small;">Generated {ts} UTC</p>'.format(
                ts=generated.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
            )
        )
        lines.append("</body></html>")
        return "\n".join(lines)

    def write_html(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            handle.write(self.render())
        return path

    def as_json(self) -> dict[str, object]:
        return {
            "title": self.title,
            "counts": self.counts(),
            "rows": [{"severity": row.severity, "message": row.message} for row in self._rows],
        }

    def route_to(self, job: Job, tmp_store: Path | str, *, report_name: str = "report.html") -> TempFile:
        """Send ``job`` down the highest-severity connection with the report attached.

        The HTML report travels as a child job on the log connection of the
        same level. The returned temp file must be removed by the caller.
        """

        level = ConnectionLevel(self.highest_severity())
        report_file = TempFile(self.write_html(unique_path(Path(tmp_store), "report", ".html")))
        try:
            child = job.create_child(str(report_file.path))
            child.send_to_log(level, DatasetModel.OPAQUE, report_name)
        except Exception:
            report_file.remove()
            raise
        job.send_to_data(level)
        LOGGER.info("Routed job to %s connection (%s)", level.value, self.counts())
        return report_file
