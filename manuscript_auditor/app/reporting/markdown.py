"""
Report serialization.

Two artifacts are produced from a ValidationReport:

- a human-readable Markdown report (tables per finding category, a
  summary count table, the word-count rollup and numbering divergences)
- the machine-readable task list (tasks.json layout)

Both renderings are pure functions of the report. Identical reports
render to identical bytes.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional, Sequence

from manuscript_auditor.app.schemas.findings import FindingCategory
from manuscript_auditor.app.schemas.report import TaskList, ValidationReport


_CATEGORY_HEADINGS = {
    FindingCategory.BROKEN_LINK: "Broken Links",
    FindingCategory.WRONG_NUMBER: "Wrong Chapter Numbers",
    FindingCategory.MISSING_SECTION: "Missing Sections",
    FindingCategory.WORD_COUNT_BOUND: "Word Count Bounds",
    FindingCategory.MISSING_ASSET: "Missing Assets",
}


def pretty_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, allow_nan=False) + "\n"


def render_task_list_json(task_list: TaskList) -> str:
    return pretty_json(task_list.model_dump(mode="json", by_alias=True))


# ---------------------------------------------------------------------------
# Markdown helpers
# ---------------------------------------------------------------------------


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    text = str(value).replace("\\", "\\\\").replace("|", "\\|")
    return " ".join(text.split())


def _table(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> List[str]:
    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join("---" for _ in headers) + "|",
    ]
    for row in rows:
        lines.append("| " + " | ".join(_cell(v) for v in row) + " |")
    return lines


def _code(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    return f"`{value}`"


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def _render_summary(report: ValidationReport) -> List[str]:
    rows = [(row.category.value, row.count, row.critical) for row in report.summary]
    rows.append(
        (
            "**Total**",
            sum(row.count for row in report.summary),
            sum(row.critical for row in report.summary),
        )
    )
    return ["## Summary", ""] + _table(("Category", "Count", "Critical"), rows)


def _render_category(report: ValidationReport, category: FindingCategory) -> List[str]:
    findings = report.findings_of(category)
    lines = [f"## {_CATEGORY_HEADINGS[category]} ({len(findings)})", ""]

    if not findings:
        return lines + ["None found."]

    rows = []
    for finding in findings:
        location = finding.location
        rows.append(
            (
                location.document_id,
                location.line if location.line is not None else location.section,
                _code(finding.detail.observed),
                _code(finding.detail.expected),
                finding.severity.value,
                finding.finding_id,
            )
        )
    return lines + _table(
        ("Document", "Location", "Observed", "Expected", "Severity", "Finding"),
        rows,
    )


def _render_word_counts(report: ValidationReport) -> List[str]:
    lines = ["## Word Counts", ""]
    if not report.word_counts:
        return lines + ["No documents subject to word-count bounds."]

    rows = [
        (row.document_id, row.observed, row.target_range, row.status.value)
        for row in report.word_counts
    ]
    rows.append(("**Total**", report.total_word_count, None, None))
    return lines + _table(("Document", "Words", "Target", "Status"), rows)


def _render_misalignments(report: ValidationReport) -> List[str]:
    lines = ["## Chapter Numbering", ""]

    if not (
        report.misalignments or report.naming_divergences or report.dangling_entries
    ):
        return lines + ["All filenames agree with the canonical mapping."]

    if report.misalignments:
        lines += ["### PRD Misalignments", ""]
        lines += _table(
            ("Document", "Kind", "Filename Number", "Canonical Number"),
            (
                (m.document_id, m.kind.value, m.assumed_number, m.actual_number)
                for m in report.misalignments
            ),
        )
        lines.append("")

    if report.naming_divergences:
        lines += ["### Chapter Filename Divergences", ""]
        lines += _table(
            ("Document", "Filename Number", "Canonical Number"),
            (
                (m.document_id, m.assumed_number, m.actual_number)
                for m in report.naming_divergences
            ),
        )
        lines.append("")

    if report.dangling_entries:
        lines += ["### Mapped Chapters Without Documents", ""]
        lines += _table(
            ("Chapter", "Document"),
            ((e.number, e.document) for e in report.dangling_entries),
        )
        lines.append("")

    while lines and lines[-1] == "":
        lines.pop()
    return lines


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_markdown_report(report: ValidationReport) -> str:
    sections: List[List[str]] = [
        [
            "# Cross-Reference Validation Report",
            "",
            f"- Audit: `{report.audit_id}`",
            f"- Canonical mapping version: {report.mapping_version}",
            f"- Documents checked: {report.documents_checked}",
            f"- Rules executed: {', '.join(report.rules_executed) or 'none'}",
            f"- Findings: {len(report.findings)} ({report.critical_count} critical)",
        ],
        _render_summary(report),
    ]

    for category in FindingCategory:
        if category.value in report.rules_executed:
            sections.append(_render_category(report, category))

    sections.append(_render_word_counts(report))
    sections.append(_render_misalignments(report))

    return "\n\n".join("\n".join(section) for section in sections) + "\n"
