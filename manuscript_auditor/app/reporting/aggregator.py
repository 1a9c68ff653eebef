"""
Finding aggregation and task-list construction.

IMPORTANT:
The ordering produced here is a hard contract. The task list is
consumed positionally by downstream automation:

    critical -> medium -> low,
    then document id ascending,
    then primary line ascending,
    then category (registry order) for totality.

Nothing in this module may depend on rule execution order.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.mapping.canonical import CanonicalResolver
from manuscript_auditor.app.schemas.corpus import Corpus
from manuscript_auditor.app.schemas.findings import (
    FindingCategory,
    FindingObject as Finding,
    Severity,
)
from manuscript_auditor.app.schemas.report import (
    PRIORITY_SCORES,
    TYPE_SCORES,
    SummaryRow,
    Task,
    TaskList,
    TaskStats,
    TaskStatus,
    TaskType,
    ValidationReport,
    WordCountRow,
    WordCountStatus,
)


_NO_LINE = 0


def _finding_sort_key(finding: Finding) -> Tuple:
    location = finding.location
    return (
        finding.severity.rank,
        location.document_id,
        location.line if location.line is not None else _NO_LINE,
        location.column if location.column is not None else _NO_LINE,
        finding.category.rank,
        finding.finding_id,
    )


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------


def aggregate_findings(findings: Iterable[Finding]) -> List[Finding]:
    """
    Deduplicate by (category, location, detail) and order for reporting.

    The first occurrence of a duplicate is kept; since duplicates are
    structurally equal, which one is kept does not affect the output.
    """
    unique: Dict[tuple, Finding] = {}
    for finding in findings:
        unique.setdefault(finding.identity(), finding)
    return sorted(unique.values(), key=_finding_sort_key)


def summarize_findings(findings: Sequence[Finding]) -> List[SummaryRow]:
    """
    One row per category, in category order, including empty categories.
    """
    rows: List[SummaryRow] = []
    for category in FindingCategory:
        matching = [f for f in findings if f.category is category]
        rows.append(
            SummaryRow(
                category=category,
                count=len(matching),
                critical=sum(1 for f in matching if f.severity is Severity.CRITICAL),
            )
        )
    return rows


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def _task_title(category: FindingCategory, document_id: str, count: int) -> str:
    noun = {
        FindingCategory.BROKEN_LINK: "broken link",
        FindingCategory.WRONG_NUMBER: "wrong chapter number",
        FindingCategory.MISSING_SECTION: "missing section",
        FindingCategory.WORD_COUNT_BOUND: "word count out of bounds",
        FindingCategory.MISSING_ASSET: "missing asset",
    }[category]
    if count > 1 and category in (
        FindingCategory.BROKEN_LINK,
        FindingCategory.WRONG_NUMBER,
        FindingCategory.MISSING_ASSET,
    ):
        noun = f"{count} {noun}s"
    return f"Fix {noun} in {document_id}"


def _task_description_line(finding: Finding) -> str:
    if finding.location.line is not None:
        return f"L{finding.location.line}: {finding.title}"
    return finding.title


def build_task_list(
    findings: Iterable[Finding],
    corpus: Optional[Corpus] = None,
) -> TaskList:
    """
    Group findings into one fix task per (category, document).
    """
    groups: Dict[Tuple[FindingCategory, str], List[Finding]] = {}
    for finding in aggregate_findings(findings):
        key = (finding.category, finding.location.document_id)
        groups.setdefault(key, []).append(finding)

    tasks: List[Task] = []
    for (category, document_id), grouped in groups.items():
        grouped.sort(
            key=lambda f: (
                f.location.line if f.location.line is not None else _NO_LINE,
                f.location.column if f.location.column is not None else _NO_LINE,
                f.finding_id,
            )
        )
        priority = min((f.severity for f in grouped), key=lambda s: s.rank)
        lines = sorted({f.location.line for f in grouped if f.location.line is not None})

        document = corpus.get(document_id) if corpus is not None else None

        tasks.append(
            Task(
                id=f"{TaskType.FIX.value}-{category.value}-{document_id}",
                type=TaskType.FIX,
                title=_task_title(category, document_id, len(grouped)),
                priority=priority,
                description="\n".join(_task_description_line(f) for f in grouped),
                status=TaskStatus.PENDING,
                category=category,
                document_id=document_id,
                file=document.path if document is not None else None,
                line=lines[0] if lines else None,
                lines=lines,
                finding_ids=[f.finding_id for f in grouped],
                score=PRIORITY_SCORES[priority] + TYPE_SCORES[TaskType.FIX],
            )
        )

    tasks.sort(
        key=lambda t: (
            t.priority.rank,
            t.document_id,
            t.line if t.line is not None else _NO_LINE,
            t.category.rank,
        )
    )

    return TaskList(
        tasks=tasks,
        stats=TaskStats(pending=len(tasks), total=len(tasks)),
    )


# ---------------------------------------------------------------------------
# Word-count rollup
# ---------------------------------------------------------------------------


def build_word_count_rollup(corpus: Corpus, config: AuditorConfig) -> List[WordCountRow]:
    rows: List[WordCountRow] = []
    for document in corpus.documents:
        if document.role.value not in config.WORD_COUNT_ROLES:
            continue

        low, high = config.word_count_bounds(document.id)
        if document.word_count < low:
            status = WordCountStatus.BELOW_MIN
        elif document.word_count > high:
            status = WordCountStatus.ABOVE_MAX
        else:
            status = WordCountStatus.OK

        rows.append(
            WordCountRow(
                document_id=document.id,
                observed=document.word_count,
                minimum=low,
                maximum=high,
                status=status,
            )
        )
    return rows


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


def build_report(
    *,
    audit_id: str,
    corpus: Corpus,
    resolver: CanonicalResolver,
    config: AuditorConfig,
    rules_executed: Sequence[str],
    findings: Iterable[Finding],
) -> ValidationReport:
    """
    Assemble the final immutable ValidationReport.
    """
    ordered = aggregate_findings(findings)
    word_counts = build_word_count_rollup(corpus, config)

    return ValidationReport(
        audit_id=audit_id,
        mapping_version=resolver.mapping.version,
        documents_checked=len(corpus.documents),
        rules_executed=list(rules_executed),
        findings=ordered,
        summary=summarize_findings(ordered),
        word_counts=word_counts,
        total_word_count=sum(row.observed for row in word_counts),
        misalignments=list(resolver.misalignments()),
        naming_divergences=list(resolver.naming_divergences()),
        dangling_entries=list(resolver.dangling_entries()),
        tasks=build_task_list(ordered, corpus),
    )
