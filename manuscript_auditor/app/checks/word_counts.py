"""
Word-count bound checks.

Bounds form a closed interval: a count exactly at min or max is never a
violation, and one word outside it always is.
"""

from __future__ import annotations

from typing import List

from manuscript_auditor.app.checks.context import ValidationContext
from manuscript_auditor.app.checks.finding_factory import build_finding
from manuscript_auditor.app.schemas.findings import (
    FindingCategory,
    FindingObject as Finding,
)


def format_range(low: int, high: int) -> str:
    return f"{low}-{high}"


def run_word_count_checks(context: ValidationContext) -> List[Finding]:
    config = context.config
    findings: List[Finding] = []

    for document in context.corpus.documents:
        if document.role.value not in config.WORD_COUNT_ROLES:
            continue

        low, high = config.word_count_bounds(document.id)
        count = document.word_count

        if low <= count <= high:
            continue

        if count < low:
            title = f"Word count {count} below minimum {low}"
        else:
            title = f"Word count {count} above maximum {high}"

        findings.append(
            build_finding(
                category=FindingCategory.WORD_COUNT_BOUND,
                document_id=document.id,
                observed=count,
                expected=format_range(low, high),
                title=title,
                description=(
                    f"Document '{document.id}' has {count} words; "
                    f"the target range is {low} to {high} inclusive."
                ),
            )
        )

    return findings
