"""
Required section presence checks.

Presence is binary: a document either carries a heading or line
matching the configured pattern, or it does not. Whether the section is
complete requires human judgment and is never flagged here.
"""

from __future__ import annotations

import re
from typing import List

from manuscript_auditor.app.checks.context import ValidationContext
from manuscript_auditor.app.checks.finding_factory import build_finding
from manuscript_auditor.app.schemas.corpus import Document
from manuscript_auditor.app.schemas.findings import (
    FindingCategory,
    FindingObject as Finding,
)


# Heading markers, list bullets, emphasis and blockquote markers
_DECORATION_RE = re.compile(r"^[\s#>*_\-+]+|[\s#*_]+$")


def _normalize_candidate(text: str) -> str:
    return _DECORATION_RE.sub("", text)


def has_required_section(document: Document, pattern: re.Pattern) -> bool:
    for heading in document.headings:
        if pattern.match(_normalize_candidate(heading.text)):
            return True

    for _, text in document.numbered_lines():
        if pattern.match(_normalize_candidate(text)):
            return True

    return False


def run_required_section_checks(context: ValidationContext) -> List[Finding]:
    config = context.config
    pattern = re.compile(config.REQUIRED_SECTION_PATTERN, re.IGNORECASE)
    label = config.REQUIRED_SECTION_LABEL

    findings: List[Finding] = []

    for document in context.corpus.documents:
        if document.role.value not in config.REQUIRED_SECTION_ROLES:
            continue

        if has_required_section(document, pattern):
            continue

        findings.append(
            build_finding(
                category=FindingCategory.MISSING_SECTION,
                document_id=document.id,
                section=label,
                observed=None,
                expected=label,
                title=f"Missing '{label}' section",
                description=(
                    f"Document '{document.id}' has no heading or line "
                    f"introducing a '{label}' section."
                ),
            )
        )

    return findings
