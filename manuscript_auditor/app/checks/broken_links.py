"""
Broken file-link checks.

A file-link is broken when its normalized target (the document stem,
with anchors, query strings and relative path segments stripped) is not
the id of any loaded document. Existence is the only criterion: a link
to a document that exists is never reported, whatever it points to.

The expected value is the resolver's best-guess corrected target. When
no unambiguous target can be derived the finding is still emitted, with
a null expected value.
"""

from __future__ import annotations

import logging
from typing import List

from manuscript_auditor.app.checks.context import ValidationContext
from manuscript_auditor.app.checks.finding_factory import build_finding
from manuscript_auditor.app.errors import ResolutionAmbiguity
from manuscript_auditor.app.schemas.findings import (
    FindingCategory,
    FindingObject as Finding,
)
from manuscript_auditor.app.schemas.references import ReferenceKind

logger = logging.getLogger(__name__)


def run_broken_link_checks(context: ValidationContext) -> List[Finding]:
    """
    Emit one critical finding per file-link whose target does not exist.
    """
    findings: List[Finding] = []

    for reference in context.graph.of_kind(ReferenceKind.FILE_LINK):
        if reference.target_id in context.corpus:
            continue

        try:
            expected = context.resolver.suggest_link_target(reference)
        except ResolutionAmbiguity as exc:
            logger.debug(
                "%s:%d: %s",
                reference.source_id,
                reference.source_line,
                exc,
            )
            expected = None

        if expected is not None:
            description = (
                f"Link target '{reference.raw_target}' does not match any "
                f"document. Canonical target: '{expected}'."
            )
        else:
            description = (
                f"Link target '{reference.raw_target}' does not match any "
                "document and no canonical target could be derived."
            )

        findings.append(
            build_finding(
                category=FindingCategory.BROKEN_LINK,
                document_id=reference.source_id,
                line=reference.source_line,
                column=reference.column,
                observed=reference.raw_target,
                expected=expected,
                title=f"Broken link to '{reference.raw_target}'",
                description=description,
            )
        )

    return findings
