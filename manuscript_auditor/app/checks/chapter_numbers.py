"""
Chapter-number consistency checks.

Every chapter mention asserts a number. The mention's target document is
resolved, in order of precedence, from:

1. the link enclosing the mention, when it names a mapped chapter
2. the mention's title, when it names exactly one mapped chapter
3. the asserted number itself

When the canonical number of that document differs from the asserted
number, exactly one critical finding is emitted for the mention.

A mention whose number is not in the mapping, and which resolves neither
by link nor by title, points at a chapter that does not exist. It is
reported with a null expected value.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import List, Optional

from manuscript_auditor.app.checks.context import ValidationContext
from manuscript_auditor.app.checks.finding_factory import build_finding
from manuscript_auditor.app.graph.extraction import split_link_target
from manuscript_auditor.app.mapping.canonical import CanonicalResolver
from manuscript_auditor.app.schemas.findings import (
    FindingCategory,
    FindingObject as Finding,
)
from manuscript_auditor.app.schemas.references import Reference, ReferenceKind


def resolve_mention_target(
    reference: Reference, resolver: CanonicalResolver
) -> Optional[str]:
    """
    Document id a chapter mention refers to, or None if it refers to nothing.
    """
    if reference.link_target:
        stem = PurePosixPath(split_link_target(reference.link_target)).stem
        if resolver.number_of(stem) is not None:
            return stem

    if reference.chapter_title:
        document_id = resolver.resolve_label(reference.chapter_title)
        if document_id is not None:
            return document_id

    return resolver.resolve(reference.chapter_number)


def run_chapter_number_checks(context: ValidationContext) -> List[Finding]:
    findings: List[Finding] = []
    resolver = context.resolver

    for reference in context.graph.of_kind(ReferenceKind.CHAPTER_MENTION):
        asserted = reference.chapter_number
        target = resolve_mention_target(reference, resolver)

        if target is None:
            findings.append(
                build_finding(
                    category=FindingCategory.WRONG_NUMBER,
                    document_id=reference.source_id,
                    line=reference.source_line,
                    column=reference.column,
                    observed=asserted,
                    expected=None,
                    title=f"Chapter {asserted} does not exist",
                    description=(
                        f"'{reference.raw_target}' refers to chapter {asserted}, "
                        "which is not in the canonical mapping."
                    ),
                )
            )
            continue

        actual = resolver.number_of(target)
        if actual == asserted:
            continue

        findings.append(
            build_finding(
                category=FindingCategory.WRONG_NUMBER,
                document_id=reference.source_id,
                line=reference.source_line,
                column=reference.column,
                observed=asserted,
                expected=actual,
                title=f"Chapter {asserted} should be Chapter {actual}",
                description=(
                    f"'{reference.raw_target}' refers to '{target}', which is "
                    f"canonical chapter {actual}."
                ),
            )
        )

    return findings
