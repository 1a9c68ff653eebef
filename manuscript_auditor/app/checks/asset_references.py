"""
Missing asset checks.

Each asset reference must name a file present in the asset inventory.
When exactly one inventoried asset shares the referenced file name, it
is offered as the expected path.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, List, Optional

from manuscript_auditor.app.checks.context import ValidationContext
from manuscript_auditor.app.checks.finding_factory import build_finding
from manuscript_auditor.app.schemas.findings import (
    FindingCategory,
    FindingObject as Finding,
)
from manuscript_auditor.app.schemas.references import ReferenceKind


def _index_by_name(inventory) -> Dict[str, List[str]]:
    index: Dict[str, List[str]] = {}
    for path in sorted(inventory):
        index.setdefault(PurePosixPath(path).name, []).append(path)
    return index


def run_asset_reference_checks(context: ValidationContext) -> List[Finding]:
    corpus = context.corpus
    assets_dir = context.config.ASSETS_DIR
    by_name = _index_by_name(corpus.asset_inventory)

    findings: List[Finding] = []

    for reference in context.graph.of_kind(ReferenceKind.ASSET_REFERENCE):
        if corpus.has_asset(reference.target_id):
            continue

        candidates = by_name.get(PurePosixPath(reference.target_id).name, [])
        expected: Optional[str] = None
        if len(candidates) == 1:
            expected = f"{assets_dir}/{candidates[0]}"

        findings.append(
            build_finding(
                category=FindingCategory.MISSING_ASSET,
                document_id=reference.source_id,
                line=reference.source_line,
                column=reference.column,
                observed=reference.raw_target,
                expected=expected,
                title=f"Missing asset '{reference.target_id}'",
                description=(
                    f"'{reference.raw_target}' does not exist under "
                    f"'{assets_dir}/'."
                ),
            )
        )

    return findings
