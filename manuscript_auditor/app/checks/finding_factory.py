"""
Finding construction.

This module is the authority for stable finding identity and for the
category -> severity policy. Rules never set a severity or an id
themselves; they describe what they observed and this factory turns it
into a canonical FindingObject.

Identity is derived ONLY from:
- finding category
- finding location
- structured detail

Rule execution order and wording of titles MUST NOT affect identity.
"""

from __future__ import annotations

import hashlib
import json
from typing import Dict, Optional

from manuscript_auditor.app.schemas.findings import (
    CATEGORY_SEVERITY,
    DetailValue,
    FindingCategory,
    FindingDetail,
    FindingLocation,
    FindingObject as Finding,
)


_CATEGORY_CODES: Dict[FindingCategory, str] = {
    FindingCategory.BROKEN_LINK: "BL",
    FindingCategory.WRONG_NUMBER: "WN",
    FindingCategory.MISSING_SECTION: "MS",
    FindingCategory.WORD_COUNT_BOUND: "WC",
    FindingCategory.MISSING_ASSET: "MA",
}


def _stable_finding_suffix(material: str) -> str:
    """
    Generate a stable, deterministic hash suffix for a finding ID.
    """
    return hashlib.sha256(material.encode("utf-8")).hexdigest()[:12]


def stable_finding_id(
    category: FindingCategory,
    location: FindingLocation,
    detail: FindingDetail,
) -> str:
    material = json.dumps(
        {
            "category": category.value,
            "location": location.model_dump(mode="json"),
            "detail": detail.model_dump(mode="json"),
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    severity = CATEGORY_SEVERITY[category]
    return (
        f"XREF-{_CATEGORY_CODES[category]}-{severity.value.upper()}-"
        f"{_stable_finding_suffix(material)}"
    )


def build_finding(
    *,
    category: FindingCategory,
    document_id: str,
    title: str,
    description: str,
    line: Optional[int] = None,
    column: Optional[int] = None,
    section: Optional[str] = None,
    observed: DetailValue = None,
    expected: DetailValue = None,
) -> Finding:
    location = FindingLocation(
        document_id=document_id,
        line=line,
        column=column,
        section=section,
    )
    detail = FindingDetail(observed=observed, expected=expected)

    return Finding(
        finding_id=stable_finding_id(category, location, detail),
        category=category,
        severity=CATEGORY_SEVERITY[category],
        location=location,
        detail=detail,
        title=title,
        description=description,
    )
