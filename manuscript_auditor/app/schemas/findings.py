"""
Standardized finding schema.

Defines the canonical structure used to report cross-reference and
consistency violations detected by the validation rules.

This schema is:
- authoritative
- immutable once produced
- rule-traceable
- severity-graded by category (never ad hoc)
- structurally comparable (findings are value objects)

All findings included in a ValidationReport MUST conform to this schema.
"""

from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, Field, StrictInt
from pydantic import ConfigDict


# ---------------------------------------------------------------------------
# Enumerations (FROZEN CONTRACTS)
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    """
    Severity level of a finding.

    Ordering is intentional and MUST remain stable: the task list
    is consumed positionally and is ordered by this rank.
    """

    CRITICAL = "critical"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: Dict[Severity, int] = {
    Severity.CRITICAL: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}


class FindingCategory(str, Enum):
    """
    Closed taxonomy of validation failures.

    Each category is produced by exactly one rule.
    """

    BROKEN_LINK = "broken-link"
    WRONG_NUMBER = "wrong-number"
    MISSING_SECTION = "missing-section"
    WORD_COUNT_BOUND = "word-count-bound"
    MISSING_ASSET = "missing-asset"

    @property
    def rank(self) -> int:
        return list(FindingCategory).index(self)


# Severity policy (FROZEN): assigned by category, never by the rule at runtime
CATEGORY_SEVERITY: Dict[FindingCategory, Severity] = {
    FindingCategory.BROKEN_LINK: Severity.CRITICAL,
    FindingCategory.WRONG_NUMBER: Severity.CRITICAL,
    FindingCategory.MISSING_SECTION: Severity.MEDIUM,
    FindingCategory.WORD_COUNT_BOUND: Severity.LOW,
    FindingCategory.MISSING_ASSET: Severity.MEDIUM,
}


# ---------------------------------------------------------------------------
# Structured components
# ---------------------------------------------------------------------------

DetailValue = Union[StrictInt, str, None]


class FindingLocation(BaseModel):
    """
    Where a finding was observed.

    Either a 1-indexed line (with its column) or a named section is
    present; document-level findings (e.g. word count) carry neither.
    """

    document_id: str = Field(..., description="Identifier of the document")

    line: Optional[int] = Field(
        None,
        ge=1,
        description="1-indexed line number within the document body",
    )

    column: Optional[int] = Field(
        None,
        ge=0,
        description="0-indexed column of the offending text on the line",
    )

    section: Optional[str] = Field(
        None,
        description="Section name when the finding is not tied to a line",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class FindingDetail(BaseModel):
    """
    Structured observed/expected pair.

    Values are deliberately not free text so that downstream reporting
    is deterministic. A null expected value means no unambiguous
    correction could be derived.
    """

    observed: DetailValue = Field(None, description="What the document contains")
    expected: DetailValue = Field(None, description="What it should contain")

    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Canonical Finding Object (PUBLIC, FROZEN)
# ---------------------------------------------------------------------------


class FindingObject(BaseModel):
    """
    Canonical validation finding.

    Findings are value objects: two findings with the same category,
    location and detail are the same finding.
    """

    finding_id: str = Field(
        ...,
        description=(
            "Stable identifier derived from category, location and detail "
            "(e.g. 'XREF-BL-CRITICAL-3f2a9c0d11e4')."
        ),
    )

    category: FindingCategory = Field(
        ...,
        description="Rule category that produced the finding",
    )

    severity: Severity = Field(
        ...,
        description="Severity level, fixed per category",
    )

    location: FindingLocation = Field(
        ...,
        description="Document and line or section of the violation",
    )

    detail: FindingDetail = Field(
        ...,
        description="Structured observed and expected values",
    )

    title: str = Field(
        ...,
        description="Short templated summary of the finding",
    )

    description: str = Field(
        ...,
        description="Templated explanation built from the structured detail",
    )

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    def identity(self) -> tuple:
        """
        Structural identity used for deduplication.
        """
        return (self.category, self.location, self.detail)
