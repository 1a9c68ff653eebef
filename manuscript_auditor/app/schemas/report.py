"""
ValidationReport schema.

Defines the report produced by one validation run and the task list
derived from it.

The report captures:
- the deduplicated, ordered finding set,
- per-category summary counts,
- the word-count rollup,
- numbering divergences between filenames and the canonical mapping,
- and the prioritized fix task list.

The report carries no timestamps: identical input MUST produce an
identical report.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic import ConfigDict


# ---------------------------------------------------------------------------
# Canonical imports (AUTHORITATIVE)
# ---------------------------------------------------------------------------

from manuscript_auditor.app.schemas.findings import (
    FindingCategory,
    FindingObject as Finding,
    Severity,
)
from manuscript_auditor.app.schemas.mapping import ChapterEntry, Misalignment


REPORT_SCHEMA_VERSION = "1.0"
TASK_LIST_VERSION = "2.0"


# ---------------------------------------------------------------------------
# Enumerations (FROZEN CONTRACTS)
# ---------------------------------------------------------------------------


class WordCountStatus(str, Enum):
    OK = "ok"
    BELOW_MIN = "below_min"
    ABOVE_MAX = "above_max"


class TaskType(str, Enum):
    """
    Task kinds understood by the downstream tracker.

    Every task produced by this tool is a fix.
    """

    FIX = "fix"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    BLOCKED = "blocked"


# Scoring used by the downstream task curation
PRIORITY_SCORES: Dict[Severity, int] = {
    Severity.CRITICAL: 1000,
    Severity.MEDIUM: 500,
    Severity.LOW: 100,
}

TYPE_SCORES: Dict[TaskType, int] = {
    TaskType.FIX: 80,
}


# ---------------------------------------------------------------------------
# Report rows
# ---------------------------------------------------------------------------


class SummaryRow(BaseModel):
    category: FindingCategory
    count: int = Field(..., ge=0)
    critical: int = Field(..., ge=0, description="Findings of critical severity")

    model_config = ConfigDict(frozen=True, extra="forbid")


class WordCountRow(BaseModel):
    document_id: str
    observed: int = Field(..., ge=0)
    minimum: int = Field(..., ge=0)
    maximum: int = Field(..., ge=0)
    status: WordCountStatus

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def target_range(self) -> str:
        return f"{self.minimum}-{self.maximum}"


# ---------------------------------------------------------------------------
# Task list
# ---------------------------------------------------------------------------


class Task(BaseModel):
    """
    One actionable fix, grouping every finding of a single category in a
    single document.

    Field names follow the tracker's tasks.json layout.
    """

    id: str = Field(
        ...,
        description="Stable id derived from category and document, e.g. 'fix-broken-link-ch01'",
    )
    type: TaskType = TaskType.FIX
    title: str
    priority: Severity = Field(
        ...,
        description="Maximum severity among the grouped findings",
    )
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING

    category: FindingCategory
    document_id: str
    file: Optional[str] = Field(
        None,
        description="Document path relative to the corpus root",
    )
    line: Optional[int] = Field(
        None,
        ge=1,
        description="Primary (first) line of the grouped findings",
    )
    lines: List[int] = Field(default_factory=list)
    finding_ids: List[str] = Field(default_factory=list)
    score: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class TaskStats(BaseModel):
    """
    Per-status task counts. Serialized with the tracker's camelCase keys.
    """

    pending: int = Field(0, ge=0)
    in_progress: int = Field(0, ge=0, alias="inProgress")
    complete: int = Field(0, ge=0)
    blocked: int = Field(0, ge=0)
    total: int = Field(0, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class TaskList(BaseModel):
    version: str = TASK_LIST_VERSION
    tasks: List[Task] = Field(default_factory=list)
    stats: TaskStats = Field(default_factory=TaskStats)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def stats_must_match_tasks(self):
        if self.stats.total != len(self.tasks):
            raise ValueError(
                f"Task stats total ({self.stats.total}) does not match "
                f"task count ({len(self.tasks)})"
            )
        return self


# ---------------------------------------------------------------------------
# Master report (PUBLIC CONTRACT)
# ---------------------------------------------------------------------------


class ValidationReport(BaseModel):
    """
    Complete result of one validation run.
    """

    schema_version: str = Field(
        REPORT_SCHEMA_VERSION,
        description="Version of the report schema",
    )

    audit_id: str = Field(..., description="Identifier of the validation run")

    mapping_version: int = Field(
        ...,
        ge=1,
        description="Version of the canonical mapping in force for the run",
    )

    documents_checked: int = Field(..., ge=0)

    rules_executed: List[str] = Field(
        default_factory=list,
        description="Category names of the rules that ran",
    )

    findings: List[Finding] = Field(
        default_factory=list,
        description="Deduplicated findings in report order",
    )

    summary: List[SummaryRow] = Field(default_factory=list)

    word_counts: List[WordCountRow] = Field(default_factory=list)

    total_word_count: int = Field(0, ge=0)

    misalignments: List[Misalignment] = Field(
        default_factory=list,
        description="PRD filenames whose chapter number diverges from the mapping",
    )

    naming_divergences: List[Misalignment] = Field(
        default_factory=list,
        description="Chapter filenames whose encoded number diverges from the mapping",
    )

    dangling_entries: List[ChapterEntry] = Field(
        default_factory=list,
        description="Mapping entries whose document was not found",
    )

    tasks: TaskList = Field(default_factory=TaskList)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def findings_of(self, category: FindingCategory) -> List[Finding]:
        return [f for f in self.findings if f.category is category]

    @property
    def critical_count(self) -> int:
        return sum(1 for f in self.findings if f.severity is Severity.CRITICAL)
