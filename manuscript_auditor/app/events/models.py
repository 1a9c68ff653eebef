from __future__ import annotations

from typing import Any, Dict, Optional
from enum import Enum
from datetime import datetime, timezone
from uuid import uuid4, UUID

from pydantic import BaseModel, Field, ConfigDict


# ----------------------------------------------------------------------
# Event Types (Finite and Versioned)
# ----------------------------------------------------------------------
class AuditEventType(str, Enum):
    """
    Progression events emitted during a validation run.

    NOTE:
    This enum is finite and versioned.
    New entries must preserve observational semantics.
    """

    # ------------------------------------------------------------------
    # Global lifecycle
    # ------------------------------------------------------------------
    AUDIT_STARTED = "audit_started"
    AUDIT_COMPLETED = "audit_completed"
    AUDIT_FAILED = "audit_failed"

    # ------------------------------------------------------------------
    # Corpus loading
    # ------------------------------------------------------------------
    CORPUS_LOAD_STARTED = "corpus_load_started"
    CORPUS_LOAD_COMPLETED = "corpus_load_completed"

    # ------------------------------------------------------------------
    # Reference extraction
    # ------------------------------------------------------------------
    REFERENCE_GRAPH_BUILT = "reference_graph_built"

    # ------------------------------------------------------------------
    # Rule evaluation
    # ------------------------------------------------------------------
    RULE_STARTED = "rule_started"
    RULE_COMPLETED = "rule_completed"
    FINDING_DISCOVERED = "finding_discovered"

    # ------------------------------------------------------------------
    # Presentation only (non-terminal)
    # ------------------------------------------------------------------
    AUDIT_REPORT_READY = "audit_report_ready"


# ----------------------------------------------------------------------
# Event Model
# ----------------------------------------------------------------------
class AuditEvent(BaseModel):
    """
    An immutable observation of a phase transition within a run.

    Events are:
    - strictly observational
    - transport-agnostic
    - not part of the report (their timestamps never reach it)
    """

    event_id: UUID = Field(default_factory=uuid4)
    audit_id: str = Field(..., description="Identifier of the validation run")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    event_type: AuditEventType

    # Optional contextual metadata (rule, counts, finding ids, etc.)
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )
