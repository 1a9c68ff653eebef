"""
Shared, read-only input to every validation rule.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.mapping.canonical import CanonicalResolver
from manuscript_auditor.app.schemas.corpus import Corpus
from manuscript_auditor.app.schemas.references import ReferenceGraph


class ValidationContext(BaseModel):
    """
    Immutable snapshot handed to the rules.

    Rules depend only on this object, never on each other's output,
    so they may run in any order or concurrently.
    """

    corpus: Corpus
    graph: ReferenceGraph
    resolver: CanonicalResolver
    config: AuditorConfig

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )
