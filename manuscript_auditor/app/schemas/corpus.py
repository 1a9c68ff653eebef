"""
Corpus schemas.

Defines the in-memory document model produced by the loader. Documents
are immutable once loaded; re-validation requires a fresh load.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator


class DocumentRole(str, Enum):
    """
    Role of the directory a document was loaded from.
    """

    CHAPTERS = "chapters"
    PRDS = "prds"


class Heading(BaseModel):
    level: int = Field(..., ge=1, le=6)
    text: str
    line: int = Field(..., ge=1)

    model_config = ConfigDict(frozen=True, extra="forbid")


class Document(BaseModel):
    """
    A single structured text document.

    `id` is the filename stem and is unique across the corpus.
    Line numbers are 1-indexed everywhere.
    """

    id: str = Field(..., min_length=1)
    role: DocumentRole
    path: str = Field(..., description="Posix path relative to the corpus root")
    title: str
    body_lines: Tuple[str, ...] = ()
    word_count: int = Field(..., ge=0)
    headings: Tuple[Heading, ...] = ()
    fenced_lines: FrozenSet[int] = Field(
        default_factory=frozenset,
        description="Line numbers inside fenced code blocks (fences included)",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    def line(self, number: int) -> str:
        return self.body_lines[number - 1]

    def numbered_lines(self) -> Iterator[Tuple[int, str]]:
        """
        Iterate (line_number, text) over lines outside fenced code.
        """
        for index, text in enumerate(self.body_lines, start=1):
            if index not in self.fenced_lines:
                yield index, text


class Corpus(BaseModel):
    """
    Loaded manuscript corpus.

    IMPORTANT:
    - documents are sorted by id
    - ids are unique (enforced here as well as by the loader)
    - asset_inventory holds posix paths relative to the assets root
    """

    root: Path
    documents: Tuple[Document, ...] = ()
    asset_inventory: FrozenSet[str] = Field(default_factory=frozenset)

    _by_id: Dict[str, Document] = PrivateAttr(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def enforce_unique_ids(self):
        seen = set()
        for document in self.documents:
            if document.id in seen:
                raise ValueError(f"Duplicate document id '{document.id}'")
            seen.add(document.id)
        return self

    def model_post_init(self, __context) -> None:
        self._by_id = {d.id: d for d in self.documents}

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    def get(self, document_id: str) -> Optional[Document]:
        return self._by_id.get(document_id)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._by_id

    def ids(self) -> Tuple[str, ...]:
        return tuple(d.id for d in self.documents)

    def by_role(self, role: DocumentRole | str) -> Tuple[Document, ...]:
        role = DocumentRole(role)
        return tuple(d for d in self.documents if d.role is role)

    def has_asset(self, relative_path: str) -> bool:
        return relative_path in self.asset_inventory

    @property
    def total_word_count(self) -> int:
        return sum(d.word_count for d in self.documents)
