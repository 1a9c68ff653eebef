"""
Canonical mapping schemas.

The CanonicalMapping is the single source of truth for chapter numbering.
It is supplied as configuration, never inferred from document content,
and changes only through explicit remapping operations that return a
new, higher-versioned mapping.
"""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


_DOCUMENT_SUFFIXES = {".md", ".markdown", ".txt", ".adoc"}


class ChapterEntry(BaseModel):
    number: int = Field(..., gt=0, description="Logical chapter number")
    document: str = Field(..., min_length=1, description="Document id (filename stem)")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("document")
    @classmethod
    def strip_document_suffix(cls, v: str) -> str:
        pure = PurePosixPath(v.strip())
        if pure.suffix.lower() in _DOCUMENT_SUFFIXES:
            return pure.stem
        return pure.name


class CanonicalMapping(BaseModel):
    """
    Authoritative logical chapter number -> document id table.

    Invariants:
    - numbers are positive and unique
    - documents are unique (one document cannot be two chapters)
    - entries are held in ascending number order
    """

    version: int = Field(1, ge=1, description="Monotonic mapping version")
    chapters: Tuple[ChapterEntry, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("chapters")
    @classmethod
    def enforce_unique_entries(
        cls, v: Tuple[ChapterEntry, ...]
    ) -> Tuple[ChapterEntry, ...]:
        numbers = [e.number for e in v]
        duplicates = sorted({n for n in numbers if numbers.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate logical chapter numbers: {duplicates}")

        documents = [e.document for e in v]
        duplicate_docs = sorted({d for d in documents if documents.count(d) > 1})
        if duplicate_docs:
            raise ValueError(
                f"Documents mapped to more than one chapter: {duplicate_docs}"
            )

        return tuple(sorted(v, key=lambda e: e.number))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_pairs(cls, pairs: Dict[int, str], *, version: int = 1) -> "CanonicalMapping":
        return cls(
            version=version,
            chapters=tuple(
                ChapterEntry(number=number, document=document)
                for number, document in pairs.items()
            ),
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def resolve(self, number: int) -> Optional[str]:
        for entry in self.chapters:
            if entry.number == number:
                return entry.document
        return None

    def number_of(self, document_id: str) -> Optional[int]:
        for entry in self.chapters:
            if entry.document == document_id:
                return entry.number
        return None

    def as_dict(self) -> Dict[int, str]:
        return {e.number: e.document for e in self.chapters}

    # ------------------------------------------------------------------
    # Explicit remapping (returns a new version)
    # ------------------------------------------------------------------

    def insert_chapter(self, number: int, document: str) -> "CanonicalMapping":
        """
        Insert a chapter at `number`, shifting it and every following
        chapter by +1.
        """
        shifted = tuple(
            ChapterEntry(
                number=e.number + 1 if e.number >= number else e.number,
                document=e.document,
            )
            for e in self.chapters
        )
        return CanonicalMapping(
            version=self.version + 1,
            chapters=shifted + (ChapterEntry(number=number, document=document),),
        )

    def remove_chapter(self, number: int) -> "CanonicalMapping":
        """
        Remove chapter `number`, shifting every following chapter by -1.
        """
        if self.resolve(number) is None:
            raise KeyError(f"Chapter {number} is not mapped")

        remaining = tuple(
            ChapterEntry(
                number=e.number - 1 if e.number > number else e.number,
                document=e.document,
            )
            for e in self.chapters
            if e.number != number
        )
        return CanonicalMapping(version=self.version + 1, chapters=remaining)


# ---------------------------------------------------------------------------
# Divergence records
# ---------------------------------------------------------------------------


class MisalignmentKind(str, Enum):
    """
    - MISALIGNED: the filename-encoded number differs from the canonical one
    - UNMAPPED: the document resolves to no mapped chapter
    - UNNUMBERED: the filename encodes no chapter number
    """

    MISALIGNED = "misaligned"
    UNMAPPED = "unmapped"
    UNNUMBERED = "unnumbered"


class Misalignment(BaseModel):
    kind: MisalignmentKind
    document_id: str
    assumed_number: Optional[int] = Field(
        None, description="Chapter number encoded in the filename"
    )
    actual_number: Optional[int] = Field(
        None, description="Chapter number according to the canonical mapping"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")
