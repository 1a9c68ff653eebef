"""
Reference graph schemas.

A Reference is one extracted edge from a source location toward a
document, a chapter label, or an asset. References are created during
graph extraction, never mutated, and consumed only by validation rules.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class ReferenceKind(str, Enum):
    FILE_LINK = "file-link"
    CHAPTER_MENTION = "chapter-mention"
    ASSET_REFERENCE = "asset-reference"


class Reference(BaseModel):
    """
    One cross-document reference.

    target_id is normalized per kind:
    - file-link: target document stem (anchors, queries, directories and
      extension stripped)
    - chapter-mention: the matched label text (e.g. "Chapter 7: Foo")
    - asset-reference: posix path relative to the assets root
    """

    source_id: str
    source_line: int = Field(..., ge=1)
    column: int = Field(0, ge=0)

    kind: ReferenceKind

    raw_target: str = Field(
        ...,
        description="Literal link target or mentioned label as written",
    )

    target_id: str

    label: Optional[str] = Field(
        None,
        description="Link text, when the reference was extracted from a link",
    )

    # Chapter-mention specifics
    chapter_number: Optional[int] = Field(None, ge=0)
    chapter_title: Optional[str] = None
    link_target: Optional[str] = Field(
        None,
        description="Target of the link enclosing a chapter mention, if any",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    def sort_key(self) -> Tuple[str, int, int, str]:
        return (self.source_id, self.source_line, self.column, self.kind.value)


class ReferenceGraph(BaseModel):
    """
    Directed graph of (source location -> target identifier) edges.

    The reference tuple is ordered by source id, line, column and kind so
    that every consumer iterates it deterministically.
    """

    references: Tuple[Reference, ...] = ()

    _outgoing: Dict[str, List[Reference]] = PrivateAttr(default_factory=dict)
    _incoming: Dict[str, List[Reference]] = PrivateAttr(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def model_post_init(self, __context) -> None:
        for reference in self.references:
            self._outgoing.setdefault(reference.source_id, []).append(reference)
            self._incoming.setdefault(reference.target_id, []).append(reference)

    @classmethod
    def from_references(cls, references) -> "ReferenceGraph":
        return cls(references=tuple(sorted(references, key=Reference.sort_key)))

    def __len__(self) -> int:
        return len(self.references)

    def edges(self) -> Tuple[Tuple[str, int, str], ...]:
        return tuple(
            (r.source_id, r.source_line, r.target_id) for r in self.references
        )

    def of_kind(self, kind: ReferenceKind) -> Tuple[Reference, ...]:
        return tuple(r for r in self.references if r.kind is kind)

    def outgoing(self, document_id: str) -> Tuple[Reference, ...]:
        return tuple(self._outgoing.get(document_id, ()))

    def incoming(self, target_id: str) -> Tuple[Reference, ...]:
        return tuple(self._incoming.get(target_id, ()))
