"""
Canonical mapping resolver.

Answers every numbering question the validation rules ask, against the
single CanonicalMapping in force for the run:

- which document is logical chapter N
- which chapter number a document holds
- which document a free-text chapter title names
- what a broken chapter link should have pointed to
- where filename-encoded numbering diverges from the mapping

IMPORTANT:
- The resolver never mutates the mapping.
- Title matching is exact on a normalized key (see grammar.title_key);
  a title shared by more than one document resolves to nothing.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Set, Tuple

from manuscript_auditor.app.errors import ResolutionAmbiguity
from manuscript_auditor.app.graph.extraction import split_link_target
from manuscript_auditor.app.graph.grammar import (
    encoded_number,
    iter_mentions,
    slug_key,
    title_key,
)
from manuscript_auditor.app.schemas.corpus import Corpus, Document, DocumentRole
from manuscript_auditor.app.schemas.mapping import (
    CanonicalMapping,
    ChapterEntry,
    Misalignment,
    MisalignmentKind,
)
from manuscript_auditor.app.schemas.references import Reference


logger = logging.getLogger(__name__)


class CanonicalResolver:
    """
    Read-only view joining the canonical mapping with the loaded corpus.
    """

    def __init__(self, mapping: CanonicalMapping, corpus: Corpus):
        self._mapping = mapping
        self._corpus = corpus

        self._title_index: Dict[str, List[str]] = {}
        self._slug_index: Dict[str, List[str]] = {}

        for entry in mapping.chapters:
            document = corpus.get(entry.document)
            if document is None:
                continue

            key = title_key(document.title)
            if key:
                self._title_index.setdefault(key, []).append(document.id)

            slug = slug_key(document.id)
            if slug:
                self._slug_index.setdefault(slug, []).append(document.id)

    @property
    def mapping(self) -> CanonicalMapping:
        return self._mapping

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def resolve(self, number: int) -> Optional[str]:
        return self._mapping.resolve(number)

    def number_of(self, document_id: str) -> Optional[int]:
        return self._mapping.number_of(document_id)

    def resolve_title(self, document_id: str) -> Optional[str]:
        document = self._corpus.get(document_id)
        return document.title if document is not None else None

    def resolve_label(self, title: Optional[str]) -> Optional[str]:
        """
        Document id of the mapped chapter whose title matches, if unique.
        """
        candidates = self._title_index.get(title_key(title), [])
        if len(candidates) == 1:
            return candidates[0]
        return None

    def resolve_slug(self, stem: str) -> Optional[str]:
        candidates = self._slug_index.get(slug_key(stem), [])
        if len(candidates) == 1:
            return candidates[0]
        return None

    # ------------------------------------------------------------------
    # Broken-link correction
    # ------------------------------------------------------------------

    def suggest_link_target(self, reference: Reference) -> str:
        """
        Best-guess corrected target for a link whose target does not exist.

        Evidence, strongest first:
        1. chapter titles in the link label, and the label itself as a title
        2. the target's slug (its stem minus any chNN- prefix)
        3. failing both, a single chapter number asserted by the label

        Raises ResolutionAmbiguity when the evidence is absent or conflicts.
        """
        label = reference.label or ""
        path = split_link_target(reference.raw_target)

        candidates: Set[str] = set()

        mentions = list(iter_mentions(label))
        for mention in mentions:
            if mention.title:
                document_id = self.resolve_label(mention.title)
                if document_id is not None:
                    candidates.add(document_id)

        document_id = self.resolve_label(label)
        if document_id is not None:
            candidates.add(document_id)

        slug = slug_key(PurePosixPath(path).stem)
        if slug:
            candidates.update(self._slug_index.get(slug, []))

        if not candidates:
            numbers = {m.number for m in mentions}
            if len(numbers) == 1:
                document_id = self.resolve(numbers.pop())
                if document_id is not None and document_id in self._corpus:
                    candidates.add(document_id)

        if len(candidates) != 1:
            raise ResolutionAmbiguity(
                f"Cannot derive a unique canonical target for "
                f"'{reference.raw_target}' ({len(candidates)} candidates)"
            )

        return _rewrite_target(reference.raw_target, candidates.pop())

    # ------------------------------------------------------------------
    # Divergence reporting
    # ------------------------------------------------------------------

    def misalignments(self) -> Tuple[Misalignment, ...]:
        """
        Compare every PRD's filename-encoded chapter number with the
        canonical number of the chapter it describes.

        Total: every PRD is checked. Pure and order-insensitive: the
        result is sorted by document id.
        """
        records: List[Misalignment] = []

        for document in self._corpus.by_role(DocumentRole.PRDS):
            assumed = encoded_number(document.id)
            chapter_id = self._chapter_for(document)
            actual = self.number_of(chapter_id) if chapter_id is not None else None

            if assumed is None:
                kind = MisalignmentKind.UNNUMBERED
            elif actual is None:
                kind = MisalignmentKind.UNMAPPED
            elif assumed != actual:
                kind = MisalignmentKind.MISALIGNED
            else:
                continue

            records.append(
                Misalignment(
                    kind=kind,
                    document_id=document.id,
                    assumed_number=assumed,
                    actual_number=actual,
                )
            )

        records.sort(key=lambda m: m.document_id)
        if records:
            logger.info("Found %d PRD numbering divergences", len(records))
        return tuple(records)

    def naming_divergences(self) -> Tuple[Misalignment, ...]:
        """
        Mapped chapters whose filename encodes a different chapter number.
        """
        records = [
            Misalignment(
                kind=MisalignmentKind.MISALIGNED,
                document_id=entry.document,
                assumed_number=encoded_number(entry.document),
                actual_number=entry.number,
            )
            for entry in self._mapping.chapters
            if encoded_number(entry.document) not in (None, entry.number)
        ]
        return tuple(sorted(records, key=lambda m: m.document_id))

    def dangling_entries(self) -> Tuple[ChapterEntry, ...]:
        """
        Mapping entries whose document was not loaded.
        """
        dangling = tuple(
            e for e in self._mapping.chapters if e.document not in self._corpus
        )
        for entry in dangling:
            logger.warning(
                "Canonical chapter %d maps to missing document '%s'",
                entry.number,
                entry.document,
            )
        return dangling

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _chapter_for(self, document: Document) -> Optional[str]:
        chapter_id = self.resolve_label(document.title)
        if chapter_id is None:
            chapter_id = self.resolve_slug(document.id)
        return chapter_id


def _rewrite_target(raw_target: str, document_id: str) -> str:
    """
    Replace the stem of a link target, keeping the raw directory prefix
    (including any leading "./"), extension and anchor.
    """
    target = raw_target.strip()
    if target.startswith("<") and target.endswith(">"):
        target = target[1:-1].strip()

    path = split_link_target(target)
    tail = target[len(path):]

    pure = PurePosixPath(path)
    prefix = path[: len(path) - len(pure.name)]
    return f"{prefix}{document_id}{pure.suffix}{tail}"
