"""
Deterministic manuscript fixtures.

Builders produce either in-memory Documents/Corpora (for rule tests) or
on-disk trees (for loader and end-to-end tests). Nothing here is random.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

from manuscript_auditor.app.checks.context import ValidationContext
from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.corpus.markdown import parse_document
from manuscript_auditor.app.graph.extraction import build_reference_graph
from manuscript_auditor.app.mapping.canonical import CanonicalResolver
from manuscript_auditor.app.schemas.corpus import Corpus, Document, DocumentRole
from manuscript_auditor.app.schemas.mapping import CanonicalMapping


CH09 = "ch09-context-engineering-deep-dive"


def filler(n: int) -> str:
    """
    Exactly `n` countable words.
    """
    return " ".join(["word"] * n)


def chapter_text(
    title: str,
    *,
    body: Sequence[str] = (),
    related: bool = True,
) -> str:
    lines = [f"# {title}", ""]
    lines.extend(body)
    if related:
        lines += ["", "## Related Chapters", "", "- See the index."]
    return "\n".join(lines) + "\n"


def make_document(
    document_id: str,
    text: str,
    role: DocumentRole = DocumentRole.CHAPTERS,
) -> Document:
    return parse_document(
        document_id=document_id,
        role=role,
        path=f"{role.value}/{document_id}.md",
        text=text,
    )


def make_corpus(
    chapters: Optional[Dict[str, str]] = None,
    prds: Optional[Dict[str, str]] = None,
    assets: Iterable[str] = (),
) -> Corpus:
    documents = [
        make_document(doc_id, text, DocumentRole.CHAPTERS)
        for doc_id, text in (chapters or {}).items()
    ]
    documents += [
        make_document(doc_id, text, DocumentRole.PRDS)
        for doc_id, text in (prds or {}).items()
    ]
    return Corpus(
        root=Path("/manuscript"),
        documents=tuple(sorted(documents, key=lambda d: d.id)),
        asset_inventory=frozenset(assets),
    )


def make_context(
    corpus: Corpus,
    mapping: CanonicalMapping,
    config: Optional[AuditorConfig] = None,
) -> ValidationContext:
    config = config or AuditorConfig()
    return ValidationContext(
        corpus=corpus,
        graph=build_reference_graph(corpus, config),
        resolver=CanonicalResolver(mapping, corpus),
        config=config,
    )


def write_corpus(
    root: Path,
    chapters: Optional[Dict[str, str]] = None,
    prds: Optional[Dict[str, str]] = None,
    assets: Iterable[str] = (),
) -> Path:
    """
    Materialize a manuscript tree under `root`. Keys are file names.
    """
    for dirname, files in (("chapters", chapters), ("prds", prds)):
        if files is None:
            continue
        directory = root / dirname
        directory.mkdir(parents=True, exist_ok=True)
        for name, text in files.items():
            (directory / name).write_text(text, encoding="utf-8")

    for relative in assets:
        path = root / "assets" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"<svg/>")

    return root


def book_mapping() -> CanonicalMapping:
    """
    Mapping after the original chapter 7 moved to position 9.
    """
    return CanonicalMapping.from_pairs(
        {
            1: "ch01-introduction",
            4: "ch04-prompting-basics",
            6: "ch06-verification",
            9: CH09,
        }
    )
