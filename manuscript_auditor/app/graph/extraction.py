"""
Reference graph extraction.

Scans every document body for three reference patterns, independently:

(a) Markdown links `[label](target)` and images `![alt](src)`
(b) free-text chapter mentions (see grammar.py)
(c) explicit asset path strings under the configured assets root

Links and mentions are deliberately extracted as separate references even
when they point at the same logical target: a broken link and a stale
prose mention are different failure classes with different fixes
(file rename vs. prose edit).

Fenced code blocks and inline code spans never yield references.
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from typing import List, Optional, Tuple

from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.graph.grammar import iter_mentions
from manuscript_auditor.app.schemas.corpus import Corpus, Document
from manuscript_auditor.app.schemas.references import (
    Reference,
    ReferenceGraph,
    ReferenceKind,
)


logger = logging.getLogger(__name__)


LINK_RE = re.compile(
    r"""
    (?P<image>!)?
    \[(?P<label>[^\]\n]*)\]
    \(
        [ \t]*
        (?P<target><[^>\n]*>|[^)\s]+)
        (?:[ \t]+"[^"\n]*")?
        [ \t]*
    \)
    """,
    re.VERBOSE,
)

INLINE_CODE_RE = re.compile(r"(`+)(?:(?!\1).)+?\1")

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")


def _blank(text: str, start: int, end: int) -> str:
    return text[:start] + " " * (end - start) + text[end:]


def _blank_inline_code(line: str) -> str:
    for match in INLINE_CODE_RE.finditer(line):
        line = _blank(line, match.start(), match.end())
    return line


def _asset_path_re(assets_dir: str) -> re.Pattern:
    return re.compile(
        rf"(?<![\w/.\-])(?:\.{{1,2}}/)*{re.escape(assets_dir)}/(?P<path>[\w./\-]+\.[A-Za-z0-9]+)"
    )


def split_link_target(raw_target: str) -> str:
    """
    Path component of a link target: angle brackets, anchor and query removed.
    """
    target = raw_target.strip()
    if target.startswith("<") and target.endswith(">"):
        target = target[1:-1].strip()
    for separator in ("#", "?"):
        target = target.split(separator, 1)[0]
    return target


def _asset_relative_path(path: str, assets_dir: str) -> Optional[str]:
    parts = PurePosixPath(path).parts
    if assets_dir not in parts:
        return None
    index = len(parts) - 1 - parts[::-1].index(assets_dir)
    remainder = parts[index + 1:]
    if not remainder:
        return None
    return PurePosixPath(*remainder).as_posix()


class ReferenceExtractor:
    """
    Stateless, per-document reference extraction.
    """

    def __init__(self, config: AuditorConfig):
        self._config = config
        self._asset_re = _asset_path_re(config.ASSETS_DIR)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, document: Document) -> List[Reference]:
        references: List[Reference] = []
        for line_number, raw_line in document.numbered_lines():
            references.extend(self._extract_line(document.id, line_number, raw_line))
        return references

    # ------------------------------------------------------------------
    # Line scanning
    # ------------------------------------------------------------------

    def _extract_line(
        self, source_id: str, line_number: int, raw_line: str
    ) -> List[Reference]:
        line = _blank_inline_code(raw_line)

        references: List[Reference] = []

        # (label_start, label_end, raw_target) for mention attribution
        link_labels: List[Tuple[int, int, str]] = []

        # Link targets must not be scanned for mentions
        mention_text = line
        # Whole links must not be rescanned for asset paths
        asset_text = line

        # --------------------------------------------------------------
        # (a) Markdown links
        # --------------------------------------------------------------
        for match in LINK_RE.finditer(line):
            raw_target = match.group("target").strip()
            label = match.group("label")

            link_labels.append((match.start("label"), match.end("label"), raw_target))
            mention_text = _blank(mention_text, match.start("target"), match.end("target"))
            asset_text = _blank(asset_text, match.start(), match.end())

            reference = self._classify_link(
                source_id=source_id,
                line_number=line_number,
                column=match.start(),
                raw_target=raw_target,
                label=label,
            )
            if reference is not None:
                references.append(reference)

        # --------------------------------------------------------------
        # (b) Chapter mentions
        # --------------------------------------------------------------
        for mention in iter_mentions(
            mention_text,
            with_abbreviation=self._config.RECOGNIZE_CH_ABBREVIATION,
        ):
            link_target = None
            for label_start, label_end, raw_target in link_labels:
                if label_start <= mention.start and mention.end <= label_end:
                    link_target = raw_target
                    break

            references.append(
                Reference(
                    source_id=source_id,
                    source_line=line_number,
                    column=mention.start,
                    kind=ReferenceKind.CHAPTER_MENTION,
                    raw_target=mention.text,
                    target_id=mention.text,
                    chapter_number=mention.number,
                    chapter_title=mention.title,
                    link_target=link_target,
                )
            )

        # --------------------------------------------------------------
        # (c) Bare asset paths
        # --------------------------------------------------------------
        for match in self._asset_re.finditer(asset_text):
            references.append(
                Reference(
                    source_id=source_id,
                    source_line=line_number,
                    column=match.start(),
                    kind=ReferenceKind.ASSET_REFERENCE,
                    raw_target=match.group(0),
                    target_id=PurePosixPath(match.group("path")).as_posix(),
                )
            )

        return references

    def _classify_link(
        self,
        *,
        source_id: str,
        line_number: int,
        column: int,
        raw_target: str,
        label: str,
    ) -> Optional[Reference]:
        """
        Turn a Markdown link into a file-link or asset reference.

        External URLs, anchor-only links and links to files that are
        neither documents nor assets are not references.
        """
        path = split_link_target(raw_target)

        if not path or _SCHEME_RE.match(path):
            return None

        asset_path = _asset_relative_path(path, self._config.ASSETS_DIR)
        if asset_path is not None:
            return Reference(
                source_id=source_id,
                source_line=line_number,
                column=column,
                kind=ReferenceKind.ASSET_REFERENCE,
                raw_target=raw_target,
                target_id=asset_path,
                label=label,
            )

        pure = PurePosixPath(path)
        if pure.suffix.lower() not in self._config.DOCUMENT_EXTENSIONS:
            return None

        return Reference(
            source_id=source_id,
            source_line=line_number,
            column=column,
            kind=ReferenceKind.FILE_LINK,
            raw_target=raw_target,
            target_id=pure.stem,
            label=label,
        )


def build_reference_graph(corpus: Corpus, config: AuditorConfig) -> ReferenceGraph:
    """
    Extract every reference in the corpus into an ordered graph.
    """
    extractor = ReferenceExtractor(config)

    references: List[Reference] = []
    for document in corpus.documents:
        references.extend(extractor.extract(document))

    graph = ReferenceGraph.from_references(references)

    logger.debug(
        "Extracted %d references (%d file links, %d chapter mentions, %d assets)",
        len(graph),
        len(graph.of_kind(ReferenceKind.FILE_LINK)),
        len(graph.of_kind(ReferenceKind.CHAPTER_MENTION)),
        len(graph.of_kind(ReferenceKind.ASSET_REFERENCE)),
    )
    return graph
