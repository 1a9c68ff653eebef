"""
Deterministic Markdown document parsing.

Turns raw document text into a structured Document in a single walk
over the lines:

- fenced code blocks (``` or ~~~) are tracked so that code never counts
  as prose and never yields references
- ATX headings (# .. ######) outside code are recorded in order
- word count excludes fenced code, table rows and YAML front matter,
  and counts link labels rather than link targets

No NLP. The same text always yields the same Document.
"""

from __future__ import annotations

import re
from typing import FrozenSet, List, Optional, Tuple

from manuscript_auditor.app.schemas.corpus import Document, DocumentRole, Heading


HEADING_RE = re.compile(r"^(?P<hashes>#{1,6})[ \t]+(?P<text>.*?)(?:[ \t]+#+)?[ \t]*$")

FENCE_RE = re.compile(r"^[ \t]{0,3}(?P<fence>`{3,}|~{3,})")

FRONT_MATTER_DELIMITER = "---"

# Links and images: keep the label, drop the target
_LINK_RE = re.compile(r"!?\[(?P<label>[^\]]*)\]\([^)]*\)")

_HTML_COMMENT_RE = re.compile(r"<!--.*?-->")

WORD_RE = re.compile(r"\d+(?:[,.]\d+)+|[^\W_]+(?:['’\-][^\W_]+)*")


def _is_table_row(line: str) -> bool:
    return line.lstrip().startswith("|")


def _front_matter_end(lines: List[str]) -> int:
    """
    Number of leading lines occupied by YAML front matter (0 if none).
    """
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return 0
    for index in range(1, len(lines)):
        if lines[index].strip() in (FRONT_MATTER_DELIMITER, "..."):
            return index + 1
    # Unterminated front matter is treated as prose
    return 0


def count_words(text: str) -> int:
    """
    Count prose words in a single line of Markdown.
    """
    text = _HTML_COMMENT_RE.sub(" ", text)
    text = _LINK_RE.sub(lambda m: f" {m.group('label')} ", text)
    return len(WORD_RE.findall(text))


def _scan(
    lines: List[str],
) -> Tuple[Tuple[Heading, ...], FrozenSet[int], int]:
    headings: List[Heading] = []
    fenced: set = set()
    word_count = 0

    skip_until = _front_matter_end(lines)
    open_fence: Optional[str] = None

    for number, line in enumerate(lines, start=1):
        if number <= skip_until:
            continue

        fence_match = FENCE_RE.match(line)

        if open_fence is not None:
            fenced.add(number)
            if fence_match:
                fence = fence_match.group("fence")
                if fence[0] == open_fence[0] and len(fence) >= len(open_fence):
                    open_fence = None
            continue

        if fence_match:
            open_fence = fence_match.group("fence")
            fenced.add(number)
            continue

        if _is_table_row(line):
            continue

        heading_match = HEADING_RE.match(line)
        if heading_match:
            text = heading_match.group("text").strip()
            headings.append(
                Heading(
                    level=len(heading_match.group("hashes")),
                    text=text,
                    line=number,
                )
            )
            word_count += count_words(text)
            continue

        word_count += count_words(line)

    return tuple(headings), frozenset(fenced), word_count


def parse_document(
    *,
    document_id: str,
    role: DocumentRole,
    path: str,
    text: str,
) -> Document:
    """
    Parse raw text into an immutable Document.

    The title is the text of the first heading; documents without any
    heading are titled by their id.
    """
    lines = text.splitlines()
    headings, fenced_lines, word_count = _scan(lines)

    title = headings[0].text if headings else document_id

    return Document(
        id=document_id,
        role=role,
        path=path,
        title=title,
        body_lines=tuple(lines),
        word_count=word_count,
        headings=headings,
        fenced_lines=fenced_lines,
    )
