"""
Chapter-label grammar.

A strict, documented grammar for free-text chapter mentions. Text that
does not match is simply not a mention; there is no best-effort fallback.

    mention := LABEL WS+ NUMBER [ WS* ":" WS* TITLE ]
    LABEL   := "chapter" (any case) | "Ch."   (abbreviation is optional)
    NUMBER  := 1-3 digits, word-bounded
    TITLE   := up to 80 characters, stopping before any of
               ] ( ) * _ ` " , ;  or the end of the line;
               a trailing "." is dropped

Not recognized: plural forms ("Chapters 3 and 4"), ordinals
("third chapter"), spelled numbers ("Chapter Seven"), and any dash
separator between number and title ("Chapter 7 - Title" yields a
number-only mention). Dotted section numbers ("Chapter 3.2") are not
mentions.
"""

from __future__ import annotations

import re
from typing import Iterator, NamedTuple, Optional, Pattern


_TITLE_CHARS = r"[^\]\(\)\*_`\",;\n]"

_FULL_LABEL = r"(?i:chapter)"
_ABBREVIATED_LABEL = r"Ch\."


def _compile(with_abbreviation: bool) -> Pattern[str]:
    label = _FULL_LABEL
    if with_abbreviation:
        label = rf"(?:{_FULL_LABEL}|{_ABBREVIATED_LABEL})"
    return re.compile(
        rf"""
        (?<![\w-])
        {label}
        [ \t]+
        (?P<number>\d{{1,3}})
        (?![\w.]\d)(?!\w)
        (?:
            [ \t]*:[ \t]*
            (?P<title>{_TITLE_CHARS}{{1,80}})
        )?
        """,
        re.VERBOSE,
    )


MENTION_RE = _compile(with_abbreviation=True)
MENTION_RE_STRICT = _compile(with_abbreviation=False)

# Leading chapter label on a title, e.g. "Chapter 9: " or "Ch. 9 - "
_TITLE_LABEL_PREFIX_RE = re.compile(
    r"^\s*(?:(?i:chapter)|Ch\.)\s+\d{1,3}\s*(?:[:.\-–—]\s*)?"
)
_PRD_TAG_RE = re.compile(
    r"^\s*(?i:prd)\b\s*[:\-–—]?\s*|\s*[\-–—(]?\s*\b(?i:prd)\s*\)?\s*$"
)
_NON_ALNUM_RE = re.compile(r"[^0-9a-z]+")


class ChapterMention(NamedTuple):
    number: int
    title: Optional[str]
    start: int
    end: int
    text: str


def iter_mentions(text: str, *, with_abbreviation: bool = True) -> Iterator[ChapterMention]:
    """
    Yield every chapter mention in a line of text, left to right.
    """
    pattern = MENTION_RE if with_abbreviation else MENTION_RE_STRICT
    for match in pattern.finditer(text):
        title = match.group("title")
        if title is not None:
            title = title.strip().rstrip(".").strip() or None
        yield ChapterMention(
            number=int(match.group("number")),
            title=title,
            start=match.start(),
            end=match.end(),
            text=match.group(0).strip(),
        )


def title_key(title: Optional[str]) -> str:
    """
    Normalize a title for comparison.

    Case-folded, with any leading chapter label and any PRD tag removed,
    and every run of non-alphanumeric characters collapsed to one space.
    """
    if not title:
        return ""
    stripped = _PRD_TAG_RE.sub("", title)
    stripped = _TITLE_LABEL_PREFIX_RE.sub("", stripped)
    stripped = _PRD_TAG_RE.sub("", stripped)
    return _NON_ALNUM_RE.sub(" ", stripped.casefold()).strip()


def slug_key(stem: str) -> str:
    """
    Filename stem with any leading chapter-number prefix removed.

    "ch07-context-engineering-deep-dive" -> "context engineering deep dive"
    """
    return title_key(re.sub(r"^(?i:ch(?:apter)?)[-_ ]?\d{1,3}(?:[-_ ]+|$)", "", stem))


_ENCODED_NUMBER_RE = re.compile(r"^(?i:ch(?:apter)?)[-_ ]?0*(?P<number>\d{1,3})(?!\d)")


def encoded_number(stem: str) -> Optional[int]:
    """
    Chapter number encoded in a filename stem ("ch07", "chapter-7-x"), if any.
    """
    match = _ENCODED_NUMBER_RE.match(stem)
    if match is None:
        return None
    return int(match.group("number"))
