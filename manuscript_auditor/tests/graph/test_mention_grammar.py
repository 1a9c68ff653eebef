"""
Conformance list for the chapter-mention grammar.

Every accepted and rejected form is pinned here; changing the grammar
means changing this list.
"""

import pytest

from manuscript_auditor.app.graph.grammar import (
    encoded_number,
    iter_mentions,
    slug_key,
    title_key,
)


RECOGNIZED = [
    ("See Chapter 7 for details", 7, None),
    ("chapter 12: Memory Systems.", 12, "Memory Systems"),
    ("CHAPTER 3", 3, None),
    ("Ch. 4: Prompting Basics, then more", 4, "Prompting Basics"),
    ("(see Chapter 9: Context Engineering Deep Dive)", 9, "Context Engineering Deep Dive"),
    ("**Chapter 2**: Tools", 2, None),
    ("Chapter 7 - Context Engineering", 7, None),
    ("Chapter  11 :  Hooks; and more", 11, "Hooks"),
]

NOT_RECOGNIZED = [
    "Chapters 3 and 4",
    "the third chapter",
    "Chapter Seven",
    "Chapter 3.2 covers it",
    "subchapter 5",
    "pre-Chapter 3",
    "ch. 4",
    "Chapter 1234",
]


@pytest.mark.parametrize("text,number,title", RECOGNIZED)
def test_recognized_forms(text, number, title):
    mentions = list(iter_mentions(text))

    assert len(mentions) == 1
    assert mentions[0].number == number
    assert mentions[0].title == title


@pytest.mark.parametrize("text", NOT_RECOGNIZED)
def test_unrecognized_forms_are_not_mentions(text):
    assert list(iter_mentions(text)) == []


def test_abbreviation_can_be_disabled():
    assert list(iter_mentions("Ch. 4", with_abbreviation=False)) == []
    assert [m.number for m in iter_mentions("Chapter 4", with_abbreviation=False)] == [4]


def test_multiple_mentions_keep_their_positions():
    text = "Chapter 1 and Chapter 2"
    mentions = list(iter_mentions(text))

    assert [m.number for m in mentions] == [1, 2]
    assert [text[m.start:m.end] for m in mentions] == ["Chapter 1", "Chapter 2"]
    assert mentions[1].start == 14


def test_title_key_normalizes_labels_and_prd_tags():
    expected = "context engineering deep dive"

    assert title_key("Context Engineering Deep Dive") == expected
    assert title_key("Chapter 9: Context Engineering: Deep Dive") == expected
    assert title_key("PRD: Context Engineering Deep Dive") == expected
    assert title_key("Context Engineering Deep Dive (PRD)") == expected
    assert title_key(None) == ""


def test_slug_key_drops_chapter_prefix():
    assert slug_key("ch07-context-engineering-deep-dive") == "context engineering deep dive"
    assert slug_key("chapter-12_memory") == "memory"
    assert slug_key("ch07") == ""


def test_encoded_number():
    assert encoded_number("ch07") == 7
    assert encoded_number("ch09-context-engineering-deep-dive") == 9
    assert encoded_number("chapter-12-memory") == 12
    assert encoded_number("appendix-a") is None
    assert encoded_number("overview") is None
