import json

import pytest
from pydantic import ValidationError

from manuscript_auditor.app.errors import CorpusError
from manuscript_auditor.app.mapping.loader import (
    load_canonical_mapping,
    parse_canonical_mapping,
)
from manuscript_auditor.app.schemas.mapping import CanonicalMapping, ChapterEntry
from manuscript_auditor.tests.fixtures.corpus_factory import CH09, book_mapping


def test_lookups_in_both_directions():
    mapping = book_mapping()

    assert mapping.resolve(9) == CH09
    assert mapping.resolve(7) is None
    assert mapping.number_of("ch04-prompting-basics") == 4
    assert mapping.number_of("ch07") is None
    assert [e.number for e in mapping.chapters] == [1, 4, 6, 9]


def test_entries_are_sorted_and_suffixes_stripped():
    mapping = CanonicalMapping(
        chapters=[
            {"number": 2, "document": "ch02-basics.md"},
            {"number": 1, "document": "ch01-introduction"},
        ]
    )

    assert mapping.as_dict() == {1: "ch01-introduction", 2: "ch02-basics"}


@pytest.mark.parametrize(
    "chapters",
    [
        [{"number": 1, "document": "a"}, {"number": 1, "document": "b"}],
        [{"number": 1, "document": "a"}, {"number": 2, "document": "a"}],
        [{"number": 0, "document": "a"}],
    ],
)
def test_structurally_invalid_mappings_are_rejected(chapters):
    with pytest.raises(ValidationError):
        CanonicalMapping(chapters=chapters)

    with pytest.raises(CorpusError):
        parse_canonical_mapping({"version": 1, "chapters": chapters})


def test_insert_chapter_shifts_following_chapters_and_bumps_version():
    mapping = book_mapping()

    updated = mapping.insert_chapter(4, "ch04-new-material")

    assert updated.version == mapping.version + 1
    assert updated.as_dict() == {
        1: "ch01-introduction",
        4: "ch04-new-material",
        5: "ch04-prompting-basics",
        7: "ch06-verification",
        10: CH09,
    }
    # The original is untouched
    assert mapping.resolve(4) == "ch04-prompting-basics"


def test_remove_chapter_shifts_following_chapters_and_bumps_version():
    mapping = book_mapping()

    updated = mapping.remove_chapter(4)

    assert updated.version == 2
    assert updated.as_dict() == {
        1: "ch01-introduction",
        5: "ch06-verification",
        8: CH09,
    }

    with pytest.raises(KeyError):
        mapping.remove_chapter(3)


def test_insert_of_already_mapped_document_is_rejected():
    with pytest.raises(ValidationError):
        book_mapping().insert_chapter(2, CH09)


def test_loads_json_list_layout(tmp_path):
    path = tmp_path / "mapping.json"
    path.write_text(
        json.dumps(
            {
                "version": 3,
                "chapters": [
                    {"number": 1, "document": "ch01-introduction"},
                    {"number": 9, "document": CH09},
                ],
            }
        ),
        encoding="utf-8",
    )

    mapping = load_canonical_mapping(path)

    assert mapping.version == 3
    assert mapping.resolve(9) == CH09


def test_loads_yaml_table_layout(tmp_path):
    path = tmp_path / "mapping.yaml"
    path.write_text(
        "version: 2\n"
        "chapters:\n"
        "  1: ch01-introduction\n"
        f"  9: {CH09}\n",
        encoding="utf-8",
    )

    mapping = load_canonical_mapping(path)

    assert mapping.version == 2
    assert mapping.as_dict() == {1: "ch01-introduction", 9: CH09}


@pytest.mark.parametrize(
    "name,content",
    [
        ("mapping.json", "{not json"),
        ("mapping.yml", "chapters: [unclosed"),
        ("mapping.json", "[1, 2, 3]"),
        ("mapping.json", '{"chapters": {"one": "ch01"}}'),
        ("mapping.json", '{"chapters": [], "extra": true}'),
        ("mapping.json", '{"chapters": {"7": "ch07-a", "7": "ch07-b"}}'),
        ("mapping.yaml", "chapters:\n  7: ch07-a\n  7: ch07-b\n"),
        ("mapping.yaml", "version: 1\nversion: 2\nchapters: []\n"),
    ],
)
def test_malformed_mapping_files_are_fatal(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")

    with pytest.raises(CorpusError):
        load_canonical_mapping(path)


def test_missing_mapping_file_is_fatal(tmp_path):
    with pytest.raises(CorpusError):
        load_canonical_mapping(tmp_path / "absent.json")


def test_chapter_entry_is_frozen():
    entry = ChapterEntry(number=1, document="ch01")

    with pytest.raises(ValidationError):
        entry.number = 2
