import pytest

from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.corpus.loader import CorpusLoader
from manuscript_auditor.app.errors import CorpusError
from manuscript_auditor.app.schemas.corpus import DocumentRole
from manuscript_auditor.tests.fixtures.corpus_factory import (
    chapter_text,
    write_corpus,
)

pytestmark = pytest.mark.anyio


def _loader() -> CorpusLoader:
    return CorpusLoader(AuditorConfig(MAX_CONCURRENT_READS=2))


async def test_loads_chapters_prds_and_asset_inventory(tmp_path):
    write_corpus(
        tmp_path,
        chapters={
            "ch02-basics.md": chapter_text("Basics"),
            "ch01-introduction.md": chapter_text("Introduction"),
            "cover.png": "not text",
        },
        prds={"ch07.md": "# Context Engineering Deep Dive\n"},
        assets=["diagrams/flow.svg", "logo.png"],
    )

    corpus = await _loader().load(tmp_path)

    assert corpus.ids() == ("ch01-introduction", "ch02-basics", "ch07")
    assert [d.id for d in corpus.by_role(DocumentRole.PRDS)] == ["ch07"]
    assert corpus.get("ch01-introduction").path == "chapters/ch01-introduction.md"
    assert corpus.get("ch07").title == "Context Engineering Deep Dive"
    assert corpus.asset_inventory == frozenset({"diagrams/flow.svg", "logo.png"})


async def test_nested_documents_are_discovered(tmp_path):
    write_corpus(
        tmp_path,
        chapters={"ch01-introduction.md": chapter_text("Introduction")},
    )
    nested = tmp_path / "chapters" / "part-2"
    nested.mkdir()
    (nested / "ch05-tools.markdown").write_text("# Tools\n", encoding="utf-8")

    corpus = await _loader().load(tmp_path)

    assert corpus.get("ch05-tools").path == "chapters/part-2/ch05-tools.markdown"


async def test_missing_optional_roots_are_treated_as_empty(tmp_path):
    write_corpus(tmp_path, chapters={"ch01-introduction.md": "# Introduction\n"})

    corpus = await _loader().load(tmp_path)

    assert corpus.by_role(DocumentRole.PRDS) == ()
    assert corpus.asset_inventory == frozenset()


async def test_missing_root_is_fatal(tmp_path):
    with pytest.raises(CorpusError):
        await _loader().load(tmp_path / "nope")


async def test_root_that_is_a_file_is_fatal(tmp_path):
    target = tmp_path / "book.md"
    target.write_text("# Book\n", encoding="utf-8")

    with pytest.raises(CorpusError):
        await _loader().load(target)


async def test_missing_chapters_root_is_fatal(tmp_path):
    write_corpus(tmp_path, prds={"ch07.md": "# PRD\n"})

    with pytest.raises(CorpusError, match="chapters"):
        await _loader().load(tmp_path)


async def test_duplicate_ids_across_roles_are_fatal(tmp_path):
    write_corpus(
        tmp_path,
        chapters={"ch07.md": "# Seven\n"},
        prds={"ch07.md": "# Seven PRD\n"},
    )

    with pytest.raises(CorpusError, match="Ambiguous document ids"):
        await _loader().load(tmp_path)


async def test_duplicate_ids_across_extensions_are_fatal(tmp_path):
    write_corpus(
        tmp_path,
        chapters={"ch01.md": "# One\n", "ch01.txt": "One again\n"},
    )

    with pytest.raises(CorpusError, match="'ch01'"):
        await _loader().load(tmp_path)


async def test_invalid_utf8_is_fatal(tmp_path):
    write_corpus(tmp_path, chapters={"ch01-introduction.md": "# Introduction\n"})
    (tmp_path / "chapters" / "ch02-broken.md").write_bytes(b"# Broken \xff\xfe\n")

    with pytest.raises(CorpusError, match="UTF-8"):
        await _loader().load(tmp_path)
