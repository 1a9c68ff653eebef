from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.graph.extraction import (
    ReferenceExtractor,
    build_reference_graph,
    split_link_target,
)
from manuscript_auditor.app.schemas.references import ReferenceKind
from manuscript_auditor.tests.fixtures.corpus_factory import CH09, make_corpus, make_document


INTRO = "\n".join(
    [
        "# Introduction",
        "",
        "Read [Chapter 7: Context Engineering Deep Dive](ch07-context-engineering-deep-dive.md) next.",
        "See [the site](https://example.com) and [top](#intro).",
        "![Flow](../assets/diagrams/flow.svg)",
        "Inline `Chapter 3` is code.",
        "The diagram lives at assets/diagrams/arch.png today.",
        "```",
        "Chapter 5 inside code",
        "```",
        "[script](../examples/ch01/run.ts)",
    ]
)


def _extract(text: str, config: AuditorConfig = None):
    extractor = ReferenceExtractor(config or AuditorConfig())
    return extractor.extract(make_document("ch01-introduction", text))


def test_links_mentions_and_assets_are_extracted_independently():
    references = sorted(_extract(INTRO), key=lambda r: r.sort_key())

    assert [(r.source_line, r.kind) for r in references] == [
        (3, ReferenceKind.FILE_LINK),
        (3, ReferenceKind.CHAPTER_MENTION),
        (5, ReferenceKind.ASSET_REFERENCE),
        (7, ReferenceKind.ASSET_REFERENCE),
    ]

    link, mention, image, bare = references

    assert link.target_id == "ch07-context-engineering-deep-dive"
    assert link.label == "Chapter 7: Context Engineering Deep Dive"
    assert link.column == 5

    assert mention.chapter_number == 7
    assert mention.chapter_title == "Context Engineering Deep Dive"
    assert mention.link_target == "ch07-context-engineering-deep-dive.md"
    assert mention.column == 6

    assert image.target_id == "diagrams/flow.svg"
    assert bare.target_id == "diagrams/arch.png"
    assert bare.raw_target == "assets/diagrams/arch.png"


def test_free_text_mention_has_no_link_target():
    (mention,) = _extract("As Chapter 4 showed.")

    assert mention.kind is ReferenceKind.CHAPTER_MENTION
    assert mention.link_target is None
    assert mention.raw_target == "Chapter 4"


def test_abbreviation_follows_configuration():
    text = "See Ch. 4 for more."

    assert len(_extract(text)) == 1
    assert _extract(text, AuditorConfig(RECOGNIZE_CH_ABBREVIATION=False)) == []


def test_link_target_normalization():
    assert split_link_target("../chapters/ch02.md#setup") == "../chapters/ch02.md"
    assert split_link_target("<ch02 draft.md>") == "ch02 draft.md"
    assert split_link_target("ch02.md?plain=1") == "ch02.md"

    (reference,) = _extract("[next](../chapters/ch02-basics.md#setup)")
    assert reference.target_id == "ch02-basics"


def test_graph_is_ordered_and_indexed():
    corpus = make_corpus(
        chapters={
            "ch01-introduction": INTRO,
            CH09: "# Context Engineering Deep Dive\n\nBack to [intro](ch01-introduction.md).\n",
        }
    )

    graph = build_reference_graph(corpus, AuditorConfig())

    assert len(graph) == 5
    assert [r.source_id for r in graph.references] == sorted(
        r.source_id for r in graph.references
    )
    assert len(graph.outgoing("ch01-introduction")) == 4
    assert [r.source_id for r in graph.incoming("ch01-introduction")] == [CH09]
    assert ("ch01-introduction", 3, "ch07-context-engineering-deep-dive") in graph.edges()
    assert len(graph.of_kind(ReferenceKind.FILE_LINK)) == 2
