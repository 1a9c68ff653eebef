import json

from manuscript_auditor.app.checks.finding_factory import build_finding
from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.mapping.canonical import CanonicalResolver
from manuscript_auditor.app.reporting.aggregator import build_report
from manuscript_auditor.app.reporting.markdown import (
    render_markdown_report,
    render_task_list_json,
)
from manuscript_auditor.app.schemas.findings import FindingCategory
from manuscript_auditor.app.schemas.report import WordCountStatus
from manuscript_auditor.tests.fixtures.corpus_factory import (
    CH09,
    book_mapping,
    filler,
    make_corpus,
)


def _report():
    corpus = make_corpus(
        chapters={
            "ch01-introduction": filler(120),
            "ch04-prompting-basics": filler(80),
            CH09: "# Context Engineering Deep Dive\n" + filler(1496),
        },
        prds={"ch07": "# Context Engineering Deep Dive\n"},
    )
    config = AuditorConfig(WORD_COUNT_MIN=100, WORD_COUNT_MAX=1000)
    findings = [
        build_finding(
            category=FindingCategory.BROKEN_LINK,
            document_id="ch01-introduction",
            line=3,
            column=0,
            observed="ch07-context-engineering-deep-dive.md",
            expected=f"{CH09}.md",
            title="Broken link",
            description="Broken link",
        ),
        build_finding(
            category=FindingCategory.MISSING_SECTION,
            document_id="ch04-prompting-basics",
            section="Related Chapters",
            expected="Related Chapters",
            title="Missing section",
            description="Missing section",
        ),
    ]
    return build_report(
        audit_id="report-1",
        corpus=corpus,
        resolver=CanonicalResolver(book_mapping(), corpus),
        config=config,
        rules_executed=["broken-link", "missing-section", "word-count-bound"],
        findings=findings,
    )


def test_report_rollup_and_misalignments():
    report = _report()

    assert [(r.document_id, r.observed, r.status) for r in report.word_counts] == [
        ("ch01-introduction", 120, WordCountStatus.OK),
        ("ch04-prompting-basics", 80, WordCountStatus.BELOW_MIN),
        (CH09, 1500, WordCountStatus.ABOVE_MAX),
    ]
    assert report.total_word_count == 1700
    assert [(m.document_id, m.assumed_number, m.actual_number) for m in report.misalignments] == [
        ("ch07", 7, 9)
    ]
    assert [e.document for e in report.dangling_entries] == ["ch06-verification"]
    assert report.mapping_version == 1


def test_markdown_report_tables():
    text = render_markdown_report(_report())

    assert text.startswith("# Cross-Reference Validation Report\n")
    assert "| broken-link | 1 | 1 |" in text
    assert "| missing-section | 1 | 0 |" in text
    assert "| **Total** | 2 | 1 |" in text
    assert "## Broken Links (1)" in text
    assert f"`{CH09}.md`" in text
    assert "| ch04-prompting-basics | Related Chapters |" in text
    assert "| ch04-prompting-basics | 80 | 100-1000 | below_min |" in text
    assert "| **Total** | 1700 | - | - |" in text
    assert "| ch07 | misaligned | 7 | 9 |" in text
    assert "| 6 | ch06-verification |" in text
    # Rules that did not run get no table
    assert "## Missing Assets" not in text


def test_rendering_is_byte_stable():
    assert render_markdown_report(_report()) == render_markdown_report(_report())
    assert render_task_list_json(_report().tasks) == render_task_list_json(_report().tasks)


def test_task_list_json_layout():
    payload = json.loads(render_task_list_json(_report().tasks))

    assert payload["version"] == "2.0"
    assert payload["stats"] == {
        "pending": 2,
        "inProgress": 0,
        "complete": 0,
        "blocked": 0,
        "total": 2,
    }
    assert [t["id"] for t in payload["tasks"]] == [
        "fix-broken-link-ch01-introduction",
        "fix-missing-section-ch04-prompting-basics",
    ]
    first = payload["tasks"][0]
    assert first["type"] == "fix"
    assert first["priority"] == "critical"
    assert first["status"] == "pending"
    assert first["file"] == "chapters/ch01-introduction.md"
    assert first["line"] == 3
