import json

import pytest

from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.main import derive_audit_id, run, validate_corpus
from manuscript_auditor.app.schemas.findings import FindingCategory
from manuscript_auditor.app.schemas.mapping import CanonicalMapping
from manuscript_auditor.tests.fixtures.corpus_factory import (
    CH09,
    chapter_text,
    write_corpus,
)


def _book(root):
    write_corpus(
        root,
        chapters={
            "ch01-introduction.md": chapter_text(
                "Introduction",
                body=["Read [the next part](ch02-missing.md) first."],
            ),
            f"{CH09}.md": chapter_text("Context Engineering Deep Dive"),
        },
        prds={"ch09.md": "# Context Engineering Deep Dive\n"},
    )
    mapping_path = root / "mapping.json"
    mapping_path.write_text(
        json.dumps({"version": 3, "chapters": {"1": "ch01-introduction", "9": CH09}}),
        encoding="utf-8",
    )
    return mapping_path


def _config(root, mapping_path, **overrides):
    return AuditorConfig(
        CORPUS_ROOT=root,
        MAPPING_PATH=mapping_path,
        WORD_COUNT_MIN=0,
        WORD_COUNT_MAX=100,
        **overrides,
    )


def test_run_writes_report_and_tasks(tmp_path):
    mapping_path = _book(tmp_path)

    assert run(_config(tmp_path, mapping_path)) == 0

    report = (tmp_path / "cross-reference-report.md").read_text(encoding="utf-8")
    assert report.startswith("# Cross-Reference Validation Report\n")
    assert "- Canonical mapping version: 3" in report
    assert "`ch02-missing.md`" in report

    tasks = json.loads((tmp_path / "tasks.json").read_text(encoding="utf-8"))
    assert tasks["version"] == "2.0"
    assert [t["id"] for t in tasks["tasks"]] == ["fix-broken-link-ch01-introduction"]
    assert tasks["tasks"][0]["file"] == "chapters/ch01-introduction.md"
    assert tasks["tasks"][0]["line"] == 3
    assert tasks["stats"] == {
        "pending": 1,
        "inProgress": 0,
        "complete": 0,
        "blocked": 0,
        "total": 1,
    }


def test_run_honors_explicit_output_paths(tmp_path):
    mapping_path = _book(tmp_path)
    out = tmp_path / "out"

    code = run(
        _config(
            tmp_path,
            mapping_path,
            REPORT_PATH=out / "report.md",
            TASKS_PATH=out / "nested" / "tasks.json",
        )
    )

    assert code == 0
    assert (out / "report.md").is_file()
    assert (out / "nested" / "tasks.json").is_file()
    assert not (tmp_path / "tasks.json").exists()


def test_run_output_is_stable_across_runs(tmp_path):
    mapping_path = _book(tmp_path)
    config = _config(tmp_path, mapping_path)

    run(config)
    first = (tmp_path / "cross-reference-report.md").read_bytes()
    run(config)
    second = (tmp_path / "cross-reference-report.md").read_bytes()

    assert first == second


def test_run_requires_corpus_and_mapping_paths():
    assert run(AuditorConfig()) == 2


def test_run_rejects_malformed_mapping(tmp_path):
    _book(tmp_path)
    bad = tmp_path / "mapping.yaml"
    bad.write_text("chapters: [1, 2\n", encoding="utf-8")

    assert run(_config(tmp_path, bad)) == 2
    assert not (tmp_path / "tasks.json").exists()


def test_run_rejects_missing_corpus_role(tmp_path):
    mapping_path = tmp_path / "mapping.json"
    mapping_path.write_text('{"chapters": []}', encoding="utf-8")

    assert run(_config(tmp_path, mapping_path)) == 2


def test_validate_corpus_is_synchronous(tmp_path):
    _book(tmp_path)
    mapping = CanonicalMapping.from_pairs({1: "ch01-introduction", 9: CH09})

    report = validate_corpus(
        tmp_path, mapping, AuditorConfig(WORD_COUNT_MIN=0, WORD_COUNT_MAX=100)
    )

    assert report.audit_id == derive_audit_id(tmp_path, mapping)
    assert [f.category for f in report.findings] == [FindingCategory.BROKEN_LINK]
    # the filename-encoded number agrees with the mapping
    assert report.misalignments == []


def test_audit_id_tracks_mapping_changes(tmp_path):
    mapping = CanonicalMapping.from_pairs({1: "ch01-introduction"})

    assert derive_audit_id(tmp_path, mapping) == derive_audit_id(tmp_path, mapping)
    assert derive_audit_id(tmp_path, mapping) != derive_audit_id(
        tmp_path, mapping.insert_chapter(1, "ch00-preface")
    )
    assert derive_audit_id(tmp_path, mapping).startswith("xref-")
