"""
Entrypoint for a single manuscript validation run.

Configuration is environment-driven (see AuditorConfig.from_env); there
is no argument parsing. A run loads the canonical mapping, validates the
corpus, and writes the Markdown report and the task list to the
configured paths.

Exit status: 0 when the run completed (findings or not), 2 when the
corpus or mapping is structurally unusable.
"""

from __future__ import annotations

import hashlib
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import anyio

from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.coordinator.coordinator import AuditorCoordinator
from manuscript_auditor.app.errors import CorpusError
from manuscript_auditor.app.mapping.loader import load_canonical_mapping
from manuscript_auditor.app.reporting.markdown import (
    render_markdown_report,
    render_task_list_json,
)
from manuscript_auditor.app.schemas.mapping import CanonicalMapping
from manuscript_auditor.app.schemas.report import ValidationReport


logger = logging.getLogger(__name__)


def derive_audit_id(root: Path, mapping: CanonicalMapping) -> str:
    """
    Content-derived run id, so that unchanged input yields an unchanged report.
    """
    material = f"{Path(root).as_posix()}\n{mapping.model_dump_json()}"
    return "xref-" + hashlib.sha256(material.encode("utf-8")).hexdigest()[:12]


def validate_corpus(
    root: Path,
    mapping: CanonicalMapping,
    config: Optional[AuditorConfig] = None,
    audit_id: Optional[str] = None,
) -> ValidationReport:
    """
    Synchronous convenience wrapper around AuditorCoordinator.run_audit.
    """
    config = config or AuditorConfig()
    coordinator = AuditorCoordinator(config)

    async def _run() -> ValidationReport:
        return await coordinator.run_audit(
            root=Path(root),
            mapping=mapping,
            audit_id=audit_id or derive_audit_id(root, mapping),
        )

    return anyio.run(_run)


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logger.info("Wrote %s", path)


def run(config: Optional[AuditorConfig] = None) -> int:
    config = config or AuditorConfig.from_env()

    if config.CORPUS_ROOT is None or config.MAPPING_PATH is None:
        logger.error("AUDITOR_CORPUS_ROOT and AUDITOR_MAPPING_PATH must be set")
        return 2

    root = config.CORPUS_ROOT
    report_path = config.REPORT_PATH or root / "cross-reference-report.md"
    tasks_path = config.TASKS_PATH or root / "tasks.json"

    try:
        mapping = load_canonical_mapping(config.MAPPING_PATH)
        report = validate_corpus(root, mapping, config=config)
    except CorpusError as exc:
        logger.error("Validation aborted: %s", exc)
        return 2

    _write(report_path, render_markdown_report(report))
    _write(tasks_path, render_task_list_json(report.tasks))

    logger.info(
        "%d findings (%d critical), %d tasks",
        len(report.findings),
        report.critical_count,
        len(report.tasks.tasks),
    )
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("AUDITOR_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(run())
