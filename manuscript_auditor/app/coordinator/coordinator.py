"""
Central validation coordinator.

IMPORTANT:
The coordinator is a DUMB AUTHORITY.

It MUST NOT:
- inspect document content
- interpret findings
- apply heuristics

Its sole responsibilities are:
- enforcing stage order (load -> extract -> resolve -> rules -> report)
- enforcing the fatal-error policy
- constructing the final ValidationReport

A run is atomic: it either returns a complete report or raises before
any finding is produced.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from manuscript_auditor.app.checks.context import ValidationContext
from manuscript_auditor.app.checks.engine import RuleEngine
from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.corpus.loader import CorpusLoader
from manuscript_auditor.app.graph.extraction import build_reference_graph
from manuscript_auditor.app.mapping.canonical import CanonicalResolver
from manuscript_auditor.app.reporting.aggregator import build_report
from manuscript_auditor.app.schemas.mapping import CanonicalMapping
from manuscript_auditor.app.schemas.references import ReferenceKind
from manuscript_auditor.app.schemas.report import ValidationReport

# Events (observational only)
from manuscript_auditor.app.events import (
    AuditEvent,
    AuditEventType,
    AuditEventEmitter,
    NullEventEmitter,
)

logger = logging.getLogger(__name__)


class AuditorCoordinator:
    """
    Central validation coordinator.

    Execution order:
        1. Corpus load (parallel reads, uniqueness barrier)
        2. Reference graph extraction
        3. Canonical resolver construction
        4. Rule engine (all enabled rules)
        5. Aggregation and report assembly
    """

    def __init__(
        self,
        config: AuditorConfig,
        loader: Optional[CorpusLoader] = None,
        rule_engine: Optional[RuleEngine] = None,
    ) -> None:
        """
        Direct constructor.

        Collaborators default to ones built from `config`; tests may
        inject their own.
        """
        self._config = config
        self._loader = loader if loader is not None else CorpusLoader(config)
        self._rule_engine = (
            rule_engine if rule_engine is not None else RuleEngine(config)
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run_audit(
        self,
        *,
        root: Path,
        mapping: CanonicalMapping,
        audit_id: str,
        emitter: Optional[AuditEventEmitter] = None,
    ) -> ValidationReport:
        """
        Validate the corpus under `root` against `mapping`.

        The emitter is strictly observational:
        - failures must not affect execution
        - events must not influence control flow
        """
        emitter = emitter or NullEventEmitter()

        await emitter.emit(
            AuditEvent(
                audit_id=audit_id,
                event_type=AuditEventType.AUDIT_STARTED,
                details={
                    "root": Path(root).as_posix(),
                    "mapping_version": mapping.version,
                },
            )
        )

        try:
            # ----------------------------------------------------------
            # 1. Corpus load (FATAL on CorpusError)
            # ----------------------------------------------------------
            await emitter.emit(
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.CORPUS_LOAD_STARTED,
                )
            )

            corpus = await self._loader.load(Path(root))

            await emitter.emit(
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.CORPUS_LOAD_COMPLETED,
                    details={
                        "documents_count": len(corpus.documents),
                        "assets_count": len(corpus.asset_inventory),
                    },
                )
            )

            # ----------------------------------------------------------
            # 2. Reference graph
            # ----------------------------------------------------------
            graph = build_reference_graph(corpus, self._config)

            await emitter.emit(
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.REFERENCE_GRAPH_BUILT,
                    details={
                        "references_count": len(graph),
                        **{
                            kind.value: len(graph.of_kind(kind))
                            for kind in ReferenceKind
                        },
                    },
                )
            )

            # ----------------------------------------------------------
            # 3. Canonical resolver
            # ----------------------------------------------------------
            resolver = CanonicalResolver(mapping, corpus)

            # ----------------------------------------------------------
            # 4. Rules (non-fatal violations become findings)
            # ----------------------------------------------------------
            context = ValidationContext(
                corpus=corpus,
                graph=graph,
                resolver=resolver,
                config=self._config,
            )

            outcome = await self._rule_engine.run(
                context,
                audit_id=audit_id,
                emitter=emitter,
            )

            # ----------------------------------------------------------
            # 5. Report (STRUCTURAL ONLY)
            # ----------------------------------------------------------
            report = build_report(
                audit_id=audit_id,
                corpus=corpus,
                resolver=resolver,
                config=self._config,
                rules_executed=outcome.rules_executed,
                findings=outcome.findings,
            )

            logger.info(
                "Audit %s: %d documents, %d findings, %d tasks",
                audit_id,
                report.documents_checked,
                len(report.findings),
                len(report.tasks.tasks),
            )

            await emitter.emit(
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.AUDIT_REPORT_READY,
                    details={"report": report.model_dump(mode="json")},
                )
            )

            await emitter.emit(
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.AUDIT_COMPLETED,
                    details={
                        "findings_count": len(report.findings),
                        "critical_count": report.critical_count,
                        "tasks_count": len(report.tasks.tasks),
                    },
                )
            )

            return report

        except Exception as exc:
            await emitter.emit(
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.AUDIT_FAILED,
                    details={
                        "error": str(exc),
                        "exception_type": type(exc).__name__,
                    },
                )
            )
            raise
