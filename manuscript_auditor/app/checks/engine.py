"""
Validation rule engine.

Runs every enabled rule against one immutable ValidationContext.

IMPORTANT:
- Rules are independent: none reads another rule's output.
- Rules run concurrently (one worker thread each) but results are
  concatenated in registry order, so the outcome never depends on
  scheduling.
- Every enabled rule always runs; violations are findings, not errors.
- An exception raised by a rule is a logic error and propagates.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

import anyio
from pydantic import BaseModel, ConfigDict, Field

from manuscript_auditor.app.checks.asset_references import run_asset_reference_checks
from manuscript_auditor.app.checks.broken_links import run_broken_link_checks
from manuscript_auditor.app.checks.chapter_numbers import run_chapter_number_checks
from manuscript_auditor.app.checks.context import ValidationContext
from manuscript_auditor.app.checks.required_sections import run_required_section_checks
from manuscript_auditor.app.checks.word_counts import run_word_count_checks
from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.schemas.findings import (
    FindingCategory,
    FindingObject as Finding,
)

# Events (observational only)
from manuscript_auditor.app.events import (
    AuditEvent,
    AuditEventType,
    AuditEventEmitter,
    NullEventEmitter,
)

logger = logging.getLogger(__name__)


Rule = Callable[[ValidationContext], List[Finding]]


# Registry order is the concatenation order of rule outputs
DEFAULT_RULES: Tuple[Tuple[FindingCategory, Rule], ...] = (
    (FindingCategory.BROKEN_LINK, run_broken_link_checks),
    (FindingCategory.WRONG_NUMBER, run_chapter_number_checks),
    (FindingCategory.MISSING_SECTION, run_required_section_checks),
    (FindingCategory.WORD_COUNT_BOUND, run_word_count_checks),
    (FindingCategory.MISSING_ASSET, run_asset_reference_checks),
)


class RuleEngineResult(BaseModel):
    rules_executed: List[str] = Field(
        default_factory=list,
        description="Category names of the rules that ran, in registry order",
    )

    findings: List[Finding] = Field(
        default_factory=list,
        description="Concatenated rule outputs, in registry order",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class RuleEngine:
    def __init__(
        self,
        config: AuditorConfig,
        rules: Optional[Tuple[Tuple[FindingCategory, Rule], ...]] = None,
    ) -> None:
        self._config = config
        self._rules = tuple(rules if rules is not None else DEFAULT_RULES)

    def enabled_rules(self) -> Tuple[Tuple[FindingCategory, Rule], ...]:
        return tuple(
            (category, rule)
            for category, rule in self._rules
            if self._config.rule_enabled(category.value)
        )

    async def run(
        self,
        context: ValidationContext,
        *,
        audit_id: Optional[str] = None,
        emitter: Optional[AuditEventEmitter] = None,
    ) -> RuleEngineResult:
        emitter = emitter or NullEventEmitter()
        rules = self.enabled_rules()

        if audit_id is not None:
            for category, _ in rules:
                await emitter.emit(
                    AuditEvent(
                        audit_id=audit_id,
                        event_type=AuditEventType.RULE_STARTED,
                        details={"rule": category.value},
                    )
                )

        outputs: Dict[FindingCategory, List[Finding]] = {}
        failures: List[Tuple[int, Exception]] = []

        async def _run_one(index: int, category: FindingCategory, rule: Rule) -> None:
            try:
                outputs[category] = await anyio.to_thread.run_sync(rule, context)
            except Exception as exc:
                failures.append((index, exc))

        async with anyio.create_task_group() as tg:
            for index, (category, rule) in enumerate(rules):
                tg.start_soon(_run_one, index, category, rule)

        if failures:
            # Re-raise the failure of the earliest registered rule
            raise sorted(failures, key=lambda item: item[0])[0][1]

        findings: List[Finding] = []
        for category, _ in rules:
            produced = outputs[category]
            findings.extend(produced)

            logger.debug("Rule %s produced %d findings", category.value, len(produced))

            if audit_id is None:
                continue

            for finding in produced:
                await emitter.emit(
                    AuditEvent(
                        audit_id=audit_id,
                        event_type=AuditEventType.FINDING_DISCOVERED,
                        details={
                            "rule": category.value,
                            "finding_id": finding.finding_id,
                            "severity": finding.severity.value,
                            "title": finding.title,
                        },
                    )
                )

            await emitter.emit(
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.RULE_COMPLETED,
                    details={
                        "rule": category.value,
                        "findings_count": len(produced),
                    },
                )
            )

        return RuleEngineResult(
            rules_executed=[category.value for category, _ in rules],
            findings=findings,
        )
