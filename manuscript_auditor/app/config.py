"""
Runtime configuration for the manuscript auditor.

This module centralizes environment-driven configuration: where the
corpus roles live, which rules run, and the thresholds those rules
enforce (word-count bounds, required section pattern).

Configuration is read-only at runtime. The canonical chapter mapping is
NOT part of this object; it is loaded separately as structured data
(see mapping/loader.py) and is never inferred from content.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator, ValidationInfo


KNOWN_RULES: Tuple[str, ...] = (
    "broken-link",
    "wrong-number",
    "missing-section",
    "word-count-bound",
    "missing-asset",
)


class AuditorConfig(BaseModel):
    """
    Runtime configuration for the manuscript auditor.

    Configuration is environment-driven, read-only at runtime, and must
    not introduce non-deterministic behavior into validation outcomes.
    """

    # ------------------------------------------------------------------
    # Corpus layout
    # ------------------------------------------------------------------

    CHAPTERS_DIR: str = Field(
        "chapters",
        description="Directory (relative to the corpus root) holding chapter manuscripts",
    )

    PRDS_DIR: str = Field(
        "prds",
        description="Directory holding product-requirement documents",
    )

    ASSETS_DIR: str = Field(
        "assets",
        description="Directory holding referenced diagrams and other assets",
    )

    DOCUMENT_EXTENSIONS: Tuple[str, ...] = Field(
        (".md", ".markdown", ".txt", ".adoc"),
        description="File extensions recognized as text documents",
    )

    # ------------------------------------------------------------------
    # Rule gates
    # ------------------------------------------------------------------

    ENABLED_RULES: Tuple[str, ...] = Field(
        KNOWN_RULES,
        description="Validation rules to execute, by category name",
    )

    # ------------------------------------------------------------------
    # Rule thresholds
    # ------------------------------------------------------------------

    WORD_COUNT_MIN: int = Field(
        2500,
        ge=0,
        description="Inclusive lower word-count bound",
    )

    WORD_COUNT_MAX: int = Field(
        4000,
        ge=0,
        description="Inclusive upper word-count bound",
    )

    WORD_COUNT_ROLES: Tuple[str, ...] = Field(
        ("chapters",),
        description="Document roles subject to word-count bounds",
    )

    WORD_COUNT_OVERRIDES: Dict[str, Tuple[int, int]] = Field(
        default_factory=dict,
        description="Per-document [min, max] bounds keyed by document id",
    )

    REQUIRED_SECTION_PATTERN: str = Field(
        r"^related\s+chapters\b\s*:?",
        description="Case-insensitive regex a heading or line must start with",
    )

    REQUIRED_SECTION_LABEL: str = Field(
        "Related Chapters",
        description="Human label of the required section, used in findings",
    )

    REQUIRED_SECTION_ROLES: Tuple[str, ...] = Field(
        ("chapters",),
        description="Document roles that must carry the required section",
    )

    RECOGNIZE_CH_ABBREVIATION: bool = Field(
        True,
        description="Recognize 'Ch. N' in addition to 'Chapter N' mentions",
    )

    # ------------------------------------------------------------------
    # Resource limits
    # ------------------------------------------------------------------

    MAX_CONCURRENT_READS: int = Field(
        16,
        ge=1,
        description="Maximum number of documents read concurrently",
    )

    # ------------------------------------------------------------------
    # Entry point wiring
    # ------------------------------------------------------------------

    CORPUS_ROOT: Optional[Path] = Field(
        None,
        description="Root directory of the manuscript corpus",
    )

    MAPPING_PATH: Optional[Path] = Field(
        None,
        description="JSON or YAML file holding the canonical chapter mapping",
    )

    REPORT_PATH: Optional[Path] = Field(
        None,
        description="Where the Markdown report is written",
    )

    TASKS_PATH: Optional[Path] = Field(
        None,
        description="Where the task-list JSON is written",
    )

    # ------------------------------------------------------------------
    # Validators (Pydantic v2)
    # ------------------------------------------------------------------

    @field_validator("ENABLED_RULES")
    @classmethod
    def validate_enabled_rules(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        unknown = sorted(set(v) - set(KNOWN_RULES))
        if unknown:
            raise ValueError(
                f"Unsupported rules {unknown}. "
                f"Allowed values: {list(KNOWN_RULES)}"
            )
        return v

    @field_validator("DOCUMENT_EXTENSIONS")
    @classmethod
    def normalize_extensions(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        if not normalized:
            raise ValueError("DOCUMENT_EXTENSIONS must not be empty")
        return tuple(normalized)

    @field_validator("REQUIRED_SECTION_PATTERN")
    @classmethod
    def pattern_must_compile(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(
                f"REQUIRED_SECTION_PATTERN is not a valid regex: {exc}"
            ) from exc
        return v

    @field_validator("WORD_COUNT_MAX")
    @classmethod
    def bounds_must_be_ordered(cls, v: int, info: ValidationInfo) -> int:
        minimum = info.data.get("WORD_COUNT_MIN")
        if minimum is not None and v < minimum:
            raise ValueError(
                f"WORD_COUNT_MAX ({v}) is below WORD_COUNT_MIN ({minimum})"
            )
        return v

    @field_validator("WORD_COUNT_OVERRIDES")
    @classmethod
    def overrides_must_be_ordered(
        cls, v: Dict[str, Tuple[int, int]]
    ) -> Dict[str, Tuple[int, int]]:
        for document_id, (low, high) in v.items():
            if low < 0 or high < low:
                raise ValueError(
                    f"Invalid word-count override for '{document_id}': "
                    f"[{low}, {high}]"
                )
        return v

    @model_validator(mode="after")
    def role_dirs_must_differ(self):
        dirs = [self.CHAPTERS_DIR, self.PRDS_DIR, self.ASSETS_DIR]
        if len(set(dirs)) != len(dirs):
            raise ValueError(
                "CHAPTERS_DIR, PRDS_DIR and ASSETS_DIR must be distinct"
            )
        return self

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def word_count_bounds(self, document_id: str) -> Tuple[int, int]:
        """
        Closed [min, max] interval applicable to a document.
        """
        override = self.WORD_COUNT_OVERRIDES.get(document_id)
        if override is not None:
            return override
        return self.WORD_COUNT_MIN, self.WORD_COUNT_MAX

    def rule_enabled(self, rule: str) -> bool:
        return rule in self.ENABLED_RULES

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "AuditorConfig":
        """
        Load configuration from environment variables.

        All values are parsed once at startup and must remain immutable.
        Unset variables fall back to the field defaults.
        """

        def env_bool(name: str, default: bool) -> bool:
            raw = os.getenv(name)
            if raw is None:
                return default
            return raw.lower() in {"1", "true", "yes", "on"}

        def env_list(name: str) -> Optional[Tuple[str, ...]]:
            raw = os.getenv(name)
            if raw is None:
                return None
            return tuple(part.strip() for part in raw.split(",") if part.strip())

        def env_path(name: str) -> Optional[Path]:
            raw = os.getenv(name)
            return Path(raw) if raw else None

        values: Dict[str, object] = {
            "CHAPTERS_DIR": os.getenv("AUDITOR_CHAPTERS_DIR", "chapters"),
            "PRDS_DIR": os.getenv("AUDITOR_PRDS_DIR", "prds"),
            "ASSETS_DIR": os.getenv("AUDITOR_ASSETS_DIR", "assets"),
            "WORD_COUNT_MIN": int(os.getenv("AUDITOR_WORD_COUNT_MIN", "2500")),
            "WORD_COUNT_MAX": int(os.getenv("AUDITOR_WORD_COUNT_MAX", "4000")),
            "REQUIRED_SECTION_PATTERN": os.getenv(
                "AUDITOR_REQUIRED_SECTION_PATTERN",
                r"^related\s+chapters\b\s*:?",
            ),
            "REQUIRED_SECTION_LABEL": os.getenv(
                "AUDITOR_REQUIRED_SECTION_LABEL", "Related Chapters"
            ),
            "RECOGNIZE_CH_ABBREVIATION": env_bool(
                "AUDITOR_RECOGNIZE_CH_ABBREVIATION", True
            ),
            "MAX_CONCURRENT_READS": int(
                os.getenv("AUDITOR_MAX_CONCURRENT_READS", "16")
            ),
            "CORPUS_ROOT": env_path("AUDITOR_CORPUS_ROOT"),
            "MAPPING_PATH": env_path("AUDITOR_MAPPING_PATH"),
            "REPORT_PATH": env_path("AUDITOR_REPORT_PATH"),
            "TASKS_PATH": env_path("AUDITOR_TASKS_PATH"),
        }

        for field_name, env_name in (
            ("DOCUMENT_EXTENSIONS", "AUDITOR_DOCUMENT_EXTENSIONS"),
            ("ENABLED_RULES", "AUDITOR_ENABLED_RULES"),
            ("WORD_COUNT_ROLES", "AUDITOR_WORD_COUNT_ROLES"),
            ("REQUIRED_SECTION_ROLES", "AUDITOR_REQUIRED_SECTION_ROLES"),
        ):
            parsed = env_list(env_name)
            if parsed is not None:
                values[field_name] = parsed

        overrides_raw = os.getenv("AUDITOR_WORD_COUNT_OVERRIDES")
        if overrides_raw:
            # JSON object: {"ch00-preface": [500, 1500]}
            values["WORD_COUNT_OVERRIDES"] = {
                key: tuple(bounds)
                for key, bounds in json.loads(overrides_raw).items()
            }

        return cls(**values)

    model_config = {
        "frozen": True,
    }
