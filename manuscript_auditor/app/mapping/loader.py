"""
Canonical mapping loader.

Accepted layouts (JSON or YAML):

    {"version": 3, "chapters": [{"number": 1, "document": "ch01-intro"}, ...]}

    {"version": 3, "chapters": {"1": "ch01-intro", "2": "ch02-basics"}}

Any structural problem in the file is fatal for the run.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Hashable
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml
from pydantic import ValidationError

from manuscript_auditor.app.errors import CorpusError
from manuscript_auditor.app.schemas.mapping import CanonicalMapping


logger = logging.getLogger(__name__)


_YAML_SUFFIXES = {".yaml", ".yml"}


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    """
    json object_pairs_hook: a repeated key is a structural error, not an
    override.
    """
    obj: Dict[str, Any] = {}
    for key, value in pairs:
        if key in obj:
            raise CorpusError(f"Duplicate key '{key}' in canonical mapping")
        obj[key] = value
    return obj


class _UniqueKeyLoader(yaml.SafeLoader):
    """
    SafeLoader that refuses mappings with repeated keys.
    """

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            seen = set()
            for key_node, _ in node.value:
                key = self.construct_object(key_node, deep=True)
                if not isinstance(key, Hashable):
                    # SafeConstructor reports unhashable keys itself
                    continue
                if key in seen:
                    raise yaml.constructor.ConstructorError(
                        "while constructing a mapping",
                        node.start_mark,
                        f"found duplicate key {key!r}",
                        key_node.start_mark,
                    )
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_canonical_mapping(raw: Any) -> CanonicalMapping:
    """
    Validate already-decoded mapping data.
    """
    if not isinstance(raw, dict):
        raise CorpusError("Canonical mapping must be an object")

    chapters = raw.get("chapters")
    if isinstance(chapters, dict):
        try:
            chapters = [
                {"number": int(number), "document": document}
                for number, document in chapters.items()
            ]
        except (TypeError, ValueError) as exc:
            raise CorpusError(f"Invalid chapter number in mapping: {exc}") from exc
        raw = {**raw, "chapters": chapters}

    try:
        return CanonicalMapping.model_validate(raw)
    except ValidationError as exc:
        raise CorpusError(f"Malformed canonical mapping: {exc}") from exc


def load_canonical_mapping(path: Path) -> CanonicalMapping:
    """
    Load and validate the canonical mapping from a JSON or YAML file.
    """
    path = Path(path)

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CorpusError(f"Cannot read canonical mapping '{path}': {exc}") from exc

    try:
        if path.suffix.lower() in _YAML_SUFFIXES:
            raw = yaml.load(text, Loader=_UniqueKeyLoader)
        else:
            raw = json.loads(text, object_pairs_hook=_reject_duplicate_keys)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise CorpusError(f"Cannot parse canonical mapping '{path}': {exc}") from exc

    mapping = parse_canonical_mapping(raw)

    logger.info(
        "Loaded canonical mapping v%d (%d chapters) from %s",
        mapping.version,
        len(mapping.chapters),
        path,
    )
    return mapping
