"""
Corpus loader.

Reads the chapter and PRD roots of a manuscript tree into an immutable
Corpus and inventories the assets root.

AUTHORITY BOUNDARY
------------------
- This module is the sole authority for document identity.
- Documents are read one task per file, fully in parallel.
- Id uniqueness is checked only after every read has completed.
- Any structural ambiguity is fatal (CorpusError): every downstream
  rule depends on unique ids, so a partial corpus is never returned.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import anyio

from manuscript_auditor.app.config import AuditorConfig
from manuscript_auditor.app.corpus.markdown import parse_document
from manuscript_auditor.app.errors import CorpusError
from manuscript_auditor.app.schemas.corpus import Corpus, Document, DocumentRole


logger = logging.getLogger(__name__)


class CorpusLoader:
    """
    Loads a manuscript corpus from disk.

    Stateless between runs; each call to `load` produces a fresh snapshot.
    """

    def __init__(self, config: AuditorConfig):
        self._config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def load(self, root: Path) -> Corpus:
        root = Path(root)

        if not root.exists():
            raise CorpusError(f"Corpus root does not exist: {root}")
        if not root.is_dir():
            raise CorpusError(f"Corpus root is not a directory: {root}")

        sources = self._discover_sources(root)

        limiter = anyio.CapacityLimiter(self._config.MAX_CONCURRENT_READS)
        loaded: List[Optional[Document]] = [None] * len(sources)
        failures: List[Tuple[str, CorpusError]] = []

        async def _load_one(index: int, role: DocumentRole, path: Path) -> None:
            async with limiter:
                try:
                    text = await anyio.to_thread.run_sync(_read_text, path)
                except CorpusError as exc:
                    failures.append((path.as_posix(), exc))
                    return
            loaded[index] = parse_document(
                document_id=path.stem,
                role=role,
                path=path.relative_to(root).as_posix(),
                text=text,
            )

        async with anyio.create_task_group() as tg:
            for index, (role, path) in enumerate(sources):
                tg.start_soon(_load_one, index, role, path)

        if failures:
            # Deterministic: report the first failing path, not the first to finish
            raise sorted(failures, key=lambda item: item[0])[0][1]

        # --------------------------------------------------------------
        # Barrier: uniqueness is only decidable once all loads completed
        # --------------------------------------------------------------
        documents = [d for d in loaded if d is not None]
        self._enforce_unique_ids(documents)

        asset_inventory = self._inventory_assets(root)

        corpus = Corpus(
            root=root,
            documents=tuple(sorted(documents, key=lambda d: d.id)),
            asset_inventory=frozenset(asset_inventory),
        )

        logger.info(
            "Loaded corpus from %s: %d documents, %d assets",
            root,
            len(corpus.documents),
            len(corpus.asset_inventory),
        )
        return corpus

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def _discover_sources(self, root: Path) -> List[Tuple[DocumentRole, Path]]:
        roles = (
            (DocumentRole.CHAPTERS, self._config.CHAPTERS_DIR, True),
            (DocumentRole.PRDS, self._config.PRDS_DIR, False),
        )

        sources: List[Tuple[DocumentRole, Path]] = []

        for role, dirname, required in roles:
            directory = root / dirname
            if not directory.is_dir():
                if required:
                    raise CorpusError(
                        f"Required '{role.value}' directory is missing: {directory}"
                    )
                logger.warning(
                    "Optional '%s' directory is missing, treating as empty: %s",
                    role.value,
                    directory,
                )
                continue

            try:
                candidates = sorted(p for p in directory.rglob("*") if p.is_file())
            except OSError as exc:
                raise CorpusError(
                    f"Cannot read '{role.value}' directory {directory}: {exc}"
                ) from exc

            for path in candidates:
                if path.suffix.lower() not in self._config.DOCUMENT_EXTENSIONS:
                    logger.debug("Skipping non-text artifact: %s", path)
                    continue
                sources.append((role, path))

        return sources

    def _inventory_assets(self, root: Path) -> List[str]:
        assets_root = root / self._config.ASSETS_DIR
        if not assets_root.is_dir():
            logger.warning("Assets directory is missing: %s", assets_root)
            return []

        try:
            return [
                p.relative_to(assets_root).as_posix()
                for p in assets_root.rglob("*")
                if p.is_file()
            ]
        except OSError as exc:
            raise CorpusError(
                f"Cannot read assets directory {assets_root}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    @staticmethod
    def _enforce_unique_ids(documents: List[Document]) -> None:
        by_id: Dict[str, List[str]] = {}
        for document in documents:
            by_id.setdefault(document.id, []).append(document.path)

        duplicates = {k: sorted(v) for k, v in by_id.items() if len(v) > 1}
        if duplicates:
            details = "; ".join(
                f"'{doc_id}' <- {', '.join(paths)}"
                for doc_id, paths in sorted(duplicates.items())
            )
            raise CorpusError(f"Ambiguous document ids: {details}")


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise CorpusError(f"Document is not valid UTF-8: {path}") from exc
    except OSError as exc:
        raise CorpusError(f"Cannot read document {path}: {exc}") from exc
