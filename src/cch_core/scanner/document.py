"""Scan structured configuration documents and transcripts block by block.

A configuration document is rendered into labelled text blocks (one per
project, history entry and pasted content, plus the whole document), each
scanned independently so every finding carries a readable location. Blocks
that cannot be rendered are skipped: a malformed sub-structure contributes no
findings rather than aborting the scan.
"""
from __future__ import annotations

import json
from typing import Any, Iterable, Iterator, Mapping, Tuple

import structlog

from ..models import Record, ScanResult
from ..transcript.stream import Transcript
from .engine import ScannerConfig, find_secrets, summarize
from .registry import PatternLibrary

logger = structlog.get_logger(__name__)

GLOBAL_LOCATION = "Global Configuration"


def _render(value: Any) -> str | None:
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.debug("scan.block_unrenderable", error=str(exc))
        return None


def iter_document_blocks(document: Any) -> Iterator[Tuple[str, str]]:
    """Yield ``(location, text)`` pairs for every scannable block."""

    projects = document.get("projects") if isinstance(document, Mapping) else None
    if isinstance(projects, Mapping):
        for project_path, project in projects.items():
            if not isinstance(project, Mapping):
                continue
            rendered = _render(project)
            if rendered is not None:
                yield f"Project: {project_path}", rendered
            yield from _iter_history_blocks(project_path, project.get("history"))
    rendered = _render(document)
    if rendered is not None:
        yield GLOBAL_LOCATION, rendered


def _iter_history_blocks(project_path: str, history: Any) -> Iterator[Tuple[str, str]]:
    if not isinstance(history, list):
        return
    for number, entry in enumerate(history, start=1):
        rendered = _render(entry)
        if rendered is not None:
            yield f"{project_path} - History Entry {number}", rendered
        pasted = entry.get("pastedContents") if isinstance(entry, Mapping) else None
        if not isinstance(pasted, Mapping):
            continue
        for paste_id, paste in pasted.items():
            content = paste.get("content") if isinstance(paste, Mapping) else None
            if isinstance(content, str) and content:
                yield f"{project_path} - Pasted Content ({paste_id})", content


def scan_document(
    document: Any,
    *,
    library: PatternLibrary | None = None,
    config: ScannerConfig | None = None,
) -> ScanResult:
    secrets = []
    for location, text in iter_document_blocks(document):
        secrets.extend(find_secrets(text, location, library=library, config=config))
    result = summarize(secrets)
    logger.info("scan.document_complete", total=result.total_count, high=result.high_confidence_count)
    return result


def scan_records(
    records: Iterable[Record],
    source: str = "transcript",
    *,
    library: PatternLibrary | None = None,
    config: ScannerConfig | None = None,
) -> ScanResult:
    """Scan each transcript record's JSON text as its own block."""

    secrets = []
    for record in records:
        text = record.line if record.line is not None else _render(record.raw)
        if text is None:
            continue
        location = f"{source} (record {record.index + 1})"
        secrets.extend(find_secrets(text, location, library=library, config=config))
    return summarize(secrets)


def scan_transcript(
    transcript: Transcript,
    *,
    library: PatternLibrary | None = None,
    config: ScannerConfig | None = None,
) -> ScanResult:
    return scan_records(transcript.records, source=transcript.name, library=library, config=config)


__all__ = ["GLOBAL_LOCATION", "iter_document_blocks", "scan_document", "scan_records", "scan_transcript"]
