"""Apply a redaction plan to a transcript file."""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import structlog

from ..errors import CchCoreError
from ..models import BlobFinding, Record, RedactionPlan, RedactionResult
from ..transcript.blobs import detect_all
from ..transcript.stream import Transcript, parse, serialize
from ..utils.fs import atomic_write_bytes
from .backup import create_backup
from .planner import plan as build_plan
from .policy import BlobPolicy
from .sanitize import sanitize_record

logger = structlog.get_logger(__name__)

BackupFn = Callable[[Path], Path]


def apply_plan(records: Iterable[Record], plan: RedactionPlan, *, sanitize: bool) -> Tuple[List[Record], int, int]:
    """Return ``(records, removed, sanitized)`` after applying ``plan``.

    Records outside the plan are passed through unchanged and in order.
    """

    by_record: Dict[int, List[BlobFinding]] = defaultdict(list)
    for finding in plan.findings:
        by_record[finding.record_index].append(finding)
    kept: List[Record] = []
    removed = sanitized = 0
    for record in records:
        findings = by_record.get(record.index)
        if not findings:
            kept.append(record)
        elif sanitize:
            kept.append(sanitize_record(record, findings))
            sanitized += 1
        else:
            removed += 1
    return kept, removed, sanitized


def _failure(path: Path, original: int, error: str, backup_path: Optional[Path] = None) -> RedactionResult:
    return RedactionResult(
        path=path,
        original_size_bytes=original,
        new_size_bytes=original,
        backup_path=backup_path,
        success=False,
        error=error,
        dry_run=False,
    )


def execute(
    path: Path,
    transcript: Transcript,
    plan: RedactionPlan,
    policy: BlobPolicy,
    *,
    backup_path: Optional[Path] = None,
) -> RedactionResult:
    """Carry out ``plan`` on ``path``, or estimate its effect in a dry run.

    Failures are reported through ``success`` and ``error`` on the returned
    result rather than raised. A real run refuses to touch the file unless
    ``backup_path`` names an existing copy.
    """

    path = Path(path)
    original = transcript.size_bytes
    affected = len(plan.record_indices())
    if policy.dry_run:
        return RedactionResult(
            path=path,
            original_size_bytes=original,
            new_size_bytes=max(0, original - plan.estimated_savings_bytes),
            records_removed=0 if policy.sanitize else affected,
            records_sanitized=affected if policy.sanitize else 0,
            applied=plan.findings,
            backup_path=backup_path,
            dry_run=True,
        )
    if plan.is_empty():
        return RedactionResult(path=path, original_size_bytes=original, new_size_bytes=original, dry_run=False)
    if backup_path is None or not Path(backup_path).exists():
        logger.error("cleanup.backup_missing", file=str(path), backup=str(backup_path))
        return _failure(path, original, "refusing to modify transcript without a backup", backup_path)

    records, removed, sanitized = apply_plan(transcript.records, plan, sanitize=policy.sanitize)
    try:
        written = atomic_write_bytes(path, serialize(records))
    except OSError as exc:
        logger.error("cleanup.write_failed", file=str(path), error=str(exc))
        return _failure(path, original, f"Could not write {path}: {exc}", backup_path)
    logger.info(
        "cleanup.applied",
        file=str(path),
        removed=removed,
        sanitized=sanitized,
        skipped_lines=transcript.skipped_lines,
        original_bytes=original,
        new_bytes=written,
    )
    return RedactionResult(
        path=path,
        original_size_bytes=original,
        new_size_bytes=written,
        records_removed=removed,
        records_sanitized=sanitized,
        applied=plan.findings,
        backup_path=backup_path,
        dry_run=False,
    )


def clean_transcript(
    path: Path,
    policy: BlobPolicy,
    *,
    backup: BackupFn = create_backup,
    now: Optional[datetime] = None,
) -> RedactionResult:
    """Parse, detect, plan, back up and execute for a single transcript."""

    path = Path(path)
    try:
        transcript = parse(path)
    except (OSError, CchCoreError) as exc:
        logger.error("cleanup.read_failed", file=str(path), error=str(exc))
        return RedactionResult(path=path, success=False, error=str(exc), dry_run=policy.dry_run)

    findings = detect_all(transcript.records, now=now, safe_age=policy.safe_age)
    redaction_plan = build_plan(findings, policy)
    backup_path: Optional[Path] = None
    if not policy.dry_run and not redaction_plan.is_empty():
        try:
            backup_path = backup(path)
        except (OSError, CchCoreError) as exc:
            return _failure(path, transcript.size_bytes, str(exc))
    return execute(path, transcript, redaction_plan, policy, backup_path=backup_path)


def iter_clean(
    paths: Iterable[Path],
    policy: BlobPolicy,
    *,
    backup: BackupFn = create_backup,
    now: Optional[datetime] = None,
) -> Iterator[RedactionResult]:
    for path in paths:
        yield clean_transcript(path, policy, backup=backup, now=now)


__all__ = ["apply_plan", "execute", "clean_transcript", "iter_clean"]
