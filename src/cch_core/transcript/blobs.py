"""Blob detection and per-transcript analysis."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, List, Optional

import structlog

from ..models import BlobFinding, BlobType, Record, SafetyLevel
from ..utils.text import KIB, MIB, format_bytes
from .payloads import FilePayload, ImagePayload, TextPayload, extract_payloads
from .stream import Transcript

logger = structlog.get_logger(__name__)

IMAGE_THRESHOLD_BYTES = 100 * KIB
DATA_DUMP_THRESHOLD_BYTES = 100 * KIB
LARGE_TEXT_THRESHOLD_BYTES = 1 * MIB
DEFAULT_SAFE_AGE = timedelta(days=7)


def _aware(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def classify_safety(
    record: Record,
    *,
    now: Optional[datetime] = None,
    safe_age: timedelta = DEFAULT_SAFE_AGE,
) -> SafetyLevel:
    """``safe`` only when the record is known to be older than ``safe_age``."""

    if record.timestamp is None:
        return SafetyLevel.CAUTION
    current = _aware(now)
    if current - record.timestamp > safe_age:
        return SafetyLevel.SAFE
    return SafetyLevel.CAUTION


def _image_finding(record: Record, images: List[ImagePayload], safety: SafetyLevel) -> Optional[BlobFinding]:
    if not images:
        return None
    sizes = [image.decoded_size for image in images]
    total = sum(sizes)
    if total < IMAGE_THRESHOLD_BYTES:
        return None
    subtypes = tuple(dict.fromkeys(image.subtype for image in images))
    return BlobFinding(
        record_index=record.index,
        blob_type=BlobType.IMAGE,
        blob_size_bytes=total,
        blob_count=len(images),
        description=f"{len(images)} image(s) [{', '.join(subtypes)}] (~{format_bytes(total)})",
        safety_level=safety,
        largest_item_bytes=max(sizes),
        subtypes=subtypes,
    )


def _file_finding(record: Record, payload: FilePayload, safety: SafetyLevel) -> Optional[BlobFinding]:
    size = payload.decoded_size
    if size < DATA_DUMP_THRESHOLD_BYTES:
        return None
    return BlobFinding(
        record_index=record.index,
        blob_type=BlobType.DATA_DUMP,
        blob_size_bytes=size,
        blob_count=1,
        description=f"Base64 file [{payload.display_name}] (~{format_bytes(size)})",
        safety_level=safety,
        largest_item_bytes=size,
    )


def _text_finding(record: Record, payload: TextPayload, safety: SafetyLevel) -> Optional[BlobFinding]:
    if payload.size_bytes < LARGE_TEXT_THRESHOLD_BYTES:
        return None
    return BlobFinding(
        record_index=record.index,
        blob_type=BlobType.LARGE_TEXT,
        blob_size_bytes=payload.size_bytes,
        blob_count=1,
        description=f"Large text output ({format_bytes(payload.size_bytes)})",
        safety_level=safety,
        largest_item_bytes=payload.size_bytes,
    )


def detect(
    record: Record,
    *,
    now: Optional[datetime] = None,
    safe_age: timedelta = DEFAULT_SAFE_AGE,
) -> List[BlobFinding]:
    """Return up to one finding per blob type for ``record``."""

    safety = classify_safety(record, now=now, safe_age=safe_age)
    images: List[ImagePayload] = []
    files: List[FilePayload] = []
    texts: List[TextPayload] = []
    for payload in extract_payloads(record.raw):
        if isinstance(payload, ImagePayload):
            images.append(payload)
        elif isinstance(payload, FilePayload):
            files.append(payload)
        elif isinstance(payload, TextPayload):
            texts.append(payload)
        else:  # pragma: no cover - exhaustive over Payload
            raise TypeError(f"Unsupported payload: {type(payload).__name__}")
    candidates: List[Optional[BlobFinding]] = [_image_finding(record, images, safety)]
    candidates.extend(_file_finding(record, payload, safety) for payload in files)
    candidates.extend(_text_finding(record, payload, safety) for payload in texts)
    return [finding for finding in candidates if finding is not None]


def detect_all(
    records: Iterable[Record],
    *,
    now: Optional[datetime] = None,
    safe_age: timedelta = DEFAULT_SAFE_AGE,
) -> List[BlobFinding]:
    current = _aware(now)
    findings: List[BlobFinding] = []
    for record in records:
        findings.extend(detect(record, now=current, safe_age=safe_age))
    return findings


@dataclass(slots=True)
class TranscriptBlobAnalysis:
    path: Optional[Path]
    total_records: int
    total_size_bytes: int
    skipped_lines: int = 0
    findings: List[BlobFinding] = field(default_factory=list)

    @property
    def potential_savings_bytes(self) -> int:
        return sum(finding.blob_size_bytes for finding in self.findings)

    @property
    def blob_percentage(self) -> float:
        if self.total_size_bytes <= 0:
            return 0.0
        return self.potential_savings_bytes / self.total_size_bytes * 100

    def by_type(self, blob_type: BlobType) -> List[BlobFinding]:
        return [finding for finding in self.findings if finding.blob_type == blob_type]

    def by_safety(self, level: SafetyLevel) -> List[BlobFinding]:
        return [finding for finding in self.findings if finding.safety_level == level]


def analyze(
    transcript: Transcript,
    *,
    now: Optional[datetime] = None,
    safe_age: timedelta = DEFAULT_SAFE_AGE,
) -> TranscriptBlobAnalysis:
    findings = detect_all(transcript.records, now=now, safe_age=safe_age)
    logger.debug("blobs.analyzed", file=transcript.name, records=len(transcript.records), findings=len(findings))
    return TranscriptBlobAnalysis(
        path=transcript.path,
        total_records=len(transcript.records),
        total_size_bytes=transcript.size_bytes,
        skipped_lines=transcript.skipped_lines,
        findings=findings,
    )


def find_large_transcripts(directory: Path, threshold_bytes: int = 5 * MIB) -> List[Path]:
    """List ``*.jsonl`` files directly under ``directory`` above ``threshold_bytes``."""

    directory = Path(directory)
    large: List[Path] = []
    try:
        candidates = sorted(directory.glob("*.jsonl"))
    except OSError as exc:
        logger.warning("blobs.directory_unreadable", directory=str(directory), error=str(exc))
        return large
    for candidate in candidates:
        try:
            size = candidate.stat().st_size
        except OSError as exc:
            logger.warning("blobs.stat_failed", file=str(candidate), error=str(exc))
            continue
        if candidate.is_file() and size > threshold_bytes:
            large.append(candidate)
    return large


__all__ = [
    "IMAGE_THRESHOLD_BYTES",
    "DATA_DUMP_THRESHOLD_BYTES",
    "LARGE_TEXT_THRESHOLD_BYTES",
    "DEFAULT_SAFE_AGE",
    "TranscriptBlobAnalysis",
    "classify_safety",
    "detect",
    "detect_all",
    "analyze",
    "find_large_transcripts",
]
