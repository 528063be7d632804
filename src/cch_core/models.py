"""Shared domain models used across cch-core."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SecretCategory(str, Enum):
    API_KEY = "api-key"
    TOKEN = "token"
    PASSWORD = "password"
    CREDENTIAL = "credential"
    PERSONAL = "personal"
    CRYPTO = "crypto"


class BlobType(str, Enum):
    IMAGE = "image"
    LARGE_TEXT = "large-text"
    DATA_DUMP = "data-dump"


class SafetyLevel(str, Enum):
    SAFE = "safe"
    CAUTION = "caution"


@dataclass(frozen=True, slots=True)
class DetectedSecret:
    type: str
    raw_value: str
    masked_value: str
    location: str
    confidence: Confidence
    category: SecretCategory
    context: str

    def key(self) -> Tuple[str, str, str]:
        return (self.type, self.raw_value, self.location)


@dataclass(slots=True)
class ScanResult:
    secrets: list[DetectedSecret] = field(default_factory=list)
    total_count: int = 0
    high_confidence_count: int = 0
    category_counts: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Record:
    """One decoded line of a transcript.

    ``line`` holds the original text of the line and is ``None`` for records
    rebuilt by sanitization, which are re-encoded on serialization.
    """

    index: int
    role: str
    size_bytes: int
    raw: Mapping[str, Any]
    timestamp: Optional[datetime] = None
    id: Optional[str] = None
    line: Optional[str] = None


@dataclass(frozen=True, slots=True)
class BlobFinding:
    record_index: int
    blob_type: BlobType
    blob_size_bytes: int
    blob_count: int
    description: str
    safety_level: SafetyLevel
    largest_item_bytes: int = 0
    subtypes: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RedactionPlan:
    findings: Tuple[BlobFinding, ...] = ()
    estimated_savings_bytes: int = 0

    def record_indices(self) -> frozenset[int]:
        return frozenset(finding.record_index for finding in self.findings)

    def is_empty(self) -> bool:
        return not self.findings


@dataclass(slots=True)
class RedactionResult:
    path: Optional[Path]
    original_size_bytes: int = 0
    new_size_bytes: int = 0
    records_removed: int = 0
    records_sanitized: int = 0
    applied: Tuple[BlobFinding, ...] = ()
    backup_path: Optional[Path] = None
    success: bool = True
    error: Optional[str] = None
    dry_run: bool = True

    @property
    def saved_bytes(self) -> int:
        return self.original_size_bytes - self.new_size_bytes


__all__ = [
    "Confidence",
    "SecretCategory",
    "BlobType",
    "SafetyLevel",
    "DetectedSecret",
    "ScanResult",
    "Record",
    "BlobFinding",
    "RedactionPlan",
    "RedactionResult",
]
