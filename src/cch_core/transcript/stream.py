"""Newline-delimited JSON transcript parsing and serialization."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

import structlog

from ..errors import TranscriptError
from ..models import Record
from ..utils.text import to_text, utf8_size

logger = structlog.get_logger(__name__)

_TIMESTAMP_KEYS = ("timestamp", "created_at", "createdAt")
_ID_KEYS = ("id", "messageId", "uuid")


@dataclass(slots=True)
class Transcript:
    path: Optional[Path]
    records: List[Record] = field(default_factory=list)
    skipped_lines: int = 0
    size_bytes: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.name if self.path else "<memory>"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Interpret ISO-8601 strings and epoch-millisecond numbers as UTC."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def record_timestamp(raw: Mapping[str, Any]) -> Optional[datetime]:
    for key in _TIMESTAMP_KEYS:
        if raw.get(key) is not None:
            return parse_timestamp(raw[key])
    return None


def _record_role(raw: Mapping[str, Any]) -> str:
    role = raw.get("role")
    if isinstance(role, str) and role:
        return role
    message = raw.get("message")
    if isinstance(message, Mapping) and isinstance(message.get("role"), str):
        return message["role"]
    return "unknown"


def _record_id(raw: Mapping[str, Any]) -> Optional[str]:
    for key in _ID_KEYS:
        value = raw.get(key)
        if value is not None:
            return str(value)
    return None


def build_record(raw: Mapping[str, Any], index: int, line: Optional[str] = None) -> Record:
    text = line if line is not None else encode_record(raw)
    return Record(
        index=index,
        role=_record_role(raw),
        size_bytes=utf8_size(text),
        raw=raw,
        timestamp=record_timestamp(raw),
        id=_record_id(raw),
        line=line,
    )


def encode_record(raw: Mapping[str, Any]) -> str:
    return json.dumps(raw, ensure_ascii=False, separators=(",", ":"))


def parse_lines(data: str | bytes, path: Optional[Path] = None) -> Transcript:
    """Decode each non-empty line as one record.

    Lines that are not valid JSON objects are dropped and counted; parsing
    continues with the next line.
    """

    text = to_text(data)
    transcript = Transcript(path=path, size_bytes=utf8_size(text))
    for line_number, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue
        try:
            raw = json.loads(line)
        except json.JSONDecodeError as exc:
            _skip(transcript, line_number, f"invalid JSON: {exc.msg}")
            continue
        if not isinstance(raw, dict):
            _skip(transcript, line_number, f"expected an object, got {type(raw).__name__}")
            continue
        transcript.records.append(build_record(raw, len(transcript.records), line))
    return transcript


def _skip(transcript: Transcript, line_number: int, reason: str) -> None:
    transcript.skipped_lines += 1
    message = f"Skipped line {line_number} in {transcript.name}: {reason}"
    transcript.warnings.append(message)
    logger.warning("transcript.line_skipped", file=transcript.name, line=line_number, reason=reason)


def parse(path: Path) -> Transcript:
    path = Path(path)
    payload = path.read_bytes()
    try:
        return parse_lines(payload, path)
    except UnicodeDecodeError as exc:
        raise TranscriptError(f"{path} is not valid UTF-8: {exc.reason}") from exc


def serialize(records: Iterable[Record]) -> bytes:
    lines = [record.line if record.line is not None else encode_record(record.raw) for record in records]
    if not lines:
        return b""
    return ("\n".join(lines) + "\n").encode("utf-8", errors="surrogatepass")


__all__ = [
    "Transcript",
    "parse_timestamp",
    "record_timestamp",
    "build_record",
    "encode_record",
    "parse_lines",
    "parse",
    "serialize",
]
