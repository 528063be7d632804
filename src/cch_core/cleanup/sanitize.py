"""Rebuild records with blob content swapped for size placeholders.

Every function here returns new containers and leaves its input untouched.
A placeholder is only substituted when it is shorter than the content it
replaces, so sanitizing never grows a record.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Tuple

import regex

from ..models import BlobFinding, BlobType, Record
from ..transcript.blobs import LARGE_TEXT_THRESHOLD_BYTES
from ..transcript.payloads import (
    DATA_URI_PATTERN,
    content_of,
    estimate_decoded_size,
    file_payload_body,
    image_block_subtype,
    is_image_block,
)
from ..transcript.stream import build_record
from ..utils.text import format_bytes, utf8_size


def image_placeholder(subtype: str, encoded_length: int) -> str:
    return f"[IMAGE REMOVED: {subtype.upper()}, ~{format_bytes(estimate_decoded_size(encoded_length))}]"


def file_placeholder(file_path: str | None, encoded_length: int) -> str:
    name = file_path or "unknown file"
    return f"[BASE64 FILE REMOVED: {name}, ~{format_bytes(estimate_decoded_size(encoded_length))}]"


def text_placeholder(size_bytes: int) -> str:
    return f"[LARGE TEXT REMOVED: {format_bytes(size_bytes)}]"


def _replace_data_uri(match: regex.Match[str]) -> str:
    placeholder = image_placeholder(match.group(1), len(match.group()))
    return placeholder if len(placeholder) < len(match.group()) else match.group()


def strip_images(value: Any) -> Any:
    if isinstance(value, str):
        return DATA_URI_PATTERN.sub(_replace_data_uri, value)
    if is_image_block(value):
        data = value["source"]["data"]
        placeholder = image_placeholder(image_block_subtype(value), len(data))
        if len(placeholder) < len(data):
            return {"type": "text", "text": placeholder}
        return value
    if isinstance(value, Mapping):
        return {key: strip_images(item) for key, item in value.items()}
    if isinstance(value, list):
        return [strip_images(item) for item in value]
    return value


def strip_file_payload(raw: Mapping[str, Any]) -> Dict[str, Any]:
    found = file_payload_body(raw)
    if found is None:
        return dict(raw)
    file_info, body = found
    file_path = file_info.get("filePath")
    placeholder = file_placeholder(file_path if isinstance(file_path, str) else None, utf8_size(body))
    if len(placeholder) >= len(body):
        return dict(raw)
    tool_result = raw["toolUseResult"]
    return {**raw, "toolUseResult": {**tool_result, "file": {**file_info, "base64": placeholder}}}


def _text_segment_sizes(content: List[Any]) -> List[Tuple[int, int]]:
    sizes: List[Tuple[int, int]] = []
    for position, item in enumerate(content):
        if isinstance(item, str):
            sizes.append((position, utf8_size(item)))
        elif isinstance(item, Mapping) and item.get("type") == "text" and isinstance(item.get("text"), str):
            sizes.append((position, utf8_size(item["text"])))
    return sizes


def _strip_text_segments(content: List[Any]) -> List[Any]:
    """Replace text segments, largest first, until the rest is under the threshold."""

    sizes = _text_segment_sizes(content)
    remaining = sum(size for _, size in sizes)
    rebuilt = list(content)
    for position, size in sorted(sizes, key=lambda item: item[1], reverse=True):
        if remaining < LARGE_TEXT_THRESHOLD_BYTES:
            break
        placeholder = text_placeholder(size)
        if len(placeholder) >= size:
            continue
        item = rebuilt[position]
        rebuilt[position] = placeholder if isinstance(item, str) else {**item, "text": placeholder}
        remaining -= size
    return rebuilt


def strip_large_text(raw: Mapping[str, Any]) -> Dict[str, Any]:
    container, content = content_of(raw)
    if isinstance(content, str):
        placeholder = text_placeholder(utf8_size(content))
        replacement: Any = placeholder if len(placeholder) < len(content) else content
    elif isinstance(content, list):
        replacement = _strip_text_segments(content)
    else:
        return dict(raw)
    if container is None:
        return {**raw, "content": replacement}
    return {**raw, container: {**raw[container], "content": replacement}}


def sanitize_record(record: Record, findings: Iterable[BlobFinding]) -> Record:
    """Return a new record with each finding's offending content replaced."""

    blob_types = {finding.blob_type for finding in findings}
    raw: Dict[str, Any] = dict(record.raw)
    if BlobType.IMAGE in blob_types:
        raw = strip_images(raw)
    if BlobType.DATA_DUMP in blob_types:
        raw = strip_file_payload(raw)
    if BlobType.LARGE_TEXT in blob_types:
        raw = strip_large_text(raw)
    return build_record(raw, record.index)


__all__ = [
    "image_placeholder",
    "file_placeholder",
    "text_placeholder",
    "strip_images",
    "strip_file_payload",
    "strip_large_text",
    "sanitize_record",
]
