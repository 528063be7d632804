"""Typed views of the embedded payloads a transcript record can carry.

Records are free-form JSON. Before any size classification, the parts that
can hold a blob are pulled out into one of three explicit shapes:

``ImagePayload``
    A base64 image, either a ``data:image/<subtype>;base64,`` URI inside any
    string value or an image content block with a base64 ``source``.
``FilePayload``
    A base64 file body attached to a tool result (``toolUseResult.file``).
``TextPayload``
    The plain text of the message content.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Optional, Tuple, Union

import regex

from ..utils.text import utf8_size

DATA_URI_PATTERN = regex.compile(r"data:image/([A-Za-z0-9.+-]+);base64,[A-Za-z0-9+/=]+")


def estimate_decoded_size(encoded_length: int) -> int:
    """Base64 carries three bytes in every four characters."""

    return encoded_length * 3 // 4


@dataclass(frozen=True, slots=True)
class ImagePayload:
    subtype: str
    encoded_length: int

    @property
    def decoded_size(self) -> int:
        return estimate_decoded_size(self.encoded_length)


@dataclass(frozen=True, slots=True)
class FilePayload:
    file_path: Optional[str]
    encoded_length: int

    @property
    def decoded_size(self) -> int:
        return estimate_decoded_size(self.encoded_length)

    @property
    def display_name(self) -> str:
        if not self.file_path:
            return "unknown file"
        return self.file_path.rstrip("/").split("/")[-1] or self.file_path


@dataclass(frozen=True, slots=True)
class TextPayload:
    size_bytes: int
    segments: int


Payload = Union[ImagePayload, FilePayload, TextPayload]


def is_image_block(value: Any) -> bool:
    if not isinstance(value, Mapping) or value.get("type") != "image":
        return False
    source = value.get("source")
    return (
        isinstance(source, Mapping)
        and source.get("type") == "base64"
        and isinstance(source.get("data"), str)
    )


def image_block_subtype(block: Mapping[str, Any]) -> str:
    media_type = block["source"].get("media_type")
    if isinstance(media_type, str) and "/" in media_type:
        return media_type.split("/", 1)[1].upper()
    return "UNKNOWN"


def _iter_images(value: Any) -> Iterator[ImagePayload]:
    if isinstance(value, str):
        for match in DATA_URI_PATTERN.finditer(value):
            yield ImagePayload(subtype=match.group(1).upper(), encoded_length=len(match.group()))
    elif is_image_block(value):
        yield ImagePayload(subtype=image_block_subtype(value), encoded_length=len(value["source"]["data"]))
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from _iter_images(item)
    elif isinstance(value, list):
        for item in value:
            yield from _iter_images(item)


def file_payload_body(raw: Mapping[str, Any]) -> Optional[Tuple[Mapping[str, Any], str]]:
    """Return the ``toolUseResult.file`` mapping and its base64 body, if any."""

    result = raw.get("toolUseResult")
    if not isinstance(result, Mapping):
        return None
    file_info = result.get("file")
    if not isinstance(file_info, Mapping):
        return None
    body = file_info.get("base64")
    if not isinstance(body, str) or not body:
        return None
    return file_info, body


def content_of(raw: Mapping[str, Any]) -> Tuple[Optional[str], Any]:
    """Locate the message content: top-level ``content`` or ``message.content``.

    Returns ``(container_key, content)`` where ``container_key`` is ``None``
    for top-level content and ``"message"`` for nested content.
    """

    if "content" in raw:
        return None, raw["content"]
    message = raw.get("message")
    if isinstance(message, Mapping) and "content" in message:
        return "message", message["content"]
    return None, None


def text_segments(content: Any) -> List[str]:
    if isinstance(content, str):
        return [content]
    if not isinstance(content, list):
        return []
    segments: List[str] = []
    for item in content:
        if isinstance(item, str):
            segments.append(item)
        elif isinstance(item, Mapping) and item.get("type") == "text" and isinstance(item.get("text"), str):
            segments.append(item["text"])
    return segments


def extract_payloads(raw: Mapping[str, Any]) -> List[Payload]:
    payloads: List[Payload] = list(_iter_images(raw))
    found = file_payload_body(raw)
    if found is not None:
        file_info, body = found
        file_path = file_info.get("filePath")
        payloads.append(
            FilePayload(
                file_path=file_path if isinstance(file_path, str) else None,
                encoded_length=utf8_size(body),
            )
        )
    _, content = content_of(raw)
    segments = text_segments(content)
    if segments:
        payloads.append(TextPayload(size_bytes=sum(utf8_size(segment) for segment in segments), segments=len(segments)))
    return payloads


__all__ = [
    "DATA_URI_PATTERN",
    "ImagePayload",
    "FilePayload",
    "TextPayload",
    "Payload",
    "estimate_decoded_size",
    "is_image_block",
    "image_block_subtype",
    "file_payload_body",
    "content_of",
    "text_segments",
    "extract_payloads",
]
