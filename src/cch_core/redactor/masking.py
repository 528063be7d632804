"""Replace detected secrets with shape-preserving masks."""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Tuple

import regex

from ..models import DetectedSecret
from ..scanner.engine import resolve_library
from ..scanner.registry import PatternLibrary
from ..utils.checks import mask_value


@dataclass(frozen=True, slots=True)
class MaskedText:
    text: str
    count: int


def mask_text(
    text: str,
    secrets: Iterable[DetectedSecret] | None = None,
    *,
    library: PatternLibrary | None = None,
) -> MaskedText:
    """Mask every secret in ``text``.

    When ``secrets`` is given, every occurrence of each raw value is masked.
    Otherwise the rule table is applied in order, each rule scanning the text
    as already masked by the rules before it, and the whole table is re-run
    until a pass changes nothing. ``count`` is the number of replaced spans.
    """

    if secrets is not None:
        return _mask_known_values(text, secrets)
    rules = resolve_library(library)
    masked = text
    count = 0
    while True:
        masked, replaced = _mask_pass(masked, rules)
        if not replaced:
            return MaskedText(text=masked, count=count)
        count += replaced


def _mask_pass(text: str, rules: PatternLibrary) -> Tuple[str, int]:
    # Every changed span gains mask characters, so repeated passes terminate.
    masked = text
    count = 0
    for rule in rules:
        spans = [
            (match.start(), match.end(), mask_value(match.group()))
            for match in rule.iter_accepted(masked)
            if mask_value(match.group()) != match.group()
        ]
        if not spans:
            continue
        masked = _apply_spans(masked, spans)
        count += len(spans)
    return masked, count


def _apply_spans(text: str, spans: List[Tuple[int, int, str]]) -> str:
    mutated = text
    for start, end, replacement in sorted(spans, key=lambda item: item[0], reverse=True):
        mutated = mutated[:start] + replacement + mutated[end:]
    return mutated


def _mask_known_values(text: str, secrets: Iterable[DetectedSecret]) -> MaskedText:
    replacements = {secret.raw_value: secret.masked_value for secret in secrets if secret.raw_value}
    masked = text
    count = 0
    for raw_value in sorted(replacements, key=len, reverse=True):
        pattern = regex.compile(regex.escape(raw_value))
        replacement = replacements[raw_value]
        masked, replaced = pattern.subn(lambda _match: replacement, masked)
        count += replaced
    return MaskedText(text=masked, count=count)


def mask_document(document: Mapping[str, Any], *, library: PatternLibrary | None = None) -> Tuple[dict, int]:
    """Return a masked copy of a configuration document and the span count.

    History ``display`` strings and pasted ``content`` strings of every
    project are masked. The input document is not modified.
    """

    masked = copy.deepcopy(dict(document))
    total = 0
    projects = masked.get("projects")
    if not isinstance(projects, dict):
        return masked, total
    for project in projects.values():
        history = project.get("history") if isinstance(project, dict) else None
        if not isinstance(history, list):
            continue
        for entry in history:
            if not isinstance(entry, dict):
                continue
            if isinstance(entry.get("display"), str):
                result = mask_text(entry["display"], library=library)
                entry["display"] = result.text
                total += result.count
            pasted = entry.get("pastedContents")
            if not isinstance(pasted, dict):
                continue
            for paste in pasted.values():
                if isinstance(paste, dict) and isinstance(paste.get("content"), str) and paste["content"]:
                    result = mask_text(paste["content"], library=library)
                    paste["content"] = result.text
                    total += result.count
    return masked, total


__all__ = ["MaskedText", "mask_text", "mask_document"]
