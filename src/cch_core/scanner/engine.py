"""Secret scanning over arbitrary text."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from ..models import Confidence, DetectedSecret, ScanResult
from ..utils.checks import mask_value
from ..utils.text import context_window
from .patterns import default_library
from .registry import PatternLibrary


@dataclass(slots=True)
class ScannerConfig:
    enabled: Sequence[str] | None = None
    disabled: Sequence[str] | None = None
    context_before: int = 50
    context_after: int = 100


def resolve_library(
    library: PatternLibrary | None = None,
    config: ScannerConfig | None = None,
) -> PatternLibrary:
    base = library or default_library()
    if config is None:
        return base
    return base.select(config.enabled, config.disabled)


def find_secrets(
    text: str,
    location: str = "unknown",
    *,
    library: PatternLibrary | None = None,
    config: ScannerConfig | None = None,
) -> List[DetectedSecret]:
    """Return every accepted match in ``text``, deduplicated, in rule order."""

    settings = config or ScannerConfig()
    secrets: List[DetectedSecret] = []
    for rule in resolve_library(library, config):
        for match in rule.iter_accepted(text):
            value = match.group()
            secrets.append(
                DetectedSecret(
                    type=rule.name,
                    raw_value=value,
                    masked_value=mask_value(value),
                    location=location,
                    confidence=rule.confidence,
                    category=rule.category,
                    context=context_window(
                        text,
                        match.start(),
                        before=settings.context_before,
                        after=settings.context_after,
                    ),
                )
            )
    return dedupe_secrets(secrets)


def scan_text(
    text: str,
    location: str = "unknown",
    *,
    library: PatternLibrary | None = None,
    config: ScannerConfig | None = None,
) -> ScanResult:
    return summarize(find_secrets(text, location, library=library, config=config))


def dedupe_secrets(secrets: Iterable[DetectedSecret]) -> List[DetectedSecret]:
    seen: Dict[Tuple[str, str, str], DetectedSecret] = {}
    for secret in secrets:
        seen.setdefault(secret.key(), secret)
    return list(seen.values())


def summarize(secrets: Iterable[DetectedSecret]) -> ScanResult:
    ordered = dedupe_secrets(secrets)
    categories = Counter(secret.category.value for secret in ordered)
    return ScanResult(
        secrets=ordered,
        total_count=len(ordered),
        high_confidence_count=sum(1 for secret in ordered if secret.confidence == Confidence.HIGH),
        category_counts=dict(categories),
    )


def merge_results(results: Iterable[ScanResult]) -> ScanResult:
    return summarize(secret for result in results for secret in result.secrets)


__all__ = [
    "ScannerConfig",
    "resolve_library",
    "find_secrets",
    "scan_text",
    "dedupe_secrets",
    "summarize",
    "merge_results",
]
