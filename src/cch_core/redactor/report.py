"""Plain-text summaries of scan results."""
from __future__ import annotations

from typing import List

from ..models import ScanResult


def _category_label(category: str) -> str:
    return " ".join(word.capitalize() for word in category.split("-"))


def render_report(result: ScanResult) -> str:
    if result.total_count == 0:
        return "No secrets detected"
    lines: List[str] = [f"{result.total_count} potential secrets detected:", ""]
    for category, count in sorted(result.category_counts.items()):
        lines.append(f"  {_category_label(category)}: {count}")
    lines.append("")
    lines.append("Confidence levels:")
    lines.append(f"  High confidence: {result.high_confidence_count}")
    lines.append(f"  Medium/Low confidence: {result.total_count - result.high_confidence_count}")
    return "\n".join(lines)


__all__ = ["render_report"]
