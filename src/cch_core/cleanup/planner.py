"""Select the blob findings a policy wants acted on."""
from __future__ import annotations

from typing import Iterable

import structlog

from ..models import BlobFinding, BlobType, RedactionPlan
from .policy import BlobPolicy

logger = structlog.get_logger(__name__)


def type_enabled(blob_type: BlobType, policy: BlobPolicy) -> bool:
    if blob_type == BlobType.IMAGE:
        return policy.remove_images
    return policy.remove_large_text


def plan(findings: Iterable[BlobFinding], policy: BlobPolicy) -> RedactionPlan:
    """Keep findings at or above the size threshold whose type is enabled.

    A policy that enables nothing or carries a negative threshold produces an
    empty plan.
    """

    if policy.min_blob_size_bytes < 0:
        logger.warning("cleanup.invalid_threshold", min_blob_size_bytes=policy.min_blob_size_bytes)
        return RedactionPlan()
    if not policy.any_type_enabled():
        logger.warning("cleanup.no_blob_types_enabled")
        return RedactionPlan()
    selected = tuple(
        finding
        for finding in findings
        if finding.blob_size_bytes >= policy.min_blob_size_bytes and type_enabled(finding.blob_type, policy)
    )
    return RedactionPlan(
        findings=selected,
        estimated_savings_bytes=sum(finding.blob_size_bytes for finding in selected),
    )


__all__ = ["plan", "type_enabled"]
