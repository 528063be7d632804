"""Redaction package exports."""
from .masking import MaskedText, mask_document, mask_text
from .report import render_report

__all__ = ["MaskedText", "mask_document", "mask_text", "render_report"]
