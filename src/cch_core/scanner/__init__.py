"""Scanner package exports."""
from .document import scan_document, scan_records, scan_transcript
from .engine import ScannerConfig, find_secrets, merge_results, scan_text, summarize
from .patterns import default_library
from .registry import DetectionRule, PatternLibrary

__all__ = [
    "ScannerConfig",
    "DetectionRule",
    "PatternLibrary",
    "default_library",
    "find_secrets",
    "merge_results",
    "scan_document",
    "scan_records",
    "scan_text",
    "scan_transcript",
    "summarize",
]
