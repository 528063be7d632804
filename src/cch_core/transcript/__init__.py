"""Transcript package exports."""
from .blobs import TranscriptBlobAnalysis, analyze, classify_safety, detect, detect_all, find_large_transcripts
from .stream import Transcript, parse, parse_lines, serialize

__all__ = [
    "Transcript",
    "TranscriptBlobAnalysis",
    "analyze",
    "classify_safety",
    "detect",
    "detect_all",
    "find_large_transcripts",
    "parse",
    "parse_lines",
    "serialize",
]
