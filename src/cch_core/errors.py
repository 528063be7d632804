"""Central exception hierarchy for cch-core."""
from __future__ import annotations


class CchCoreError(Exception):
    """Base exception for all engine failures"""


class BackupError(CchCoreError):
    """Raised when a backup copy cannot be created before a mutation"""


class TranscriptError(CchCoreError):
    """Raised when a transcript file cannot be read at all"""


class PolicyError(CchCoreError):
    """Raised when a policy file cannot be loaded or validated"""


__all__ = ["CchCoreError", "BackupError", "TranscriptError", "PolicyError"]
