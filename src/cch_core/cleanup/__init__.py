"""Blob cleanup exports."""
from .backup import create_backup
from .executor import apply_plan, clean_transcript, execute, iter_clean
from .planner import plan
from .policy import BlobPolicy, policy_from_path
from .sanitize import sanitize_record

__all__ = [
    "BlobPolicy",
    "apply_plan",
    "clean_transcript",
    "create_backup",
    "execute",
    "iter_clean",
    "plan",
    "policy_from_path",
    "sanitize_record",
]
