"""Byte-identical copies of transcripts taken before they are rewritten."""
from __future__ import annotations

import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from ..errors import BackupError

logger = structlog.get_logger(__name__)

BACKUP_DIR_NAME = ".backups"


def backup_path_for(path: Path, now: Optional[datetime] = None) -> Path:
    current = now or datetime.now(timezone.utc)
    stamp = current.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    return path.parent / BACKUP_DIR_NAME / f"{stamp}-{path.name}"


def create_backup(path: Path, *, now: Optional[datetime] = None) -> Path:
    """Copy ``path`` into the sibling ``.backups`` directory and return the copy."""

    path = Path(path)
    target = backup_path_for(path, now)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)
        if target.stat().st_size != path.stat().st_size:
            raise BackupError(f"Backup of {path} is incomplete: {target}")
    except OSError as exc:
        logger.error("cleanup.backup_failed", file=str(path), error=str(exc))
        raise BackupError(f"Could not back up {path}: {exc}") from exc
    logger.info("cleanup.backup_created", file=str(path), backup=str(target))
    return target


__all__ = ["BACKUP_DIR_NAME", "backup_path_for", "create_backup"]
