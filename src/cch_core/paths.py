"""Shared filesystem path helpers for cch-core."""
from __future__ import annotations

import sys
from pathlib import Path

from platformdirs import PlatformDirs

_APP_NAME = "Claude Cache Helper"
_LINUX_APP_NAME = "cch-core"


def runtime_config_dir() -> Path:
    """Return the per-user runtime configuration directory."""
    if sys.platform in {"win32", "darwin"}:
        dirs = PlatformDirs(appname=_APP_NAME, appauthor=None, roaming=True)
    else:
        dirs = PlatformDirs(appname=_LINUX_APP_NAME, appauthor=None, roaming=False)
    return Path(dirs.user_config_path)


def default_transcripts_dir() -> Path:
    """Directory holding per-project session transcripts."""
    return Path.home() / ".claude" / "projects"


def default_config_document() -> Path:
    return Path.home() / ".claude.json"


__all__ = ["runtime_config_dir", "default_transcripts_dir", "default_config_document"]
