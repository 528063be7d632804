"""Configuration loading utilities for cch-core."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .cleanup.policy import BlobPolicy
from .paths import runtime_config_dir
from .scanner.engine import ScannerConfig
from .utils.text import MIB


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Logging verbosity level")
    json_lines: bool = Field(default=True, description="Emit JSON lines instead of console text")

    def normalized_level(self) -> str:
        return self.level.upper()


class ScannerSettings(BaseModel):
    enabled_rules: Optional[List[str]] = Field(default=None, description="Rule names or category:<name> to run")
    disabled_rules: List[str] = Field(default_factory=list)
    context_before: int = Field(default=50, ge=0)
    context_after: int = Field(default=100, ge=0)

    def to_scanner_config(self) -> ScannerConfig:
        return ScannerConfig(
            enabled=self.enabled_rules,
            disabled=self.disabled_rules,
            context_before=self.context_before,
            context_after=self.context_after,
        )


class CleanupConfig(BaseModel):
    policy: BlobPolicy = Field(default_factory=BlobPolicy)
    large_transcript_threshold_mb: float = Field(default=5, ge=0)

    @property
    def large_transcript_threshold_bytes(self) -> int:
        return int(self.large_transcript_threshold_mb * MIB)


class AppConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    scanner: ScannerSettings = Field(default_factory=ScannerSettings)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)


DEFAULT_CONFIG = AppConfig()


def config_search_paths(explicit: Optional[Path] = None) -> Iterable[Path]:
    if explicit:
        yield explicit
    yield Path.cwd() / ".cch" / "config.yaml"
    yield runtime_config_dir() / "config.yaml"


def load_config(path: Optional[Path] = None) -> AppConfig:
    for candidate in config_search_paths(path):
        if candidate.is_file():
            with candidate.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
            try:
                return AppConfig.model_validate(data)
            except ValidationError as exc:
                raise ValueError(f"Invalid configuration in {candidate}: {exc}") from exc
    return DEFAULT_CONFIG.model_copy(deep=True)


def dump_default_config(target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(DEFAULT_CONFIG.model_dump(mode="json"), handle, sort_keys=False)


__all__ = [
    "AppConfig",
    "CleanupConfig",
    "LoggingConfig",
    "ScannerSettings",
    "DEFAULT_CONFIG",
    "config_search_paths",
    "load_config",
    "dump_default_config",
]
