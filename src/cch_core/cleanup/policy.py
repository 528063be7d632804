"""Blob redaction policy schema."""
from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..errors import PolicyError
from ..utils.text import KIB


class BlobPolicy(BaseModel):
    """Which blobs to act on and how.

    Field names accept both ``snake_case`` and the ``camelCase`` spelling used
    by callers that pass the policy as a JSON record.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    remove_images: bool = True
    remove_large_text: bool = True
    min_blob_size_bytes: int = Field(default=100 * KIB, description="Ignore blobs smaller than this")
    sanitize: bool = Field(default=False, description="Replace blobs with placeholders instead of dropping records")
    dry_run: bool = Field(default=True, description="Report what would change without touching files")
    safe_age_days: float = Field(default=7, ge=0, description="Age after which a blob is considered safe to remove")

    @property
    def safe_age(self) -> timedelta:
        return timedelta(days=self.safe_age_days)

    def any_type_enabled(self) -> bool:
        return self.remove_images or self.remove_large_text


def policy_from_path(path: Path) -> BlobPolicy:
    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        if path.suffix.lower() in {".yaml", ".yml"}:
            raw = yaml.safe_load(handle)
        else:
            raw = json.load(handle)
    try:
        return BlobPolicy.model_validate(raw or {})
    except ValidationError as exc:
        raise PolicyError(f"Invalid policy in {path}: {exc}") from exc


__all__ = ["BlobPolicy", "policy_from_path"]
