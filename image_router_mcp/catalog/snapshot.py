from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from ..schema import ModelDescriptor, SummarySnapshot
from .builders import with_derived_capabilities


class _SnapshotEnvelope(BaseModel):
    """Outer shape of a snapshot file; entries are validated one by one."""

    models: list[dict[str, Any]] = Field(default_factory=list)


def load_summary_snapshot(path: str | os.PathLike[str]) -> list[ModelDescriptor]:
    """Load summarized models from disk.

    Returns an empty list (with a warning) when the file is missing or is not
    a snapshot document. Entries that fail validation are skipped on their own.
    Capabilities are recomputed from each model's input schema.
    """
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        logger.warning(f"Model summaries not found at {snapshot_path}, returning empty list")
        return []

    try:
        envelope = _SnapshotEnvelope.model_validate_json(snapshot_path.read_text(encoding="utf-8"))
    except (OSError, ValidationError, ValueError) as e:
        logger.error(f"Failed to load model summaries from {snapshot_path}: {e}")
        return []

    models: list[ModelDescriptor] = []
    for index, entry in enumerate(envelope.models):
        try:
            models.append(with_derived_capabilities(ModelDescriptor.model_validate(entry)))
        except ValidationError as e:
            label = entry.get("fullName") or entry.get("id") or f"#{index}"
            logger.warning(f"Skipping summarized model {label}: {e.error_count()} invalid field(s)")
    return models


def write_summary_snapshot(path: str | os.PathLike[str], snapshot: SummarySnapshot) -> Path:
    """Write a snapshot as pretty JSON, creating parent directories."""
    snapshot_path = Path(path)
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    payload = snapshot.model_dump_json(by_alias=True, exclude_none=True, indent=2)
    snapshot_path.write_text(payload, encoding="utf-8")
    return snapshot_path.resolve()


__all__ = ["load_summary_snapshot", "write_summary_snapshot"]
