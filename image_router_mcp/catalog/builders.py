from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..schema import ModelDescriptor, ParameterDescriptor
from .capabilities import aspect_ratio_table, classify_capabilities, extract_strengths
from .schema_extractor import extract_schema


def _owner_and_name(record: Mapping[str, Any]) -> tuple[str, str]:
    """Resolve ``owner/name`` from the version's model URL, the model URL, or the record."""
    version = record.get("latest_version")
    model_url = ""
    if isinstance(version, Mapping) and isinstance(version.get("model"), str):
        model_url = version["model"]
    elif isinstance(record.get("url"), str):
        model_url = record["url"]

    parts = [p for p in model_url.split("/") if p]
    owner = parts[-2] if len(parts) >= 2 else str(record.get("owner") or "unknown")
    name = parts[-1] if parts else str(record.get("name") or "unknown")
    return owner, name


def descriptor_from_record(record: Mapping[str, Any]) -> ModelDescriptor:
    """Build a descriptor from a raw catalog record (Replicate model JSON)."""
    owner, name = _owner_and_name(record)
    input_schema = extract_schema(record.get("latest_version"))

    return ModelDescriptor(
        id=name,
        owner=owner,
        full_name=f"{owner}/{name}",
        display_name=str(record.get("name") or name),
        description=str(record.get("description") or ""),
        run_count=record.get("run_count") or 0,
        is_official=record.get("is_official") is True,
        tags=record.get("tags") or [],
        input_schema=input_schema,
        capabilities=classify_capabilities(input_schema),
        aspect_ratios=aspect_ratio_table(input_schema),
        strengths=extract_strengths(record),
        url=record.get("url") if isinstance(record.get("url"), str) else None,
        cover_image_url=record.get("cover_image_url") if isinstance(record.get("cover_image_url"), str) else None,
    )


def build_descriptor(
    *,
    id: str,
    owner: str,
    name: str,
    description: str,
    input_schema: Mapping[str, ParameterDescriptor],
    strengths: list[str],
    aspect_ratios: Mapping[str, tuple[int, int]] | None = None,
    run_count: int = 0,
    tags: list[str] | None = None,
) -> ModelDescriptor:
    """Assemble a hand-authored descriptor; capabilities are still derived."""
    schema = dict(input_schema)
    table = {ratio: {"width": w, "height": h} for ratio, (w, h) in aspect_ratios.items()} if aspect_ratios else aspect_ratio_table(schema)
    return ModelDescriptor(
        id=id,
        owner=owner,
        full_name=f"{owner}/{id}",
        display_name=name,
        description=description,
        run_count=run_count,
        is_official=True,
        tags=tags or [],
        input_schema=schema,
        capabilities=classify_capabilities(schema),
        aspect_ratios=table,
        strengths=strengths,
    )


def with_derived_capabilities(model: ModelDescriptor) -> ModelDescriptor:
    """Recompute schema-derived fields of a descriptor loaded from storage."""
    update: dict[str, Any] = {"capabilities": classify_capabilities(model.input_schema)}
    if not model.aspect_ratios:
        update["aspect_ratios"] = aspect_ratio_table(model.input_schema)
    return model.model_copy(update=update)


__all__ = ["build_descriptor", "descriptor_from_record", "with_derived_capabilities"]
