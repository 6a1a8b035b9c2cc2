"""Capability classification and keyword heuristics for catalog records.

All functions here are pure and total: they accept sparse or malformed data
and fall back to the documented defaults instead of raising.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from ..schema import Capabilities, Dimensions, ParameterDescriptor
from ..shard import constants as C
from ..shard.enums import ParamType


def classify_capabilities(schema: Mapping[str, ParameterDescriptor] | None) -> Capabilities:
    """Derive coarse capability flags from a normalized input schema.

    A model without any declared schema is assumed to be text-capable; an
    unknown aspect-ratio contract falls back to ``["1:1"]``.
    """
    if not schema:
        return Capabilities(
            text_to_image=True,
            supported_aspect_ratios=[C.DEFAULT_ASPECT_RATIO],
        )

    references = [p for p in schema.values() if p.accepts_reference]
    accepts_reference = bool(references)

    return Capabilities(
        text_to_image=C.PROMPT_PARAM in schema,
        image_to_image=accepts_reference,
        supports_reference_images=accepts_reference,
        supports_single_reference=accepts_reference,
        supports_multiple_references=any(p.type == ParamType.ARRAY for p in references),
        supported_aspect_ratios=supported_aspect_ratios(schema),
    )


def supported_aspect_ratios(schema: Mapping[str, ParameterDescriptor]) -> list[str]:
    aspect = schema.get(C.ASPECT_RATIO_PARAM)
    if aspect is not None and aspect.options:
        return [str(o) for o in aspect.options]
    if C.WIDTH_PARAM in schema and C.HEIGHT_PARAM in schema:
        return [C.CUSTOM_ASPECT_RATIO]
    return [C.DEFAULT_ASPECT_RATIO]


# ------------------------------ Aspect ratios -------------------------------- #


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_dimensions(aspect_ratio: str, base: int = C.BASE_DIMENSION) -> Dimensions:
    """Pixel size for ``W:H`` with the longer side pinned to ``base``."""
    try:
        w_str, h_str = aspect_ratio.split(":", 1)
        w, h = float(w_str), float(h_str)
    except (AttributeError, ValueError):
        return Dimensions(width=base, height=base)
    if w <= 0 or h <= 0:
        return Dimensions(width=base, height=base)

    if w > h:
        return Dimensions(width=base, height=max(_round_half_up(base * h / w), 1))
    if h > w:
        return Dimensions(width=max(_round_half_up(base * w / h), 1), height=base)
    return Dimensions(width=base, height=base)


def default_aspect_ratio_table() -> dict[str, Dimensions]:
    return {ratio: Dimensions(width=w, height=h) for ratio, (w, h) in C.DEFAULT_ASPECT_RATIO_TABLE.items()}


def aspect_ratio_table(schema: Mapping[str, ParameterDescriptor]) -> dict[str, Dimensions]:
    """Declared aspect ratio table used by the generation adapter.

    Enumerated ``aspect_ratio`` options get computed pixel sizes; free
    width/height models and models without any hint use the default table.
    """
    aspect = schema.get(C.ASPECT_RATIO_PARAM)
    if aspect is not None and aspect.options and not (C.WIDTH_PARAM in schema and C.HEIGHT_PARAM in schema):
        return {str(ratio): calculate_dimensions(str(ratio)) for ratio in aspect.options}
    return default_aspect_ratio_table()


# ---------------------------- Text heuristics -------------------------------- #


def _record_text(record: Mapping[str, Any]) -> tuple[str, str, list[str]]:
    name = str(record.get("name") or "").lower()
    description = str(record.get("description") or "").lower()
    tags_raw = record.get("tags") or []
    tags = [str(t).lower() for t in tags_raw] if isinstance(tags_raw, list) else []
    return name, description, tags


def is_image_generation_model(record: Mapping[str, Any]) -> bool:
    """Keyword classifier over name, description and tags.

    Name and description match by substring, tags by exact value. The deny
    list wins over the allow list.
    """
    name, description, tags = _record_text(record)

    def hit(keyword: str) -> bool:
        return keyword in name or keyword in description or keyword in tags

    if any(hit(k) for k in C.IMAGE_MODEL_DENY_KEYWORDS):
        return False
    return any(hit(k) for k in C.IMAGE_MODEL_ALLOW_KEYWORDS)


def extract_strengths(record: Mapping[str, Any]) -> list[str]:
    name, description, tags = _record_text(record)
    text = f"{name} {description} {' '.join(tags)}"
    strengths = [label for label, keywords in C.STRENGTH_KEYWORDS.items() if any(k in text for k in keywords)]
    return strengths or [C.DEFAULT_STRENGTH]


__all__ = [
    "aspect_ratio_table",
    "calculate_dimensions",
    "classify_capabilities",
    "default_aspect_ratio_table",
    "extract_strengths",
    "is_image_generation_model",
    "supported_aspect_ratios",
]
