from __future__ import annotations

from enum import StrEnum
from typing import Self


class QualityLevel(StrEnum):
    """Five-level ordinal scale shared by requirements and quality profiles.

    Values match the vocabulary written into model summaries. Ordering is
    defined by ``constants.QUALITY_SCALE``, not by declaration order.
    """

    LOW = "low"
    MODERATE = "moderate"
    GOOD = "good"
    VERY_GOOD = "very-good"
    EXCELLENT = "excellent"

    @classmethod
    def from_str(cls, value: str | None) -> Self | None:
        if not value:
            return None
        v = value.strip().lower()
        try:
            return cls(v)  # type: ignore[arg-type]
        except ValueError:
            return None


class SpeedPreference(StrEnum):
    """Caller speed preference: ``fast`` favours quick models, ``no`` favours quality."""

    FAST = "fast"
    NO = "no"


class ParamType(StrEnum):
    """JSON-schema primitive types accepted in a parameter descriptor."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"

    @classmethod
    def coerce(cls, value: object) -> Self:
        """Map a declared type to a known member, defaulting to ``string``."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())  # type: ignore[arg-type]
            except ValueError:
                pass
        return cls.STRING  # type: ignore[return-value]


class SchemaShape(StrEnum):
    """Recognized layouts of a provider input schema.

    Values:
    - ``VERSION``: a model version object carrying ``openapi_schema``
    - ``OPENAPI``: a full OpenAPI document with ``components.schemas.Input``
    - ``OBJECT``: the input object itself (``properties`` + ``required``)
    - ``UNKNOWN``: anything else; reduces to an empty schema
    """

    VERSION = "version"
    OPENAPI = "openapi"
    OBJECT = "object"
    UNKNOWN = "unknown"


class CostTier(StrEnum):
    """Coarse cost estimate derived from a model's speed profile."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


__all__ = ["QualityLevel", "SpeedPreference", "ParamType", "SchemaShape", "CostTier"]
