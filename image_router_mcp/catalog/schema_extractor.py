"""Normalize provider input schemas into ``ParameterDescriptor`` mappings.

Replicate publishes each model version's inputs as an OpenAPI document whose
``components.schemas.Input`` object lists ``properties`` and ``required``.
Callers may hand us the version object, the OpenAPI document or the Input
object itself; every layout (including unrecognized ones) reduces to a plain
mapping. Extraction is fail-open: malformed input yields a partial or empty
result and a warning, never an exception.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from ..schema import ParameterDescriptor
from ..shard import constants as C
from ..shard.enums import SchemaShape

# Composite keywords whose members may declare the underlying primitive type.
_COMPOSITE_KEYS: tuple[str, ...] = ("allOf", "oneOf", "anyOf")


def detect_shape(raw: Any) -> SchemaShape:
    if not isinstance(raw, Mapping):
        return SchemaShape.UNKNOWN
    if isinstance(raw.get("openapi_schema"), Mapping):
        return SchemaShape.VERSION
    if isinstance(raw.get("components"), Mapping):
        return SchemaShape.OPENAPI
    if "properties" in raw:
        return SchemaShape.OBJECT
    return SchemaShape.UNKNOWN


def _input_object(raw: Any) -> Mapping[str, Any] | None:
    """Return the ``{properties, required}`` object for any recognized shape."""
    shape = detect_shape(raw)
    if shape is SchemaShape.VERSION:
        return _input_object(raw["openapi_schema"])
    if shape is SchemaShape.OPENAPI:
        schemas = raw["components"].get("schemas")
        if isinstance(schemas, Mapping) and isinstance(schemas.get("Input"), Mapping):
            return schemas["Input"]
        return None
    if shape is SchemaShape.OBJECT:
        return raw
    return None


def _resolve_type(prop: Mapping[str, Any]) -> str:
    declared = prop.get("type")
    if isinstance(declared, str) and declared:
        return declared
    for key in _COMPOSITE_KEYS:
        members = prop.get(key)
        if not isinstance(members, list):
            continue
        for member in members:
            if isinstance(member, Mapping) and isinstance(member.get("type"), str):
                return member["type"]
    return C.DEFAULT_PARAM_TYPE


def is_image_param(name: str, prop: Mapping[str, Any]) -> bool:
    description = str(prop.get("description") or "").lower()
    return C.IMAGE_KEYWORD in name.lower() or prop.get("format") == C.URI_FORMAT or C.IMAGE_KEYWORD in description


def is_mask_param(name: str, prop: Mapping[str, Any]) -> bool:
    description = str(prop.get("description") or "").lower()
    return C.MASK_KEYWORD in name.lower() or C.MASK_DESCRIPTION_KEYWORD in description


def extract_parameter(name: str, prop: Mapping[str, Any], required: set[str]) -> ParameterDescriptor:
    data: dict[str, Any] = {
        "type": _resolve_type(prop),
        "description": str(prop.get("description") or ""),
        "required": name in required,
        "is_image_input": is_image_param(name, prop),
        "is_mask": is_mask_param(name, prop),
    }
    if isinstance(prop.get("enum"), list):
        data["options"] = list(prop["enum"])
    # Presence, not truthiness: defaults of 0 / False / None are kept.
    if "default" in prop:
        data["default"] = prop["default"]
    if prop.get("format"):
        data["format"] = str(prop["format"])
    return ParameterDescriptor.model_validate(data)


def extract_schema(raw: Any) -> dict[str, ParameterDescriptor]:
    """Convert a provider schema into a flat ``name -> ParameterDescriptor`` map.

    Never raises. Unrecognized layouts and malformed entries are skipped with a
    warning so a single bad schema cannot block catalog construction.
    """
    result: dict[str, ParameterDescriptor] = {}

    obj = _input_object(raw)
    if obj is None:
        if raw is not None:
            logger.warning(f"Schema extraction degraded: unrecognized schema shape ({type(raw).__name__})")
        return result

    properties = obj.get("properties")
    if not isinstance(properties, Mapping):
        logger.warning("Schema extraction degraded: 'properties' is missing or not an object")
        return result

    required_raw = obj.get("required")
    required = {str(r) for r in required_raw} if isinstance(required_raw, list) else set()

    for name, prop in properties.items():
        if not isinstance(prop, Mapping):
            logger.warning(f"Schema extraction degraded: property '{name}' is not an object, skipping")
            continue
        try:
            result[str(name)] = extract_parameter(str(name), prop, required)
        except Exception as e:
            logger.warning(f"Schema extraction degraded: property '{name}' could not be normalized: {e}")
            continue

    return result


__all__ = ["detect_shape", "extract_parameter", "extract_schema", "is_image_param", "is_mask_param"]
