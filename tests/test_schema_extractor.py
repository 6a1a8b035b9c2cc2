from __future__ import annotations

import pytest

from image_router_mcp.catalog.schema_extractor import detect_shape, extract_schema, is_image_param, is_mask_param
from image_router_mcp.shard.enums import ParamType, SchemaShape

INPUT_OBJECT = {
    "type": "object",
    "required": ["prompt"],
    "properties": {
        "prompt": {"type": "string", "description": "Text prompt"},
        "seed": {"type": "integer", "default": 0},
        "go_fast": {"type": "boolean", "default": False},
        "output_format": {"type": "string", "enum": ["webp", "jpg", "png"], "default": "webp"},
    },
}


@pytest.mark.parametrize(
    "raw",
    [
        None,
        [],
        "not a schema",
        42,
        {},
        {"properties": None},
        {"properties": []},
        {"openapi_schema": {"components": {"schemas": {}}}},
        {"components": {"schemas": {"Input": {"required": ["prompt"]}}}},
    ],
)
def test_extract_schema_is_total(raw):
    result = extract_schema(raw)
    assert result == {}


def test_malformed_property_is_skipped_not_fatal():
    result = extract_schema({"properties": {"prompt": {"type": "string"}, "broken": 5, "also_broken": None}})
    assert list(result) == ["prompt"]


def test_detect_shape_recognizes_all_layouts():
    openapi = {"components": {"schemas": {"Input": INPUT_OBJECT}}}
    assert detect_shape({"openapi_schema": openapi}) is SchemaShape.VERSION
    assert detect_shape(openapi) is SchemaShape.OPENAPI
    assert detect_shape(INPUT_OBJECT) is SchemaShape.OBJECT
    assert detect_shape({"foo": "bar"}) is SchemaShape.UNKNOWN
    assert detect_shape(None) is SchemaShape.UNKNOWN


def test_every_layout_reduces_to_the_same_schema():
    openapi = {"components": {"schemas": {"Input": INPUT_OBJECT}}}
    from_object = extract_schema(INPUT_OBJECT)
    assert extract_schema(openapi) == from_object
    assert extract_schema({"openapi_schema": openapi}) == from_object
    assert list(from_object) == ["prompt", "seed", "go_fast", "output_format"]


def test_required_options_and_defaults():
    schema = extract_schema(INPUT_OBJECT)

    assert schema["prompt"].required is True
    assert schema["seed"].required is False
    assert schema["output_format"].options == ["webp", "jpg", "png"]
    assert schema["output_format"].default == "webp"


def test_falsy_defaults_are_kept():
    schema = extract_schema(INPUT_OBJECT)

    assert schema["seed"].has_default and schema["seed"].default == 0
    assert schema["go_fast"].has_default and schema["go_fast"].default is False
    assert not schema["prompt"].has_default


def test_type_resolved_from_composite_members():
    schema = extract_schema(
        {
            "properties": {
                "aspect_ratio": {"allOf": [{"$ref": "#/components/schemas/aspect_ratio"}, {"type": "string"}]},
                "strength": {"anyOf": [{"type": "number"}]},
                "mystery": {"description": "no type at all"},
                "weird": {"type": "tuple"},
            }
        }
    )

    assert schema["aspect_ratio"].type is ParamType.STRING
    assert schema["strength"].type is ParamType.NUMBER
    assert schema["mystery"].type is ParamType.STRING
    assert schema["weird"].type is ParamType.STRING


def test_image_inputs_detected_by_name_format_or_description():
    schema = extract_schema(
        {
            "properties": {
                "image_input": {"type": "array"},
                "reference": {"type": "string", "format": "uri"},
                "style_ref": {"type": "string", "description": "An Image whose style is copied"},
                "steps": {"type": "integer", "description": "Denoising steps"},
            }
        }
    )

    assert schema["image_input"].is_image_input
    assert schema["reference"].is_image_input
    assert schema["reference"].format == "uri"
    assert schema["style_ref"].is_image_input
    assert not schema["steps"].is_image_input


def test_mask_detected_by_name_or_description():
    schema = extract_schema(
        {
            "properties": {
                "mask": {"type": "string"},
                "inpaint_mask_url": {"type": "string", "format": "uri"},
                "region": {"type": "string", "format": "uri", "description": "Mask for inpainting; white areas change"},
                "image": {"type": "string", "format": "uri"},
            }
        }
    )

    for name in ("mask", "inpaint_mask_url", "region"):
        assert schema[name].is_mask, name
        assert schema[name].optional_for_reference_images, name
        assert not schema[name].accepts_reference, name
    assert schema["image"].accepts_reference


def test_keyword_helpers_are_case_insensitive():
    assert is_image_param("InputImage", {})
    assert is_mask_param("MASK", {})
    assert not is_mask_param("image", {"description": "a mask"})
