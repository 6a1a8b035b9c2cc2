from __future__ import annotations

import httpx
import pytest
from fastmcp.exceptions import ToolError

import image_router_mcp.main as server
from image_router_mcp.catalog.service import CatalogService
from image_router_mcp.engines import ReplicateEngine
from image_router_mcp.exceptions import CatalogFetchError
from image_router_mcp.main import (
    app,
    main,
    mcp_generate_image,
    mcp_get_model,
    mcp_list_models,
    mcp_search_models,
    mcp_select_models,
)


class _DownSource:
    async def fetch_collection(self, slug: str):
        raise CatalogFetchError("catalog offline")


@pytest.fixture
def fallback_catalog(monkeypatch):
    service = CatalogService(_DownSource(), collection="text-to-image", ttl_seconds=60)
    monkeypatch.setattr(server, "get_catalog", lambda: service)
    monkeypatch.setattr(server, "load_summary_snapshot", lambda path: [])
    return service


def test_fastmcp_app_exists():
    assert app is not None
    assert app.name == "image-router-mcp"


def test_main_function_exists():
    assert callable(main)


def test_mcp_tools_are_registered():
    assert mcp_list_models.name == "list_models"
    assert mcp_search_models.name == "search_models"
    assert mcp_get_model.name == "get_model"
    assert mcp_select_models.name == "select_models"
    assert mcp_generate_image.name == "generate_image"


@pytest.mark.asyncio
async def test_list_models_uses_fallback_when_catalog_is_down(fallback_catalog):
    result = await mcp_list_models.fn()  # type: ignore[attr-defined]

    assert result["ok"] is True
    assert result["filtered"] is False
    assert result["total"] == 5
    assert {m["id"] for m in result["models"]} >= {"flux-schnell", "flux-dev", "nano-banana"}


@pytest.mark.asyncio
async def test_list_models_filters_by_reference_count(fallback_catalog):
    single = await mcp_list_models.fn(reference_image_count=1)  # type: ignore[attr-defined]
    multi = await mcp_list_models.fn(reference_image_count=2)  # type: ignore[attr-defined]

    assert single["filtered"] is True
    assert [m["id"] for m in single["models"]] == ["flux-kontext-pro", "nano-banana"]
    assert [m["id"] for m in multi["models"]] == ["nano-banana"]


@pytest.mark.asyncio
async def test_search_models(fallback_catalog):
    result = await mcp_search_models.fn(keyword="schnell")  # type: ignore[attr-defined]
    assert [m["fullName"] for m in result["models"]] == ["black-forest-labs/flux-schnell"]


@pytest.mark.asyncio
async def test_get_model_returns_full_descriptor(fallback_catalog):
    result = await mcp_get_model.fn(model_id="black-forest-labs/flux-dev")  # type: ignore[attr-defined]

    model = result["model"]
    assert model["id"] == "flux-dev"
    assert model["aspectRatios"]["16:9"] == {"width": 1344, "height": 768}
    assert model["inputSchema"]["prompt"]["required"] is True


@pytest.mark.asyncio
async def test_get_model_miss_is_a_tool_error(fallback_catalog):
    with pytest.raises(ToolError, match="Model 'nope' not found"):
        await mcp_get_model.fn(model_id="nope")  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_select_models_scores_live_catalog_without_summaries(fallback_catalog):
    result = await mcp_select_models.fn(requirements={"preferredModel": "flux-dev", "aspectRatio": "21:9"}, limit=3)  # type: ignore[attr-defined]

    assert result["filtered"] is True
    assert result["models"][0]["id"] == "flux-dev"
    assert result["models"][0]["reasons"][0] == "User explicitly requested this model"
    assert {m["id"] for m in result["models"]} <= {"flux-dev", "flux-schnell", "stable-diffusion"}


@pytest.mark.asyncio
async def test_select_models_prefers_summary_snapshot(monkeypatch, fallback_catalog):
    summarized = [m for m in fallback_catalog.fallback_models if m.id == "nano-banana"]
    monkeypatch.setattr(server, "load_summary_snapshot", lambda path: summarized)

    result = await mcp_select_models.fn(requirements=None)  # type: ignore[attr-defined]

    assert [m["id"] for m in result["models"]] == ["nano-banana"]


@pytest.mark.asyncio
async def test_select_models_may_return_nothing(fallback_catalog):
    result = await mcp_select_models.fn(requirements={"needsReferenceImages": True, "aspectRatio": "21:9"})  # type: ignore[attr-defined]
    assert result["models"] == []
    assert result["total"] == 0


@pytest.mark.asyncio
async def test_generate_image_end_to_end(monkeypatch, fallback_catalog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"status": "succeeded", "output": "https://cdn/result.png"})

    engine = ReplicateEngine(api_token="tok", transport=httpx.MockTransport(handler))
    monkeypatch.setattr(server, "get_engine", lambda: engine)

    result = await mcp_generate_image.fn(  # type: ignore[attr-defined]
        model_id="flux-kontext-pro",
        prompt="make the sky purple",
        reference_images=["https://example.com/photo.jpg"],
    )

    assert result["ok"] is True
    assert result["imageUrl"] == "https://cdn/result.png"
    assert result["referenceField"] == "input_image"
    assert result["aspectRatio"] == "1:1"


@pytest.mark.asyncio
async def test_generate_image_reference_mismatch_is_a_tool_error(monkeypatch, fallback_catalog):
    monkeypatch.setattr(server, "get_engine", lambda: ReplicateEngine(api_token="tok"))

    with pytest.raises(ToolError, match="does not accept reference images"):
        await mcp_generate_image.fn(  # type: ignore[attr-defined]
            model_id="flux-schnell",
            prompt="a red fox",
            reference_images=["https://example.com/fox.jpg"],
        )


@pytest.mark.asyncio
async def test_unexpected_errors_are_generic_tool_errors(monkeypatch):
    def boom():
        raise RuntimeError("kaboom")

    monkeypatch.setattr(server, "get_catalog", boom)

    with pytest.raises(ToolError, match="unexpected error"):
        await mcp_list_models.fn()  # type: ignore[attr-defined]
