from __future__ import annotations

import argparse
import asyncio
from functools import lru_cache
from typing import Annotated, Any, NoReturn

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from loguru import logger
from pydantic import Field

from .catalog import CatalogService
from .catalog.snapshot import load_summary_snapshot
from .engines import ReplicateEngine
from .exceptions import ImageRouterError
from .schema import GenerationRequest, ModelDescriptor, ModelListing, ModelListResponse, RequirementSpec
from .selection import select_models as rank_models
from .settings import get_settings
from .shard import constants as C
from .shard.instructions import SERVER_INSTRUCTIONS, TOOL_DESCRIPTIONS

app = FastMCP("image-router-mcp", instructions=SERVER_INSTRUCTIONS)


@lru_cache
def get_catalog() -> CatalogService:
    return CatalogService.from_settings()


@lru_cache
def get_engine() -> ReplicateEngine:
    return ReplicateEngine.from_settings()


async def _selection_pool() -> list[ModelDescriptor]:
    """Summarized models when a snapshot exists, otherwise the live catalog."""
    summarized = await asyncio.to_thread(load_summary_snapshot, get_settings().summary_snapshot_path)
    if summarized:
        return summarized
    logger.info("No model summaries available; scoring the live catalog")
    return await get_catalog().get_models()


def _listing_response(models: list[ModelDescriptor], *, filtered: bool) -> dict[str, Any]:
    listings = [ModelListing.from_descriptor(m) for m in models]
    return ModelListResponse(models=listings, total=len(listings), filtered=filtered).to_public()


def _handle_error(e: Exception) -> NoReturn:
    """Convert an exception to a ToolError for proper MCP error handling.

    Package errors carry a user-facing message; anything else is logged and
    reported generically.
    """
    if isinstance(e, ImageRouterError):
        raise ToolError(e.user_message)

    logger.error(f"Unexpected error: {type(e).__name__}: {e}")
    raise ToolError("An unexpected error occurred. Please try again.")


@app.tool(
    name="list_models",
    description=TOOL_DESCRIPTIONS["list_models"],
    annotations={
        "title": "List Models",
        "readOnlyHint": True,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def mcp_list_models(
    reference_image_count: Annotated[
        int | None,
        Field(ge=0, description="Number of reference images the model must accept (1 = single, 2+ = multiple)."),
    ] = None,
) -> dict[str, Any]:
    """Return catalog models, optionally filtered by reference image support."""
    try:
        models = await get_catalog().get_models(reference_image_count=reference_image_count)
        return _listing_response(models, filtered=bool(reference_image_count))
    except Exception as e:
        _handle_error(e)


@app.tool(
    name="search_models",
    description=TOOL_DESCRIPTIONS["search_models"],
    annotations={
        "title": "Search Models",
        "readOnlyHint": True,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def mcp_search_models(
    keyword: Annotated[str, Field(min_length=1, description="Case-insensitive keyword, e.g. 'flux' or 'anime'.")],
) -> dict[str, Any]:
    try:
        models = await get_catalog().search_models(keyword)
        return _listing_response(models, filtered=True)
    except Exception as e:
        _handle_error(e)


@app.tool(
    name="get_model",
    description=TOOL_DESCRIPTIONS["get_model"],
    annotations={
        "title": "Get Model",
        "readOnlyHint": True,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def mcp_get_model(
    model_id: Annotated[str, Field(description="Model id (e.g. 'flux-dev') or full name ('black-forest-labs/flux-dev').")],
) -> dict[str, Any]:
    try:
        model = await get_catalog().require_model(model_id)
        return {"ok": True, "model": model.to_public()}
    except Exception as e:
        _handle_error(e)


@app.tool(
    name="select_models",
    description=TOOL_DESCRIPTIONS["select_models"],
    annotations={
        "title": "Select Models",
        "readOnlyHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def mcp_select_models(
    requirements: Annotated[
        RequirementSpec | None,
        Field(description="Structured requirements extracted from the user's request."),
    ] = None,
    limit: Annotated[int, Field(ge=0, le=50, description="Maximum number of candidates to return.")] = C.DEFAULT_SELECTION_LIMIT,
) -> dict[str, Any]:
    """Rank candidate models for the given requirements.

    An empty result is a valid answer; agents retry with list_models.
    """
    try:
        spec = requirements if isinstance(requirements, RequirementSpec) else RequirementSpec.model_validate(requirements or {})
        pool = await _selection_pool()
        return rank_models(pool, spec, limit).to_public()
    except Exception as e:
        _handle_error(e)


@app.tool(
    name="generate_image",
    description=TOOL_DESCRIPTIONS["generate_image"],
    annotations={
        "title": "Generate Image",
        "readOnlyHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def mcp_generate_image(
    model_id: Annotated[str, Field(description="Model id or full name returned by list/select tools.")],
    prompt: Annotated[str, Field(description="Refined text prompt (3-2000 characters).")],
    reference_images: Annotated[
        list[str] | None,
        Field(description="Optional reference image URLs. Only for models that support reference images."),
    ] = None,
    aspect_ratio: Annotated[str | None, Field(description="Aspect ratio such as '1:1', '16:9' or '9:16'.")] = None,
    negative_prompt: Annotated[str | None, Field(description="Optional negative prompt.")] = None,
    extra_params: Annotated[
        dict[str, Any] | None,
        Field(description="Additional model-specific inputs merged into the provider payload."),
    ] = None,
) -> dict[str, Any]:
    """Generate an image with a chosen model."""
    try:
        req = GenerationRequest(
            model_id=model_id,
            prompt=prompt,
            reference_images=reference_images or [],
            aspect_ratio=aspect_ratio,
            negative_prompt=negative_prompt,
            extra_params=extra_params or {},
        )
        model = await get_catalog().require_model(req.model_id)
        result = await get_engine().generate(req, model)
        return result.to_public()
    except Exception as e:
        _handle_error(e)


def main() -> None:
    parser = argparse.ArgumentParser(description="Image Router MCP Server")
    # Only accept transports supported by FastMCP for server runs.
    parser.add_argument(
        "--transport",
        choices=["stdio", "http", "sse", "streamable-http"],
        help="Transport to use (stdio, sse, http, streamable-http). Default: stdio",
    )
    parser.add_argument("--host", help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to listen on")
    args = parser.parse_args()

    transport = args.transport
    host = args.host
    port = args.port

    logger.info(f"Starting image router MCP server on {host}:{port} with {transport} transport")

    # stdio does not accept host/port.
    http_transports = {"http", "sse", "streamable-http"}
    if transport in http_transports:
        app.run(transport=transport, host=host, port=port)
    else:
        app.run()


if __name__ == "__main__":
    main()
