from __future__ import annotations

# Tool descriptions used by FastMCP when registering tools. Keep short and clear.
TOOL_DESCRIPTIONS: dict[str, str] = {
    "list_models": "List available image generation models. Pass reference_image_count to keep only models able to take that many reference images.",
    "search_models": "Search models by keyword in name, description or tags.",
    "get_model": "Return full details of one model, including its input schema and aspect ratio table.",
    "select_models": "Rank models against structured requirements (references, quality, style, speed, use case, aspect ratio). Returns scores and reasons.",
    "generate_image": "Generate an image with a chosen model from a prompt and optional reference image URLs.",
}


# High-level, concise server instructions for agents.
SERVER_INSTRUCTIONS: str = (
    "Image Router MCP Server - Agent Instructions.\n"
    "Role: This server picks and runs image generation models hosted on Replicate. "
    "It exposes five tools: list_models, search_models, get_model, select_models and generate_image.\n\n"
    "Workflow (short):\n"
    "1) Turn the user's request into requirements (needsReferenceImages, minQuality, styleFocus, "
    "speedPreference, preferredModel, useCase, specialNeeds, aspectRatio).\n"
    "2) Call select_models with those requirements and pick one of the ranked candidates.\n"
    "3) Call generate_image with the chosen model id, the refined prompt and any reference image URLs.\n\n"
    "Hard rules (must follow):\n"
    "- Only send reference_images to a model whose capabilities include supportsReferenceImages.\n"
    "- Send more than one reference image only when supportsMultipleReferences is true.\n"
    "- Use an aspect ratio listed in the model's aspectRatios when possible.\n"
    "- If select_models returns no candidates, call list_models with reference_image_count "
    "(1 for a single reference, 2 for several) and choose from that list instead.\n\n"
    "Outputs and failures (summary):\n"
    "- list/search/select return {ok, models, total, filtered}; select adds score and reasons per model.\n"
    "- generate_image returns {ok, imageUrl, modelId, fullName, dimensions, aspectRatio, referenceField}.\n"
    "- Invalid requests (unknown model, too many reference images, model without image inputs, bad prompt) "
    "and provider failures surface as MCP ToolErrors with actionable messages."
)


__all__ = ["TOOL_DESCRIPTIONS", "SERVER_INSTRUCTIONS"]
