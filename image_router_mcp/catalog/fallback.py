"""Built-in models served when the live catalog cannot be reached.

Schemas are hand-authored; capabilities are derived from them like any other
descriptor. The list is never cached or timestamped.
"""

from __future__ import annotations

from ..schema import ModelDescriptor, ParameterDescriptor as P
from ..shard.enums import ParamType
from .builders import build_descriptor

_FLUX_RATIOS: dict[str, tuple[int, int]] = {
    "1:1": (1024, 1024),
    "16:9": (1344, 768),
    "21:9": (1536, 640),
    "9:16": (768, 1344),
    "4:3": (1152, 896),
}

_PROMPT = P(type=ParamType.STRING, description="Text prompt for generation", required=True)


def _flux_aspect_ratio() -> P:
    return P(type=ParamType.STRING, description="Aspect ratio for the output", options=list(_FLUX_RATIOS), default="1:1")


def _build_fallback_models() -> tuple[ModelDescriptor, ...]:
    return (
        build_descriptor(
            id="flux-schnell",
            owner="black-forest-labs",
            name="Flux Schnell",
            description="Fast image generation with Flux",
            strengths=["fast", "general-purpose", "text-to-image"],
            aspect_ratios=_FLUX_RATIOS,
            input_schema={
                "prompt": _PROMPT,
                "aspect_ratio": _flux_aspect_ratio(),
                "num_outputs": P(type=ParamType.INTEGER, description="Number of outputs to generate", default=1),
            },
        ),
        build_descriptor(
            id="flux-dev",
            owner="black-forest-labs",
            name="Flux Dev",
            description="High quality image generation with Flux",
            strengths=["high-quality", "detailed", "photorealistic", "text-to-image"],
            aspect_ratios=_FLUX_RATIOS,
            input_schema={
                "prompt": _PROMPT,
                "aspect_ratio": _flux_aspect_ratio(),
                "guidance_scale": P(type=ParamType.NUMBER, description="Guidance scale for generation", default=3.5),
                "num_inference_steps": P(type=ParamType.INTEGER, description="Number of denoising steps", default=28),
            },
        ),
        build_descriptor(
            id="stable-diffusion",
            owner="stability-ai",
            name="Stable Diffusion",
            description="Classic stable diffusion model",
            strengths=["versatile", "general-purpose", "text-to-image"],
            aspect_ratios={"1:1": (512, 512), "16:9": (768, 432), "9:16": (432, 768)},
            input_schema={
                "prompt": _PROMPT,
                "width": P(type=ParamType.INTEGER, description="Width of the output", default=512),
                "height": P(type=ParamType.INTEGER, description="Height of the output", default=512),
                "negative_prompt": P(type=ParamType.STRING, description="Things to keep out of the output"),
            },
        ),
        build_descriptor(
            id="flux-kontext-pro",
            owner="black-forest-labs",
            name="Flux Kontext Pro",
            description="Text-guided editing of a single reference with Flux Kontext",
            strengths=["image-to-image", "high-quality"],
            input_schema={
                "prompt": _PROMPT,
                "input_image": P(type=ParamType.STRING, description="Reference to edit", format="uri", is_image_input=True),
                "aspect_ratio": P(type=ParamType.STRING, description="Aspect ratio for the output", options=["match_input_image", "1:1", "16:9", "9:16", "4:3", "3:4"], default="match_input_image"),
            },
        ),
        build_descriptor(
            id="nano-banana",
            owner="google",
            name="Nano Banana",
            description="Multi-reference generation and editing with Gemini 2.5 Flash Image",
            strengths=["image-to-image", "versatile", "text-to-image"],
            input_schema={
                "prompt": _PROMPT,
                "image_input": P(type=ParamType.ARRAY, description="References to combine or edit", format="uri", is_image_input=True),
                "aspect_ratio": P(type=ParamType.STRING, description="Aspect ratio for the output", options=["match_input_image", "1:1", "16:9", "9:16", "4:3", "3:4"], default="match_input_image"),
            },
        ),
    )


FALLBACK_MODELS: tuple[ModelDescriptor, ...] = _build_fallback_models()


__all__ = ["FALLBACK_MODELS"]
