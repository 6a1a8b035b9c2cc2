"""Project constants for catalog construction, model scoring and generation.

This module centralizes keyword lists, defaults and scoring weights shared by
the catalog, the requirement scorer and the generation adapter. Keep these
values data-only; the heuristics that consume them live next to their callers
so they can be unit-tested without network access.
"""

from __future__ import annotations

from typing import Final

from .enums import QualityLevel

# ------------------------------ Replicate API ------------------------------- #

REPLICATE_BASE_URL: Final[str] = "https://api.replicate.com/v1"

# Collection the live catalog is built from.
DEFAULT_COLLECTION: Final[str] = "text-to-image"

# ------------------------------ Catalog cache ------------------------------- #

CATALOG_TTL_SECONDS: Final[float] = 3600.0

# Short on purpose: a slow catalog must fall back quickly.
CATALOG_TIMEOUT_SECONDS: Final[float] = 10.0

GENERATION_TIMEOUT_SECONDS: Final[float] = 120.0

DEFAULT_SUMMARY_SNAPSHOT_PATH: Final[str] = "storage/model-summaries.json"

# --------------------------- Summary generation ----------------------------- #

DEFAULT_SUMMARY_BASE_URL: Final[str] = "https://openrouter.ai/api/v1"
DEFAULT_SUMMARY_MODEL: Final[str] = "google/gemini-2.5-flash"
SUMMARY_TEMPERATURE: Final[float] = 0.3
SUMMARY_MAX_TOKENS: Final[int] = 2048

# ------------------------ Image-model text classifier ----------------------- #

# Checked first; any hit rejects the record.
IMAGE_MODEL_DENY_KEYWORDS: Final[tuple[str, ...]] = (
    "upscale",
    "super-resolution",
    "video",
    "audio",
    "music",
    "speech",
    "text-only",
    "captioning",
    "detection",
    "segmentation",
    "classification",
    "face-swap",
)

IMAGE_MODEL_ALLOW_KEYWORDS: Final[tuple[str, ...]] = (
    "image",
    "text-to-image",
    "generation",
    "diffusion",
    "flux",
    "stable-diffusion",
    "sdxl",
    "dalle",
    "midjourney",
    "art",
    "picture",
    "photo",
)

# Strength label -> keywords found in name/description/tags.
STRENGTH_KEYWORDS: Final[dict[str, tuple[str, ...]]] = {
    "fast": ("fast", "quick", "speed", "schnell", "turbo"),
    "high-quality": ("quality", "detailed", "professional", "pro", "hd", "ultra"),
    "photorealistic": ("photo", "realistic", "photorealistic", "real"),
    "anime": ("anime", "manga", "japanese"),
    "artistic": ("art", "artistic", "creative", "painting"),
    "3d": ("3d", "render", "cgi"),
    "versatile": ("versatile", "general", "multipurpose"),
    "text-to-image": ("text-to-image", "txt2img"),
    "image-to-image": ("image-to-image", "img2img", "transformation"),
}
DEFAULT_STRENGTH: Final[str] = "general-purpose"

# --------------------------- Schema parameter names -------------------------- #

PROMPT_PARAM: Final[str] = "prompt"
NEGATIVE_PROMPT_PARAM: Final[str] = "negative_prompt"
ASPECT_RATIO_PARAM: Final[str] = "aspect_ratio"
WIDTH_PARAM: Final[str] = "width"
HEIGHT_PARAM: Final[str] = "height"
NUM_OUTPUTS_PARAM: Final[str] = "num_outputs"

IMAGE_KEYWORD: Final[str] = "image"
URI_FORMAT: Final[str] = "uri"
MASK_KEYWORD: Final[str] = "mask"
MASK_DESCRIPTION_KEYWORD: Final[str] = "mask for inpainting"
DEFAULT_PARAM_TYPE: Final[str] = "string"

# ------------------------------- Aspect ratios ------------------------------- #

DEFAULT_ASPECT_RATIO: Final[str] = "1:1"
CUSTOM_ASPECT_RATIO: Final[str] = "custom"
BASE_DIMENSION: Final[int] = 1024

DEFAULT_ASPECT_RATIO_TABLE: Final[dict[str, tuple[int, int]]] = {
    "1:1": (1024, 1024),
    "16:9": (1344, 768),
    "21:9": (1536, 640),
    "9:16": (768, 1344),
    "4:3": (1152, 896),
}

# --------------------------------- Scoring ----------------------------------- #

DEFAULT_SELECTION_LIMIT: Final[int] = 5

QUALITY_SCALE: Final[dict[str, int]] = {
    QualityLevel.LOW: 1,
    QualityLevel.MODERATE: 2,
    QualityLevel.GOOD: 3,
    QualityLevel.VERY_GOOD: 4,
    QualityLevel.EXCELLENT: 5,
}
# Level used when a quality value is missing or unrecognised.
NEUTRAL_QUALITY_LEVEL: Final[int] = 3

FAST_SPEEDS: Final[frozenset[str]] = frozenset({"very-fast", "fast"})
SLOW_SPEEDS: Final[frozenset[str]] = frozenset({"very-slow", "slow"})
DEFAULT_SPEED: Final[str] = "moderate"

POPULARITY_WEIGHT: Final[float] = 20.0
PREFERRED_MODEL_BONUS: Final[float] = 100.0
REFERENCE_SUPPORTED_BONUS: Final[float] = 30.0
REFERENCE_MISSING_PENALTY: Final[float] = -50.0
TEXT_TO_IMAGE_BONUS: Final[float] = 10.0
STYLE_MATCH_BONUS: Final[float] = 15.0
STYLE_MISMATCH_PENALTY: Final[float] = -10.0
QUALITY_MET_BONUS: Final[float] = 10.0
QUALITY_MISSED_PENALTY: Final[float] = -20.0
PROMPT_FOLLOWING_BONUS: Final[float] = 5.0
FAST_SPEED_BONUS: Final[float] = 15.0
SLOW_SPEED_PENALTY: Final[float] = -10.0
QUALITY_PRIORITY_SPEED_PENALTY: Final[float] = -5.0
USE_CASE_MATCH_BONUS: Final[float] = 20.0
USE_CASE_MISMATCH_PENALTY: Final[float] = -30.0
ASPECT_RATIO_EXACT_BONUS: Final[float] = 5.0
ASPECT_RATIO_CUSTOM_BONUS: Final[float] = 3.0
ASPECT_RATIO_MISSING_PENALTY: Final[float] = -5.0
SPECIAL_NEED_BONUS: Final[float] = 10.0

# ------------------------------- Generation ---------------------------------- #

PROMPT_MIN_LENGTH: Final[int] = 3
PROMPT_MAX_LENGTH: Final[int] = 2000
PROMPT_PREVIEW_LENGTH: Final[int] = 200
DEFAULT_NUM_OUTPUTS: Final[int] = 1

# Speed label -> rough inference time, used by the snapshot builder.
INFERENCE_TIME_BY_SPEED: Final[dict[str, str]] = {
    "very-fast": "1-3s",
    "fast": "3-8s",
    "moderate": "8-15s",
    "slow": "15-30s",
    "very-slow": "30s+",
}

# ------------------------------- Error codes --------------------------------- #

ERROR_CODE_VALIDATION: Final[str] = "validation_error"
ERROR_CODE_MODEL_NOT_FOUND: Final[str] = "model_not_found"
ERROR_CODE_CONFIGURATION: Final[str] = "configuration_error"
ERROR_CODE_PROVIDER_ERROR: Final[str] = "provider_error"
ERROR_CODE_CATALOG_FETCH_FAILED: Final[str] = "catalog_fetch_failed"
ERROR_CODE_NO_IMAGES: Final[str] = "no_images_generated"

# ------------------------------- Predictions --------------------------------- #

# Prefer header value; Replicate holds the request open until the prediction settles.
PREDICTION_PREFER_WAIT: Final[str] = "wait"
PREDICTION_POLL_INTERVAL_SECONDS: Final[float] = 1.0
PREDICTION_TERMINAL_STATUSES: Final[frozenset[str]] = frozenset({"succeeded", "failed", "canceled"})
PREDICTION_FAILED_STATUSES: Final[frozenset[str]] = frozenset({"failed", "canceled"})
