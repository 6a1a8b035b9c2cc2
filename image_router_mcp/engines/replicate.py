from __future__ import annotations

import asyncio
import math
from collections.abc import Sequence
from typing import Any

import httpx
from loguru import logger
from pydantic import ConfigDict, Field

from ..catalog.capabilities import calculate_dimensions
from ..exceptions import (
    ConfigurationError,
    InvalidPromptError,
    ModelDoesNotAcceptReferencesError,
    NoImagesGeneratedError,
    ProviderError,
    TooManyReferenceImagesError,
)
from ..schema import Dimensions, GenerationRequest, GenerationResult, ModelDescriptor
from ..settings import get_settings, Settings
from ..shard import constants as C
from ..shard.enums import ParamType
from ..utils.error_helpers import augment_with_model_tip
from .base_engine import ImageEngine

# ----------------------------- Input building -------------------------------- #


def validate_prompt(prompt: str | None) -> str:
    if not prompt or not isinstance(prompt, str):
        raise InvalidPromptError("Prompt is required")
    if len(prompt) < C.PROMPT_MIN_LENGTH:
        raise InvalidPromptError(f"Prompt must be at least {C.PROMPT_MIN_LENGTH} characters")
    if len(prompt) > C.PROMPT_MAX_LENGTH:
        raise InvalidPromptError(f"Prompt must be less than {C.PROMPT_MAX_LENGTH} characters")
    return prompt


def resolve_dimensions(model: ModelDescriptor, aspect_ratio: str | None = None) -> Dimensions:
    """Pixel size for ``aspect_ratio`` on ``model``.

    The model's declared table wins; other ratios are computed around the
    base dimension.
    """
    ratio = aspect_ratio or C.DEFAULT_ASPECT_RATIO
    if ratio in model.aspect_ratios:
        return model.aspect_ratios[ratio]
    return calculate_dimensions(ratio)


def select_reference_field(model: ModelDescriptor, references: Sequence[str]) -> tuple[str, str | list[str]]:
    """Pick the schema field that carries ``references`` and shape the value for it.

    Array image inputs take every URL and are preferred over scalar ones. The
    text ``prompt`` field and inpainting masks never carry references.

    Raises:
        ModelDoesNotAcceptReferencesError: No field can carry a reference image.
        TooManyReferenceImagesError: Several URLs but only scalar image fields.
    """
    candidates = [
        (name, param)
        for name, param in model.input_schema.items()
        if param.accepts_reference and not param.optional_for_reference_images and name != C.PROMPT_PARAM
    ]
    if not candidates:
        raise ModelDoesNotAcceptReferencesError(model.name)

    for name, param in candidates:
        if param.type == ParamType.ARRAY:
            return name, list(references)

    name = candidates[0][0]
    if len(references) > 1:
        raise TooManyReferenceImagesError(model.name, name, len(references))
    return name, references[0]


def _accepts_aspect_ratio(model: ModelDescriptor, aspect_ratio: str) -> bool:
    param = model.input_schema.get(C.ASPECT_RATIO_PARAM)
    if param is None:
        return False
    return not param.options or aspect_ratio in [str(o) for o in param.options]


def build_input(
    model: ModelDescriptor,
    prompt: str,
    *,
    dimensions: Dimensions,
    aspect_ratio: str = C.DEFAULT_ASPECT_RATIO,
    references: Sequence[str] = (),
    negative_prompt: str | None = None,
    extra_params: dict[str, Any] | None = None,
) -> tuple[dict[str, Any], str | None]:
    """Return the provider input payload and the field references went through."""
    payload: dict[str, Any] = {
        C.PROMPT_PARAM: prompt,
        C.WIDTH_PARAM: dimensions.width,
        C.HEIGHT_PARAM: dimensions.height,
        C.NUM_OUTPUTS_PARAM: C.DEFAULT_NUM_OUTPUTS,
    }
    if _accepts_aspect_ratio(model, aspect_ratio):
        payload[C.ASPECT_RATIO_PARAM] = aspect_ratio
    payload.update(extra_params or {})

    if negative_prompt:
        payload[C.NEGATIVE_PROMPT_PARAM] = negative_prompt

    reference_field = None
    if references:
        reference_field, value = select_reference_field(model, references)
        payload[reference_field] = value
    return payload, reference_field


# ----------------------------- Output parsing -------------------------------- #


def normalize_output(output: Any) -> str | None:
    """First image URL found in a prediction output, whatever its shape."""
    if isinstance(output, str):
        return output or None
    if isinstance(output, list):
        for item in output:
            url = normalize_output(item)
            if url:
                return url
        return None
    if isinstance(output, dict):
        for key in ("url", "href", "image"):
            value = output.get(key)
            if isinstance(value, str) and value:
                return value
    return None


# --------------------------------- Engine ------------------------------------ #


def _prediction_body(response: httpx.Response) -> dict[str, Any]:
    body = response.json()
    if not isinstance(body, dict):
        raise ValueError("malformed prediction response, expected an object")
    return body


class ReplicateEngine(ImageEngine):
    """Runs predictions on Replicate-hosted models.

    Requests use the synchronous ``Prefer: wait`` mode; predictions that are
    still running when Replicate answers are polled until they settle or the
    configured timeout elapses.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = "replicate"
    api_token: str | None = None
    base_url: str = C.REPLICATE_BASE_URL
    timeout: float = C.GENERATION_TIMEOUT_SECONDS
    poll_interval: float = C.PREDICTION_POLL_INTERVAL_SECONDS
    transport: httpx.AsyncBaseTransport | None = Field(default=None, exclude=True)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ReplicateEngine:
        settings = settings or get_settings()
        return cls(
            api_token=settings.replicate_api_token,
            base_url=settings.replicate_base_url,
            timeout=settings.generation_timeout_seconds,
        )

    # HTTP client operations
    def _client(self) -> httpx.AsyncClient:
        if not self.api_token:
            raise ConfigurationError("REPLICATE_API_TOKEN environment variable must be set to generate images")
        return httpx.AsyncClient(
            base_url=self.base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {self.api_token}"},
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    async def _create_prediction(self, client: httpx.AsyncClient, model: ModelDescriptor, payload: dict[str, Any]) -> dict[str, Any]:
        response = await client.post(
            f"/models/{model.owner}/{model.id}/predictions",
            json={"input": payload},
            headers={"Prefer": C.PREDICTION_PREFER_WAIT},
        )
        response.raise_for_status()
        return _prediction_body(response)

    async def _wait_for_prediction(self, client: httpx.AsyncClient, prediction: dict[str, Any]) -> dict[str, Any]:
        polls = max(math.ceil(self.timeout / self.poll_interval), 1) if self.poll_interval > 0 else 1
        for _ in range(polls):
            status = prediction.get("status")
            get_url = (prediction.get("urls") or {}).get("get")
            if status in C.PREDICTION_TERMINAL_STATUSES or prediction.get("output") or not get_url:
                return prediction
            await asyncio.sleep(self.poll_interval)
            response = await client.get(get_url)
            response.raise_for_status()
            prediction = _prediction_body(response)
        return prediction

    async def run(self, model: ModelDescriptor, payload: dict[str, Any]) -> Any:
        """Create a prediction for ``model`` and return its raw output.

        Raises:
            ConfigurationError: If no API token is configured.
            ProviderError: On network errors, non-2xx responses or failed predictions.
        """
        try:
            async with self._client() as client:
                prediction = await self._create_prediction(client, model, payload)
                prediction = await self._wait_for_prediction(client, prediction)
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:500] if e.response.text else str(e)
            raise ProviderError(
                augment_with_model_tip(f"Replicate returned {e.response.status_code} for {model.full_name}: {detail}"),
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(augment_with_model_tip(f"Prediction request for {model.full_name} failed: {e}")) from e

        status = prediction.get("status")
        if status in C.PREDICTION_FAILED_STATUSES:
            raise ProviderError(augment_with_model_tip(f"Prediction for {model.full_name} {status}: {prediction.get('error') or 'unknown error'}"))
        return prediction.get("output")

    async def generate(self, req: GenerationRequest, model: ModelDescriptor) -> GenerationResult:
        prompt = validate_prompt(req.prompt)
        dimensions = resolve_dimensions(model, req.aspect_ratio)
        payload, reference_field = build_input(
            model,
            prompt,
            dimensions=dimensions,
            aspect_ratio=req.aspect_ratio,
            references=req.reference_images,
            negative_prompt=req.negative_prompt,
            extra_params=req.extra_params,
        )

        logger.info(f"Generating image with {model.name} ({model.full_name}) at {dimensions.size}")
        if reference_field:
            logger.info(f"Sending {len(req.reference_images)} reference image(s) via '{reference_field}'")
        logger.debug(f"Prediction input keys: {sorted(payload)}")

        output = await self.run(model, payload)
        image_url = normalize_output(output)
        if not image_url:
            raise NoImagesGeneratedError(model.full_name)

        logger.success(f"Image generated: {image_url}")
        return GenerationResult(
            image_url=image_url,
            model_id=model.id,
            full_name=model.full_name,
            prompt=prompt[: C.PROMPT_PREVIEW_LENGTH],
            negative_prompt=req.negative_prompt,
            aspect_ratio=req.aspect_ratio,
            dimensions=dimensions,
            reference_images=list(req.reference_images),
            reference_field=reference_field,
        )


__all__ = [
    "ReplicateEngine",
    "build_input",
    "normalize_output",
    "resolve_dimensions",
    "select_reference_field",
    "validate_prompt",
]
