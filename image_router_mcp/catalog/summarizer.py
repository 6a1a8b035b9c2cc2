"""Offline job that writes the model summary snapshot.

Fetches the live catalog with each model's README, asks an OpenAI-compatible
chat model for a decision-focused summary and stores the result as the JSON
snapshot the selection tool reads. Models whose summary cannot be produced
are skipped and counted.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import re
from datetime import datetime, timezone

import jinja2
from loguru import logger
from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from ..exceptions import ConfigurationError, ProviderError
from ..schema import ModelDescriptor, ModelSummary, SummarySnapshot
from ..settings import get_settings, Settings
from ..shard import constants as C
from ..shard.enums import CostTier
from .capabilities import classify_capabilities
from .service import build_catalog
from .snapshot import write_summary_snapshot
from .source import ReplicateCatalogSource

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_SUMMARY_TEMPLATE = jinja2.Environment(
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
).from_string(
    """
You are analyzing a Replicate AI model's README to create a concise, decision-focused summary for model selection.

**Model Information:**
Name: {{ model.name }}
Owner: {{ model.owner }}
Run Count: {{ model.run_count }}
Input Schema: {{ schema_json }}

**README Content:**
{{ readme | trim if readme else "No README available" }}

**Generate a JSON summary with these fields:**

1. **oneLinePitch** (1 sentence): the model's core value proposition and when to use it.
2. **bestFor** (array, 3-5 items): concrete use cases where this model excels.
3. **notGoodFor** (array, 2-4 items): what this model struggles with or does not support.
4. **styleStrengths** (array, 3-5 items): visual styles this model produces well.
5. **qualityProfile** (object): rate speed, detail, coherence and promptFollowing as
   "low", "moderate", "good", "very-good" or "excellent".
6. **typicalUseCase** (1-2 sentences): a concrete scenario where you would choose this model.
7. **keyParameters** (object): up to 5 main input parameters and what they do.
8. **promptingTips** (array, 2-4 items): practical advice for getting the best results.
9. **comparisonToAlternatives** (1 sentence): how it compares to similar models, if known.

**Important:**
- If the README is missing or minimal, infer from the model name, schema and run count.
- Use "unknown" or "not specified" when information is not available.

**Output only valid JSON (no markdown, no code blocks).**
"""
)


# ------------------------------ Prompt + parsing ----------------------------- #


def build_summary_prompt(model: ModelDescriptor, readme: str) -> str:
    schema = {name: param.to_public() for name, param in model.input_schema.items()}
    return _SUMMARY_TEMPLATE.render(
        model=model,
        schema_json=json.dumps(schema, indent=2, ensure_ascii=False),
        readme=readme,
    ).strip()


def parse_summary(text: str) -> ModelSummary:
    """Pull the first JSON object out of a chat reply.

    Raises:
        ValueError: When no JSON object is present or it does not parse.
    """
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise ValueError("Failed to extract JSON from response")
    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("Summary JSON is not an object")
    return ModelSummary.model_validate(data)


# ------------------------------ Derived fields ------------------------------- #


def _speed(summary: ModelSummary) -> str:
    return (summary.quality_profile.speed or C.DEFAULT_SPEED).strip().lower()


def estimate_inference_time(summary: ModelSummary) -> str:
    return C.INFERENCE_TIME_BY_SPEED.get(_speed(summary), "unknown")


def estimate_cost_tier(summary: ModelSummary) -> CostTier:
    speed = _speed(summary)
    if speed in C.FAST_SPEEDS:
        return CostTier.LOW
    if speed == C.DEFAULT_SPEED:
        return CostTier.MEDIUM
    return CostTier.HIGH


def extract_tags(model: ModelDescriptor, summary: ModelSummary) -> list[str]:
    """Tags from style strengths, quality profile and schema capabilities, order kept."""
    tags: dict[str, None] = {}
    for style in summary.style_strengths:
        tags[re.sub(r"\s+", "-", style.strip().lower())] = None

    profile = summary.quality_profile
    if _speed(summary) in C.FAST_SPEEDS:
        tags["fast"] = None
    if (profile.detail or "").strip().lower() in {"excellent", "very-good"}:
        tags["high-detail"] = None

    capabilities = classify_capabilities(model.input_schema)
    if capabilities.text_to_image:
        tags["text-to-image"] = None
    if capabilities.image_to_image:
        tags["image-to-image"] = None
    return list(tags)


def with_summary(model: ModelDescriptor, summary: ModelSummary) -> ModelDescriptor:
    return model.model_copy(
        update={
            "summary": summary,
            "tags": extract_tags(model, summary),
            "inference_time": estimate_inference_time(summary),
            "cost_tier": str(estimate_cost_tier(summary)),
        }
    )


# -------------------------------- Summarizer --------------------------------- #


class ModelSummarizer:
    """Writes one ``ModelSummary`` per model with an OpenAI-compatible chat model."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = C.DEFAULT_SUMMARY_MODEL,
        temperature: float = C.SUMMARY_TEMPERATURE,
        max_tokens: int = C.SUMMARY_MAX_TOKENS,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ModelSummarizer:
        settings = settings or get_settings()
        if not settings.use_summaries:
            raise ConfigurationError("SUMMARY_API_KEY environment variable must be set to generate model summaries")
        client = AsyncOpenAI(base_url=settings.summary_base_url, api_key=settings.summary_api_key)
        return cls(client, model=settings.summary_model)

    async def summarize(self, model: ModelDescriptor, readme: str = "") -> ModelSummary:
        """Ask the chat model for a summary of ``model``.

        Raises:
            ProviderError: If the chat completion request fails.
            ValueError: If the reply holds no usable JSON summary.
        """
        prompt = build_summary_prompt(model, readme)
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            raise ProviderError(f"Summary request for {model.full_name} failed: {e}") from e

        text = response.choices[0].message.content if response.choices else ""
        try:
            return parse_summary(text or "")
        except ValidationError as e:
            raise ValueError(f"Summary for {model.full_name} has an invalid shape: {e}") from e


async def build_snapshot(
    source: ReplicateCatalogSource,
    summarizer: ModelSummarizer,
    *,
    collection: str = C.DEFAULT_COLLECTION,
    limit: int | None = None,
) -> SummarySnapshot:
    """Fetch, summarize and assemble a snapshot; failed models are skipped."""
    fetched_at = datetime.now(timezone.utc).isoformat()
    models = build_catalog(await source.fetch_collection(collection))
    if limit is not None:
        models = models[: max(limit, 0)]
    logger.info(f"Summarizing {len(models)} models from '{collection}'")

    summarized: list[ModelDescriptor] = []
    errors = 0
    for model in models:
        logger.info(f"Analyzing {model.full_name}")
        readme = await source.fetch_readme(model.owner, model.id)
        try:
            summary = await summarizer.summarize(model, readme)
        except (ProviderError, ValueError) as e:
            logger.error(f"Error generating summary for {model.full_name}: {e}")
            errors += 1
            continue
        summarized.append(with_summary(model, summary))

    logger.info(f"Generated {len(summarized)} summaries ({errors} errors)")
    return SummarySnapshot(
        generated_at=datetime.now(timezone.utc).isoformat(),
        source_version=fetched_at,
        models=summarized,
    )


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Build the model summary snapshot")
    parser.add_argument("--output", default=settings.summary_snapshot_path, help="Snapshot path to write")
    parser.add_argument("--collection", default=settings.catalog_collection, help="Replicate collection slug")
    parser.add_argument("--limit", type=int, help="Summarize at most this many models")
    args = parser.parse_args()

    source = ReplicateCatalogSource.from_settings(settings)
    summarizer = ModelSummarizer.from_settings(settings)
    snapshot = asyncio.run(build_snapshot(source, summarizer, collection=args.collection, limit=args.limit))
    path = write_summary_snapshot(args.output, snapshot)
    logger.success(f"Model summaries saved to {path}")


__all__ = [
    "ModelSummarizer",
    "build_snapshot",
    "build_summary_prompt",
    "estimate_cost_tier",
    "estimate_inference_time",
    "extract_tags",
    "parse_summary",
    "with_summary",
]


if __name__ == "__main__":
    main()
