from __future__ import annotations

import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from image_router_mcp.catalog.fallback import FALLBACK_MODELS
from image_router_mcp.catalog.snapshot import load_summary_snapshot, write_summary_snapshot
from image_router_mcp.catalog.summarizer import (
    build_snapshot,
    build_summary_prompt,
    estimate_cost_tier,
    estimate_inference_time,
    extract_tags,
    ModelSummarizer,
    parse_summary,
    with_summary,
)
from image_router_mcp.exceptions import ConfigurationError, ProviderError
from image_router_mcp.schema import ModelSummary, QualityProfile
from image_router_mcp.settings import Settings
from image_router_mcp.shard.enums import CostTier

MODELS = {m.id: m for m in FALLBACK_MODELS}

SUMMARY_JSON = {
    "oneLinePitch": "Fast drafts",
    "bestFor": ["Quick prototyping"],
    "notGoodFor": ["Fine detail"],
    "styleStrengths": ["Digital Art", "Photorealistic"],
    "qualityProfile": {"speed": "very-fast", "detail": "good", "coherence": "good", "promptFollowing": "very-good"},
    "typicalUseCase": "Storyboards",
    "keyParameters": {"num_outputs": "How many images"},
    "promptingTips": ["Keep it short"],
}


class _Completions:
    def __init__(self, reply: str | None = None, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.reply))])


def _client(completions: _Completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_parse_summary_strips_surrounding_text():
    text = "Here you go:\n```json\n" + json.dumps(SUMMARY_JSON) + "\n```"
    summary = parse_summary(text)

    assert summary.one_line_pitch == "Fast drafts"
    assert summary.quality_profile.prompt_following == "very-good"
    assert summary.key_parameters == {"num_outputs": "How many images"}


@pytest.mark.parametrize("text", ["", "no json here", "{not json}", "[1, 2]"])
def test_parse_summary_rejects_bad_replies(text):
    with pytest.raises(ValueError):
        parse_summary(text)


@pytest.mark.parametrize(
    ("speed", "time", "tier"),
    [
        ("very-fast", "1-3s", CostTier.LOW),
        ("fast", "3-8s", CostTier.LOW),
        (None, "8-15s", CostTier.MEDIUM),
        ("slow", "15-30s", CostTier.HIGH),
        ("glacial", "unknown", CostTier.HIGH),
    ],
)
def test_inference_time_and_cost_tier(speed, time, tier):
    summary = ModelSummary(quality_profile=QualityProfile(speed=speed))
    assert estimate_inference_time(summary) == time
    assert estimate_cost_tier(summary) is tier


def test_extract_tags():
    summary = ModelSummary.model_validate(SUMMARY_JSON | {"qualityProfile": {"speed": "fast", "detail": "excellent"}})

    assert extract_tags(MODELS["flux-kontext-pro"], summary) == [
        "digital-art",
        "photorealistic",
        "fast",
        "high-detail",
        "text-to-image",
        "image-to-image",
    ]


def test_with_summary_sets_derived_fields():
    model = with_summary(MODELS["flux-schnell"], parse_summary(json.dumps(SUMMARY_JSON)))

    assert model.summary is not None
    assert model.inference_time == "1-3s"
    assert model.cost_tier == "low"
    assert "fast" in model.tags
    assert MODELS["flux-schnell"].summary is None


def test_build_summary_prompt_mentions_model_and_schema():
    prompt = build_summary_prompt(MODELS["nano-banana"], "")

    assert "Name: Nano Banana" in prompt
    assert "Owner: google" in prompt
    assert '"image_input"' in prompt
    assert "No README available" in prompt
    assert "oneLinePitch" in prompt


@pytest.mark.asyncio
async def test_summarizer_calls_chat_completions():
    completions = _Completions(reply=json.dumps(SUMMARY_JSON))
    summarizer = ModelSummarizer(_client(completions), model="test/model", temperature=0.1, max_tokens=99)

    summary = await summarizer.summarize(MODELS["flux-dev"], "# Flux Dev")

    call = completions.calls[0]
    assert call["model"] == "test/model"
    assert call["temperature"] == 0.1
    assert call["max_tokens"] == 99
    assert "# Flux Dev" in call["messages"][0]["content"]
    assert summary.style_strengths == ["Digital Art", "Photorealistic"]


@pytest.mark.asyncio
async def test_summarizer_wraps_client_errors():
    summarizer = ModelSummarizer(_client(_Completions(error=OpenAIError("rate limited"))))

    with pytest.raises(ProviderError, match="rate limited"):
        await summarizer.summarize(MODELS["flux-dev"])


@pytest.mark.asyncio
async def test_summarizer_rejects_invalid_shape():
    reply = json.dumps({"qualityProfile": "fast"})
    summarizer = ModelSummarizer(_client(_Completions(reply=reply)))

    with pytest.raises(ValueError):
        await summarizer.summarize(MODELS["flux-dev"])


def test_summarizer_requires_api_key():
    with pytest.raises(ConfigurationError):
        ModelSummarizer.from_settings(Settings(summary_api_key=None))


class _Source:
    def __init__(self, records):
        self.records = records
        self.readmes: list[tuple[str, str]] = []

    async def fetch_collection(self, slug):
        return self.records

    async def fetch_readme(self, owner, name):
        self.readmes.append((owner, name))
        return f"# {name}"


class _Summarizer:
    async def summarize(self, model, readme=""):
        if model.id == "broken":
            raise ValueError("Failed to extract JSON from response")
        return parse_summary(json.dumps(SUMMARY_JSON))


def _record(name: str, run_count: int) -> dict:
    return {
        "owner": "acme",
        "name": name,
        "description": "Text-to-image diffusion model",
        "is_official": True,
        "run_count": run_count,
        "latest_version": {"openapi_schema": {"components": {"schemas": {"Input": {"properties": {"prompt": {"type": "string"}}}}}}},
    }


@pytest.mark.asyncio
async def test_build_snapshot_skips_failures():
    source = _Source([_record("good", 10), _record("broken", 5), _record("also-good", 1)])

    snapshot = await build_snapshot(source, _Summarizer(), collection="text-to-image")

    assert [m.id for m in snapshot.models] == ["good", "also-good"]
    assert source.readmes == [("acme", "good"), ("acme", "broken"), ("acme", "also-good")]
    assert snapshot.generated_at and snapshot.source_version


@pytest.mark.asyncio
async def test_build_snapshot_limit():
    source = _Source([_record("a", 3), _record("b", 2), _record("c", 1)])
    snapshot = await build_snapshot(source, _Summarizer(), limit=2)
    assert [m.id for m in snapshot.models] == ["a", "b"]


@pytest.mark.asyncio
async def test_snapshot_round_trip_recomputes_capabilities(tmp_path):
    source = _Source([_record("good", 10)])
    snapshot = await build_snapshot(source, _Summarizer())
    path = write_summary_snapshot(tmp_path / "nested" / "summaries.json", snapshot)

    raw = json.loads(path.read_text(encoding="utf-8"))
    raw["models"][0]["capabilities"] = {"textToImage": False, "supportedAspectRatios": ["9:9"]}
    path.write_text(json.dumps(raw), encoding="utf-8")

    models = load_summary_snapshot(path)

    assert "generatedAt" in raw
    assert models[0].summary is not None
    assert models[0].summary.quality_profile.speed == "very-fast"
    assert models[0].capabilities.text_to_image is True
    assert models[0].capabilities.supported_aspect_ratios == ["1:1"]


def test_missing_or_corrupt_snapshot_loads_empty(tmp_path):
    corrupt = tmp_path / "bad.json"
    corrupt.write_text("{oops", encoding="utf-8")

    assert load_summary_snapshot(tmp_path / "absent.json") == []
    assert load_summary_snapshot(corrupt) == []


def test_invalid_snapshot_entry_is_skipped_and_others_kept(tmp_path):
    good = MODELS["flux-dev"].model_copy(
        update={"summary": ModelSummary(one_line_pitch="Quality flux", quality_profile=QualityProfile(speed="moderate"))}
    )
    bad = MODELS["flux-schnell"].to_public()
    bad["summary"] = {"oneLinePitch": "Fast", "qualityProfile": {"speed": 4}}
    path = tmp_path / "summaries.json"
    path.write_text(
        json.dumps({"generatedAt": "2025-01-01T00:00:00+00:00", "models": [good.to_public(), bad]}),
        encoding="utf-8",
    )

    models = load_summary_snapshot(path)

    assert [m.id for m in models] == ["flux-dev"]
    assert models[0].summary is not None
    assert models[0].summary.one_line_pitch == "Quality flux"


def test_snapshot_without_models_list_loads_empty(tmp_path):
    path = tmp_path / "summaries.json"
    path.write_text(json.dumps({"generatedAt": "x", "models": "not-a-list"}), encoding="utf-8")

    assert load_summary_snapshot(path) == []


def test_build_summary_prompt_includes_readme_text():
    prompt = build_summary_prompt(MODELS["flux-dev"], "  FLUX.1 [dev] is a 12B parameter model.  \n")

    assert "FLUX.1 [dev] is a 12B parameter model." in prompt
    assert "No README available" not in prompt
