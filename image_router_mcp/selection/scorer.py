"""Deterministic filtering and scoring of catalog models against requirements.

Selection runs in two phases. Hard filters drop models that cannot satisfy
the request at all; the survivors get an additive score whose individual
contributions are recorded in a ``ScoreBreakdown`` so every ranking can be
explained signal by signal. Only relative order matters; scores are not
normalized.

The scorer never relaxes constraints. An empty result is a valid answer and
the caller decides whether to retry with a looser catalog filter.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from ..schema import ModelDescriptor, ModelListing, ModelListResponse, RequirementSpec, ScoredCandidate
from ..shard import constants as C


@dataclass
class ScoreBreakdown:
    """Ordered ``(delta, reason)`` entries, summed once at the end."""

    entries: list[tuple[float, str]] = field(default_factory=list)

    def add(self, delta: float, reason: str) -> None:
        self.entries.append((delta, reason))

    @property
    def total(self) -> float:
        return sum(delta for delta, _ in self.entries)

    @property
    def reasons(self) -> list[str]:
        return [reason for _, reason in self.entries]


# --------------------------------- helpers ----------------------------------- #


def _either_contains(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a


def _quality_level(value: str | None) -> int:
    if not value:
        return C.NEUTRAL_QUALITY_LEVEL
    return C.QUALITY_SCALE.get(value.strip().lower(), C.NEUTRAL_QUALITY_LEVEL)


def _model_speed(model: ModelDescriptor) -> str:
    speed = model.summary.quality_profile.speed if model.summary else None
    return (speed or C.DEFAULT_SPEED).strip().lower()


def _serialized_summary(model: ModelDescriptor) -> str:
    if model.summary is None:
        return "{}"
    return json.dumps(model.summary.model_dump(mode="json", by_alias=True), ensure_ascii=False).lower()


def popularity_score(run_count: int) -> float:
    return min(math.log10(max(run_count, 1)) / 10, 1) * C.POPULARITY_WEIGHT


def matches_preferred_model(model: ModelDescriptor, preferred: str) -> bool:
    needle = preferred.lower()
    return any(needle in field_value.lower() for field_value in (model.name, model.id, model.owner, model.full_name))


# ------------------------------- Phase A ------------------------------------- #


def passes_hard_filters(model: ModelDescriptor, requirements: RequirementSpec) -> bool:
    caps = model.capabilities
    if requirements.needs_reference_images:
        if not caps.supports_reference_images and not caps.image_to_image:
            return False
    elif not caps.text_to_image:
        return False

    ratio = requirements.aspect_ratio
    ratios = caps.supported_aspect_ratios
    if ratio and ratios and ratio not in ratios and C.CUSTOM_ASPECT_RATIO not in ratios:
        return False
    return True


# ------------------------------- Phase B ------------------------------------- #


def score_model(model: ModelDescriptor, requirements: RequirementSpec) -> ScoreBreakdown:
    """Accumulate every scoring signal that fires for ``model``.

    Safe to call on models that did not pass the hard filters.
    """
    breakdown = ScoreBreakdown()
    caps = model.capabilities
    summary = model.summary

    popularity = popularity_score(model.run_count)
    if popularity:
        breakdown.add(popularity, f"Popularity ({model.run_count} runs)")

    if requirements.preferred_model and matches_preferred_model(model, requirements.preferred_model):
        breakdown.add(C.PREFERRED_MODEL_BONUS, "User explicitly requested this model")

    if requirements.needs_reference_images:
        if caps.supports_reference_images or caps.image_to_image:
            breakdown.add(C.REFERENCE_SUPPORTED_BONUS, "Supports reference images")
        else:
            breakdown.add(C.REFERENCE_MISSING_PENALTY, "Does not support reference images (required)")
    elif caps.text_to_image:
        breakdown.add(C.TEXT_TO_IMAGE_BONUS, "Supports text-to-image")

    if requirements.style_focus:
        model_styles = summary.style_strengths if summary else []
        if model_styles:
            matched = [s for s in requirements.style_focus if any(_either_contains(s, ms) for ms in model_styles)]
            if matched:
                breakdown.add(C.STYLE_MATCH_BONUS * len(matched), f"Matches style: {', '.join(matched)}")
            else:
                breakdown.add(C.STYLE_MISMATCH_PENALTY, "Style mismatch")

    if requirements.min_quality:
        required = _quality_level(requirements.min_quality)
        profile = summary.quality_profile if summary else None
        detail = _quality_level(profile.detail if profile else None)
        prompt_following = _quality_level(profile.prompt_following if profile else None)
        if detail >= required:
            breakdown.add(C.QUALITY_MET_BONUS, "Meets quality requirements")
        else:
            breakdown.add(C.QUALITY_MISSED_PENALTY, "Below quality requirements")
        if prompt_following >= required:
            breakdown.add(C.PROMPT_FOLLOWING_BONUS, "Follows prompts at the required quality")

    if requirements.speed_preference == "fast":
        speed = _model_speed(model)
        if speed in C.FAST_SPEEDS:
            breakdown.add(C.FAST_SPEED_BONUS, "Fast generation")
        elif speed in C.SLOW_SPEEDS:
            breakdown.add(C.SLOW_SPEED_PENALTY, "Slow generation")
    elif requirements.speed_preference == "no":
        if _model_speed(model) in C.FAST_SPEEDS:
            breakdown.add(C.QUALITY_PRIORITY_SPEED_PENALTY, "Trades quality for speed")

    if requirements.use_case and summary:
        if any(_either_contains(requirements.use_case, b) for b in summary.best_for):
            breakdown.add(C.USE_CASE_MATCH_BONUS, "Matches use case")
        if any(_either_contains(requirements.use_case, n) for n in summary.not_good_for):
            breakdown.add(C.USE_CASE_MISMATCH_PENALTY, "Model explicitly not recommended for this use case")

    ratio = requirements.aspect_ratio
    ratios = caps.supported_aspect_ratios
    if ratio and ratios:
        if ratio in ratios:
            breakdown.add(C.ASPECT_RATIO_EXACT_BONUS, f"Supports aspect ratio {ratio}")
        elif C.CUSTOM_ASPECT_RATIO in ratios:
            breakdown.add(C.ASPECT_RATIO_CUSTOM_BONUS, "Supports custom dimensions")
        else:
            breakdown.add(C.ASPECT_RATIO_MISSING_PENALTY, "Aspect ratio not supported")

    if requirements.special_needs:
        summary_text = _serialized_summary(model)
        matched_needs = [n for n in requirements.special_needs if n.lower() in summary_text]
        if matched_needs:
            breakdown.add(C.SPECIAL_NEED_BONUS * len(matched_needs), f"Supports: {', '.join(matched_needs)}")

    return breakdown


def filter_and_score(
    catalog: Iterable[ModelDescriptor],
    requirements: RequirementSpec,
    limit: int = C.DEFAULT_SELECTION_LIMIT,
) -> list[ScoredCandidate]:
    """Rank catalog models for ``requirements``; at most ``limit`` results.

    Ties keep catalog order (the sort is stable).
    """
    models = list(catalog)
    if not models:
        logger.warning("No models available for filtering")
        return []

    survivors = [m for m in models if passes_hard_filters(m, requirements)]
    logger.info(f"{len(survivors)} of {len(models)} models passed hard filters")

    scored: list[ScoredCandidate] = []
    for model in survivors:
        breakdown = score_model(model, requirements)
        scored.append(ScoredCandidate(model=model, score=breakdown.total, reasons=breakdown.reasons))
    scored.sort(key=lambda c: c.score, reverse=True)

    top = scored[: max(limit, 0)]
    for idx, candidate in enumerate(top, start=1):
        first_reason = candidate.reasons[0] if candidate.reasons else "No specific reason"
        logger.info(f"  {idx}. {candidate.model.name} (score: {candidate.score:.1f}) - {first_reason}")
    return top


def to_listing_response(candidates: Sequence[ScoredCandidate]) -> ModelListResponse:
    listings = [ModelListing.from_descriptor(c.model, score=c.score, reasons=list(c.reasons)) for c in candidates]
    return ModelListResponse(models=listings, total=len(listings), filtered=True)


def select_models(
    catalog: Iterable[ModelDescriptor],
    requirements: RequirementSpec,
    limit: int = C.DEFAULT_SELECTION_LIMIT,
) -> ModelListResponse:
    """``filter_and_score`` wrapped in the public ``{models, total, filtered}`` shape."""
    return to_listing_response(filter_and_score(catalog, requirements, limit))


__all__ = [
    "ScoreBreakdown",
    "filter_and_score",
    "passes_hard_filters",
    "popularity_score",
    "score_model",
    "select_models",
    "to_listing_response",
]
