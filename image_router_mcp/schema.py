from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .shard import constants as C
from .shard.enums import ParamType, QualityLevel, SpeedPreference


class _CamelModel(BaseModel):
    """Base for records exchanged as camelCase JSON (snapshots, tool payloads)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return [str(value)]


# ------------------------------ Model schema -------------------------------- #


class ParameterDescriptor(_CamelModel):
    """One normalized input field of a generation model.

    ``default`` presence is tracked through ``model_fields_set`` so falsy
    provider defaults (``0``, ``False``, ``None``) are distinguishable from an
    absent default.
    """

    type: ParamType = Field(default=ParamType.STRING, description="JSON-schema primitive type.")
    description: str = Field(default="", description="Provider description of the parameter.")
    required: bool = Field(default=False, description="Whether the provider requires this parameter.")
    options: list[Any] | None = Field(default=None, description="Enumerated values, order preserved.")
    default: Any = Field(default=None, description="Provider default value, when declared.")
    format: str | None = Field(default=None, description="Value format hint, e.g. 'uri'.")
    is_image_input: bool = Field(default=False, description="Whether the parameter accepts an image.")
    is_mask: bool = Field(default=False, description="Whether the parameter is an inpainting mask.")
    optional_for_reference_images: bool = Field(default=False, description="Ignored when routing reference images.")

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> ParamType:
        return ParamType.coerce(v)

    @model_validator(mode="after")
    def _mask_is_never_a_reference(self) -> ParameterDescriptor:
        if self.is_mask and not self.optional_for_reference_images:
            self.optional_for_reference_images = True
        return self

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set

    @property
    def accepts_reference(self) -> bool:
        """Image input that is not an inpainting mask."""
        return self.is_image_input and not self.is_mask


class Capabilities(_CamelModel):
    """Coarse capability flags derived from a model's input schema."""

    text_to_image: bool = Field(default=False, description="Accepts a text prompt.")
    image_to_image: bool = Field(default=False, description="Accepts at least one non-mask image input.")
    supports_reference_images: bool = Field(default=False, description="Alias of image_to_image kept for summaries.")
    supports_single_reference: bool = Field(default=False, description="Can take one reference image.")
    supports_multiple_references: bool = Field(default=False, description="Has an array-typed image input.")
    supported_aspect_ratios: list[str] = Field(default_factory=lambda: [C.DEFAULT_ASPECT_RATIO], description="Declared aspect ratios, 'custom' for free width/height.")


class Dimensions(_CamelModel):
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @property
    def size(self) -> str:
        return f"{self.width}x{self.height}"


# ------------------------------- Summaries ---------------------------------- #


class QualityProfile(_CamelModel):
    """Ratings written by the summary job.

    Values are kept as free strings because they come from an LLM; scoring maps
    unknown values to the neutral level.
    """

    speed: str | None = None
    detail: str | None = None
    coherence: str | None = None
    prompt_following: str | None = None


class ModelSummary(_CamelModel):
    """Decision-focused summary of a model, authored by a human or an LLM."""

    model_config = ConfigDict(extra="allow")

    one_line_pitch: str = ""
    best_for: list[str] = Field(default_factory=list)
    not_good_for: list[str] = Field(default_factory=list)
    style_strengths: list[str] = Field(default_factory=list)
    quality_profile: QualityProfile = Field(default_factory=QualityProfile)
    typical_use_case: str = ""
    key_parameters: dict[str, Any] = Field(default_factory=dict)
    prompting_tips: list[str] = Field(default_factory=list)
    comparison_to_alternatives: str | None = None

    @field_validator("best_for", "not_good_for", "style_strengths", "prompting_tips", mode="before")
    @classmethod
    def _coerce_lists(cls, v: Any) -> list[str]:
        return _as_str_list(v)


# ------------------------------ Descriptors --------------------------------- #


class ModelDescriptor(_CamelModel):
    """One candidate generation model.

    Descriptors are immutable; the catalog replaces them wholesale on refresh.
    ``capabilities`` is always derived from ``input_schema`` by the catalog
    builders and never edited on its own.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Model name, unique within the catalog.")
    owner: str = Field(default="unknown")
    full_name: str = Field(description="'owner/id' identifier used by the provider.")
    display_name: str = Field(default="", alias="name", description="Human-readable name.")
    description: str = Field(default="")
    run_count: int = Field(default=0, ge=0, description="Popularity signal.")
    is_official: bool = Field(default=False)
    tags: list[str] = Field(default_factory=list)
    input_schema: dict[str, ParameterDescriptor] = Field(default_factory=dict)
    capabilities: Capabilities = Field(default_factory=Capabilities)
    aspect_ratios: dict[str, Dimensions] = Field(default_factory=dict, description="Declared aspect ratio to pixel table.")
    strengths: list[str] = Field(default_factory=list)
    summary: ModelSummary | None = None
    url: str | None = None
    cover_image_url: str | None = None
    inference_time: str | None = None
    cost_tier: str | None = None

    @field_validator("run_count", mode="before")
    @classmethod
    def _coerce_run_count(cls, v: Any) -> int:
        try:
            return max(int(v or 0), 0)
        except (TypeError, ValueError):
            return 0

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, v: Any) -> list[str]:
        return _as_str_list(v)

    @model_validator(mode="before")
    @classmethod
    def _fill_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        owner = data.get("owner") or "unknown"
        data["owner"] = owner
        if not data.get("full_name") and not data.get("fullName") and data.get("id"):
            data["fullName"] = f"{owner}/{data['id']}"
        if not data.get("display_name") and not data.get("name"):
            data["name"] = data.get("id", "")
        return data

    @property
    def name(self) -> str:
        return self.display_name or self.id


class RequirementSpec(_CamelModel):
    """What the caller needs from a generated image.

    Produced upstream by an LLM; unknown enum values and malformed lists are
    coerced to their neutral form so they never affect scoring.
    """

    needs_reference_images: bool = False
    min_quality: QualityLevel | None = None
    style_focus: list[str] = Field(default_factory=list)
    speed_preference: SpeedPreference | None = None
    preferred_model: str | None = None
    use_case: str | None = None
    special_needs: list[str] = Field(default_factory=list)
    aspect_ratio: str | None = None

    @field_validator("min_quality", mode="before")
    @classmethod
    def _coerce_quality(cls, v: Any) -> QualityLevel | None:
        if isinstance(v, QualityLevel):
            return v
        return QualityLevel.from_str(v) if isinstance(v, str) else None

    @field_validator("speed_preference", mode="before")
    @classmethod
    def _coerce_speed(cls, v: Any) -> SpeedPreference | None:
        if isinstance(v, SpeedPreference):
            return v
        if isinstance(v, str):
            try:
                return SpeedPreference(v.strip().lower())
            except ValueError:
                return None
        return None

    @field_validator("style_focus", "special_needs", mode="before")
    @classmethod
    def _coerce_lists(cls, v: Any) -> list[str]:
        return _as_str_list(v)

    @field_validator("preferred_model", "use_case", "aspect_ratio", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ScoredCandidate(BaseModel):
    """A model with its accumulated score; lives for one scoring call."""

    model: ModelDescriptor
    score: float
    reasons: list[str] = Field(default_factory=list)


# -------------------------------- Snapshots --------------------------------- #


class CatalogSnapshot(BaseModel):
    """Timestamped set of catalog models, replaced as a whole on refresh."""

    model_config = ConfigDict(frozen=True)

    models: tuple[ModelDescriptor, ...] = ()
    fetched_at: float = Field(description="time.monotonic() value at fetch time.")


class SummarySnapshot(_CamelModel):
    """On-disk document written by the summary job."""

    generated_at: str | None = None
    source_version: str | None = None
    models: list[ModelDescriptor] = Field(default_factory=list)


# ------------------------------ Tool payloads -------------------------------- #


class ModelListing(_CamelModel):
    """Flattened model view returned by list/search/select tools."""

    id: str
    name: str
    owner: str
    full_name: str
    description: str = ""
    run_count: int = 0
    tags: list[str] = Field(default_factory=list)
    is_official: bool = False
    url: str | None = None
    aspect_ratios: list[str] = Field(default_factory=list)
    capabilities: Capabilities
    strengths: list[str] = Field(default_factory=list)
    input_schema: dict[str, ParameterDescriptor] = Field(default_factory=dict)
    summary: ModelSummary | None = None
    score: float | None = None
    reasons: list[str] | None = None

    @classmethod
    def from_descriptor(cls, model: ModelDescriptor, score: float | None = None, reasons: list[str] | None = None) -> ModelListing:
        return cls(
            id=model.id,
            name=model.name,
            owner=model.owner,
            full_name=model.full_name,
            description=model.description,
            run_count=model.run_count,
            tags=list(model.tags),
            is_official=model.is_official,
            url=model.url,
            aspect_ratios=list(model.aspect_ratios) or list(model.capabilities.supported_aspect_ratios),
            capabilities=model.capabilities,
            strengths=list(model.strengths),
            input_schema=dict(model.input_schema),
            summary=model.summary,
            score=round(score, 3) if score is not None else None,
            reasons=reasons,
        )


class ModelListResponse(_CamelModel):
    """Response for list_models, search_models and select_models tools."""

    ok: bool = Field(default=True, description="Always true when the request succeeds.")
    models: list[ModelListing] = Field(default_factory=list)
    total: int = Field(default=0, description="Number of models returned.")
    filtered: bool = Field(default=False, description="Whether a capability or requirement filter was applied.")


class GenerationRequest(_CamelModel):
    """Run a chosen model with a prompt and optional reference images."""

    model_id: str
    prompt: str
    reference_images: list[str] = Field(default_factory=list)
    aspect_ratio: str = Field(default=C.DEFAULT_ASPECT_RATIO)
    negative_prompt: str | None = None
    extra_params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("reference_images", mode="before")
    @classmethod
    def _normalize_references(cls, v: Any) -> list[str]:
        return [ref.strip() for ref in _as_str_list(v)]

    @field_validator("aspect_ratio", mode="before")
    @classmethod
    def _default_ratio(cls, v: Any) -> Any:
        return v or C.DEFAULT_ASPECT_RATIO


class GenerationResult(_CamelModel):
    """Public result of a generation call."""

    ok: bool = True
    image_url: str | None = None
    model_id: str
    full_name: str
    prompt: str = Field(description="Prompt preview, truncated.")
    negative_prompt: str | None = None
    aspect_ratio: str
    dimensions: Dimensions
    reference_images: list[str] = Field(default_factory=list)
    reference_field: str | None = Field(default=None, description="Schema field the references were sent through.")

    @property
    def size(self) -> str:
        return self.dimensions.size


__all__ = [
    "ParameterDescriptor",
    "Capabilities",
    "Dimensions",
    "QualityProfile",
    "ModelSummary",
    "ModelDescriptor",
    "RequirementSpec",
    "ScoredCandidate",
    "CatalogSnapshot",
    "SummarySnapshot",
    "ModelListing",
    "ModelListResponse",
    "GenerationRequest",
    "GenerationResult",
]
