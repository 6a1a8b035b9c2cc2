"""Model catalog with a TTL cache and a static fallback list.

``CatalogService`` owns a single ``CatalogSnapshot`` reference. A refresh
builds a complete replacement snapshot and rebinds the attribute in one step,
so readers observe either the previous or the new snapshot, never a mix.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from typing import Any

from loguru import logger

from ..exceptions import ModelNotFoundError
from ..schema import CatalogSnapshot, ModelDescriptor
from ..settings import get_settings, Settings
from .builders import descriptor_from_record
from .capabilities import is_image_generation_model
from .fallback import FALLBACK_MODELS
from .source import CatalogSource, ReplicateCatalogSource


def filter_by_reference_count(models: Sequence[ModelDescriptor], reference_image_count: int | None) -> list[ModelDescriptor]:
    """Keep models able to take ``reference_image_count`` reference images.

    ``None`` or ``0`` keeps everything since every model can at least do
    text-to-image; ``1`` needs single-reference support; more needs an
    array-typed image input.
    """
    if not reference_image_count or reference_image_count <= 0:
        return list(models)
    if reference_image_count == 1:
        return [m for m in models if m.capabilities.supports_single_reference]
    return [m for m in models if m.capabilities.supports_multiple_references]


def build_catalog(records: Sequence[dict[str, Any]]) -> list[ModelDescriptor]:
    """Official image-generation records -> descriptors sorted by popularity."""
    models: list[ModelDescriptor] = []
    for record in records:
        if record.get("is_official") is not True or not is_image_generation_model(record):
            continue
        try:
            models.append(descriptor_from_record(record))
        except Exception as e:
            logger.warning(f"Skipping catalog record {record.get('owner')}/{record.get('name')}: {e}")
    # sorted() is stable; equal run counts keep collection order.
    return sorted(models, key=lambda m: m.run_count, reverse=True)


class CatalogService:
    """Catalog of candidate generation models.

    Never propagates live-source failures: callers always get either fresh
    data or the built-in fallback list.
    """

    def __init__(
        self,
        source: CatalogSource,
        *,
        collection: str,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        fallback: Sequence[ModelDescriptor] = FALLBACK_MODELS,
    ) -> None:
        self._source = source
        self.collection = collection
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._fallback = tuple(fallback)
        self._snapshot: CatalogSnapshot | None = None
        self._refresh_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CatalogService:
        settings = settings or get_settings()
        if not settings.use_replicate:
            logger.warning("REPLICATE_API_TOKEN is not set; serving the built-in fallback models")
        return cls(
            ReplicateCatalogSource.from_settings(settings),
            collection=settings.catalog_collection,
            ttl_seconds=settings.catalog_ttl_seconds,
        )

    # ------------------------------------------------------------------
    # Cache state
    # ------------------------------------------------------------------
    @property
    def snapshot(self) -> CatalogSnapshot | None:
        return self._snapshot

    @property
    def fallback_models(self) -> tuple[ModelDescriptor, ...]:
        return self._fallback

    def is_cache_valid(self) -> bool:
        snapshot = self._snapshot
        if snapshot is None:
            return False
        return (self._clock() - snapshot.fetched_at) < self.ttl_seconds

    def clear_cache(self) -> None:
        self._snapshot = None

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------
    async def refresh(self) -> CatalogSnapshot:
        """Fetch, build and swap in a new snapshot. Errors propagate to the caller."""
        records = await self._source.fetch_collection(self.collection)
        models = build_catalog(records)
        snapshot = CatalogSnapshot(models=tuple(models), fetched_at=self._clock())
        self._snapshot = snapshot
        logger.info(f"Fetched {len(models)} official image generation models from '{self.collection}'")
        return snapshot

    async def _resolve(self) -> Sequence[ModelDescriptor]:
        snapshot = self._snapshot
        if snapshot is not None and self.is_cache_valid():
            logger.debug("Using cached catalog snapshot")
            return snapshot.models

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited.
            snapshot = self._snapshot
            if snapshot is not None and self.is_cache_valid():
                return snapshot.models
            try:
                return (await self.refresh()).models
            except Exception as e:
                logger.warning(f"Using fallback models due to catalog error: {e}")
                return self._fallback

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def get_models(self, reference_image_count: int | None = None) -> list[ModelDescriptor]:
        models = await self._resolve()
        filtered = filter_by_reference_count(models, reference_image_count)
        if reference_image_count:
            logger.info(f"Filtered to {len(filtered)} models supporting {reference_image_count} reference image(s)")
        return filtered

    async def get_model_by_id(self, model_id: str) -> ModelDescriptor | None:
        for model in await self.get_models():
            if model.id == model_id or model.full_name == model_id:
                return model
        return None

    async def require_model(self, model_id: str) -> ModelDescriptor:
        model = await self.get_model_by_id(model_id)
        if model is None:
            raise ModelNotFoundError(model_id)
        return model

    async def search_models(self, keyword: str) -> list[ModelDescriptor]:
        needle = keyword.lower()
        return [
            m
            for m in await self.get_models()
            if needle in m.name.lower() or needle in m.description.lower() or any(needle in t.lower() for t in m.tags)
        ]


__all__ = ["CatalogService", "build_catalog", "filter_by_reference_count"]
