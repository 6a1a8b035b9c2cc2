from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from ..schema import GenerationRequest, GenerationResult, ModelDescriptor


class ImageEngine(ABC, BaseModel):
    """Abstract base for image generation engines."""

    name: str

    @abstractmethod
    async def generate(self, req: GenerationRequest, model: ModelDescriptor) -> GenerationResult:
        raise NotImplementedError
