"""Exception hierarchy for model lookup, validation and provider calls.

Every error carries a stable ``code`` and a ``user_message`` safe to show to
end users. MCP tools convert these into ``ToolError`` responses; anything that
is not an ``ImageRouterError`` is treated as unexpected.
"""

from __future__ import annotations

from typing import Any

from .shard import constants as C


class ImageRouterError(Exception):
    """Base class for all errors raised by this package."""

    code: str = "internal_error"

    def __init__(self, message: str, *, user_message: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.details = details or {}


# ------------------------------ Validation ---------------------------------- #


class ValidationError(ImageRouterError):
    """Request does not match what the chosen model accepts."""

    code = C.ERROR_CODE_VALIDATION


class InvalidPromptError(ValidationError):
    def __init__(self, message: str):
        super().__init__(message)


class ModelDoesNotAcceptReferencesError(ValidationError):
    """Reference images were supplied but the model has no image input."""

    def __init__(self, model_name: str):
        self.model_name = model_name
        super().__init__(
            f"Model '{model_name}' does not accept reference images. "
            "Its input schema has no image input parameters. "
            "Please choose a model that supports image-to-image generation.",
            details={"model": model_name},
        )


class TooManyReferenceImagesError(ValidationError):
    """More reference images than the model's image fields can take."""

    def __init__(self, model_name: str, field: str, provided: int):
        self.model_name = model_name
        self.field = field
        self.provided = provided
        super().__init__(
            f"Model '{model_name}' only accepts a single reference image via '{field}', "
            f"but {provided} images were provided. "
            "Please choose a model that supports multiple reference images or provide only one.",
            details={"model": model_name, "field": field, "provided": provided},
        )


# ------------------------------- Lookup ------------------------------------- #


class ModelNotFoundError(ImageRouterError):
    code = C.ERROR_CODE_MODEL_NOT_FOUND

    def __init__(self, model_id: str):
        self.model_id = model_id
        super().__init__(f"Model '{model_id}' not found", details={"model": model_id})


# ---------------------------- Configuration --------------------------------- #


class ConfigurationError(ImageRouterError):
    code = C.ERROR_CODE_CONFIGURATION


# ------------------------------- Provider ----------------------------------- #


class ProviderError(ImageRouterError):
    """A call to an upstream provider failed."""

    code = C.ERROR_CODE_PROVIDER_ERROR

    def __init__(self, message: str, *, status_code: int | None = None):
        self.status_code = status_code
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__(message, details=details)


class CatalogFetchError(ProviderError):
    """The live catalog source was unreachable or returned malformed data."""

    code = C.ERROR_CODE_CATALOG_FETCH_FAILED


class NoImagesGeneratedError(ProviderError):
    code = C.ERROR_CODE_NO_IMAGES

    def __init__(self, model_name: str):
        self.model_name = model_name
        super().__init__(f"No images were returned by model '{model_name}'")


__all__ = [
    "ImageRouterError",
    "ValidationError",
    "InvalidPromptError",
    "ModelDoesNotAcceptReferencesError",
    "TooManyReferenceImagesError",
    "ModelNotFoundError",
    "ConfigurationError",
    "ProviderError",
    "CatalogFetchError",
    "NoImagesGeneratedError",
]
