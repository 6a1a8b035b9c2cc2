from __future__ import annotations

import pytest

from image_router_mcp.exceptions import (
    CatalogFetchError,
    ConfigurationError,
    ImageRouterError,
    ModelDoesNotAcceptReferencesError,
    ModelNotFoundError,
    NoImagesGeneratedError,
    ProviderError,
    TooManyReferenceImagesError,
    ValidationError,
)
from image_router_mcp.utils.error_helpers import augment_with_model_tip


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (ModelDoesNotAcceptReferencesError("flux"), "validation_error"),
        (TooManyReferenceImagesError("flux", "image", 3), "validation_error"),
        (ModelNotFoundError("flux"), "model_not_found"),
        (ConfigurationError("no token"), "configuration_error"),
        (ProviderError("boom", status_code=500), "provider_error"),
        (CatalogFetchError("down"), "catalog_fetch_failed"),
        (NoImagesGeneratedError("flux"), "no_images_generated"),
    ],
)
def test_error_codes(error, code):
    assert isinstance(error, ImageRouterError)
    assert error.code == code
    assert error.user_message


def test_validation_errors_share_a_base():
    assert issubclass(ModelDoesNotAcceptReferencesError, ValidationError)
    assert issubclass(TooManyReferenceImagesError, ValidationError)
    assert issubclass(CatalogFetchError, ProviderError)


def test_error_details():
    err = TooManyReferenceImagesError("Flux Kontext", "input_image", 2)
    assert err.details == {"model": "Flux Kontext", "field": "input_image", "provided": 2}
    assert ProviderError("boom", status_code=502).details == {"status_code": 502}
    assert ProviderError("boom").details == {}


def test_augment_with_model_tip():
    tipped = augment_with_model_tip("Replicate returned 401 for acme/model: Unauthenticated")

    assert "list_models" in tipped
    assert augment_with_model_tip(tipped) == tipped
    assert augment_with_model_tip("Prediction timed out") == "Prediction timed out"
    assert augment_with_model_tip("") == ""
