from .capabilities import classify_capabilities, is_image_generation_model
from .schema_extractor import extract_schema
from .service import CatalogService

__all__ = ["CatalogService", "classify_capabilities", "extract_schema", "is_image_generation_model"]
