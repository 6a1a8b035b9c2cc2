from .base_engine import ImageEngine
from .replicate import ReplicateEngine

__all__ = ["ImageEngine", "ReplicateEngine"]
