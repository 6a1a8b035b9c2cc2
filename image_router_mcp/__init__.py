"""
Image Router MCP Server

Model-selection MCP server for image generation: derives capabilities from
provider schemas, ranks catalog models against caller requirements, and maps
the chosen model to provider input parameters.
"""

__version__ = "0.1.0"

try:
    import importlib.metadata

    __version__ = importlib.metadata.version("image-router-mcp")
except (importlib.metadata.PackageNotFoundError, ImportError):
    # Fallback for development mode
    pass

__all__ = ["__version__"]
