"""Interactive scaffolding for Cloudflare Workers primitives."""

__version__ = "0.1.0"

__all__ = ["__version__"]
