"""Stitch MCP - Model Context Protocol bridge for Google Stitch.

This package provides credential acquisition through the gcloud CLI,
JSON-RPC forwarding to the Stitch endpoint, and post-processing that
inlines downloadable assets into tool results.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
