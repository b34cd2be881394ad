"""
Lingua AI Result Cache

Two-tier (in-process + object storage) cache and media-ingestion pipeline
in front of a multimodal generative-AI endpoint.
"""

__version__ = "1.0.0"
