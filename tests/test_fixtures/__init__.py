"""
Test Fixtures Package

Shared fakes and sample payloads for consistent testing across all layers.
"""

from .media_factory import MediaServer
from .model_factory import FakeModelClient, ResultFactory
from .object_store_factory import FakeS3Client, client_error

__all__ = ["FakeModelClient", "FakeS3Client", "MediaServer", "ResultFactory", "client_error"]
