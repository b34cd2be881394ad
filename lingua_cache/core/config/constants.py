"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the AI result cache and media ingestion pipeline.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for stage logging and cache tiers
- Object-store key namespaces live here so they never drift between modules
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Request processing stages for structured logging.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}

    The sequence follows the cache-aside state machine:
    validation → fingerprint → L1 → L2 → compute → persist → return.
    """

    INITIALIZATION = "0.0_INITIALIZATION"
    REQUEST_VALIDATION = "1.0_REQUEST_VALIDATION"
    FINGERPRINT = "1.1_FINGERPRINT"
    L1_LOOKUP = "2.1_L1_CACHE_LOOKUP"
    L2_LOOKUP = "2.2_L2_CACHE_LOOKUP"
    CACHE_POPULATION = "2.3_CACHE_POPULATION"
    CACHE_INVALIDATION = "2.4_CACHE_INVALIDATION"
    SINGLE_FLIGHT = "2.5_SINGLE_FLIGHT"
    MEDIA_INGEST = "3.1_MEDIA_INGEST"
    TRANSCODE = "3.2_TRANSCODE"
    MODEL_INVOKE = "4.0_MODEL_INVOKE"
    RESPONSE_VALIDATION = "4.1_RESPONSE_VALIDATION"
    CLEANUP = "6.0_CLEANUP"

    OBJECT_STORE = "OS_OBJECT_STORE"
    RETRY = "R_RETRY_LOGIC"


# ============================================================================
# Object-Store Key Namespaces
# ============================================================================

QUESTION_CACHE_PREFIX = "ai-cache/topik"
SENTENCE_CACHE_PREFIX = "ai-cache/sentence"
TRANSCRIPT_CACHE_PREFIX = "transcripts"
SNAPSHOT_CACHE_PREFIX = "snapshots"

# Metadata key holding the absolute expiry (unix seconds) of TTL-written objects
OBJECT_EXPIRES_AT_METADATA = "expires-at"

# ============================================================================
# Default Thresholds
# ============================================================================

MB = 1024 * 1024

L1_CACHE_MAX_SIZE = 100  # Maximum entries in L1 cache
L1_CACHE_TTL = 3600  # L1 entry lifetime (1 hour)
SNAPSHOT_CACHE_TTL = 86400  # TTL for self-expiring derived artifacts (24 hours)

AUDIO_MAX_BYTES = 100 * MB
IMAGE_MAX_BYTES = 10 * MB
TRANSCODE_THRESHOLD_BYTES = 20 * MB
MODEL_INLINE_PAYLOAD_LIMIT = 20 * MB  # Limit applies to the base64-encoded payload

MEDIA_DOWNLOAD_TIMEOUT = 30
MEDIA_MAX_REDIRECTS = 5
DOWNLOAD_CHUNK_SIZE = 64 * 1024

OBJECT_STORE_TIMEOUT = 10
OBJECT_STORE_MAX_ATTEMPTS = 2  # One call plus a single retry

GEMINI_TEXT_TIMEOUT = 30
GEMINI_AUDIO_TIMEOUT = 120

# Speech-optimized transcode profile
TRANSCODE_CHANNELS = 1
TRANSCODE_SAMPLE_RATE = 16000
TRANSCODE_BITRATE = "32k"

DEFAULT_AUDIO_MIME = "audio/mpeg"
DEFAULT_IMAGE_MIME = "image/png"

# ============================================================================
# Languages
# ============================================================================

DEFAULT_LANGUAGE = "zh"

SUPPORTED_LANGUAGES: dict[str, str] = {
    "zh": "Chinese (Simplified)",
    "ko": "Korean",
    "en": "English",
    "vi": "Vietnamese",
}

# Podcast audio is always Korean; the request language only selects the translation
TRANSCRIPT_AUDIO_LANGUAGE = "ko"

# Used when a question is carried entirely by its image
IMAGE_ONLY_QUESTION_PLACEHOLDER = "The question is in the image."

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
