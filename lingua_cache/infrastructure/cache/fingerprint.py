"""
Request Fingerprinting

Derives stable cache keys from normalized request fields.

Key properties:
- Pure function: no I/O, no clock, no randomness
- Canonical form is an orjson document with sorted keys, so field order
  inside the document never depends on dict construction order
- Fields are hashed whole; long text is never truncated first
- "no media" and "media with empty locator" hash the same
"""

import hashlib
import re
from collections.abc import Sequence

import orjson

from lingua_cache.core.config.constants import SNAPSHOT_CACHE_PREFIX, TRANSCRIPT_CACHE_PREFIX
from lingua_cache.core.exceptions import ValidationError
from lingua_cache.models.results import ResultKind

_OBJECT_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,200}$")


def canonical_request_bytes(
    kind: ResultKind | str,
    fields: Sequence[str],
    language: str,
    media_locator: str | None = None,
) -> bytes:
    """
    Build the canonical byte string a cache key is hashed from.

    Args:
        kind: Request kind (keeps question and sentence keys apart)
        fields: Ordered text fields; order is significant
        language: Output language tag
        media_locator: Optional media URL; None and "" are equivalent

    Returns:
        UTF-8 JSON bytes with sorted keys
    """
    document = {
        "kind": kind.value if isinstance(kind, ResultKind) else str(kind),
        "fields": [str(field) for field in fields],
        "language": language,
        "media": media_locator or "",
    }
    return orjson.dumps(document, option=orjson.OPT_SORT_KEYS)


def compute_cache_key(
    kind: ResultKind | str,
    fields: Sequence[str],
    language: str,
    media_locator: str | None = None,
) -> str:
    """
    Generate a consistent 128-bit cache key.

    STAGE-1.1: Cache key generation

    MD5 is used for speed; collision resistance against adversaries is not
    required (worst case of a collision: a wrong cached explanation, never a
    security boundary).

    Returns:
        32-character lowercase hex digest
    """
    payload = canonical_request_bytes(kind, fields, language, media_locator)
    return hashlib.md5(payload).hexdigest()  # noqa: S324


def question_fingerprint(
    question: str,
    options: Sequence[str],
    correct_answer_index: int,
    question_type: str | None,
    language: str,
    image_url: str | None = None,
) -> str:
    """Cache key for a question analysis request."""
    fields = [question, *options, str(correct_answer_index), question_type or ""]
    return compute_cache_key(ResultKind.QUESTION, fields, language, image_url)


def sentence_fingerprint(sentence: str, context: str | None, language: str) -> str:
    """Cache key for a sentence analysis request."""
    return compute_cache_key(ResultKind.SENTENCE, [sentence, context or ""], language)


def object_key(kind: ResultKind, key_hash: str) -> str:
    """Object-store path for a content-hashed result, e.g. ``ai-cache/topik/<hash>.json``."""
    return f"{kind.namespace}/{key_hash}.json"


def transcript_object_key(episode_id: str) -> str:
    """
    Object-store path for an episode transcript.

    Transcripts are keyed by the caller's stable episode identifier rather
    than a content hash: an episode's audio URL can change on re-hosting.
    """
    if not episode_id or not _OBJECT_ID_PATTERN.fullmatch(episode_id) or episode_id in (".", ".."):
        raise ValidationError(
            "episodeId is required and may only contain letters, digits, '.', '_', ':' and '-'",
            details={"episode_id": episode_id},
        )
    return f"{TRANSCRIPT_CACHE_PREFIX}/{episode_id}.json"


def snapshot_object_key(name: str) -> str:
    """Object-store path for a self-expiring derived snapshot (e.g. a trending list)."""
    if not name or not _OBJECT_ID_PATTERN.fullmatch(name) or name in (".", ".."):
        raise ValidationError(
            "snapshot name may only contain letters, digits, '.', '_', ':' and '-'",
            details={"name": name},
        )
    return f"{SNAPSHOT_CACHE_PREFIX}/{name}.json"
