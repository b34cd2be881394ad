"""
Unit Tests for Request Fingerprinting

Equal logical inputs must produce equal keys; any field difference must
produce a different key.
"""

import pytest

from lingua_cache.core.exceptions import ValidationError
from lingua_cache.infrastructure.cache.fingerprint import (
    canonical_request_bytes,
    compute_cache_key,
    object_key,
    question_fingerprint,
    sentence_fingerprint,
    snapshot_object_key,
    transcript_object_key,
)
from lingua_cache.models.results import ResultKind

BASE = {
    "question": "빈칸에 알맞은 것을 고르십시오.",
    "options": ["가고", "가서", "가면", "가니까"],
    "correct_answer_index": 1,
    "question_type": "grammar",
    "language": "zh",
}


@pytest.mark.unit
class TestComputeCacheKey:
    """Key format and determinism."""

    def test_key_is_32_lowercase_hex(self):
        key = compute_cache_key(ResultKind.SENTENCE, ["안녕"], "zh")

        assert len(key) == 32
        assert key == key.lower()
        int(key, 16)

    def test_equal_inputs_equal_keys(self):
        assert question_fingerprint(**BASE) == question_fingerprint(**dict(BASE))

    @pytest.mark.parametrize(
        "change",
        [
            {"question": "다른 질문"},
            {"options": ["가고", "가서", "가면", "가니까요"]},
            {"options": ["가서", "가고", "가면", "가니까"]},
            {"correct_answer_index": 2},
            {"question_type": "reading"},
            {"language": "en"},
            {"image_url": "https://cdn.test/q1.png"},
        ],
    )
    def test_any_field_change_changes_key(self, change):
        assert question_fingerprint(**{**BASE, **change}) != question_fingerprint(**BASE)

    def test_none_and_empty_media_are_equivalent(self):
        assert compute_cache_key("sentence", ["a"], "zh", None) == compute_cache_key("sentence", ["a"], "zh", "")

    def test_kind_separates_namespaces(self):
        assert compute_cache_key(ResultKind.QUESTION, ["a"], "zh") != compute_cache_key(ResultKind.SENTENCE, ["a"], "zh")

    def test_long_fields_are_not_truncated(self):
        prefix = "가" * 10_000
        assert sentence_fingerprint(prefix + "A", None, "zh") != sentence_fingerprint(prefix + "B", None, "zh")

    def test_field_boundaries_are_preserved(self):
        """["ab", "c"] and ["a", "bc"] must not collide."""
        assert compute_cache_key("sentence", ["ab", "c"], "zh") != compute_cache_key("sentence", ["a", "bc"], "zh")

    def test_missing_context_equals_empty_context(self):
        assert sentence_fingerprint("문장", None, "ko") == sentence_fingerprint("문장", "", "ko")

    def test_canonical_bytes_have_sorted_keys(self):
        raw = canonical_request_bytes("sentence", ["x"], "zh").decode("utf-8")
        assert raw.index('"fields"') < raw.index('"kind"') < raw.index('"language"') < raw.index('"media"')


@pytest.mark.unit
class TestObjectKeys:
    """Object-store path layout."""

    def test_question_and_sentence_paths(self):
        assert object_key(ResultKind.QUESTION, "abc") == "ai-cache/topik/abc.json"
        assert object_key(ResultKind.SENTENCE, "abc") == "ai-cache/sentence/abc.json"

    def test_transcript_path(self):
        assert transcript_object_key("podcast:ep-42") == "transcripts/podcast:ep-42.json"

    def test_snapshot_path(self):
        assert snapshot_object_key("trending") == "snapshots/trending.json"

    @pytest.mark.parametrize("episode_id", ["", ".", "..", "../etc/passwd", "a/b", "ep 1", "ep1\n", "x" * 201])
    def test_invalid_episode_ids_rejected(self, episode_id):
        with pytest.raises(ValidationError):
            transcript_object_key(episode_id)
