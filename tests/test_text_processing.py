"""
Unit Tests for Text Processing
"""
import pytest
import os
import sys

os.environ.setdefault('VERBOSE_DEBUG', 'false')
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lyrics_translator.errors import MalformedResponseError
from lyrics_translator.utils.text_processing import (
    KeyNormalizer,
    attempt_repair,
    clean_text_for_comparison,
    content_hash,
    extract_json_object,
    normalize_key,
    parse_translation_map,
    preview,
)


class TestNormalizeKey:
    """Test key canonicalization."""

    def test_whitespace_and_case_insensitive(self):
        assert normalize_key("Hello  World") == normalize_key("hello world")
        assert normalize_key(" 君の 名は\n") == normalize_key("君の名は")

    def test_idempotent(self):
        for text in ["こんにちは 世界", "  ABC def ", "사랑해 요", "Straße"]:
            once = normalize_key(text)
            assert normalize_key(once) == once

    def test_empty(self):
        assert normalize_key("") == ""
        assert normalize_key(None) == ""
        assert normalize_key("   ") == ""

    def test_casefold(self):
        assert normalize_key("STRASSE") == normalize_key("straße")


class TestKeyNormalizer:

    def test_matches_plain_function(self):
        normalizer = KeyNormalizer(maxsize=10, ttl=60)
        assert normalizer("A b C") == normalize_key("A b C")

    def test_memoizes(self):
        normalizer = KeyNormalizer(maxsize=10, ttl=60)
        normalizer("one")
        normalizer("one")
        normalizer("two")
        assert len(normalizer) == 2

    def test_clear(self):
        normalizer = KeyNormalizer(maxsize=10, ttl=60)
        normalizer("one")
        normalizer.clear()
        assert len(normalizer) == 0

    def test_bounded(self):
        normalizer = KeyNormalizer(maxsize=3, ttl=60)
        for i in range(10):
            normalizer(f"line {i}")
        assert len(normalizer) == 3


class TestComparisonHelpers:

    def test_clean_text_drops_punctuation(self):
        assert clean_text_for_comparison("Hello, World!") == "helloworld"
        assert clean_text_for_comparison("") == ""

    def test_content_hash_stable(self):
        assert content_hash("abc") == content_hash("abc")
        assert content_hash("abc") != content_hash("abd")
        assert content_hash("") == '0'

    def test_preview_truncates(self):
        assert preview("short") == "short"
        assert preview("x" * 50, length=10) == "x" * 10 + "..."
        assert "\n" not in preview("a\nb")


class TestAttemptRepair:
    """Test the missing-comma repair."""

    def test_inserts_missing_comma(self):
        raw = '{"id_abc12": "Hello" "id_def34": "World"}'
        assert attempt_repair(raw) == '{"id_abc12": "Hello", "id_def34": "World"}'

    def test_across_newlines(self):
        raw = '{"id_1": "a"\n  "id_2": "b"}'
        repaired = attempt_repair(raw)
        assert parse_translation_map(repaired) == {'id_1': 'a', 'id_2': 'b'}

    def test_valid_json_unchanged(self):
        raw = '{"id_1": "a", "id_2": "b"}'
        assert attempt_repair(raw) == raw


class TestParseTranslationMap:

    def test_plain_object(self):
        assert parse_translation_map('{"id_1": "Hi"}') == {'id_1': 'Hi'}

    def test_surrounding_text_ignored(self):
        content = 'Sure!\n```json\n{"id_1": "Hi", "id_2": "SKIP"}\n```'
        assert parse_translation_map(content) == {'id_1': 'Hi', 'id_2': 'SKIP'}

    def test_repairs_missing_comma(self):
        assert parse_translation_map('{"id_1": "Hi" "id_2": "Bye"}') == {'id_1': 'Hi', 'id_2': 'Bye'}

    def test_non_string_values_coerced(self):
        assert parse_translation_map('{"id_1": 7, "id_2": null}') == {'id_1': '7'}

    def test_empty_object(self):
        assert parse_translation_map('{}') == {}

    def test_unparseable_raises(self):
        with pytest.raises(MalformedResponseError):
            parse_translation_map('not json at all')

    def test_array_raises(self):
        with pytest.raises(MalformedResponseError):
            parse_translation_map('["a", "b"]')

    def test_extract_json_object(self):
        assert extract_json_object('  {"a": 1}  ') == '{"a": 1}'
        assert extract_json_object('nothing') == 'nothing'
        assert extract_json_object(None) == ''
