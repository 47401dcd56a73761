"""
Unit Tests for Language Detection
"""
import pytest
import os
import sys

os.environ.setdefault('VERBOSE_DEBUG', 'false')
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lyrics_translator.utils.language_detection import (
    counts_as_skipped,
    detect_batch_language,
    detect_language,
    is_skip_result,
    needs_translation,
)


class TestNeedsTranslation:
    """Test the local skip heuristic."""

    @pytest.mark.parametrize("text", ["こんにちは", "カタカナ", "사랑해", "我爱你", "Hello 世界"])
    def test_source_scripts(self, text):
        assert needs_translation(text)

    @pytest.mark.parametrize("text", ["", "   ", "Hello", "123 !?", "Ça va"])
    def test_no_source_script(self, text):
        assert not needs_translation(text)

    def test_instrumental_markers(self):
        assert not needs_translation("♪ 間奏 ♪")
        assert not needs_translation("🎵")


class TestDetectLanguage:

    def test_single_lines(self):
        assert detect_language("こんにちは") == 'ja'
        assert detect_language("안녕하세요") == 'ko'
        assert detect_language("你好") == 'zh'
        assert detect_language("hello") is None

    def test_kana_decides_japanese(self):
        assert detect_batch_language(["東京", "行きたい"]) == 'ja'

    def test_korean_beats_chinese(self):
        assert detect_batch_language(["你好", "안녕"]) == 'ko'

    def test_kanji_only_is_chinese(self):
        assert detect_batch_language(["我爱你", "永远"]) == 'zh'

    def test_unknown(self):
        assert detect_batch_language(["hello", "world"]) == 'unknown'
        assert detect_batch_language([]) == 'unknown'


class TestSkipResults:

    @pytest.mark.parametrize("value", [None, "", "  ", "SKIP", " SKIP ", '<x val="SKIP"/>'])
    def test_skip_values(self, value):
        assert is_skip_result(value)

    def test_real_translation(self):
        assert not is_skip_result("Hello")
        assert not is_skip_result("skip to the end")

    def test_identical_counts_as_skipped(self):
        assert counts_as_skipped("You are KING", "you are king")
        assert counts_as_skipped("君", "SKIP")
        assert counts_as_skipped("君", None)

    def test_translation_not_skipped(self):
        assert not counts_as_skipped("君", "You")
