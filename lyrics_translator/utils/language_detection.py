"""
Language Detection Utilities
=============================
Script-family heuristics deciding whether a line needs translation, which
source language a batch is in, and whether a model answer counts as a skip.
"""
import re
from typing import Iterable, Optional

from lyrics_translator.config.constants import SKIP_MARKER


HIRAGANA = re.compile(r"[\u3040-\u309F]")
KATAKANA = re.compile(r"[\u30A0-\u30FF]")
CJK_UNIFIED = re.compile(r"[\u4E00-\u9FFF]")
HANGUL = re.compile(r"[\uAC00-\uD7AF]")
SOURCE_SCRIPTS = re.compile(r"[\u3040-\u30FF\u4E00-\u9FFF\uAC00-\uD7AF]")

INSTRUMENTAL_MARKERS = ('♪', '🎵')


def needs_translation(text: str) -> bool:
    """
    Check whether a line contains any character from the source script families.

    Empty lines, instrumental markers and lines without Japanese, Korean or
    Chinese characters are resolved without a network call.
    """
    if not text or not text.strip():
        return False
    if any(marker in text for marker in INSTRUMENTAL_MARKERS):
        return False
    return SOURCE_SCRIPTS.search(text) is not None


def detect_language(text: str) -> Optional[str]:
    """Detect the source language of a single line ('ja', 'ko', 'zh' or None)."""
    if HIRAGANA.search(text) or KATAKANA.search(text):
        return 'ja'
    if HANGUL.search(text):
        return 'ko'
    if CJK_UNIFIED.search(text):
        return 'zh'
    return None


def detect_batch_language(lines: Iterable[str]) -> str:
    """
    Detect the language of a batch of lines.

    Any kana decides Japanese (kanji alone cannot tell Japanese from Chinese);
    otherwise Korean wins over Chinese.

    Returns:
        'ja', 'ko', 'zh' or 'unknown'
    """
    found = set()
    for line in lines:
        lang = detect_language(line)
        if lang == 'ja':
            return 'ja'
        if lang:
            found.add(lang)
    if 'ko' in found:
        return 'ko'
    if 'zh' in found:
        return 'zh'
    return 'unknown'


def is_skip_result(translation: Optional[str]) -> bool:
    """A missing, empty or explicit SKIP answer means no translation is available."""
    if not translation:
        return True
    translation = translation.strip()
    return not translation or translation == SKIP_MARKER or 'val="SKIP"' in translation


def counts_as_skipped(original: str, translation: Optional[str]) -> bool:
    """
    Check whether a model answer counts towards the smart-skip ratio.

    Besides explicit skips, an answer identical to its source (ignoring case)
    shows the line was already in the target language.
    """
    if is_skip_result(translation):
        return True
    return bool(original) and translation.strip().lower() == original.strip().lower()
