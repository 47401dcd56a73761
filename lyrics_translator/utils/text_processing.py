"""
Text Processing Utilities
=========================
Key normalization, comparison helpers and model-output parsing.
"""
import hashlib
import json
import re
import threading
from typing import Dict, Optional

from cachetools import TTLCache

from lyrics_translator.config import config
from lyrics_translator.errors import MalformedResponseError
from lyrics_translator.utils.logging import debug_print


WHITESPACE_PATTERN = re.compile(r'\s+')
JSON_OBJECT_PATTERN = re.compile(r'\{.*\}', re.DOTALL)
# A string value immediately followed by the next key without a comma
MISSING_COMMA_PATTERN = re.compile(r'"\s*("id_)')


def normalize_key(text: str) -> str:
    """
    Canonicalize text into a lookup key.

    All whitespace is removed and the text is case-folded, so two renders of the
    same line that differ only in incidental spacing or case share one key.
    """
    if not text:
        return ""
    return WHITESPACE_PATTERN.sub('', text).casefold()


class KeyNormalizer:
    """Memoizing front for :func:`normalize_key`; the memo only saves work."""

    def __init__(self, maxsize: int = None, ttl: float = None):
        self.cache: TTLCache = TTLCache(
            maxsize=maxsize or config.cache.memo_size,
            ttl=ttl or config.cache.memo_ttl
        )
        self._lock = threading.Lock()

    def __call__(self, text: str) -> str:
        return self.normalize(text)

    def normalize(self, text: str) -> str:
        if not text:
            return ""
        with self._lock:
            key = self.cache.get(text)
            if key is None:
                key = normalize_key(text)
                self.cache[text] = key
            return key

    def __len__(self) -> int:
        return len(self.cache)

    def clear(self):
        with self._lock:
            self.cache.clear()


def clean_text_for_comparison(text: str) -> str:
    """Lowercase letters and digits only; punctuation, symbols and spaces dropped."""
    if not text:
        return ""
    return ''.join(ch for ch in text.lower() if ch.isalnum())


def content_hash(key: str) -> str:
    """Short stable digest of a normalized key, used as a processed marker."""
    if not key:
        return '0'
    return hashlib.sha1(key.encode('utf-8')).hexdigest()[:12]


def attempt_repair(raw: str) -> str:
    """
    Fix the most common model JSON malformation: a missing comma between a
    string value and the next ``"id_`` key.

    Args:
        raw: Raw JSON-ish text from the model

    Returns:
        The repaired text (unchanged when the pattern does not occur)
    """
    return MISSING_COMMA_PATTERN.sub(r'", \1', raw)


def extract_json_object(content: str) -> str:
    """Return the outermost ``{...}`` span of the model output, or the stripped input."""
    content = (content or "").strip()
    match = JSON_OBJECT_PATTERN.search(content)
    return match.group(0) if match else content


def parse_translation_map(content: str) -> Dict[str, str]:
    """
    Parse model output into an ``{id: translation}`` map.

    One repair pass is attempted before giving up.

    Raises:
        MalformedResponseError: if the output is not a JSON object after repair
    """
    raw = extract_json_object(content)
    data = _loads_object(raw)
    if data is None:
        repaired = attempt_repair(raw)
        data = _loads_object(repaired)
        if data is None:
            raise MalformedResponseError("Model output is not valid JSON", raw=raw)
        debug_print("[PARSE] Repaired malformed JSON response", 'WARNING', 'PARSE')

    result = {}
    for item_id, value in data.items():
        if isinstance(value, str):
            result[str(item_id)] = value
        elif value is not None:
            result[str(item_id)] = str(value)
    return result


def _loads_object(raw: str) -> Optional[dict]:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    return data if isinstance(data, dict) else None


def preview(text: str, length: int = 40) -> str:
    """Single-line preview of a text for log messages."""
    text = (text or "").replace('\n', ' ')
    return text if len(text) <= length else text[:length] + '...'
