"""
Exceptions raised inside the translation pipeline.

None of these escape a pipeline tick: the dispatcher converts them into a
``BatchResult`` outcome.
"""
from typing import Optional


class LyricsTranslatorError(Exception):
    """Base class for all lyrics translator errors."""


class ConfigurationError(LyricsTranslatorError):
    """Credentials or model identifier are missing or rejected."""


class ProviderError(LyricsTranslatorError):
    """The provider could not be reached or answered with an HTTP error."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MalformedResponseError(LyricsTranslatorError):
    """The model output could not be parsed as a JSON object, even after repair."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw
