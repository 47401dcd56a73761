"""
Lyrics Translator - Incremental LLM lyrics translation
======================================================
This package watches a mutating content tree for lyric lines, deduplicates
and caches them, batches them to an OpenAI-compatible chat completions API
under a strict rate limit, and renders translations back onto whichever
lines are live when results arrive.

Version: 1.0.0
"""

__version__ = "1.0.0"

from lyrics_translator.app import create_app, run_server

__all__ = ["create_app", "run_server", "__version__"]
