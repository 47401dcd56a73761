"""
Lyrics Translator test suite.
Run with: pytest tests/ -v
"""
