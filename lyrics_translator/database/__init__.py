"""
Lyrics Translator - Persistence Module
"""
from lyrics_translator.database.connection import Database, get_database, reset_database
from lyrics_translator.database.repositories import KeyValueRepository, SettingsRepository

__all__ = [
    "Database",
    "get_database",
    "reset_database",
    "KeyValueRepository",
    "SettingsRepository"
]
