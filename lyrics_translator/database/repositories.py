"""
Database Repositories
=====================
The persisted flat key-value store and the typed settings view over it.
"""
import json
from typing import Any, Dict, Optional

from lyrics_translator.config import config
from lyrics_translator.config.constants import (
    PROVIDERS,
    SETTING_CACHE,
    SETTING_MAX_COMPLETION_TOKENS,
    SETTING_PROVIDER,
    SETTING_SMART_SKIP,
    SETTING_TEMPERATURE,
    SETTING_TOP_P,
    ProviderInfo,
)
from lyrics_translator.database.connection import Database, get_database
from lyrics_translator.utils.logging import get_logger


class KeyValueRepository:
    """
    Flat key-value store surviving across sessions.

    Values are stored JSON-encoded; a missing key yields the caller's default.
    """

    def __init__(self, database: Database = None):
        self.db = database or get_database()
        self.db.initialize()
        self.logger = get_logger().db_logger

    def get(self, key: str, default: Any = None) -> Any:
        row = self.db.fetchone("SELECT value FROM settings WHERE key = ?", (key,))
        if row is None:
            return default
        try:
            return json.loads(row['value'])
        except json.JSONDecodeError:
            self.logger.warning(f"Discarding undecodable value for {key}")
            return default

    def set(self, key: str, value: Any) -> None:
        with self.db.transaction() as conn:
            conn.execute("""
                INSERT INTO settings (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
            """, (key, json.dumps(value, ensure_ascii=False)))

    def delete(self, key: str) -> None:
        with self.db.transaction() as conn:
            conn.execute("DELETE FROM settings WHERE key = ?", (key,))

    def keys(self) -> list:
        return [row['key'] for row in self.db.fetchall("SELECT key FROM settings ORDER BY key")]


class SettingsRepository:
    """Typed access to provider, credential and LLM parameter settings."""

    def __init__(self, store: KeyValueRepository = None):
        self.store = store or KeyValueRepository()
        self.logger = get_logger().app_logger

    @property
    def provider_id(self) -> str:
        provider_id = self.store.get(SETTING_PROVIDER) or config.provider.default_provider
        return provider_id if provider_id in PROVIDERS else 'groq'

    @property
    def provider(self) -> ProviderInfo:
        return PROVIDERS[self.provider_id]

    @property
    def api_key(self) -> str:
        return self.store.get(self.provider.key_setting) or ''

    @property
    def model(self) -> str:
        return self.store.get(self.provider.model_setting) or ''

    @property
    def temperature(self) -> float:
        return self.store.get(SETTING_TEMPERATURE, config.llm.temperature)

    @property
    def top_p(self) -> float:
        return self.store.get(SETTING_TOP_P, config.llm.top_p)

    @property
    def max_completion_tokens(self) -> int:
        return self.store.get(SETTING_MAX_COMPLETION_TOKENS, config.llm.max_completion_tokens)

    @property
    def smart_skip_enabled(self) -> bool:
        return bool(self.store.get(SETTING_SMART_SKIP, True))

    def switch_provider(self, provider_id: str) -> bool:
        """
        Make ``provider_id`` current.

        Returns:
            True when the provider actually changed
        """
        if provider_id not in PROVIDERS:
            raise ValueError(f"Unknown provider: {provider_id}")
        changed = provider_id != self.provider_id
        self.store.set(SETTING_PROVIDER, provider_id)
        if changed:
            self.logger.info(f"Switched provider to {PROVIDERS[provider_id].name}")
        return changed

    def set_model(self, model: str, provider_id: str = None) -> None:
        provider = PROVIDERS[provider_id or self.provider_id]
        self.store.set(provider.model_setting, model.strip())

    def set_api_key(self, api_key: str, provider_id: str = None) -> None:
        provider = PROVIDERS[provider_id or self.provider_id]
        self.store.set(provider.key_setting, api_key.strip())

    def set_param(self, setting: str, value: Any) -> None:
        self.store.set(setting, value)

    def set_smart_skip(self, enabled: bool) -> None:
        self.store.set(SETTING_SMART_SKIP, bool(enabled))

    def missing_configuration(self) -> list:
        """Names of required settings that are not set for the current provider."""
        missing = []
        if not self.api_key:
            missing.append('API key')
        if not self.model:
            missing.append('model')
        return missing

    def to_dict(self) -> Dict[str, Any]:
        """Public view of the settings; the API key is never exposed."""
        return {
            'provider': self.provider_id,
            'providers': {pid: p.name for pid, p in PROVIDERS.items()},
            'model': self.model,
            'api_key_set': bool(self.api_key),
            'temperature': self.temperature,
            'top_p': self.top_p,
            'max_completion_tokens': self.max_completion_tokens,
            'smart_skip': self.smart_skip_enabled,
        }

    def load_cache(self) -> Optional[dict]:
        return self.store.get(SETTING_CACHE)
