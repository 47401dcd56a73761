"""
Centralized Configuration for Lyrics Translator
================================================
All configuration values in one place, configurable via environment variables.
User-tunable values persisted by the settings repository take precedence at runtime.
"""
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


def _get_int_env(key: str, default: int) -> int:
    """Get integer from environment variable."""
    try:
        return int(os.environ.get(key, default))
    except (ValueError, TypeError):
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float from environment variable."""
    try:
        return float(os.environ.get(key, default))
    except (ValueError, TypeError):
        return default


def get_app_dir() -> str:
    """Get the application data directory."""
    override = os.environ.get('LYRICS_TRANSLATOR_APP_DIR')
    if override:
        return override
    if getattr(sys, 'frozen', False):
        return os.path.dirname(sys.executable)
    return os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


APP_DIR = get_app_dir()


@dataclass
class ServerConfig:
    """Control API server configuration."""
    host: str = field(default_factory=lambda: os.environ.get("LYRICS_TRANSLATOR_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _get_int_env("LYRICS_TRANSLATOR_PORT", 5002))
    debug: bool = field(default_factory=lambda: _get_bool_env("LYRICS_TRANSLATOR_DEBUG", False))

    cors_origins: List[str] = field(default_factory=lambda: [
        "http://localhost:5002",
        "http://127.0.0.1:5002"
    ])


@dataclass
class ProviderConfig:
    """LLM provider connection configuration."""
    default_provider: str = field(default_factory=lambda: os.environ.get("LLM_PROVIDER", "groq"))
    connect_timeout: int = field(default_factory=lambda: _get_int_env("LLM_CONNECT_TIMEOUT", 10))
    read_timeout: int = field(default_factory=lambda: _get_int_env("LLM_READ_TIMEOUT", 60))
    pool_size: int = field(default_factory=lambda: _get_int_env("LLM_POOL_SIZE", 4))


@dataclass
class LLMConfig:
    """Default sampling parameters (overridable through persisted settings)."""
    temperature: float = field(default_factory=lambda: _get_float_env("LLM_TEMPERATURE", 0.6))
    top_p: float = field(default_factory=lambda: _get_float_env("LLM_TOP_P", 0.95))
    max_completion_tokens: int = field(default_factory=lambda: _get_int_env("LLM_MAX_COMPLETION_TOKENS", 2048))


@dataclass
class PipelineConfig:
    """Batching, pacing and tracking configuration."""
    min_request_interval: float = field(default_factory=lambda: _get_float_env("MIN_REQUEST_INTERVAL", 5.0))
    batch_collection_delay: float = field(default_factory=lambda: _get_float_env("BATCH_COLLECTION_DELAY", 0.2))
    post_batch_delay: float = field(default_factory=lambda: _get_float_env("POST_BATCH_DELAY", 0.2))
    max_batch_size: int = field(default_factory=lambda: _get_int_env("MAX_BATCH_SIZE", 20))
    rescan_throttle: float = field(default_factory=lambda: _get_float_env("RESCAN_THROTTLE", 0.5))
    viewport_margin: float = field(default_factory=lambda: _get_float_env("VIEWPORT_MARGIN", 300.0))
    smart_skip_threshold: float = field(default_factory=lambda: _get_float_env("SMART_SKIP_THRESHOLD", 0.65))
    idle_poll_interval: float = field(default_factory=lambda: _get_float_env("IDLE_POLL_INTERVAL", 2.0))


@dataclass
class CacheConfig:
    """Translation cache and normalization memo configuration."""
    max_entries: int = field(default_factory=lambda: _get_int_env("CACHE_MAX_ENTRIES", 10000))
    memo_size: int = field(default_factory=lambda: _get_int_env("NORMALIZE_MEMO_SIZE", 2000))
    memo_ttl: float = field(default_factory=lambda: _get_float_env("NORMALIZE_MEMO_TTL", 3600.0))
    save_interval: float = field(default_factory=lambda: _get_float_env("CACHE_SAVE_INTERVAL", 10.0))


@dataclass
class LoggingConfig:
    """Logging configuration."""
    verbose_debug: bool = field(default_factory=lambda: _get_bool_env("VERBOSE_DEBUG", False))
    log_buffer_size: int = field(default_factory=lambda: _get_int_env("LOG_BUFFER_SIZE", 500))
    log_file_max_bytes: int = field(default_factory=lambda: _get_int_env("LOG_FILE_MAX_BYTES", 5 * 1024 * 1024))
    log_file_backup_count: int = field(default_factory=lambda: _get_int_env("LOG_FILE_BACKUP_COUNT", 3))
    db_timeout: int = field(default_factory=lambda: _get_int_env("DB_TIMEOUT", 30))


@dataclass
class PathConfig:
    """Path configuration."""
    app_dir: str = field(default_factory=lambda: APP_DIR)

    @property
    def log_folder(self) -> Path:
        return Path(self.app_dir) / 'logs'

    @property
    def db_path(self) -> str:
        return os.environ.get('LYRICS_TRANSLATOR_DB', os.path.join(self.app_dir, 'lyrics_translator.db'))


@dataclass
class Config:
    """Main application configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    paths: PathConfig = field(default_factory=PathConfig)

    def __post_init__(self):
        """Create necessary directories after initialization."""
        self._create_directories()
        self._validate()

    def _create_directories(self):
        os.makedirs(self.paths.log_folder, exist_ok=True)

    def _validate(self):
        """Validate configuration values."""
        if self.pipeline.max_batch_size < 1:
            raise ValueError("max_batch_size must be at least 1")
        if self.pipeline.smart_skip_threshold < 0 or self.pipeline.smart_skip_threshold > 1:
            raise ValueError("smart_skip_threshold must be between 0 and 1")
        if self.pipeline.min_request_interval < 0 or self.pipeline.batch_collection_delay < 0:
            raise ValueError("pipeline intervals must not be negative")
        if self.cache.max_entries < 1:
            raise ValueError("cache max_entries must be at least 1")


def get_timeouts(cfg: 'Config') -> Tuple[int, int]:
    """Return the (connect, read) timeout pair used by the HTTP client."""
    return cfg.provider.connect_timeout, cfg.provider.read_timeout


# Global configuration instance
config = Config()
