"""
Constants and Enums for Lyrics Translator
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

# Cache value meaning "known not to need translation"
SKIP_SENTINEL = "__SKIP__"

# Value the model returns for lines it declines to translate
SKIP_MARKER = "SKIP"

TARGET_LANGUAGE = "English"


# Supported source languages (detected per batch)
SUPPORTED_LANGUAGES = {
    'ja': 'Japanese',
    'ko': 'Korean',
    'zh': 'Chinese',
}


@dataclass(frozen=True)
class ProviderInfo:
    """An OpenAI-compatible chat completions provider."""
    id: str
    name: str
    url: str

    @property
    def key_setting(self) -> str:
        return f"llm_{self.id}_api_key"

    @property
    def model_setting(self) -> str:
        return f"llm_{self.id}_model"


PROVIDERS: Dict[str, ProviderInfo] = {
    'groq': ProviderInfo(
        id='groq',
        name='Groq',
        url='https://api.groq.com/openai/v1/chat/completions',
    ),
    'cerebras': ProviderInfo(
        id='cerebras',
        name='Cerebras',
        url='https://api.cerebras.ai/v1/chat/completions',
    ),
}


class PipelineState(str, Enum):
    """User-visible state of the translation pipeline."""
    IDLE = "idle"
    COLLECTING = "collecting"
    TRANSLATING = "translating"
    BACKOFF = "backoff"
    FATAL = "fatal"
    SUPPRESSED = "suppressed"


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class ErrorPolicy:
    """How the dispatcher treats one HTTP status code."""
    fallback_message: str
    backoff: Optional[float] = None
    fatal: bool = False
    log: bool = False


ERROR_POLICIES: Dict[int, ErrorPolicy] = {
    400: ErrorPolicy('Bad Request', log=True),
    401: ErrorPolicy('Invalid API Key', fatal=True),
    403: ErrorPolicy('Permission Denied', fatal=True),
    404: ErrorPolicy('Model Not Found', fatal=True),
    408: ErrorPolicy('Request Timeout', backoff=3.0),
    413: ErrorPolicy('Request Too Large', log=True),
    422: ErrorPolicy('Unprocessable', log=True),
    429: ErrorPolicy('Rate Limited', backoff=60.0),
    498: ErrorPolicy('Capacity Exceeded', backoff=30.0),
    500: ErrorPolicy('Server Error', backoff=10.0),
    502: ErrorPolicy('Bad Gateway', backoff=5.0),
    503: ErrorPolicy('Service Unavailable', backoff=15.0),
}

DEFAULT_SERVER_ERROR_POLICY = ErrorPolicy('Server Error', backoff=5.0)
UNKNOWN_ERROR_POLICY = ErrorPolicy('Error')

# Longer API messages are replaced by the policy's fallback in the status line
MAX_STATUS_MESSAGE_LENGTH = 30


def get_error_policy(status_code: int) -> ErrorPolicy:
    """Look up the policy for an HTTP status code."""
    policy = ERROR_POLICIES.get(status_code)
    if policy is not None:
        return policy
    if status_code >= 500:
        return DEFAULT_SERVER_ERROR_POLICY
    return UNKNOWN_ERROR_POLICY


# Persisted setting keys
SETTING_PROVIDER = 'llm_current_provider'
SETTING_TEMPERATURE = 'llm_temperature'
SETTING_TOP_P = 'llm_top_p'
SETTING_MAX_COMPLETION_TOKENS = 'llm_max_completion_tokens'
SETTING_SMART_SKIP = 'llm_smart_skip'
SETTING_CACHE = 'llm_cache_v2'

# (min, max) accepted for each tunable parameter
PARAM_RANGES = {
    SETTING_TEMPERATURE: (0.0, 2.0),
    SETTING_TOP_P: (0.0, 1.0),
    SETTING_MAX_COMPLETION_TOKENS: (128, 4096),
}
