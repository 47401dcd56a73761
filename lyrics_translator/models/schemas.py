"""
Request/Response Schemas
========================
Validation schemas for control API requests and responses.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lyrics_translator.config.constants import (
    SETTING_MAX_COMPLETION_TOKENS,
    SETTING_TEMPERATURE,
    SETTING_TOP_P,
)
from lyrics_translator.utils.validators import (
    validate_api_key,
    validate_model_name,
    validate_param,
    validate_provider,
)


@dataclass
class ConfigUpdateRequest:
    """Request schema for the reconfiguration endpoint."""
    provider: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[Any] = None
    top_p: Optional[Any] = None
    max_completion_tokens: Optional[Any] = None
    smart_skip: Optional[bool] = None
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConfigUpdateRequest':
        known = {
            name: data.get(name)
            for name in ('provider', 'model', 'api_key', 'temperature',
                         'top_p', 'max_completion_tokens', 'smart_skip')
        }
        return cls(**known)

    def validate(self) -> List[str]:
        """Validate the request, parsing numeric parameters into ``params``."""
        errors = []
        if self.provider is not None:
            ok, error = validate_provider(self.provider)
            if not ok:
                errors.append(error)
        if self.model is not None:
            ok, error = validate_model_name(self.model.strip())
            if not ok:
                errors.append(error)
        if self.api_key is not None:
            ok, error = validate_api_key(self.api_key)
            if not ok:
                errors.append(error)
        for setting, value in (
            (SETTING_TEMPERATURE, self.temperature),
            (SETTING_TOP_P, self.top_p),
            (SETTING_MAX_COMPLETION_TOKENS, self.max_completion_tokens),
        ):
            if value is None:
                continue
            ok, error, parsed = validate_param(setting, value)
            if ok:
                self.params[setting] = parsed
            else:
                errors.append(error)
        if self.smart_skip is not None and not isinstance(self.smart_skip, bool):
            errors.append("smart_skip must be a boolean")
        if not self.has_changes():
            errors.append("No configuration values provided")
        return errors

    def has_changes(self) -> bool:
        return any(value is not None for value in (
            self.provider, self.model, self.api_key, self.temperature,
            self.top_p, self.max_completion_tokens, self.smart_skip
        ))


@dataclass
class HealthStatus:
    """Health check response."""
    status: str
    worker_running: bool
    database_connected: bool
    version: str

    def to_dict(self) -> dict:
        return {
            'status': self.status,
            'worker_running': self.worker_running,
            'database_connected': self.database_connected,
            'version': self.version,
        }
