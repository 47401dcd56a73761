"""
LLM API Client
==============
Client for OpenAI-compatible chat completions providers.
"""
import json
from typing import Any, Dict, Optional, Tuple

import requests

from lyrics_translator.config import config
from lyrics_translator.config.constants import ProviderInfo
from lyrics_translator.config.settings import get_timeouts
from lyrics_translator.errors import MalformedResponseError, ProviderError
from lyrics_translator.utils.logging import get_logger, debug_print


# Raw bodies shorter than this are shown as the error message when not JSON
MAX_RAW_ERROR_LENGTH = 100


def build_request_payload(
    provider_id: str,
    model: str,
    system_prompt: str,
    user_message: str,
    temperature: float,
    top_p: float,
    max_completion_tokens: int = -1
) -> Dict[str, Any]:
    """
    Build the chat completions request body.

    ``max_completion_tokens`` of -1 omits the field. Groq gpt-oss models are told
    not to return reasoning; every other model gets hidden reasoning output.
    """
    payload = {
        'model': model,
        'messages': [
            {'role': 'system', 'content': system_prompt},
            {'role': 'user', 'content': user_message},
        ],
        'temperature': temperature,
        'top_p': top_p,
        'stream': False,
    }
    if max_completion_tokens != -1:
        payload['max_completion_tokens'] = max_completion_tokens
    if provider_id == 'groq' and 'gpt-oss' in model:
        payload['include_reasoning'] = False
    else:
        payload['reasoning_format'] = 'hidden'
    return payload


def extract_error_message(body: str) -> Optional[str]:
    """Pull a human-readable message out of an error response body."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        if body and len(body) < MAX_RAW_ERROR_LENGTH:
            return body
        return None

    if isinstance(data, str):
        return data or None
    if not isinstance(data, dict):
        return None

    error = data.get('error')
    if isinstance(error, dict) and error.get('message'):
        return str(error['message'])
    for candidate in (data.get('message'), error, data.get('detail')):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


class LLMClient:
    """Client for chat completions requests."""

    def __init__(self, session: requests.Session = None, timeouts: Tuple[int, int] = None):
        self.timeouts = timeouts or get_timeouts(config)
        self.logger = get_logger().network_logger

        if session is None:
            # Set up session with connection pooling; retries are the dispatcher's job
            session = requests.Session()
            adapter = requests.adapters.HTTPAdapter(
                max_retries=0,
                pool_connections=config.provider.pool_size,
                pool_maxsize=config.provider.pool_size
            )
            session.mount('http://', adapter)
            session.mount('https://', adapter)
        self.session = session

    def chat_completion(self, provider: ProviderInfo, api_key: str, payload: Dict[str, Any]) -> str:
        """
        Send one chat completions request.

        Args:
            provider: Provider to call
            api_key: Bearer token for the provider
            payload: Request body from :func:`build_request_payload`

        Returns:
            The assistant message content

        Raises:
            ProviderError: on transport failure, timeout or a non-200 status
            MalformedResponseError: if a 200 response has no message content
        """
        debug_print(
            f"[REQUEST] {provider.name} model={payload.get('model')} "
            f"messages={len(payload.get('messages', []))}",
            'DEBUG', 'NETWORK'
        )
        try:
            response = self.session.post(
                provider.url,
                json=payload,
                headers={'Authorization': f'Bearer {api_key}'},
                timeout=self.timeouts
            )
        except requests.Timeout:
            self.logger.warning(f"{provider.name} request timed out")
            raise ProviderError("Request timed out")
        except requests.RequestException as e:
            self.logger.warning(f"{provider.name} request failed: {e}")
            raise ProviderError(f"Network error: {e}")

        if response.status_code != 200:
            raise ProviderError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text or ""
            )

        try:
            data = response.json()
            content = data['choices'][0]['message']['content']
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(f"Unexpected response shape: {e}", raw=response.text or "")
        if not isinstance(content, str):
            raise MalformedResponseError("Message content is not text", raw=response.text or "")

        usage = data.get('usage') or {}
        debug_print(
            f"[RESPONSE] {len(content)} chars, tokens={usage.get('total_tokens', '?')}",
            'DEBUG', 'NETWORK'
        )
        return content.strip()

    def close(self):
        self.session.close()
