"""
Rate-Limited Dispatcher
=======================
Sends batches to the provider no more often than the minimum interval,
classifies every outcome and keeps the backoff timer.
"""
import random
import string
from typing import Dict, List, Optional

from lyrics_translator.config import config
from lyrics_translator.config.constants import MAX_STATUS_MESSAGE_LENGTH, get_error_policy
from lyrics_translator.errors import MalformedResponseError, ProviderError
from lyrics_translator.models.pipeline import (
    Batch,
    BatchResult,
    DispatchOutcome,
    DispatcherState,
    QueueItem,
)
from lyrics_translator.services.llm_client import LLMClient, build_request_payload, extract_error_message
from lyrics_translator.services.prompts import build_system_prompt, build_user_message
from lyrics_translator.utils.language_detection import detect_batch_language
from lyrics_translator.utils.logging import get_logger, debug_print
from lyrics_translator.utils.text_processing import parse_translation_map


ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 5


class RateLimitedDispatcher:
    """Dispatches one batch at a time through the LLM client."""

    def __init__(
        self,
        client: LLMClient,
        settings,
        clock,
        state: DispatcherState = None,
        min_interval: float = None,
        rng: random.Random = None
    ):
        self.client = client
        self.settings = settings
        self.clock = clock
        self.state = state or DispatcherState()
        self.min_interval = config.pipeline.min_request_interval if min_interval is None else min_interval
        self.rng = rng or random.Random()
        self.logger = get_logger().network_logger

    # ------------------------------------------------------------------
    # Batch building
    # ------------------------------------------------------------------

    def new_id(self, taken) -> str:
        while True:
            item_id = 'id_' + ''.join(self.rng.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
            if item_id not in taken:
                return item_id

    def build_batch(self, items: List[QueueItem]) -> Batch:
        """
        Assign an opaque identifier to each distinct text.

        Items repeating a key already in the batch are folded into the first one,
        so each logical line is sent once.
        """
        by_key: Dict[str, QueueItem] = {}
        distinct = []
        for item in items:
            first = by_key.get(item.key)
            if first is None:
                by_key[item.key] = item
                distinct.append(item)
            else:
                for node in item.units:
                    first.add_unit(node)

        id_map = {}
        for item in distinct:
            id_map[self.new_id(id_map)] = item
        return Batch(items=distinct, id_map=id_map)

    # ------------------------------------------------------------------
    # Pacing
    # ------------------------------------------------------------------

    def wait_time(self, now: float) -> float:
        """Seconds until the next request may be sent."""
        return self.state.wait_time(now, self.min_interval)

    def backoff_remaining(self, now: float) -> float:
        return self.state.backoff_remaining(now)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, batch: Batch, song_context: Optional[str] = None) -> BatchResult:
        """
        Send a batch and classify the outcome. Never raises for provider errors.

        Waits through the clock when the minimum interval has not yet elapsed.
        """
        wait = self.wait_time(self.clock.now())
        if wait > 0:
            debug_print(f"[DISPATCH] Waiting {wait:.1f}s before request", 'DEBUG', 'DISPATCH')
            self.clock.sleep(wait)

        missing = self.settings.missing_configuration()
        if missing:
            message = f"{' and '.join(missing)} missing"
            self.logger.error(f"Cannot dispatch: {message}")
            return BatchResult(DispatchOutcome.FATAL, error=message)

        texts = list(batch.payload.values())
        source_lang = detect_batch_language(texts)
        payload = build_request_payload(
            provider_id=self.settings.provider_id,
            model=self.settings.model,
            system_prompt=build_system_prompt(source_lang),
            user_message=build_user_message(batch.payload, song_context),
            temperature=self.settings.temperature,
            top_p=self.settings.top_p,
            max_completion_tokens=self.settings.max_completion_tokens
        )
        debug_print(
            f"[DISPATCH] Translating {len(batch)} lines (source={source_lang})",
            'INFO', 'DISPATCH'
        )

        try:
            content = self.client.chat_completion(self.settings.provider, self.settings.api_key, payload)
            return self._parse_content(content)
        except ProviderError as e:
            if e.status_code is None:
                debug_print(f"[DISPATCH] {e}, retrying", 'WARNING', 'DISPATCH')
                return BatchResult(DispatchOutcome.TOTAL_FAILURE, error=str(e))
            return self._classify_http_error(e)
        except MalformedResponseError as e:
            self.logger.warning(f"Malformed provider response: {e}")
            return BatchResult(DispatchOutcome.TOTAL_FAILURE, error="JSON Error: Retrying...")
        finally:
            self.state.last_request_at = max(self.state.last_request_at, self.clock.now())

    def _parse_content(self, content: str) -> BatchResult:
        try:
            translations = parse_translation_map(content)
        except MalformedResponseError as e:
            self.logger.warning(f"Unparseable model output: {e.raw[:200]!r}")
            return BatchResult(DispatchOutcome.TOTAL_FAILURE, error="JSON Error: Retrying...")
        if not translations:
            return BatchResult(DispatchOutcome.TOTAL_FAILURE, error="Empty response")
        return BatchResult(DispatchOutcome.SUCCESS, translations=translations)

    def _classify_http_error(self, error: ProviderError) -> BatchResult:
        code = error.status_code
        policy = get_error_policy(code)
        message = extract_error_message(error.body) or 'Unknown Error'
        display = policy.fallback_message if len(message) > MAX_STATUS_MESSAGE_LENGTH else message
        status = f"{code}: {display}"

        if policy.log:
            self.logger.error(f"{code}: {message}")

        if policy.fatal:
            self.logger.error(f"Fatal provider error {status}")
            return BatchResult(DispatchOutcome.FATAL, error=status, status_code=code)

        if policy.backoff:
            self.state.backoff_until = max(self.state.backoff_until, self.clock.now() + policy.backoff)
            debug_print(f"[DISPATCH] {status}, backing off {policy.backoff:.0f}s", 'WARNING', 'DISPATCH')
            return BatchResult(
                DispatchOutcome.RECOVERABLE,
                error=status,
                status_code=code,
                backoff=policy.backoff
            )

        debug_print(f"[DISPATCH] {status}", 'WARNING', 'DISPATCH')
        return BatchResult(DispatchOutcome.TOTAL_FAILURE, error=status, status_code=code)
