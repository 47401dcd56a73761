"""
Shared test doubles: a controllable clock and fake provider responses.
"""
import json
import re
from unittest import mock

import requests


LYRICS_BLOCK = re.compile(r'<LYRICS_TO_TRANSLATE>\n(.*)\n</LYRICS_TO_TRANSLATE>', re.DOTALL)


class FakeClock:
    """Clock whose time only moves when a test (or a sleep) moves it."""

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.sleeps = []

    def now(self) -> float:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if seconds > 0:
            self.current += seconds

    def advance(self, seconds: float) -> None:
        self.current += seconds


def make_response(status_code: int = 200, content: str = None, body: str = None):
    """Build a fake ``requests.Response`` for a chat completions call."""
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    if body is None and content is not None:
        body = json.dumps({
            'choices': [{'message': {'role': 'assistant', 'content': content}}],
            'usage': {'total_tokens': 42},
        })
    response.text = body or ''
    response.json.side_effect = lambda: json.loads(response.text)
    return response


def sent_payload(call) -> dict:
    """The ``{id: text}`` object carried by one recorded ``session.post`` call."""
    user_message = call.kwargs['json']['messages'][1]['content']
    return json.loads(LYRICS_BLOCK.search(user_message).group(1))


def translating(translations: dict, default: str = 'SKIP'):
    """
    ``session.post`` side effect answering every id with ``translations[text]``.

    Lines missing from ``translations`` are answered with ``default``.
    """
    def respond(url, **kwargs):
        payload = sent_payload(mock.call(url, **kwargs))
        answer = {item_id: translations.get(text, default) for item_id, text in payload.items()}
        return make_response(content=json.dumps(answer, ensure_ascii=False))

    return respond
