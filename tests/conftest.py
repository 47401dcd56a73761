"""
Pytest fixtures shared by the test suite.
"""
import os
import sys
import tempfile

os.environ.setdefault('VERBOSE_DEBUG', 'false')
os.environ.setdefault('LYRICS_TRANSLATOR_APP_DIR', tempfile.mkdtemp(prefix='lyrics-translator-tests-'))

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from unittest import mock  # noqa: E402

import pytest  # noqa: E402
import requests  # noqa: E402

from lyrics_translator.database.connection import Database  # noqa: E402
from lyrics_translator.database.repositories import KeyValueRepository, SettingsRepository  # noqa: E402
from lyrics_translator.host.memory import MemoryDocument  # noqa: E402
from lyrics_translator.services.llm_client import LLMClient  # noqa: E402
from lyrics_translator.services.pipeline import TranslationPipeline  # noqa: E402
from tests.helpers import FakeClock  # noqa: E402


@pytest.fixture
def database(tmp_path):
    db = Database(tmp_path / 'test.db')
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def store(database):
    return KeyValueRepository(database)


@pytest.fixture
def settings(store):
    repo = SettingsRepository(store)
    repo.switch_provider('groq')
    repo.set_api_key('gsk_test_key')
    repo.set_model('llama-3.3-70b-versatile')
    return repo


@pytest.fixture
def unconfigured_settings(store):
    return SettingsRepository(store)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def document():
    return MemoryDocument(viewport_height=800)


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return LLMClient(session=session, timeouts=(1, 1))


@pytest.fixture
def pipeline(document, settings, client, clock):
    p = TranslationPipeline(host=document, settings=settings, client=client, clock=clock)
    yield p
    p.close()
