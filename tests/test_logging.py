"""
Tests for logging utilities
"""
import logging
import os
import sys

os.environ.setdefault('VERBOSE_DEBUG', 'false')
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lyrics_translator.utils.logging import LOGGERS, AppLogger, BufferHandler, LogBuffer, get_logger


class TestLogBuffer:
    """Test the status line ring."""

    def test_ids_increase(self):
        buffer = LogBuffer(max_size=10)
        first = buffer.add('INFO', 'CACHE', 'one')
        second = buffer.add('INFO', 'CACHE', 'two')
        assert second['id'] == first['id'] + 1

    def test_bounded(self):
        buffer = LogBuffer(max_size=3)
        for i in range(5):
            buffer.add('INFO', 'TEST', str(i))
        assert [e['message'] for e in buffer.get_all()] == ['2', '3', '4']
        assert buffer.last_id == 5

    def test_strips_ansi(self):
        buffer = LogBuffer(max_size=3)
        entry = buffer.add('INFO', 'TEST', '\033[92mgreen\033[0m')
        assert entry['message'] == 'green'

    def test_filters(self):
        buffer = LogBuffer(max_size=10)
        buffer.add('DEBUG', 'CACHE', 'stored')
        buffer.add('WARNING', 'DISPATCH', '429: Rate limited')
        buffer.add('ERROR', 'NETWORK', 'down')

        assert [e['message'] for e in buffer.get_since(0, min_level='warning')] == ['429: Rate limited', 'down']
        assert [e['message'] for e in buffer.get_since(0, source='dispatch')] == ['429: Rate limited']
        assert [e['message'] for e in buffer.get_since(2)] == ['down']

    def test_clear(self):
        buffer = LogBuffer(max_size=3)
        buffer.add('INFO', 'TEST', 'x')
        buffer.clear()
        assert buffer.get_all() == []
        assert buffer.last_id == 0


class TestBufferHandler:

    def test_mirrors_warnings_only(self):
        buffer = LogBuffer(max_size=10)
        logger = logging.getLogger('lyrics_translator.tests.mirror')
        logger.propagate = False
        logger.setLevel(logging.DEBUG)
        handler = BufferHandler(buffer)
        logger.addHandler(handler)
        try:
            logger.info('quiet')
            logger.warning('retrying %s', 'batch')
        finally:
            logger.removeHandler(handler)

        assert buffer.get_all()[0]['message'] == 'retrying batch'
        assert buffer.get_all()[0]['source'] == 'MIRROR'
        assert len(buffer.get_all()) == 1


class TestAppLogger:

    def test_concern_loggers(self, tmp_path):
        app_logger = AppLogger(log_dir=str(tmp_path))
        for concern, (name, _) in LOGGERS.items():
            assert getattr(app_logger, f'{concern}_logger').name == name

    def test_singleton(self):
        assert get_logger() is get_logger()
