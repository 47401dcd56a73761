"""
Tests for result reconciliation
"""
import pytest
import os
import sys

os.environ.setdefault('VERBOSE_DEBUG', 'false')
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lyrics_translator.config.constants import SKIP_SENTINEL
from lyrics_translator.host.memory import MemoryNode
from lyrics_translator.models.pipeline import QueueItem, TextUnit
from lyrics_translator.services.cache_service import PersistentCache
from lyrics_translator.services.reconciler import Reconciler
from lyrics_translator.utils.text_processing import normalize_key


@pytest.fixture
def cache():
    return PersistentCache(None, max_entries=100)


@pytest.fixture
def rendering():
    return {'enabled': True}


@pytest.fixture
def reconciler(document, cache, rendering):
    def find_live_unit(key):
        for node in document.find_units(document.root):
            if normalize_key(document.extract_text(node)) == key:
                return node
        return None

    return Reconciler(
        cache, document, document, normalize_key, find_live_unit,
        rendering_enabled=lambda: rendering['enabled']
    )


def item_for(*nodes):
    item = QueueItem(normalize_key(nodes[0].text), nodes[0].text, 0.0, 0)
    for node in nodes:
        item.add_unit(node)
    return item


class TestApply:
    """Test cache writes and rendering."""

    def test_renders_every_unit(self, document, reconciler, cache):
        first = document.add_line('こんにちは')
        second = document.add_line('こんにちは')

        assert reconciler.apply(item_for(first, second), ' Hello ') == 2

        assert document.rendered_text(first) == 'Hello'
        assert document.rendered_text(second) == 'Hello'
        assert cache.get(normalize_key('こんにちは')) == 'Hello'

    def test_idempotent(self, document, reconciler):
        node = document.add_line('こんにちは')
        item = item_for(node)
        reconciler.apply(item, 'Hello')
        document.take_records()

        assert reconciler.apply(item, 'Hello') == 0
        assert document.take_records() == []
        assert document.rendered_items() == {node: 'Hello'}

    def test_skip_cached_not_rendered(self, document, reconciler, cache):
        node = document.add_line('一')
        assert reconciler.apply(item_for(node), 'SKIP') == 0
        assert cache.get(normalize_key('一')) == SKIP_SENTINEL
        assert not document.has_rendered(node)

    def test_missing_translation_cached_as_skip(self, document, reconciler, cache):
        node = document.add_line('一')
        reconciler.apply(item_for(node), None)
        assert cache.is_skip(normalize_key('一'))

    def test_same_as_source_not_rendered(self, document, reconciler, cache):
        node = document.add_line('LOVE 愛')
        reconciler.apply(item_for(node), 'love, 愛!')
        assert cache.get(normalize_key('LOVE 愛')) == 'love, 愛!'
        assert not document.has_rendered(node)

    def test_replaced_node_falls_back_to_live_unit(self, document, reconciler):
        old = document.add_line('こんにちは')
        item = item_for(old)
        new = document.replace(old, MemoryNode('こんにちは', unit=True, top=old.top, height=old.height))

        assert reconciler.apply(item, 'Hello') == 1
        assert document.rendered_text(new) == 'Hello'
        assert not document.has_rendered(old)

    def test_changed_text_falls_back(self, document, reconciler, cache):
        node = document.add_line('こんにちは')
        item = item_for(node)
        document.set_text(node, 'さようなら')

        assert reconciler.apply(item, 'Hello') == 0
        assert not document.has_rendered(node)
        assert cache.get(normalize_key('こんにちは')) == 'Hello'

    def test_no_live_unit_cached_only(self, reconciler, cache):
        node = MemoryNode('こんにちは', unit=True)
        assert reconciler.apply(item_for(node), 'Hello') == 0
        assert cache.get(normalize_key('こんにちは')) == 'Hello'

    def test_render_disabled(self, document, reconciler, cache, rendering):
        node = document.add_line('一')
        rendering['enabled'] = False
        assert reconciler.apply(item_for(node), 'One') == 0
        assert cache.get(normalize_key('一')) == 'One'
        assert not document.has_rendered(node)

    def test_cache_only(self, document, reconciler, cache):
        node = document.add_line('一')
        assert reconciler.apply(item_for(node), 'One', render=False) == 0
        assert 'One' == cache.get(normalize_key('一'))
        assert not document.has_rendered(node)


class TestEnsureRendered:

    def test_renders_cached_translation(self, document, reconciler, cache):
        node = document.add_line('一')
        cache.set(normalize_key('一'), 'One')
        unit = TextUnit(node, '一', normalize_key('一'))
        assert reconciler.ensure_rendered(unit) is True
        assert reconciler.ensure_rendered(unit) is False
        assert document.rendered_text(node) == 'One'

    def test_skip_not_rendered(self, document, reconciler, cache):
        node = document.add_line('一')
        cache.set(normalize_key('一'), SKIP_SENTINEL)
        assert reconciler.ensure_rendered(TextUnit(node, '一', normalize_key('一'))) is False

    def test_disabled(self, document, reconciler, cache, rendering):
        node = document.add_line('一')
        cache.set(normalize_key('一'), 'One')
        rendering['enabled'] = False
        assert reconciler.ensure_rendered(TextUnit(node, '一', normalize_key('一'))) is False

    def test_clear_all(self, document, reconciler):
        first = document.add_line('一')
        second = document.add_line('二')
        reconciler.apply(item_for(first), 'One')
        reconciler.apply(item_for(second), 'Two')
        assert reconciler.clear_all() == 2
        assert document.rendered_items() == {}
        assert 'data-llm-translated' not in first.attributes
