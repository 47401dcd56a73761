"""
Tests for the unit tracker
"""
import pytest
import os
import sys

os.environ.setdefault('VERBOSE_DEBUG', 'false')
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lyrics_translator.host.interfaces import RENDER_MARKER
from lyrics_translator.host.memory import MemoryNode
from lyrics_translator.services.tracker import UnitTracker
from lyrics_translator.utils.text_processing import normalize_key


class Recorder:
    def __init__(self):
        self.emitted = []
        self.unchanged = []

    @property
    def emitted_texts(self):
        return [unit.text for unit in self.emitted]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def tracker(document, recorder):
    return UnitTracker(
        document,
        on_unit=recorder.emitted.append,
        on_unchanged=recorder.unchanged.append,
        normalize=normalize_key,
        throttle=0.5,
        margin=300
    )


@pytest.fixture
def container(document, tracker):
    root = document.load_lines(['一', '二', '三'])
    document.take_records()
    tracker.attach(root)
    return root


def deliver(document, tracker, now=10.0):
    return tracker.handle_mutations(document.take_records(), now)


class TestAttach:

    def test_initial_scan(self, container, recorder):
        assert recorder.emitted_texts == ['一', '二', '三']
        assert recorder.emitted[0].key == normalize_key('一')

    def test_same_root_ignored(self, container, tracker, recorder):
        assert tracker.attach(container) is False
        assert len(recorder.emitted) == 3

    def test_new_container_scanned(self, document, container, tracker, recorder):
        root = document.load_lines(['四'])
        document.take_records()
        assert tracker.attach(root) is True
        assert recorder.emitted_texts[-1] == '四'

    def test_detach(self, document, container, tracker, recorder):
        tracker.detach()
        document.add_line('四', parent=container)
        assert deliver(document, tracker) == 0
        assert tracker.scan() == 0


class TestMutations:
    """Test the incremental path."""

    def test_added_unit_only(self, document, container, tracker, recorder):
        document.add_line('四', parent=container)
        deliver(document, tracker)
        assert recorder.emitted_texts == ['一', '二', '三', '四']
        assert recorder.unchanged == []

    def test_added_subtree(self, document, container, tracker, recorder):
        wrapper = MemoryNode()
        wrapper.children.append(MemoryNode('五', unit=True, top=200, height=32))
        wrapper.children[0].parent = wrapper
        document.append(container, wrapper)
        deliver(document, tracker)
        assert recorder.emitted_texts[-1] == '五'

    def test_text_change_reemitted(self, document, container, tracker, recorder):
        node = container.children[0]
        document.set_text(node, '四')
        deliver(document, tracker)
        assert recorder.emitted_texts[-1] == '四'

    def test_text_change_clears_old_render(self, document, container, recorder):
        tracker = UnitTracker(
            document,
            on_unit=recorder.emitted.append,
            on_unchanged=recorder.unchanged.append,
            normalize=normalize_key,
            injector=document
        )
        tracker.attach(container)
        node = container.children[0]
        document.render_result(node, 'One')
        document.take_records()

        document.set_text(node, 'Four')
        tracker.handle_mutations(document.take_records(), 10.0)
        assert not document.has_rendered(node)

    def test_emptied_unit_clears_render(self, document, container, recorder):
        tracker = UnitTracker(
            document,
            on_unit=recorder.emitted.append,
            on_unchanged=recorder.unchanged.append,
            normalize=normalize_key,
            injector=document
        )
        tracker.attach(container)
        node = container.children[1]
        document.render_result(node, 'Two')
        document.set_text(node, '  ')
        tracker.handle_mutations(document.take_records(), 10.0)
        assert not document.has_rendered(node)

    def test_unchanged_text(self, document, container, tracker, recorder):
        node = container.children[0]
        document.set_text(node, ' 一 ')
        deliver(document, tracker)
        assert len(recorder.emitted) == 3
        assert [unit.text for unit in recorder.unchanged] == ['一']

    def test_render_marker_ignored(self, document, container, tracker, recorder):
        document.render_result(container.children[0], 'One')
        assert deliver(document, tracker) == 0
        assert tracker.rescan_at is None
        assert recorder.unchanged == []

    def test_other_attributes_examined(self, document, container, tracker, recorder):
        document.set_attribute(container.children[1], 'class', 'active')
        assert deliver(document, tracker) == 1
        assert tracker.rescan_at == pytest.approx(10.5)

    def test_removed_units_ignored(self, document, container, tracker, recorder):
        document.remove(container.children[0])
        deliver(document, tracker)
        assert len(recorder.emitted) == 3


class TestRescan:
    """Test the throttled safety net."""

    def test_scheduled_once(self, document, container, tracker):
        document.add_line('四', parent=container)
        deliver(document, tracker, now=10.0)
        document.add_line('五', parent=container)
        deliver(document, tracker, now=10.3)
        assert tracker.rescan_at == pytest.approx(10.5)

    def test_runs_when_due(self, document, container, tracker, recorder):
        document.add_line('四', parent=container)
        deliver(document, tracker, now=10.0)
        assert tracker.run_due_rescan(10.2) is False
        assert tracker.run_due_rescan(10.5) is True
        assert tracker.rescan_at is None
        assert len(recorder.unchanged) == 4

    def test_catches_silent_changes(self, container, tracker, recorder):
        container.children[2].text = '六'
        tracker.scan()
        assert recorder.emitted_texts[-1] == '六'

    def test_reset_markers(self, container, tracker, recorder):
        tracker.reset_markers()
        tracker.scan()
        assert recorder.emitted_texts == ['一', '二', '三'] * 2


class TestViewport:
    """Test passive registration of distant units."""

    def test_far_units_registered_passively(self, document, tracker, recorder):
        root = document.load_lines([])
        document.append(root, MemoryNode('遠い', unit=True, top=2000, height=32))
        document.take_records()
        tracker.attach(root)

        assert recorder.emitted == []
        assert tracker.passive_count == 1

        document.scroll_to(1500)
        assert tracker.refresh_viewport() == 1
        assert recorder.emitted_texts == ['遠い']
        assert tracker.passive_count == 0

    def test_margin_included(self, document, tracker, recorder):
        root = document.load_lines([])
        document.append(root, MemoryNode('近い', unit=True, top=1050, height=32))
        document.take_records()
        tracker.attach(root)
        assert recorder.emitted_texts == ['近い']

    def test_detached_passive_units_dropped(self, document, tracker):
        root = document.load_lines([])
        node = document.append(root, MemoryNode('遠い', unit=True, top=2000, height=32))
        document.take_records()
        tracker.attach(root)
        document.remove(node)
        tracker.refresh_viewport()
        assert tracker.passive_count == 0


class TestVisibility:
    """Test suspension while hidden."""

    def test_hidden_suspends(self, document, container, tracker, recorder):
        tracker.set_hidden(True)
        document.add_line('四', parent=container)
        assert deliver(document, tracker) == 0
        assert tracker.scan() == 0
        assert len(recorder.emitted) == 3

    def test_visible_forces_scan(self, document, container, tracker, recorder):
        tracker.set_hidden(True)
        document.add_line('四', parent=container)
        deliver(document, tracker)
        tracker.set_hidden(False)
        assert recorder.emitted_texts[-1] == '四'

    def test_sync_visibility(self, document, container, tracker):
        document.set_hidden(True)
        tracker.sync_visibility()
        assert tracker.hidden is True
        document.set_hidden(False)
        tracker.sync_visibility()
        assert tracker.hidden is False


class TestFindLiveUnit:

    def test_finds_by_normalized_text(self, container, tracker):
        assert tracker.find_live_unit(normalize_key(' 二 ')) is container.children[1]

    def test_none_when_missing(self, container, tracker):
        assert tracker.find_live_unit(normalize_key('九')) is None
        assert tracker.find_live_unit('') is None
