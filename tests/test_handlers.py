"""Tests for change handler notification."""

import pytest

pytestmark = pytest.mark.resolver

from layerconf.exceptions import TypeMismatchError
from layerconf.handlers import ChangeHandler, ChangeHandlerRegistry


class RecordingHandler(ChangeHandler):

    def __init__(self, prefix=""):
        super().__init__(prefix)
        self.changed = []
        self.erased = []

    def config_value_changed(self, path, value):
        self.changed.append((path, value))

    def config_value_erased(self, path):
        self.erased.append(path)


@pytest.fixture
def recorder(mem_config):
    handler = RecordingHandler()
    mem_config.add_change_handler(handler)
    return handler


class TestNotifications:

    def test_set_notifies(self, mem_config, recorder):
        mem_config.set_int("/a", 1)
        mem_config.set_string("/b", "x")
        assert recorder.changed == [("/a", 1), ("/b", "x")]

    def test_default_set_notifies_same_way(self, mem_config, recorder):
        mem_config.set_int("/a", 1)
        mem_config.set_default_int("/a", 2)
        assert recorder.changed == [("/a", 1), ("/a", 2)]

    def test_erase_absent_still_notifies(self, mem_config, recorder):
        mem_config.erase("/never")
        mem_config.erase_default("/never")
        assert recorder.erased == ["/never", "/never"]

    def test_failed_set_does_not_notify(self, mem_config, recorder):
        with pytest.raises(TypeMismatchError):
            mem_config.set_uint("/u", -1)
        assert recorder.changed == []

    def test_prefix_filter(self, mem_config):
        handler = RecordingHandler("/hardware/")
        mem_config.add_change_handler(handler)
        mem_config.set_int("/hardware/motor", 1)
        mem_config.set_int("/software/level", 2)
        assert handler.changed == [("/hardware/motor", 1)]

    def test_removed_handler_not_called(self, mem_config, recorder):
        mem_config.rem_change_handler(recorder)
        mem_config.set_int("/a", 1)
        assert recorder.changed == []

    def test_handler_may_read_store(self, mem_config):
        seen = []

        class ReadingHandler(ChangeHandler):
            def config_value_changed(self, path, value):
                seen.append(mem_config.get_int(path))

        mem_config.add_change_handler(ReadingHandler())
        mem_config.set_int("/a", 3)
        assert seen == [3]


class TestRegistry:

    def test_add_is_idempotent(self):
        registry = ChangeHandlerRegistry()
        handler = RecordingHandler()
        registry.add(handler)
        registry.add(handler)
        assert len(registry) == 1

    def test_remove_unknown(self):
        registry = ChangeHandlerRegistry()
        registry.remove(RecordingHandler())
        assert len(registry) == 0

    def test_find_matches_prefix(self):
        registry = ChangeHandlerRegistry()
        everything = RecordingHandler()
        motors = RecordingHandler("/motor/")
        registry.add(everything)
        registry.add(motors)
        assert registry.find("/motor/left") == [everything, motors]
        assert registry.find("/camera") == [everything]
