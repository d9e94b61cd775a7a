"""Tests for value iterators over resolved entries."""

import pytest

pytestmark = pytest.mark.cursor

from layerconf.schemas import ConfigValue


@pytest.fixture
def tree(layered):
    layered.set_default_int("/foo/b", 2)
    layered.set_string("/foo/a", "host")
    layered.set_default_string("/foo/a", "shadowed")
    layered.set_default_float("/foo/c", 0.5)
    layered.set_bool("/foobar", True)
    return layered


class TestIteration:

    def test_full_enumeration_ordered(self, tree):
        with tree.iterator() as values:
            entries = [(v.path, v.is_default) for v in values]
        assert entries == [
            ("/a", False),
            ("/b", True),
            ("/foo/a", False),
            ("/foo/b", True),
            ("/foo/c", True),
            ("/foobar", False),
        ]

    def test_shadowed_default_not_yielded(self, tree):
        with tree.search("/foo/a") as values:
            entries = list(values)
        assert len(entries) == 1
        assert entries[0].get_string() == "host"

    def test_search_prefix(self, tree):
        with tree.search("/foo/") as values:
            entries = list(values)
        assert [v.path for v in entries] == ["/foo/a", "/foo/b", "/foo/c"]
        assert [v.is_default for v in entries] == [False, True, True]
        assert entries[1].get_int() == 2
        assert entries[2].is_float()

    def test_search_prefix_is_literal(self, mem_config):
        mem_config.set_int("/a_b/x", 1)
        mem_config.set_int("/aXb/y", 2)
        mem_config.set_int("/A_B/z", 3)
        with mem_config.search("/a_b/") as values:
            assert [v.path for v in values] == ["/a_b/x"]

    def test_search_no_match(self, tree):
        with tree.search("/nothing/") as values:
            assert list(values) == []

    def test_get_value(self, layered):
        with layered.get_value("/b") as values:
            entries = list(values)
        assert len(entries) == 1
        assert isinstance(entries[0], ConfigValue)
        assert entries[0].is_default
        assert entries[0].typed_value() == "x"

        with layered.get_value("/missing") as values:
            assert list(values) == []


class TestIteratorProtocol:

    def test_advance_interface(self, layered):
        it = layered.iterator()
        assert it.valid
        assert it.current is None

        assert it.advance()
        assert it.current.path == "/a"
        assert it.current.get_int() == 5
        assert it.advance()
        assert it.current.path == "/b"

        assert not it.advance()
        assert not it.valid
        assert it.current is None
        assert not it.advance()

    def test_close_is_idempotent(self, layered):
        it = layered.iterator()
        it.close()
        it.close()
        assert not it.valid
        assert list(it) == []

    def test_exhaustion_releases_iterator(self, layered):
        it = layered.iterator()
        list(it)
        assert not it.valid
        assert len(layered.persistence._iterators) == 0

    def test_with_block_releases_on_error(self, layered):
        with pytest.raises(RuntimeError):
            with layered.iterator() as it:
                next(it)
                raise RuntimeError("boom")
        assert not it.valid
        assert len(layered.persistence._iterators) == 0

    def test_comment_and_typed_value(self, mem_config):
        mem_config.set_uint("/u", 4)
        mem_config.set_comment("/u", "wheels")
        with mem_config.get_value("/u") as values:
            value = next(values)
        assert value.comment == "wheels"
        assert value.is_uint()
        assert value.typed_value() == 4
