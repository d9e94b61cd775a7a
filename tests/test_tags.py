"""Tests for named snapshots of the host layer."""

import pytest

pytestmark = pytest.mark.tags

from layerconf.exceptions import ConstraintViolationError, StatementError


class TestTags:

    def test_no_tags_initially(self, mem_config):
        assert mem_config.tags() == set()

    def test_tag_and_list(self, layered):
        layered.tag("v1")
        layered.set_int("/a", 6)
        layered.tag("v2")
        assert layered.tags() == {"v1", "v2"}

    def test_retag_same_name_fails(self, layered):
        layered.tag("v1")
        with pytest.raises(ConstraintViolationError) as exc_info:
            layered.tag("v1")
        assert isinstance(exc_info.value, StatementError)
        assert layered.tags() == {"v1"}

    def test_snapshot_copies_host_only(self, layered):
        layered.set_comment("/a", "host value")
        layered.tag("release")

        entries = layered.tagged_entries("release")
        assert [e.path for e in entries] == ["/a"]
        assert entries[0].tag == "release"
        assert entries[0].type == "int"
        assert entries[0].value == 5
        assert entries[0].comment == "host value"

    def test_snapshot_is_immutable(self, layered):
        layered.tag("before")
        layered.set_int("/a", 99)
        layered.erase("/a")
        entries = layered.tagged_entries("before")
        assert entries[0].value == 5

    def test_failed_tag_leaves_history_unchanged(self, layered):
        layered.tag("v1")
        layered.set_int("/new", 1)
        with pytest.raises(ConstraintViolationError):
            layered.tag("v1")
        assert [e.path for e in layered.tagged_entries("v1")] == ["/a"]

    def test_usable_after_violation(self, layered):
        layered.tag("v1")
        with pytest.raises(ConstraintViolationError):
            layered.tag("v1")
        layered.set_int("/a", 7)
        assert layered.get_int("/a") == 7

    def test_unknown_tag(self, layered):
        assert layered.tagged_entries("nope") == []
