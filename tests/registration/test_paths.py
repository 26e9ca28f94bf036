"""Tests for collecting unique published paths from task records."""

import logging

import pytest

from catalog_publisher.registration.paths import get_unique_paths_to_register
from catalog_publisher.state import TaskRecord

KEY = "data.publisher.dirs"


class TestGetUniquePathsToRegister:
    """Tests for get_unique_paths_to_register."""

    def test_union_across_records(self):
        records = [
            TaskRecord({KEY: "/a"}),
            TaskRecord({KEY: "/a,/b"}),
            TaskRecord({}),
        ]
        assert get_unique_paths_to_register(records, KEY) == {"/a", "/b"}

    def test_record_order_irrelevant(self):
        records = [
            TaskRecord({KEY: "/x,/y"}),
            TaskRecord({KEY: "/y,/z"}),
            TaskRecord({"other": "/ignored"}),
        ]
        forward = get_unique_paths_to_register(records, KEY)
        backward = get_unique_paths_to_register(list(reversed(records)), KEY)
        assert forward == backward == {"/x", "/y", "/z"}

    def test_list_values_accepted(self):
        records = [TaskRecord({KEY: ["/a", " /b "]})]
        assert get_unique_paths_to_register(records, KEY) == {"/a", "/b"}

    def test_empty_batch(self):
        assert get_unique_paths_to_register([], KEY) == set()

    def test_records_without_key_contribute_nothing(self):
        records = [TaskRecord({"unrelated": "/a"})]
        assert get_unique_paths_to_register(records, KEY) == set()

    def test_empty_items_dropped(self):
        records = [TaskRecord({KEY: "/a,, ,/b,"})]
        assert get_unique_paths_to_register(records, KEY) == {"/a", "/b"}

    def test_custom_key(self):
        records = [TaskRecord({"writer.final.dirs": "/out"}), TaskRecord({KEY: "/a"})]
        assert get_unique_paths_to_register(records, "writer.final.dirs") == {"/out"}

    @pytest.mark.parametrize("value", [42, {"path": "/a"}, ["/a", 3]])
    def test_malformed_value_skipped(self, value, caplog):
        """A misconfigured record does not abort the batch."""
        records = [TaskRecord({KEY: value}), TaskRecord({KEY: "/ok"})]
        with caplog.at_level(logging.WARNING):
            result = get_unique_paths_to_register(records, KEY)
        assert result == {"/ok"}
        assert "malformed" in caplog.text
