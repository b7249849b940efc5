"""Tests for the upstream writer."""

from datetime import date
from unittest.mock import Mock

import pytest

from boardsync.errors import ConfigurationError, MondayAPIError
from boardsync.monday.types import ColumnValue
from boardsync.monday.writer import UpstreamWriter, WriteResult, serialize_value


class TestSerializeValue:
    @pytest.mark.parametrize(
        "value, wire",
        [
            (ColumnValue.of_date(date(2025, 3, 29)), {"date": "2025-03-29"}),
            (ColumnValue.status("Vehicle"), "Vehicle"),
            (ColumnValue.of_text("Jane"), "Jane"),
            (ColumnValue.email("a@b.com"), {"email": "a@b.com", "text": "a@b.com"}),
            (
                ColumnValue.link("https://portal.test/?job=1", "Transport / crew"),
                {"url": "https://portal.test/?job=1", "text": "Transport / crew"},
            ),
            (ColumnValue.relation([5, 6]), {"item_ids": [5, 6]}),
            (ColumnValue.empty(), ""),
        ],
    )
    def test_wire_shapes(self, value, wire):
        assert serialize_value(value) == wire


class TestUpstreamWriter:
    def test_writes_all_columns_in_one_call(self, fake_client):
        writer = UpstreamWriter(fake_client)
        result = writer.write(
            10,
            7,
            {"date4": ColumnValue.of_date(date(2025, 3, 29)), "text6": ColumnValue.of_text("Jane")},
        )

        assert result.success
        assert fake_client.writes == [(10, 7, {"date4": {"date": "2025-03-29"}, "text6": "Jane"})]

    def test_empty_batch_makes_no_call(self, fake_client):
        result = UpstreamWriter(fake_client).write(10, 7, {})
        assert result.success
        assert fake_client.writes == []

    def test_api_failure_is_reported(self, fake_client):
        fake_client.failing_items.add(7)
        result = UpstreamWriter(fake_client).write(10, 7, {"text6": ColumnValue.of_text("x")})

        assert not result.success
        assert "locked" in result.error

    def test_configuration_error_propagates(self):
        client = Mock()
        client.change_multiple_column_values.side_effect = ConfigurationError("MONDAY_API_TOKEN not configured")
        with pytest.raises(ConfigurationError):
            UpstreamWriter(client).write(10, 7, {"text6": ColumnValue.of_text("x")})

    def test_result_carries_encoded_columns(self):
        client = Mock()
        client.change_multiple_column_values.side_effect = MondayAPIError("boom")
        result = UpstreamWriter(client).write(10, 7, {"text6": ColumnValue.of_text("x")})
        assert result == WriteResult(success=False, item_id=7, columns={"text6": "x"}, error="boom")
