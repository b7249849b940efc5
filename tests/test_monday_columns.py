"""Tests for column value extraction."""

from datetime import date

import pytest

from boardsync.monday import columns
from boardsync.monday.types import ColumnKind, ColumnValue, RawColumn

from helpers import make_item, relation_col


def single(column: RawColumn):
    return make_item(1, column)


class TestGetDate:
    def test_payload_date_wins_over_text(self):
        item = single(RawColumn("d", text="Mar 30", value='{"date": "2025-03-30", "time": null}'))
        assert columns.get_date(item, "d") == ColumnValue.of_date(date(2025, 3, 30))

    def test_text_fallback_when_payload_unreadable(self):
        item = single(RawColumn("d", text="2025-03-30", value="{not json"))
        assert columns.get_date(item, "d").day == date(2025, 3, 30)

    def test_text_with_time_component(self):
        item = single(RawColumn("d", text="2025-03-30 09:00", value=None))
        assert columns.get_date(item, "d").day == date(2025, 3, 30)

    def test_unparseable_text_is_empty(self):
        item = single(RawColumn("d", text="next tuesday", value=None))
        assert columns.get_date(item, "d").is_empty

    def test_missing_column_is_empty(self):
        assert columns.get_date(make_item(1), "d").is_empty


class TestDateParseError:
    @pytest.mark.parametrize(
        "column, expected",
        [
            (RawColumn("d", text="next tuesday", value=None), "Unparseable date in d: 'next tuesday'"),
            (RawColumn("d", text="", value='{"date": "2025-02-30"}'), "Unparseable date in d: '2025-02-30'"),
            (RawColumn("d", text="2025-03-30", value='{"date": "2025-03-30"}'), None),
            (RawColumn("d", text="", value=None), None),
        ],
    )
    def test_reports_only_non_blank_unreadable_dates(self, column, expected):
        assert columns.date_parse_error(single(column), "d") == expected

    def test_missing_column_is_not_an_error(self):
        assert columns.date_parse_error(make_item(1), "d") is None


class TestGetStatusLabel:
    def test_label_from_payload(self):
        item = single(RawColumn("s", text="stale", value='{"index": 3, "label": "Rehearsal"}'))
        assert columns.get_status_label(item, "s") == ColumnValue.status("Rehearsal")

    def test_label_object_from_payload(self):
        item = single(RawColumn("s", text="", value='{"label": {"text": "Vehicle"}}'))
        assert columns.get_status_label(item, "s").text == "Vehicle"

    def test_index_only_payload_uses_text(self):
        item = single(RawColumn("s", text="Rehearsal", value='{"index": 3}'))
        assert columns.get_status_label(item, "s").text == "Rehearsal"

    def test_unset_status_is_empty(self):
        item = single(RawColumn("s", text="", value=None))
        assert columns.get_status_label(item, "s").is_empty


class TestGetUrl:
    def test_payload_url_and_text(self):
        item = single(RawColumn("l", text="x", value='{"url": "https://myhirehop.com/job.php?id=1", "text": "Job"}'))
        value = columns.get_url(item, "l")
        assert value.kind is ColumnKind.LINK
        assert value.url == "https://myhirehop.com/job.php?id=1"
        assert value.text == "Job"

    def test_rendered_text_with_display_part(self):
        item = single(RawColumn("l", text="Job 12 - https://myhirehop.com/job.php?id=12", value=None))
        value = columns.get_url(item, "l")
        assert value.url == "https://myhirehop.com/job.php?id=12"
        assert value.text == "Job 12"

    def test_rendered_text_bare_url(self):
        item = single(RawColumn("l", text="https://myhirehop.com/job.php?id=12", value=None))
        assert columns.get_url(item, "l").url == "https://myhirehop.com/job.php?id=12"

    def test_empty_link(self):
        item = single(RawColumn("l", text="", value=None))
        assert columns.get_url(item, "l").is_empty


class TestOtherExtractors:
    def test_email_payload_then_text(self):
        with_payload = single(RawColumn("e", text="shown", value='{"email": "a@b.test", "text": "A"}'))
        text_only = single(RawColumn("e", text="c@d.test", value=None))
        assert columns.get_email(with_payload, "e") == ColumnValue.email("a@b.test")
        assert columns.get_email(text_only, "e").text == "c@d.test"

    def test_text(self):
        item = single(RawColumn("t", text="Job 7", value='"Job 7"'))
        assert columns.get_text(item, "t") == ColumnValue.of_text("Job 7")

    def test_mirror_prefers_display_value(self):
        item = single(RawColumn("m", text=None, value=None, display_value="Jane"))
        assert columns.get_mirror_text(item, "m").text == "Jane"

    def test_mirror_falls_back_to_text(self):
        item = single(RawColumn("m", text="Jane", value=None))
        assert columns.get_mirror_text(item, "m").text == "Jane"

    def test_linked_ids_in_api_order(self):
        item = make_item(1, relation_col("r", [30, 10, 20]))
        assert columns.get_linked_ids(item, "r").linked_ids == (30, 10, 20)

    @pytest.mark.parametrize("raw", [None, "", "[]", '{"linkedPulseIds": "x"}', "{bad"])
    def test_linked_ids_unreadable_is_empty(self, raw):
        item = single(RawColumn("r", text="Some Name", value=raw))
        assert columns.get_linked_ids(item, "r").is_empty

    def test_linked_ids_skip_malformed_entries(self):
        item = single(RawColumn("r", value='{"linkedPulseIds": [{"linkedPulseId": 4}, {"x": 1}, 5]}'))
        assert columns.get_linked_ids(item, "r").linked_ids == (4,)

    def test_parse_day(self):
        assert columns.parse_day("2024-02-29") == date(2024, 2, 29)
        assert columns.parse_day("2023-02-29") is None
        assert columns.parse_day(None) is None
