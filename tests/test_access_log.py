"""
Tests for merging the JSON-lines and legacy access logs.
"""

import datetime as dt
import json

import pytest

from site_blocker.file_handlers.access_log import AccessLogReader, parse_timestamp
from site_blocker.models import AccessLogEntry

NOW = dt.datetime(2025, 3, 10, 12, 0, 0, tzinfo=dt.timezone.utc)


def write_jsonl(data_dir, records):
    lines = [json.dumps(r) if not isinstance(r, str) else r for r in records]
    (data_dir / "access_log.jsonl").write_text("\n".join(lines) + "\n", encoding="utf-8")


def write_legacy(data_dir, records):
    (data_dir / "access_log.json").write_text(json.dumps(records), encoding="utf-8")


@pytest.fixture
def reader(data_dir):
    return AccessLogReader(str(data_dir))


class TestRead:
    def test_no_files(self, reader):
        assert reader.read() == []

    def test_merges_both_formats_in_order(self, reader, data_dir):
        write_legacy(data_dir, [
            {"domain": "reddit.com", "ts": "2025-03-08T09:00:00+00:00"},
            {"domain": "facebook.com", "ts": "2025-03-01T09:00:00+00:00"},
        ])
        write_jsonl(data_dir, [
            {"domain": "twitter.com", "ts": "2025-03-09T09:00:00+00:00"},
            {"domain": "facebook.com", "ts": "2025-03-05T09:00:00+00:00"},
        ])
        entries = reader.read()
        assert [e.ts for e in entries] == [
            "2025-03-01T09:00:00+00:00",
            "2025-03-05T09:00:00+00:00",
            "2025-03-08T09:00:00+00:00",
            "2025-03-09T09:00:00+00:00",
        ]
        assert entries[0] == AccessLogEntry(domain="facebook.com", ts="2025-03-01T09:00:00+00:00")

    def test_sorts_by_instant_not_text(self, reader, data_dir):
        write_jsonl(data_dir, [
            {"domain": "a.com", "ts": "2025-03-09T10:00:00+02:00"},
            {"domain": "b.com", "ts": "2025-03-09T09:00:00Z"},
        ])
        assert [e.domain for e in reader.read()] == ["a.com", "b.com"]

    def test_discards_invalid_records(self, reader, data_dir):
        write_jsonl(data_dir, [
            {"domain": "a.com", "ts": "2025-03-09T09:00:00+00:00"},
            {"domain": "b.com"},
            {"domain": 5, "ts": "2025-03-09T09:00:00+00:00"},
            {"domain": "c.com", "ts": 1741510800},
            {"domain": "d.com", "ts": "yesterday"},
            ["not", "a", "record"],
            "",
            "   ",
        ])
        write_legacy(data_dir, [{"ts": "2025-03-09T09:00:00+00:00"}, 42, {"domain": "e.com", "ts": "2025-03-09T08:00:00+00:00"}])
        assert [e.domain for e in reader.read()] == ["e.com", "a.com"]

    def test_malformed_jsonl_line_degrades_to_empty(self, reader, data_dir):
        write_legacy(data_dir, [{"domain": "a.com", "ts": "2025-03-09T09:00:00+00:00"}])
        write_jsonl(data_dir, [{"domain": "b.com", "ts": "2025-03-09T09:00:00+00:00"}, "{broken"])
        assert reader.read() == []

    def test_malformed_legacy_file_degrades_to_empty(self, reader, data_dir):
        write_jsonl(data_dir, [{"domain": "b.com", "ts": "2025-03-09T09:00:00+00:00"}])
        (data_dir / "access_log.json").write_text("[{", encoding="utf-8")
        assert reader.read() == []

    def test_legacy_non_array_contributes_nothing(self, reader, data_dir):
        write_jsonl(data_dir, [{"domain": "b.com", "ts": "2025-03-09T09:00:00+00:00"}])
        write_legacy(data_dir, {"domain": "a.com", "ts": "2025-03-09T09:00:00+00:00"})
        assert [e.domain for e in reader.read()] == ["b.com"]

    def test_empty_jsonl_file(self, reader, data_dir):
        (data_dir / "access_log.jsonl").write_text("", encoding="utf-8")
        assert reader.read() == []

    def test_days_filter(self, reader, data_dir):
        write_legacy(data_dir, [
            {"domain": "old.com", "ts": "2025-03-08T11:59:59+00:00"},
        ])
        write_jsonl(data_dir, [
            {"domain": "edge.com", "ts": "2025-03-09T12:00:00+00:00"},
            {"domain": "recent.com", "ts": "2025-03-10T11:00:00+00:00"},
            {"domain": "day-old.com", "ts": "2025-03-09T11:59:59+00:00"},
        ])
        assert [e.domain for e in reader.read(days=1, now=NOW)] == ["edge.com", "recent.com"]
        assert len(reader.read(days=7, now=NOW)) == 4
        assert len(reader.read(now=NOW)) == 4

    @pytest.mark.parametrize("days", [1_000_000, 10 ** 12])
    def test_huge_window_keeps_everything(self, reader, data_dir, days):
        write_jsonl(data_dir, [
            {"domain": "old.com", "ts": "2001-01-01T00:00:00+00:00"},
            {"domain": "recent.com", "ts": "2025-03-10T11:00:00+00:00"},
        ])
        assert [e.domain for e in reader.read(days=days, now=NOW)] == ["old.com", "recent.com"]

    @pytest.mark.parametrize("days", [float("nan"), float("inf"), -1])
    def test_invalid_window_is_ignored(self, reader, data_dir, days):
        write_jsonl(data_dir, [{"domain": "old.com", "ts": "2001-01-01T00:00:00+00:00"}])
        assert [e.domain for e in reader.read(days=days, now=NOW)] == ["old.com"]

    def test_deterministic_for_ties(self, reader, data_dir):
        ts = "2025-03-09T09:00:00+00:00"
        write_jsonl(data_dir, [{"domain": "b.com", "ts": ts}, {"domain": "a.com", "ts": ts}])
        write_legacy(data_dir, [{"domain": "c.com", "ts": ts}])
        first = reader.read()
        assert [e.domain for e in first] == ["b.com", "a.com", "c.com"]
        assert reader.read() == first


class TestParseTimestamp:
    def test_zulu(self):
        assert parse_timestamp("2025-03-09T09:00:00Z") == dt.datetime(2025, 3, 9, 9, tzinfo=dt.timezone.utc)

    def test_naive_is_local(self):
        parsed = parse_timestamp("2025-03-09T09:00:00")
        assert parsed.tzinfo is not None
        assert parsed.replace(tzinfo=None) == dt.datetime(2025, 3, 9, 9)

    @pytest.mark.parametrize("value, micro", [
        ("2025-03-09T09:00:00.5Z", 500000),
        ("2025-03-09T09:00:00.12345+00:00", 123450),
        ("2025-03-09T09:00:00.123456789Z", 123456),
    ])
    def test_any_fraction_length(self, value, micro):
        assert parse_timestamp(value) == dt.datetime(2025, 3, 9, 9, 0, 0, micro, tzinfo=dt.timezone.utc)

    @pytest.mark.parametrize("value", ["", "yesterday", "2025-13-01T00:00:00"])
    def test_garbage(self, value):
        assert parse_timestamp(value) is None
