"""Tests for score history and trend analysis."""

import json

from fortress.trend import format_date, get_trend, load_reports, sparkline


def write_report(directory, stamp, **fields):
    data = {"timestamp": f"2026-03-0{stamp}T10:00:00.000Z", "score": 90, "deployReady": False}
    data.update(fields)
    path = directory / f"fortress-report-2026-03-0{stamp}_10-00-00-000.json"
    path.write_text(json.dumps(data))
    return path


# ─── Loading ─────────────────────────────────────────────────────────


class TestLoadReports:
    def test_missing_directory(self, tmp_path):
        assert load_reports(tmp_path / "nope") == []

    def test_sorted_oldest_first_and_limited(self, tmp_path):
        for stamp, score in [(3, 70), (1, 50), (2, 60), (4, 80)]:
            write_report(tmp_path, stamp, score=score)
        reports = load_reports(tmp_path, limit=3)
        assert [r["score"] for r in reports] == [60, 70, 80]
        assert reports[0]["file"] == "fortress-report-2026-03-02_10-00-00-000.json"

    def test_malformed_and_incomplete_skipped(self, tmp_path):
        write_report(tmp_path, 1, score=50)
        (tmp_path / "fortress-report-2026-03-02_10-00-00-000.json").write_text("{not json")
        write_report(tmp_path, 3, score="high")
        write_report(tmp_path, 4, timestamp="")
        (tmp_path / "fortress-review-2026-03-05_10-00-00-000.json").write_text('{"score": 1, "timestamp": "x"}')
        (tmp_path / "notes.txt").write_text("hi")
        reports = load_reports(tmp_path)
        assert [r["score"] for r in reports] == [50]

    def test_defaults_filled(self, tmp_path):
        write_report(tmp_path, 1, deployReady=1)
        [report] = load_reports(tmp_path)
        assert report["deployReady"] is True
        assert report["duration"] == 0
        assert report["checks"] == []


# ─── Trend ───────────────────────────────────────────────────────────


class TestGetTrend:
    def test_improving(self):
        assert get_trend([{"score": 80}, {"score": 85}, {"score": 90}]) == "improving"

    def test_insufficient(self):
        assert get_trend([{"score": 90}]) == "insufficient"
        assert get_trend([]) == "insufficient"

    def test_declining(self):
        assert get_trend([{"score": 95}, {"score": 90}]) == "declining"

    def test_stable_within_two_points(self):
        assert get_trend([{"score": 90}, {"score": 92}]) == "stable"
        assert get_trend([{"score": 90}, {"score": 88}]) == "stable"

    def test_only_last_three_count(self):
        reports = [{"score": s} for s in (10, 90, 91, 90)]
        assert get_trend(reports) == "stable"


class TestSparkline:
    def test_empty(self):
        assert sparkline([]) == ""

    def test_flat(self):
        assert sparkline([{"score": 70}] * 3) == "███"

    def test_min_max_normalized(self):
        assert sparkline([{"score": 0}, {"score": 50}, {"score": 100}]) == "▁▅█"


class TestFormatDate:
    def test_iso(self):
        assert format_date("2026-03-01T12:30:45.123Z") == "2026-03-01 12:30"

    def test_offset_converted_to_utc(self):
        assert format_date("2026-03-01T14:30:00+02:00") == "2026-03-01 12:30"

    def test_unparseable_returned_verbatim(self):
        assert format_date("yesterday") == "yesterday"
