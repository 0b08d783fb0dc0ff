"""
Tests for analytics.sources module.
"""
import pytest
from datetime import date

from analytics.config import SourceConfig
from analytics.models import GoalEvent, RecordType, Signup
from analytics.sources import breakdown_by_kind, breakdown_by_source, normalize_source

D1 = date(2026, 3, 2)


def events(*sources, record_type=RecordType.SMS):
    return [GoalEvent(record_type, D1, source) for source in sources]


class TestNormalizeSource:
    """Tests for source normalization."""

    @pytest.mark.parametrize("raw,expected", [
        (None, "Direct"),
        ("", "Direct"),
        ("   ", "Direct"),
        ("fb", "Facebook"),
        ("META", "Facebook"),
        ("Ig", "Instagram"),
        ("1", "Self Promo"),
        ("rgiveaway", "Rumble"),
        (" email ", "Email"),
    ])
    def test_known_and_empty(self, raw, expected):
        assert normalize_source(raw) == expected

    def test_unknown_passes_through(self):
        assert normalize_source("podcast_ep12") == "podcast_ep12"
        assert normalize_source("dm") == "dm"

    def test_custom_table(self):
        sources = SourceConfig(synonyms={"tt": "TikTok"}, default_label="Unknown")
        assert normalize_source("TT", sources) == "TikTok"
        assert normalize_source(None, sources) == "Unknown"


class TestBreakdownBySource:
    """Tests for breakdown_by_source."""

    def test_counts_and_order(self):
        entries = breakdown_by_source(events("ig", "fb", "instagram", None, "IG"))
        assert [(e.source, e.count) for e in entries] == [
            ("Instagram", 3),
            ("Facebook", 1),
            ("Direct", 1),
        ]

    def test_percentages(self):
        entries = breakdown_by_source(events("ig", "fb", "fb", "fb"))
        by_source = {e.source: e.percentage for e in entries}
        assert by_source == {"Facebook": 75.0, "Instagram": 25.0}

    def test_totals(self):
        items = events("ig", "fb", "x", "y", "y", None, "rumble")
        entries = breakdown_by_source(items)
        assert sum(e.count for e in entries) == len(items)
        assert sum(e.percentage for e in entries) == pytest.approx(100.0)

    def test_empty(self):
        assert breakdown_by_source([]) == []

    def test_accepts_signups(self):
        entries = breakdown_by_source([Signup(subscribed_at=None, source="dm")])
        assert entries[0].source == "dm"
        assert entries[0].percentage == 100.0

    def test_to_dict_rounds_percentage(self):
        entries = breakdown_by_source(events("a", "b", "c"))
        assert entries[0].to_dict()["percentage"] == 33.3


class TestBreakdownByKind:
    """Tests for breakdown_by_kind."""

    def test_one_breakdown_per_kind(self):
        items = (
            events("ig", "ig", record_type=RecordType.ORDER)
            + events("fb", record_type=RecordType.USER)
        )
        breakdowns = breakdown_by_kind(items)

        assert set(breakdowns) == set(RecordType)
        assert breakdowns[RecordType.ORDER][0].count == 2
        assert breakdowns[RecordType.USER][0].source == "Facebook"
        assert breakdowns[RecordType.SMS] == []
