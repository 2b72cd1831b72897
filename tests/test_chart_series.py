"""
Unit tests for chart series.
"""
from fieldbook.services.domain.aggregator import aggregate
from fieldbook.services.domain.chart_series import (
    DEFAULT_COLOR,
    build_chart_data,
    build_conservation_series,
    build_series,
)


# ============================================================
# Chart Series Tests
# ============================================================

class TestChartSeries:
    """Tests for converting counts into chart series."""

    def test_series_preserves_order(self):
        counts = {"Reed": 2, "Unknown": 1, "Sedge": 1}

        series = build_series(counts)

        assert [(p.name, p.value) for p in series] == [("Reed", 2), ("Unknown", 1), ("Sedge", 1)]

    def test_series_is_idempotent(self):
        counts = {"b": 1, "a": 3}

        assert build_series(counts) == build_series(counts)
        assert counts == {"b": 1, "a": 3}

    def test_empty_counts(self):
        assert build_series({}) == []

    def test_conservation_colors(self):
        series = build_conservation_series({"Endangered": 1, "Unknown": 2, "Data Deficient": 1})

        assert [p.color for p in series] == ["#ef4444", DEFAULT_COLOR, DEFAULT_COLOR]

    def test_chart_data_from_stats(self, sample_records):
        chart = build_chart_data(aggregate(sample_records))

        assert [p.name for p in chart.vegetation] == ["Reed", "Unknown", "Sedge"]
        assert chart.conservation[0].color == "#ef4444"
        assert [p.name for p in chart.impacts] == ["Pollution", "Weeds I A P"]
        assert [(p.name, p.value) for p in chart.elevation] == [("100-500m", 2)]
