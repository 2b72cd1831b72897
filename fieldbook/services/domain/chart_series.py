"""
Domain service: convert grouped counts into chart series.
"""
from typing import Dict, List, Mapping

from fieldbook.domain.models import AggregateStats, ChartData, ChartPoint

DEFAULT_COLOR = "#6b7280"

CONSERVATION_COLORS: Dict[str, str] = {
    "Endangered": "#ef4444",
    "Vulnerable": "#f97316",
    "Near Threatened": "#eab308",
    "Least Concern": "#22c55e",
    "Unknown": DEFAULT_COLOR,
}


def build_series(counts: Mapping[str, int]) -> List[ChartPoint]:
    """Name/value pairs in the mapping's insertion order."""
    return [ChartPoint(name=name, value=value) for name, value in counts.items()]


def build_conservation_series(counts: Mapping[str, int]) -> List[ChartPoint]:
    """Conservation status series with a color per status."""
    return [
        ChartPoint(
            name=name,
            value=value,
            color=CONSERVATION_COLORS.get(name, DEFAULT_COLOR),
        )
        for name, value in counts.items()
    ]


def build_chart_data(stats: AggregateStats) -> ChartData:
    return ChartData(
        vegetation=build_series(stats.vegetation_counts),
        conservation=build_conservation_series(stats.conservation_counts),
        impacts=build_series(stats.impact_counts),
        elevation=build_series(stats.elevation_ranges),
    )
