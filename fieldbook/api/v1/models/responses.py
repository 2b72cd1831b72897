"""
API request and response models using Pydantic.
"""
from typing import Dict, List, Optional
from pydantic import ConfigDict, Field

from fieldbook.domain.models import (
    AggregateStats,
    ChartData,
    DashboardSummary,
    DomainModel,
    ElevationSummary,
)


class StatsSummary(DomainModel):
    """Headline numbers for a set of field records."""
    total_entries: int = Field(description="Number of field records")
    total_images: int = Field(description="Number of images across all records")
    vegetation_types: List[str] = Field(
        description="Distinct vegetation types in first-seen order"
    )
    elevation: Optional[ElevationSummary] = Field(
        default=None,
        description="Average, minimum and maximum of valid elevations; null if none"
    )
    elevation_ranges: Dict[str, int] = Field(
        default_factory=dict,
        description="Count of valid elevations per range"
    )

    @classmethod
    def from_stats(cls, stats: AggregateStats) -> "StatsSummary":
        return cls(
            total_entries=stats.total_entries,
            total_images=stats.total_images,
            vegetation_types=stats.vegetation_types,
            elevation=stats.elevation,
            elevation_ranges=stats.elevation_ranges,
        )


class AnalyticsResponse(DomainModel):
    """Response model for project analytics."""
    project_id: str = Field(description="Project the analytics cover")
    summary: StatsSummary
    chart_data: ChartData

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "projectId": "-Nq1",
                "summary": {
                    "totalEntries": 4,
                    "totalImages": 3,
                    "vegetationTypes": ["Reed", "Unknown", "Sedge"],
                    "elevation": {"avg": 200.0, "min": 100.0, "max": 300.0},
                    "elevationRanges": {"100-500m": 2},
                },
                "chartData": {
                    "vegetation": [{"name": "Reed", "value": 2}],
                    "conservation": [{"name": "Endangered", "value": 1, "color": "#ef4444"}],
                    "impacts": [{"name": "Pollution", "value": 1}],
                    "elevation": [{"name": "100-500m", "value": 2}],
                },
            }
        }
    )


class DashboardResponse(DomainModel):
    """Response model for cross-project dashboard statistics."""
    client_count: int
    project_count: int
    summary: StatsSummary
    chart_data: ChartData

    @classmethod
    def from_summary(cls, summary: DashboardSummary, chart_data: ChartData) -> "DashboardResponse":
        return cls(
            client_count=summary.client_count,
            project_count=summary.project_count,
            summary=StatsSummary.from_stats(summary.stats),
            chart_data=chart_data,
        )


class InsightRequest(DomainModel):
    """Question about a project's field data."""
    query: str = Field(min_length=1, description="Question for the assistant")
    search: Optional[str] = Field(
        default=None,
        description="Only include records matching this search"
    )
