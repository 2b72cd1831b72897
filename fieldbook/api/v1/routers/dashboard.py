"""
API router for dashboard-wide statistics.
"""
import json
import logging
from contextlib import aclosing
from typing import List
from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from fieldbook.api.dependencies import CurrentUserDep, FieldDataServiceDep
from fieldbook.api.v1.models.responses import DashboardResponse
from fieldbook.domain.models import FieldRecord
from fieldbook.infrastructure.realtime_db_client import DatabaseError
from fieldbook.services.domain.chart_series import build_chart_data

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
)


@router.get(
    "/stats",
    response_model=DashboardResponse,
    summary="Statistics across all projects",
    description="""
    Load the field records of every project of the acting user and
    aggregate them. Projects whose data cannot be read are skipped, so the
    result may be partial.
    """,
)
async def get_dashboard_stats(
    user: CurrentUserDep,
    field_data_service: FieldDataServiceDep,
) -> DashboardResponse:
    summary = await field_data_service.dashboard_summary(user)
    return DashboardResponse.from_summary(summary, build_chart_data(summary.stats))


@router.get(
    "/stream",
    summary="Live statistics across all projects",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def stream_dashboard_stats(
    user: CurrentUserDep,
    field_data_service: FieldDataServiceDep,
) -> StreamingResponse:
    """
    Stream dashboard statistics as server-sent events.

    A new event is sent every time the project list changes. The database
    subscription is closed when the client disconnects.
    """
    async def generate():
        async with aclosing(field_data_service.watch_dashboard(user)) as summaries:
            try:
                async for summary in summaries:
                    payload = DashboardResponse.from_summary(summary, build_chart_data(summary.stats))
                    yield f"data: {payload.model_dump_json(by_alias=True)}\n\n"
            except DatabaseError as e:
                logger.error(f"Dashboard stream for {user.email} ended: {e.message}")
                yield f"event: error\ndata: {json.dumps({'detail': e.message})}\n\n"

    return StreamingResponse(generate(), media_type="text/event-stream")


@router.get(
    "/map",
    response_model=List[FieldRecord],
    summary="Field records with coordinates",
)
async def get_map_markers(
    user: CurrentUserDep,
    field_data_service: FieldDataServiceDep,
) -> List[FieldRecord]:
    """Field records across all projects, excluding those at (0, 0)."""
    return await field_data_service.map_markers(user)
