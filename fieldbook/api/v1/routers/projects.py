"""
API router for project, field record and analytics endpoints.
"""
import json
import logging
from typing import Annotated, List, Optional
from fastapi import APIRouter, HTTPException, Path, Query, Response, status
from fastapi.responses import StreamingResponse

from fieldbook.api.dependencies import (
    ClientServiceDep,
    CurrentUserDep,
    FieldDataServiceDep,
    InsightServiceDep,
    WeatherClientDep,
)
from fieldbook.api.v1.models.responses import (
    AnalyticsResponse,
    InsightRequest,
    StatsSummary,
)
from fieldbook.domain.models import FieldRecord, FieldRecordDetails, Project, WeatherData
from fieldbook.infrastructure.external_api_client import ExternalAPIError
from fieldbook.utils.report_pdf import render_field_record_report

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/projects",
    tags=["projects"],
)

ProjectId = Annotated[str, Path(description="Generated key of the project")]
RecordId = Annotated[str, Path(description="Generated key of the field record")]


@router.get(
    "/{project_id}",
    response_model=Project,
    summary="Get a project",
    responses={404: {"description": "Project not found"}},
)
async def get_project(
    project_id: ProjectId,
    user: CurrentUserDep,
    client_service: ClientServiceDep,
) -> Project:
    return await client_service.get_project(project_id)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a project",
    responses={404: {"description": "Project not found"}},
)
async def delete_project(
    project_id: ProjectId,
    user: CurrentUserDep,
    client_service: ClientServiceDep,
) -> None:
    await client_service.delete_project(project_id)


# ============================================================
# Field records
# ============================================================

@router.get(
    "/{project_id}/field-data",
    response_model=List[FieldRecord],
    summary="List field records",
    responses={404: {"description": "Project not found"}},
)
async def list_field_records(
    project_id: ProjectId,
    user: CurrentUserDep,
    field_data_service: FieldDataServiceDep,
    search: Annotated[
        Optional[str],
        Query(description="Case-insensitive match on location description or vegetation type"),
    ] = None,
) -> List[FieldRecord]:
    """
    List a project's field records.

    Each record joins the biophysical row with the impacts row stored under
    the same key. ``impacts`` is null when no impacts row was recorded.
    """
    return await field_data_service.list_records(user, project_id, search)


@router.post(
    "/{project_id}/field-data",
    response_model=FieldRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create a field record",
    responses={404: {"description": "Project not found"}},
)
async def create_field_record(
    project_id: ProjectId,
    details: FieldRecordDetails,
    user: CurrentUserDep,
    field_data_service: FieldDataServiceDep,
) -> FieldRecord:
    return await field_data_service.create_record(user, project_id, details)


@router.get(
    "/{project_id}/field-data/{record_id}",
    response_model=FieldRecord,
    summary="Get a field record",
    responses={404: {"description": "Project or field record not found"}},
)
async def get_field_record(
    project_id: ProjectId,
    record_id: RecordId,
    user: CurrentUserDep,
    field_data_service: FieldDataServiceDep,
) -> FieldRecord:
    return await field_data_service.get_record(user, project_id, record_id)


@router.put(
    "/{project_id}/field-data/{record_id}",
    response_model=FieldRecord,
    summary="Update a field record",
    responses={404: {"description": "Project or field record not found"}},
)
async def update_field_record(
    project_id: ProjectId,
    record_id: RecordId,
    details: FieldRecordDetails,
    user: CurrentUserDep,
    field_data_service: FieldDataServiceDep,
) -> FieldRecord:
    return await field_data_service.update_record(user, project_id, record_id, details)


@router.delete(
    "/{project_id}/field-data/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a field record",
    responses={404: {"description": "Project or field record not found"}},
)
async def delete_field_record(
    project_id: ProjectId,
    record_id: RecordId,
    user: CurrentUserDep,
    field_data_service: FieldDataServiceDep,
) -> None:
    await field_data_service.delete_record(user, project_id, record_id)


@router.get(
    "/{project_id}/field-data/{record_id}/weather",
    response_model=WeatherData,
    summary="Current weather at a field record",
    responses={
        404: {"description": "Project or field record not found"},
        422: {"description": "Field record has no coordinates"},
    },
)
async def get_field_record_weather(
    project_id: ProjectId,
    record_id: RecordId,
    user: CurrentUserDep,
    field_data_service: FieldDataServiceDep,
    weather_client: WeatherClientDep,
) -> WeatherData:
    record = await field_data_service.get_record(user, project_id, record_id)
    if not record.location.has_coordinates:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Field record '{record_id}' has no coordinates",
        )
    return await weather_client.get_current(record.location.lat, record.location.lng)


@router.get(
    "/{project_id}/field-data/{record_id}/report",
    response_class=Response,
    summary="Download a field record report",
    responses={
        200: {"content": {"application/pdf": {}}},
        404: {"description": "Project or field record not found"},
    },
)
async def get_field_record_report(
    project_id: ProjectId,
    record_id: RecordId,
    user: CurrentUserDep,
    client_service: ClientServiceDep,
    field_data_service: FieldDataServiceDep,
) -> Response:
    project = await client_service.get_project(project_id)
    record = await field_data_service.get_record(user, project_id, record_id)
    client = await client_service.client_for_project(user, project)

    pdf = render_field_record_report(record, project=project, client=client)
    filename = f"field-data-{project.project_name}-{record_id}.pdf".replace(" ", "_")
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================
# Analytics and insights
# ============================================================

@router.get(
    "/{project_id}/analytics",
    response_model=AnalyticsResponse,
    summary="Get project analytics",
    description="""
    Aggregate a project's field records into summary statistics and
    chart-ready series.

    - Vegetation types and conservation statuses are counted, with blank
      values counted as "Unknown"
    - Impact types are counted only where a value was recorded
    - Elevations that do not parse or are not positive are left out of the
      elevation summary and ranges
    - Series keep first-seen order
    """,
    responses={404: {"description": "Project not found"}},
)
async def get_project_analytics(
    project_id: ProjectId,
    user: CurrentUserDep,
    field_data_service: FieldDataServiceDep,
) -> AnalyticsResponse:
    stats, chart_data = await field_data_service.project_analytics(user, project_id)
    return AnalyticsResponse(
        project_id=project_id,
        summary=StatsSummary.from_stats(stats),
        chart_data=chart_data,
    )


@router.post(
    "/{project_id}/insights",
    summary="Ask the assistant about a project's data",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/event-stream": {}}},
        404: {"description": "Project not found"},
    },
)
async def stream_project_insight(
    project_id: ProjectId,
    request: InsightRequest,
    user: CurrentUserDep,
    client_service: ClientServiceDep,
    field_data_service: FieldDataServiceDep,
    insight_service: InsightServiceDep,
) -> StreamingResponse:
    """
    Stream an answer as server-sent events.

    Each event carries ``{"content": ...}``; the last carries
    ``{"done": true}``. A failure mid-stream is sent as an ``error`` event.
    """
    project = await client_service.get_project(project_id)
    records = await field_data_service.list_records(user, project_id, request.search)

    async def generate():
        try:
            async for chunk in insight_service.stream_insight(project, records, request.query):
                yield f"data: {json.dumps({'content': chunk})}\n\n"
        except ExternalAPIError as e:
            logger.error(f"Insight stream failed for project {project_id}: {e.message}")
            yield f"event: error\ndata: {json.dumps({'detail': e.message})}\n\n"
            return
        yield f"data: {json.dumps({'done': True})}\n\n"

    return StreamingResponse(generate(), media_type="text/event-stream")
