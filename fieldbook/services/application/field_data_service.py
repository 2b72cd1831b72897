"""
Application service: field records, analytics and dashboard statistics.
"""
import asyncio
import logging
from contextlib import aclosing
from typing import AsyncIterator, List, Optional, Sequence, Tuple

from fieldbook.domain.errors import RecordNotFoundError
from fieldbook.domain.models import (
    AggregateStats,
    ChartData,
    DashboardSummary,
    FieldRecord,
    FieldRecordDetails,
    Project,
    UserContext,
)
from fieldbook.infrastructure.realtime_db_client import (
    DatabaseError,
    RealtimeDatabaseClient,
)
from fieldbook.infrastructure.store_paths import StorePaths
from fieldbook.services.application.client_service import (
    ClientService,
    now_millis,
    parse_rows,
)
from fieldbook.services.domain.aggregator import aggregate
from fieldbook.services.domain.chart_series import build_chart_data
from fieldbook.services.domain.filters import filter_field_records, projects_for_user
from fieldbook.services.domain.record_joiner import (
    join_records,
    to_biophysical_row,
    to_impacts_row,
)

logger = logging.getLogger(__name__)


class FieldDataService:
    """
    Application service for field record operations.

    Fetches the biophysical and impacts collections of a project as a pair,
    joins them into field records, and hands the records to the aggregation
    layer. Every call rebuilds its records from the store.
    """

    def __init__(
        self,
        db: RealtimeDatabaseClient,
        client_service: ClientService,
    ):
        """
        Initialize the service with dependencies.

        Args:
            db: Realtime database client
            client_service: Client and project service
        """
        self.db = db
        self.client_service = client_service

    async def _fetch_rows(self, project: Project) -> Tuple[dict, dict]:
        """Fetch the biophysical and impacts collections of a project together."""
        biophysical, impacts = await asyncio.gather(
            self.db.get(StorePaths.biophysical(project.company_name, project.project_name)),
            self.db.get(StorePaths.impacts(project.company_name, project.project_name)),
        )
        return biophysical or {}, impacts or {}

    async def load_project_records(self, project: Project, owner_id: str) -> List[FieldRecord]:
        """
        Load and join every field record of a project.

        Raises:
            DatabaseError: If either collection cannot be read
        """
        biophysical, impacts = await self._fetch_rows(project)
        records = join_records(biophysical, impacts, project.id, owner_id)
        logger.debug(f"Loaded {len(records)} records for project {project.project_name}")
        return records

    async def _load_project_safely(self, project: Project, owner_id: str) -> List[FieldRecord]:
        try:
            return await self.load_project_records(project, owner_id)
        except DatabaseError as e:
            logger.warning(f"Error loading data for project {project.project_name}: {e.message}")
            return []

    async def accumulate(self, projects: Sequence[Project], owner_id: str) -> List[FieldRecord]:
        """
        Load field records across projects concurrently.

        A project whose data cannot be read contributes no records; the
        remaining projects are still returned.

        Args:
            projects: Projects to load
            owner_id: Acting user's id

        Returns:
            Records of every readable project, grouped by project
        """
        per_project = await asyncio.gather(
            *(self._load_project_safely(project, owner_id) for project in projects)
        )
        records = [record for records in per_project for record in records]
        logger.info(f"Accumulated {len(records)} records across {len(projects)} projects")
        return records

    # Single project

    async def list_records(
        self,
        user: UserContext,
        project_id: str,
        search: Optional[str] = None,
    ) -> List[FieldRecord]:
        project = await self.client_service.get_project(project_id)
        records = await self.load_project_records(project, user.uid)
        return filter_field_records(records, search)

    async def get_record(self, user: UserContext, project_id: str, record_id: str) -> FieldRecord:
        project = await self.client_service.get_project(project_id)
        return await self._get_record(project, record_id, user.uid)

    async def _get_record(self, project: Project, record_id: str, owner_id: str) -> FieldRecord:
        biophysical_path = StorePaths.biophysical(project.company_name, project.project_name)
        impacts_path = StorePaths.impacts(project.company_name, project.project_name)
        biophysical, impacts = await asyncio.gather(
            self.db.get(f"{biophysical_path}/{record_id}"),
            self.db.get(f"{impacts_path}/{record_id}"),
        )
        records = join_records(
            {record_id: biophysical} if biophysical is not None else {},
            {record_id: impacts} if impacts is not None else {},
            project.id,
            owner_id,
        )
        if not records:
            raise RecordNotFoundError("Field record", record_id)
        return records[0]

    async def create_record(
        self,
        user: UserContext,
        project_id: str,
        details: FieldRecordDetails,
    ) -> FieldRecord:
        """
        Store a new field record.

        The biophysical row is pushed first to obtain a key; the impacts
        row is then written under the same key.
        """
        project = await self.client_service.get_project(project_id)
        record = FieldRecord(
            id="",
            project_id=project.id,
            owner_id=user.uid,
            created_at=now_millis(),
            **dict(details),
        )

        key = await self.db.push(
            StorePaths.biophysical(project.company_name, project.project_name),
            to_biophysical_row(record),
        )
        if record.impacts is not None:
            impacts_path = StorePaths.impacts(project.company_name, project.project_name)
            await self.db.put(
                f"{impacts_path}/{key}",
                to_impacts_row(record.impacts, record.created_at),
            )

        logger.info(f"Created field record {key} in project {project.project_name}")
        return record.model_copy(update={"id": key})

    async def update_record(
        self,
        user: UserContext,
        project_id: str,
        record_id: str,
        details: FieldRecordDetails,
    ) -> FieldRecord:
        """Overwrite a record's content, keeping its key and creation time."""
        project = await self.client_service.get_project(project_id)
        existing = await self._get_record(project, record_id, user.uid)
        changes = dict(details)
        if changes["impacts"] is None:
            # Leave a stored impacts row untouched
            del changes["impacts"]
        record = existing.model_copy(update=changes)

        biophysical_path = StorePaths.biophysical(project.company_name, project.project_name)
        await self.db.patch(f"{biophysical_path}/{record_id}", to_biophysical_row(record))
        if record.impacts is not None:
            impacts_path = StorePaths.impacts(project.company_name, project.project_name)
            await self.db.patch(
                f"{impacts_path}/{record_id}",
                to_impacts_row(record.impacts, record.created_at),
            )

        logger.info(f"Updated field record {record_id} in project {project.project_name}")
        return record

    async def delete_record(self, user: UserContext, project_id: str, record_id: str) -> None:
        project = await self.client_service.get_project(project_id)
        await self._get_record(project, record_id, user.uid)
        biophysical_path = StorePaths.biophysical(project.company_name, project.project_name)
        impacts_path = StorePaths.impacts(project.company_name, project.project_name)
        await asyncio.gather(
            self.db.delete(f"{biophysical_path}/{record_id}"),
            self.db.delete(f"{impacts_path}/{record_id}"),
        )
        logger.info(f"Deleted field record {record_id} from project {project.project_name}")

    async def project_analytics(
        self,
        user: UserContext,
        project_id: str,
    ) -> Tuple[AggregateStats, ChartData]:
        records = await self.list_records(user, project_id)
        stats = aggregate(records)
        return stats, build_chart_data(stats)

    # Across projects

    async def dashboard_summary(self, user: UserContext) -> DashboardSummary:
        """Statistics over every project of the user."""
        projects, clients = await asyncio.gather(
            self.client_service.user_projects(user),
            self.client_service.list_clients(user),
        )
        return await self._summarize(projects, len(clients), user)

    async def _summarize(
        self,
        projects: Sequence[Project],
        client_count: int,
        user: UserContext,
    ) -> DashboardSummary:
        records = await self.accumulate(projects, user.uid)
        return DashboardSummary(
            client_count=client_count,
            project_count=len(projects),
            stats=aggregate(records),
        )

    async def map_markers(self, user: UserContext) -> List[FieldRecord]:
        """Records of all the user's projects that carry coordinates."""
        projects = await self.client_service.user_projects(user)
        records = await self.accumulate(projects, user.uid)
        return [record for record in records if record.location.has_coordinates]

    async def watch_dashboard(self, user: UserContext) -> AsyncIterator[DashboardSummary]:
        """
        Yield a fresh dashboard summary whenever the project list changes.

        Each change re-runs the whole accumulation from scratch, client
        count included.
        """
        async with aclosing(self.db.subscribe(StorePaths.PROJECTS)) as snapshots:
            async for snapshot in snapshots:
                projects = projects_for_user(parse_rows(snapshot, Project), user.email)
                clients = await self.client_service.list_clients(user)
                yield await self._summarize(projects, len(clients), user)
