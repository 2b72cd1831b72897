"""
Unit tests for the field data service.

Tests cover:
- Loading and joining a project's records
- Accumulating records across projects with partial failures
- Writing, updating and deleting records
- Dashboard statistics and the live dashboard stream
"""
import pytest
import httpx
import respx

from fieldbook.domain.errors import RecordNotFoundError
from fieldbook.domain.models import (
    BiophysicalAttributes,
    FieldRecordDetails,
    GeoLocation,
    PhaseImpacts,
    Project,
)
from fieldbook.infrastructure.realtime_db_client import DatabaseError, RealtimeDatabaseClient
from fieldbook.services.application.client_service import ClientService
from fieldbook.services.application.field_data_service import FieldDataService

from tests.conftest import lookup, make_db


BIOPHYSICAL_PATH = "ProjectData/Wetland Works/Rietvlei/Biophysical"
IMPACTS_PATH = "ProjectData/Wetland Works/Rietvlei/Impacts"


def _service(db) -> FieldDataService:
    return FieldDataService(db=db, client_service=ClientService(db=db))


# ============================================================
# Loading Tests
# ============================================================

class TestLoadRecords:
    """Tests for reading a single project's records."""

    @pytest.mark.asyncio
    async def test_list_records(self, mock_db, user):
        records = await _service(mock_db).list_records(user, "-P1")

        assert [r.id for r in records] == ["-A1", "-A2", "-A3"]
        assert records[0].impacts.pollution == "Low"
        assert records[1].impacts is None

    @pytest.mark.asyncio
    async def test_list_records_search(self, mock_db, user):
        records = await _service(mock_db).list_records(user, "-P1", search="DAM")

        assert [r.id for r in records] == ["-A2"]

    @pytest.mark.asyncio
    async def test_project_without_data(self, mock_db, user):
        assert await _service(mock_db).list_records(user, "-P2") == []

    @pytest.mark.asyncio
    async def test_missing_project(self, mock_db, user):
        with pytest.raises(RecordNotFoundError, match="Project"):
            await _service(mock_db).list_records(user, "-P9")

    @pytest.mark.asyncio
    async def test_get_record(self, mock_db, user):
        record = await _service(mock_db).get_record(user, "-P1", "-A3")

        assert record.id == "-A3"
        assert record.project_id == "-P1"
        assert record.impacts.runoff_hard_surfaces == "Medium"

    @pytest.mark.asyncio
    async def test_get_missing_record(self, mock_db, user):
        """An impacts row alone is not a record."""
        with pytest.raises(RecordNotFoundError, match="Field record '-Z9' not found"):
            await _service(mock_db).get_record(user, "-P1", "-Z9")


# ============================================================
# Accumulation Tests
# ============================================================

class TestAccumulate:
    """Tests for loading records across projects."""

    @pytest.mark.asyncio
    async def test_failed_project_is_skipped(self):
        """A project whose read fails contributes nothing; others still load."""
        tree = {
            "ProjectData": {
                "Co": {
                    "First": {"Biophysical": {"-F1": {"vegetationType": "Reed"}}},
                    "Third": {
                        "Biophysical": {"-T1": {"vegetationType": "Sedge"}},
                        "Impacts": {"-T1": {"pollution": "Low"}},
                    },
                },
            },
        }
        db = make_db(tree)

        def get(path):
            if "/Second/" in path:
                raise DatabaseError("Permission denied", status_code=401)
            return lookup(tree, path)

        db.get.side_effect = get
        projects = [
            Project(id="-P1", project_name="First", company_name="Co"),
            Project(id="-P2", project_name="Second", company_name="Co"),
            Project(id="-P3", project_name="Third", company_name="Co"),
        ]

        records = await _service(db).accumulate(projects, "user-1")

        assert [(r.id, r.project_id) for r in records] == [("-F1", "-P1"), ("-T1", "-P3")]
        assert records[1].impacts.pollution == "Low"

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_json_project_is_skipped(self):
        """A project answered with a proxy page in place of JSON contributes nothing."""
        base = "https://db.example.com/ProjectData/Co"
        respx.get(f"{base}/A/Biophysical.json").mock(
            return_value=httpx.Response(200, json={"-a": {"vegetationType": "Reed"}})
        )
        respx.get(f"{base}/A/Impacts.json").mock(
            return_value=httpx.Response(200, content=b"null")
        )
        respx.get(f"{base}/B/Biophysical.json").mock(
            return_value=httpx.Response(200, text="<html>gateway</html>")
        )
        respx.get(f"{base}/B/Impacts.json").mock(
            return_value=httpx.Response(200, text="<html>gateway</html>")
        )
        projects = [
            Project(id="-P1", project_name="A", company_name="Co"),
            Project(id="-P2", project_name="B", company_name="Co"),
        ]

        async with RealtimeDatabaseClient(base_url="https://db.example.com", auth_token="") as db:
            records = await _service(db).accumulate(projects, "user-1")

        assert [r.id for r in records] == ["-a"]
        assert records[0].project_id == "-P1"

    @pytest.mark.asyncio
    async def test_no_projects(self, mock_db):
        assert await _service(mock_db).accumulate([], "user-1") == []

    @pytest.mark.asyncio
    async def test_single_project_failure_propagates(self, user, store_tree):
        """Single-project reads are not silenced."""
        db = make_db(store_tree)

        def get(path):
            if path.startswith("ProjectData"):
                raise DatabaseError("Service unavailable", status_code=503)
            return lookup(store_tree, path)

        db.get.side_effect = get

        with pytest.raises(DatabaseError):
            await _service(db).list_records(user, "-P1")


# ============================================================
# Write Tests
# ============================================================

class TestWriteRecords:
    """Tests for creating, updating and deleting records."""

    @pytest.mark.asyncio
    async def test_create_record_with_impacts(self, mock_db, user):
        details = FieldRecordDetails(
            location=GeoLocation(lat=-25.7, lng=28.2, description="Seep"),
            biophysical=BiophysicalAttributes(vegetation_type="Reed"),
            impacts=PhaseImpacts(pollution="Low"),
        )

        record = await _service(mock_db).create_record(user, "-P1", details)

        assert record.id == "-Nnew"
        assert record.owner_id == "user-1"
        assert record.created_at > 0
        path, row = mock_db.push.await_args.args
        assert path == BIOPHYSICAL_PATH
        assert row["vegetationType"] == "Reed"
        assert row["timestamp"] == record.created_at
        impacts_path, impacts_row = mock_db.put.await_args.args
        assert impacts_path == f"{IMPACTS_PATH}/-Nnew"
        assert impacts_row["pollution"] == "Low"

    @pytest.mark.asyncio
    async def test_create_record_without_impacts(self, mock_db, user):
        details = FieldRecordDetails(biophysical=BiophysicalAttributes(vegetation_type="Reed"))

        record = await _service(mock_db).create_record(user, "-P1", details)

        assert record.impacts is None
        mock_db.push.assert_awaited_once()
        mock_db.put.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_keeps_existing_impacts(self, mock_db, user):
        """Updating without impacts leaves the stored impacts row alone."""
        details = FieldRecordDetails(
            location=GeoLocation(description="Renamed"),
            biophysical=BiophysicalAttributes(vegetation_type="Typha"),
        )

        record = await _service(mock_db).update_record(user, "-P1", "-A1", details)

        assert record.location.description == "Renamed"
        assert record.biophysical.vegetation_type == "Typha"
        assert record.impacts.pollution == "Low"
        assert record.created_at == 1700000000000
        mock_db.patch.assert_awaited_once()
        path, row = mock_db.patch.await_args.args
        assert path == f"{BIOPHYSICAL_PATH}/-A1"
        assert row["timestamp"] == 1700000000000

    @pytest.mark.asyncio
    async def test_update_with_impacts(self, mock_db, user):
        details = FieldRecordDetails(impacts=PhaseImpacts(flood_peaks="Severe"))

        record = await _service(mock_db).update_record(user, "-P1", "-A2", details)

        assert record.impacts.flood_peaks == "Severe"
        paths = [call.args[0] for call in mock_db.patch.await_args_list]
        assert paths == [f"{BIOPHYSICAL_PATH}/-A2", f"{IMPACTS_PATH}/-A2"]

    @pytest.mark.asyncio
    async def test_update_missing_record(self, mock_db, user):
        with pytest.raises(RecordNotFoundError):
            await _service(mock_db).update_record(user, "-P1", "-X1", FieldRecordDetails())

        mock_db.patch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_record_removes_both_rows(self, mock_db, user):
        await _service(mock_db).delete_record(user, "-P1", "-A1")

        deleted = sorted(call.args[0] for call in mock_db.delete.await_args_list)
        assert deleted == [f"{BIOPHYSICAL_PATH}/-A1", f"{IMPACTS_PATH}/-A1"]


# ============================================================
# Analytics and Dashboard Tests
# ============================================================

class TestAnalytics:
    """Tests for project analytics and dashboard statistics."""

    @pytest.mark.asyncio
    async def test_project_analytics(self, mock_db, user):
        stats, chart = await _service(mock_db).project_analytics(user, "-P1")

        assert stats.total_entries == 3
        assert stats.total_images == 3
        assert stats.vegetation_types == ["Reed", "Unknown", "Sedge"]
        assert stats.elevation.min == 80.0
        assert stats.elevation.max == 1350.0
        assert stats.elevation_ranges == {"1000m+": 1, "0-100m": 1}
        assert stats.impact_counts == {
            "Pollution": 1,
            "Flood Peaks": 1,
            "Runoff Hard Surfaces": 1,
        }
        assert [p.name for p in chart.conservation] == ["Endangered", "Vulnerable", "Unknown"]

    @pytest.mark.asyncio
    async def test_dashboard_summary(self, mock_db, user):
        summary = await _service(mock_db).dashboard_summary(user)

        assert summary.client_count == 2
        assert summary.project_count == 2
        assert summary.stats.total_entries == 3

    @pytest.mark.asyncio
    async def test_map_markers_skip_zero_coordinates(self, mock_db, user):
        markers = await _service(mock_db).map_markers(user)

        assert [r.id for r in markers] == ["-A1"]

    @pytest.mark.asyncio
    async def test_watch_dashboard_recomputes_per_snapshot(self, mock_db, user, store_tree):
        projects = store_tree["ProjectsInfo"]
        closed = []

        async def subscribe(path):
            assert path == "ProjectsInfo"
            try:
                yield projects
                del store_tree["ClientInfo"]["-C2"]
                yield {"-P2": projects["-P2"]}
            finally:
                closed.append(path)

        mock_db.subscribe = subscribe

        summaries = [s async for s in _service(mock_db).watch_dashboard(user)]

        assert [(s.project_count, s.stats.total_entries) for s in summaries] == [(2, 3), (1, 0)]
        assert [s.client_count for s in summaries] == [2, 1]
        assert closed == ["ProjectsInfo"]
