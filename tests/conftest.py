"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample stored rows and field records
- Sample clients and projects
- An in-memory database mock
- FastAPI test client
"""
import pytest
from typing import Any, Dict
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from fieldbook.main import app
from fieldbook.domain.models import (
    BiophysicalAttributes,
    Client,
    FieldRecord,
    GeoLocation,
    ImageRef,
    PhaseImpacts,
    Project,
    UserContext,
)
from fieldbook.infrastructure.realtime_db_client import RealtimeDatabaseClient


USER_HEADERS = {"X-User-Id": "user-1", "X-User-Email": "ecologist@example.com"}


def lookup(tree: Dict[str, Any], path: str) -> Any:
    """Walk a nested dict the way the database resolves a path."""
    node: Any = tree
    for segment in (s for s in path.split("/") if s):
        if not isinstance(node, dict) or segment not in node:
            return None
        node = node[segment]
    return node


def make_db(tree: Dict[str, Any]) -> AsyncMock:
    """Database mock answering reads from a nested dict."""
    db = AsyncMock(spec=RealtimeDatabaseClient)
    db.get.side_effect = lambda path: lookup(tree, path)
    db.push.return_value = "-Nnew"
    return db


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def user() -> UserContext:
    return UserContext(uid="user-1", email="ecologist@example.com")


@pytest.fixture
def biophysical_rows() -> Dict[str, Any]:
    """Stored biophysical rows in both the old and new location layouts."""
    return {
        "-A1": {
            "location": {"lat": -25.75, "lng": 28.19, "description": "Upper wetland"},
            "elevation": "1350 m",
            "vegetationType": "Reed",
            "conservationStatus": "Endangered",
            "map": "650mm",
            "rainfall": "Summer",
            "fepa": "Yes",
            "images": [{"url": "https://img.example.com/a.jpg", "name": "a.jpg"}],
            "timestamp": 1700000000000,
        },
        "-A2": {
            "location": "Near the old dam",
            "elevation": "abc",
            "vegetationType": "",
            "conservationStatus": "Vulnerable",
            "timestamp": 1700000100000,
        },
        "-A3": {
            "location": {"lat": 0, "lng": 0},
            "elevation": "80",
            "vegetationType": "Sedge",
            "images": {
                "-I1": {"url": "https://img.example.com/b.jpg", "name": "b.jpg"},
                "-I2": {"url": "https://img.example.com/c.jpg"},
            },
            "timestamp": 1700000200000,
        },
    }


@pytest.fixture
def impact_rows() -> Dict[str, Any]:
    """Impacts rows; -A2 has none and -Z9 has no biophysical row."""
    return {
        "-A1": {"pollution": "Low", "weedsIAP": "  ", "floodPeaks": "High"},
        "-A3": {"runoffHardSurfaces": "Medium"},
        "-Z9": {"pollution": "High"},
    }


@pytest.fixture
def sample_records() -> list[FieldRecord]:
    """Field records covering vegetation, elevation and impact edge cases."""
    return [
        FieldRecord(
            id="-R1",
            location=GeoLocation(lat=-25.7, lng=28.2, description="Upper wetland"),
            biophysical=BiophysicalAttributes(
                elevation="100", vegetation_type="Reed", conservation_status="Endangered"
            ),
            impacts=PhaseImpacts(pollution="Low"),
            images=[ImageRef(url="https://img.example.com/1.jpg")],
            created_at=1700000000000,
        ),
        FieldRecord(
            id="-R2",
            biophysical=BiophysicalAttributes(elevation="abc", vegetation_type="Reed"),
            images=[
                ImageRef(url="https://img.example.com/2.jpg"),
                ImageRef(url="https://img.example.com/3.jpg"),
            ],
        ),
        FieldRecord(
            id="-R3",
            biophysical=BiophysicalAttributes(
                elevation="0", vegetation_type="", conservation_status="Least Concern"
            ),
            impacts=PhaseImpacts(),
        ),
        FieldRecord(
            id="-R4",
            location=GeoLocation(description="Lower seep"),
            biophysical=BiophysicalAttributes(elevation="300", vegetation_type="Sedge"),
            impacts=PhaseImpacts(pollution="High", weeds_iap="Dense"),
        ),
    ]


@pytest.fixture
def sample_client() -> Client:
    return Client(
        id="-C1",
        owner_id="user-1",
        company_name="Wetland Works",
        contact_email="info@wetlandworks.example.com",
        contact_person="Thandi M",
    )


@pytest.fixture
def sample_project() -> Project:
    return Project(
        id="-P1",
        client_id="-C1",
        owner_id="user-1",
        project_name="Rietvlei",
        app_user_username="ecologist@example.com",
        company_name="Wetland Works",
        created_at=1700000000000,
    )


@pytest.fixture
def store_tree(biophysical_rows, impact_rows) -> Dict[str, Any]:
    """A small database holding clients, projects and one project's data."""
    return {
        "ClientInfo": {
            "-C1": {
                "companyName": "Wetland Works",
                "contactPerson": "Thandi M",
                "contactEmail": "info@wetlandworks.example.com",
                "ownerId": "user-1",
            },
            "-C2": {"companyName": "Legacy Consulting", "contactPerson": "Pieter V"},
            "-C3": {"companyName": "Someone Else", "ownerId": "user-2"},
        },
        "ProjectsInfo": {
            "-P1": {
                "projectName": "Rietvlei",
                "clientId": "-C1",
                "companyName": "Wetland Works",
                "appUserUsername": "ecologist@example.com",
            },
            "-P2": {
                "projectName": "Old Survey",
                "companyName": "Legacy Consulting",
                "appUserUsername": "ecologist@example.com",
            },
            "-P3": {
                "projectName": "Not Mine",
                "companyName": "Someone Else",
                "appUserUsername": "other@example.com",
            },
        },
        "ProjectData": {
            "Wetland Works": {
                "Rietvlei": {
                    "Biophysical": biophysical_rows,
                    "Impacts": impact_rows,
                },
            },
        },
    }


# ============================================================
# Mock Database Fixtures
# ============================================================

@pytest.fixture
def mock_db(store_tree) -> AsyncMock:
    """Database mock backed by the sample store."""
    return make_db(store_tree)


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return dict(USER_HEADERS)
