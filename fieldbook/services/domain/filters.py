"""
Domain service: search filters and client/project matching.
"""
from typing import List, Optional, Sequence

from fieldbook.domain.models import Client, FieldRecord, Project


def filter_field_records(records: Sequence[FieldRecord], search: Optional[str]) -> List[FieldRecord]:
    """Case-insensitive match on location description or vegetation type."""
    if not search:
        return list(records)
    needle = search.lower()
    return [
        record for record in records
        if needle in record.location.description.lower()
        or needle in record.biophysical.vegetation_type.lower()
    ]


def filter_clients(clients: Sequence[Client], search: Optional[str]) -> List[Client]:
    """Case-insensitive match on company name or contact person."""
    if not search:
        return list(clients)
    needle = search.lower()
    return [
        client for client in clients
        if needle in client.company_name.lower()
        or needle in client.contact_person.lower()
    ]


def project_belongs_to_client(project: Project, client: Client, user_email: str) -> bool:
    """
    Decide whether a project belongs to a client.

    Projects carrying a client id match on it. Older projects without one
    fall back to matching the stored company name and the owning user's
    email.
    """
    if project.client_id:
        return project.client_id == client.id
    return (
        project.company_name == client.company_name
        and project.app_user_username == user_email
    )


def projects_for_user(projects: Sequence[Project], user_email: str) -> List[Project]:
    return [project for project in projects if project.app_user_username == user_email]
