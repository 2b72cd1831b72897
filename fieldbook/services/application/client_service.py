"""
Application service: clients and projects.
"""
import logging
import time
from typing import Any, List, Optional, Type, TypeVar

from pydantic import ValidationError

from fieldbook.domain.errors import RecordNotFoundError
from fieldbook.domain.models import (
    Client,
    ClientDetails,
    DomainModel,
    Project,
    ProjectDetails,
    UserContext,
)
from fieldbook.infrastructure.realtime_db_client import RealtimeDatabaseClient
from fieldbook.infrastructure.store_paths import StorePaths
from fieldbook.services.domain.filters import (
    filter_clients,
    project_belongs_to_client,
    projects_for_user,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=DomainModel)


def now_millis() -> int:
    return int(time.time() * 1000)


def parse_rows(data: Any, model: Type[ModelT]) -> List[ModelT]:
    """
    Build models from a keyed collection, skipping rows that do not fit.

    Args:
        data: Mapping of generated key to stored row
        model: Model to build; receives the key as ``id``

    Returns:
        List of models in the collection's order
    """
    items = []
    for key, row in (data or {}).items():
        if not isinstance(row, dict):
            logger.warning(f"Skipping malformed {model.__name__} row {key!r}")
            continue
        try:
            items.append(model.model_validate({**row, "id": key}))
        except ValidationError as e:
            logger.warning(f"Skipping invalid {model.__name__} row {key!r}: {e.error_count()} errors")
    return items


def parse_row(record_id: str, row: Any, model: Type[ModelT]) -> Optional[ModelT]:
    items = parse_rows({record_id: row}, model) if row is not None else []
    return items[0] if items else None


class ClientService:
    """
    Application service for client and project operations.

    Coordinates reads and writes against the database; matching and search
    rules live in the domain layer.
    """

    def __init__(self, db: RealtimeDatabaseClient):
        """
        Initialize the service with dependencies.

        Args:
            db: Realtime database client
        """
        self.db = db

    # Clients

    async def list_clients(self, user: UserContext, search: Optional[str] = None) -> List[Client]:
        """
        List the clients visible to the user.

        Clients owned by the user are visible, as are older rows stored
        without an owner.
        """
        clients = parse_rows(await self.db.get(StorePaths.CLIENTS), Client)
        visible = [c for c in clients if not c.owner_id or c.owner_id == user.uid]
        return filter_clients(visible, search)

    async def get_client(self, client_id: str) -> Client:
        client = parse_row(client_id, await self.db.get(StorePaths.client(client_id)), Client)
        if client is None:
            raise RecordNotFoundError("Client", client_id)
        return client

    async def create_client(self, user: UserContext, details: ClientDetails) -> Client:
        row = {
            **details.model_dump(by_alias=True),
            "ownerId": user.uid,
            "createdAt": now_millis(),
        }
        client_id = await self.db.push(StorePaths.CLIENTS, row)
        logger.info(f"Created client {client_id} ({details.company_name})")
        return Client.model_validate({**row, "id": client_id})

    async def update_client(self, client_id: str, details: ClientDetails) -> Client:
        existing = await self.get_client(client_id)
        await self.db.patch(StorePaths.client(client_id), details.model_dump(by_alias=True))
        return existing.model_copy(update=details.model_dump())

    async def delete_client(self, client_id: str) -> None:
        await self.get_client(client_id)
        await self.db.delete(StorePaths.client(client_id))
        logger.info(f"Deleted client {client_id}")

    # Projects

    async def list_projects(self) -> List[Project]:
        return parse_rows(await self.db.get(StorePaths.PROJECTS), Project)

    async def user_projects(self, user: UserContext) -> List[Project]:
        """All projects created by the user, across clients."""
        return projects_for_user(await self.list_projects(), user.email)

    async def client_projects(self, user: UserContext, client_id: str) -> List[Project]:
        client = await self.get_client(client_id)
        return [
            project for project in await self.list_projects()
            if project_belongs_to_client(project, client, user.email)
        ]

    async def get_project(self, project_id: str) -> Project:
        project = parse_row(project_id, await self.db.get(StorePaths.project(project_id)), Project)
        if project is None:
            raise RecordNotFoundError("Project", project_id)
        return project

    async def create_project(
        self,
        user: UserContext,
        client_id: str,
        details: ProjectDetails,
    ) -> Project:
        client = await self.get_client(client_id)
        row = {
            **details.model_dump(by_alias=True),
            "appUserUsername": user.email,
            "companyEmail": client.contact_email,
            "companyName": client.company_name,
            "clientId": client.id,
            "ownerId": user.uid,
            "createdAt": now_millis(),
        }
        project_id = await self.db.push(StorePaths.PROJECTS, row)
        logger.info(f"Created project {project_id} ({details.project_name}) for client {client_id}")
        return Project.model_validate({**row, "id": project_id})

    async def delete_project(self, project_id: str) -> None:
        """Delete a project row. Its field data stays under ProjectData."""
        await self.get_project(project_id)
        await self.db.delete(StorePaths.project(project_id))
        logger.info(f"Deleted project {project_id}")

    async def client_for_project(self, user: UserContext, project: Project) -> Optional[Client]:
        """Find the client a project belongs to, if it still exists."""
        if project.client_id:
            try:
                return await self.get_client(project.client_id)
            except RecordNotFoundError:
                logger.warning(f"Project {project.id} references missing client {project.client_id}")
                return None
        for client in await self.list_clients(user):
            if project_belongs_to_client(project, client, user.email):
                return client
        return None
