"""
API router for client and client-project endpoints.
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Path, Query, status

from fieldbook.api.dependencies import ClientServiceDep, CurrentUserDep
from fieldbook.domain.models import Client, ClientDetails, Project, ProjectDetails


router = APIRouter(
    prefix="/clients",
    tags=["clients"],
)

ClientId = Annotated[str, Path(description="Generated key of the client")]


@router.get(
    "",
    response_model=List[Client],
    summary="List clients",
    responses={429: {"description": "Rate limit exceeded"}},
)
async def list_clients(
    user: CurrentUserDep,
    client_service: ClientServiceDep,
    search: Annotated[
        Optional[str],
        Query(description="Case-insensitive match on company name or contact person"),
    ] = None,
) -> List[Client]:
    """
    List the clients visible to the acting user.

    Args:
        user: Acting user (injected)
        client_service: Client service (injected)
        search: Optional search text

    Returns:
        Matching clients in stored order
    """
    return await client_service.list_clients(user, search)


@router.post(
    "",
    response_model=Client,
    status_code=status.HTTP_201_CREATED,
    summary="Create a client",
)
async def create_client(
    details: ClientDetails,
    user: CurrentUserDep,
    client_service: ClientServiceDep,
) -> Client:
    return await client_service.create_client(user, details)


@router.get(
    "/{client_id}",
    response_model=Client,
    summary="Get a client",
    responses={404: {"description": "Client not found"}},
)
async def get_client(
    client_id: ClientId,
    user: CurrentUserDep,
    client_service: ClientServiceDep,
) -> Client:
    return await client_service.get_client(client_id)


@router.put(
    "/{client_id}",
    response_model=Client,
    summary="Update a client",
    responses={404: {"description": "Client not found"}},
)
async def update_client(
    client_id: ClientId,
    details: ClientDetails,
    user: CurrentUserDep,
    client_service: ClientServiceDep,
) -> Client:
    return await client_service.update_client(client_id, details)


@router.delete(
    "/{client_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a client",
    responses={404: {"description": "Client not found"}},
)
async def delete_client(
    client_id: ClientId,
    user: CurrentUserDep,
    client_service: ClientServiceDep,
) -> None:
    await client_service.delete_client(client_id)


@router.get(
    "/{client_id}/projects",
    response_model=List[Project],
    summary="List a client's projects",
    responses={404: {"description": "Client not found"}},
)
async def list_client_projects(
    client_id: ClientId,
    user: CurrentUserDep,
    client_service: ClientServiceDep,
) -> List[Project]:
    """
    List the projects that belong to a client.

    Projects match on their stored client id; older projects without one
    match on company name and the acting user's email.
    """
    return await client_service.client_projects(user, client_id)


@router.post(
    "/{client_id}/projects",
    response_model=Project,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project for a client",
    responses={404: {"description": "Client not found"}},
)
async def create_project(
    client_id: ClientId,
    details: ProjectDetails,
    user: CurrentUserDep,
    client_service: ClientServiceDep,
) -> Project:
    return await client_service.create_project(user, client_id, details)
