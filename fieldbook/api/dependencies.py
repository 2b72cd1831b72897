"""
Dependency injection for FastAPI.
"""
from typing import Annotated
from fastapi import Depends, Header, HTTPException, status

from fieldbook.domain.models import UserContext
from fieldbook.infrastructure.external_api_client import (
    ChatCompletionClient,
    WeatherClient,
    get_chat_client,
    get_weather_client,
)
from fieldbook.infrastructure.realtime_db_client import (
    RealtimeDatabaseClient,
    get_db_client,
)
from fieldbook.services.application.client_service import ClientService
from fieldbook.services.application.field_data_service import FieldDataService
from fieldbook.services.application.insight_service import InsightService


def get_current_user(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_email: Annotated[str | None, Header()] = None,
) -> UserContext:
    """
    Identify the acting user from headers set by the upstream auth layer.

    Raises:
        HTTPException: 401 if either header is missing
    """
    if not x_user_id or not x_user_email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id or X-User-Email header",
        )
    return UserContext(uid=x_user_id, email=x_user_email)


def get_client_service(
    db: Annotated[RealtimeDatabaseClient, Depends(get_db_client)],
) -> ClientService:
    """
    Dependency factory for ClientService.

    Args:
        db: Realtime database client (injected)

    Returns:
        ClientService instance
    """
    return ClientService(db=db)


def get_field_data_service(
    db: Annotated[RealtimeDatabaseClient, Depends(get_db_client)],
    client_service: Annotated[ClientService, Depends(get_client_service)],
) -> FieldDataService:
    """
    Dependency factory for FieldDataService.

    Args:
        db: Realtime database client (injected)
        client_service: Client service (injected)

    Returns:
        FieldDataService instance
    """
    return FieldDataService(db=db, client_service=client_service)


def get_insight_service(
    chat_client: Annotated[ChatCompletionClient, Depends(get_chat_client)],
) -> InsightService:
    return InsightService(chat_client=chat_client)


# Type aliases for cleaner route signatures
CurrentUserDep = Annotated[UserContext, Depends(get_current_user)]
ClientServiceDep = Annotated[ClientService, Depends(get_client_service)]
FieldDataServiceDep = Annotated[FieldDataService, Depends(get_field_data_service)]
InsightServiceDep = Annotated[InsightService, Depends(get_insight_service)]
WeatherClientDep = Annotated[WeatherClient, Depends(get_weather_client)]
