"""
API router for weather lookups.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, HTTPException, Query, status

from fieldbook.api.dependencies import CurrentUserDep, WeatherClientDep
from fieldbook.domain.models import WeatherData


router = APIRouter(
    prefix="/weather",
    tags=["weather"],
)


@router.get(
    "",
    response_model=WeatherData,
    summary="Current weather",
    responses={
        400: {"description": "Neither coordinates nor a city were given"},
        502: {"description": "Weather API failure"},
    },
)
async def get_weather(
    user: CurrentUserDep,
    weather_client: WeatherClientDep,
    lat: Annotated[Optional[float], Query(ge=-90, le=90)] = None,
    lng: Annotated[Optional[float], Query(ge=-180, le=180)] = None,
    city: Annotated[Optional[str], Query(min_length=1)] = None,
) -> WeatherData:
    """
    Get current weather by coordinates or by city name.

    Coordinates take precedence when both are given.
    """
    if lat is not None and lng is not None:
        return await weather_client.get_current(lat, lng)
    if city:
        return await weather_client.get_by_city(city)
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Provide lat and lng, or city",
    )
