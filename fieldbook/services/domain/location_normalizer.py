"""
Domain service: normalize stored location values.

Older rows store the location as a bare description string, newer rows as
an object with coordinates. Everything downstream sees a GeoLocation.
"""
import math
from typing import Any, Mapping

from fieldbook.domain.models import GeoLocation


def _coordinate(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    # nan and inf are not positions
    return number if math.isfinite(number) else 0.0


def normalize_location(raw: Any) -> GeoLocation:
    """
    Convert a raw stored location into a GeoLocation.

    Args:
        raw: A description string, a mapping with optional lat/lng/description,
            or None

    Returns:
        GeoLocation with numeric coordinates (0 when unknown)
    """
    if isinstance(raw, str):
        return GeoLocation(lat=0.0, lng=0.0, description=raw)

    if isinstance(raw, Mapping):
        description = raw.get("description")
        return GeoLocation(
            lat=_coordinate(raw.get("lat")),
            lng=_coordinate(raw.get("lng")),
            description=description if isinstance(description, str) else "",
        )

    return GeoLocation()
