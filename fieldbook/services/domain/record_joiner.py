"""
Domain service: join biophysical and impacts rows into field records.

The store keeps the two halves of a field record in sibling collections
keyed by the same generated row key. Some biophysical fields are stored
under legacy names.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from fieldbook.domain.models import (
    BiophysicalAttributes,
    FieldRecord,
    ImageRef,
    PhaseImpacts,
)
from fieldbook.services.domain.location_normalizer import normalize_location

logger = logging.getLogger(__name__)


# Model field -> key in a stored biophysical row
BIOPHYSICAL_STORAGE_KEYS: Dict[str, str] = {
    "elevation": "elevation",
    "ecoregion": "ecoregion",
    "mean_annual_precipitation": "map",
    "rainfall_seasonality": "rainfall",
    "evapotranspiration": "evapotranspiration",
    "geology": "geology",
    "water_management_area": "waterManagementArea",
    "soil_erodibility": "soilErodibility",
    "vegetation_type": "vegetationType",
    "conservation_status": "conservationStatus",
    "fepa_features": "fepa",
}

# Model field -> key in a stored impacts row
IMPACT_STORAGE_KEYS: Dict[str, str] = {
    "runoff_hard_surfaces": "runoffHardSurfaces",
    "runoff_septic_tanks": "runoffSepticTanks",
    "sediment_input": "sedimentInput",
    "flood_peaks": "floodPeaks",
    "pollution": "pollution",
    "weeds_iap": "weedsIAP",
}


def _text(value: Any) -> str:
    if value is None or value == "":
        return ""
    return value if isinstance(value, str) else str(value)


def _images(raw: Any) -> List[ImageRef]:
    if isinstance(raw, Mapping):
        # Arrays written with push() come back keyed by generated ids
        raw = list(raw.values())
    if not isinstance(raw, list):
        return []
    images = []
    for item in raw:
        if isinstance(item, Mapping) and item.get("url"):
            images.append(ImageRef(url=str(item["url"]), name=_text(item.get("name"))))
    return images


def _timestamp(raw: Any) -> int:
    if isinstance(raw, bool):
        return 0
    try:
        return int(raw or 0)
    except (TypeError, ValueError):
        return 0


def _as_mapping(rows: Any) -> Mapping[str, Any]:
    # Collections with small integer keys come back from the store as lists
    if isinstance(rows, list):
        return {str(index): row for index, row in enumerate(rows) if row is not None}
    if isinstance(rows, Mapping):
        return rows
    return {}


def build_biophysical(row: Mapping[str, Any]) -> BiophysicalAttributes:
    """Read biophysical attributes from a stored row, defaulting to ''."""
    return BiophysicalAttributes(**{
        field: _text(row.get(key)) for field, key in BIOPHYSICAL_STORAGE_KEYS.items()
    })


def build_impacts(row: Optional[Mapping[str, Any]]) -> Optional[PhaseImpacts]:
    """Read phase impacts from a stored row; None when there is no row."""
    if not isinstance(row, Mapping):
        return None
    return PhaseImpacts(**{
        field: _text(row.get(key)) for field, key in IMPACT_STORAGE_KEYS.items()
    })


def join_records(
    biophysical_rows: Optional[Mapping[str, Any]],
    impact_rows: Optional[Mapping[str, Any]],
    project_id: str,
    owner_id: str,
) -> List[FieldRecord]:
    """
    Join biophysical and impacts rows by key.

    Only keys of the biophysical mapping are visited, in its order. Impacts
    rows without a matching biophysical row are dropped.

    Args:
        biophysical_rows: Mapping of row key to stored biophysical row
        impact_rows: Mapping of row key to stored impacts row
        project_id: Project the rows were read from
        owner_id: Acting user's id

    Returns:
        List of FieldRecord instances
    """
    biophysical_rows = _as_mapping(biophysical_rows)
    impact_rows = _as_mapping(impact_rows)

    records = []
    for key, row in biophysical_rows.items():
        if not isinstance(row, Mapping):
            logger.warning(f"Skipping malformed biophysical row {key!r} in project {project_id}")
            continue

        records.append(FieldRecord(
            id=key,
            project_id=project_id,
            owner_id=owner_id,
            location=normalize_location(row.get("location")),
            biophysical=build_biophysical(row),
            impacts=build_impacts(impact_rows.get(key)),
            images=_images(row.get("images")),
            created_at=_timestamp(row.get("timestamp")),
        ))

    return records


def to_biophysical_row(record: FieldRecord) -> Dict[str, Any]:
    """Convert a field record into the stored biophysical row layout."""
    row: Dict[str, Any] = {
        key: getattr(record.biophysical, field)
        for field, key in BIOPHYSICAL_STORAGE_KEYS.items()
    }
    # Newer rows also carry the long names alongside the legacy ones
    row.update(record.biophysical.model_dump(
        by_alias=True,
        include={"mean_annual_precipitation", "rainfall_seasonality", "fepa_features"},
    ))
    row["location"] = record.location.model_dump(by_alias=True)
    row["images"] = [image.model_dump(by_alias=True) for image in record.images]
    row["timestamp"] = record.created_at
    return row


def to_impacts_row(impacts: PhaseImpacts, timestamp: int) -> Dict[str, Any]:
    """Convert phase impacts into the stored impacts row layout."""
    row: Dict[str, Any] = {
        key: getattr(impacts, field) for field, key in IMPACT_STORAGE_KEYS.items()
    }
    row["timestamp"] = timestamp
    return row
