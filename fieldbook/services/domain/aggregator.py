"""
Domain service: aggregate statistics over field records.

Produces counts grouped by categorical attributes, impact presence counts,
and an elevation summary with range buckets. Aggregation is a pure
function of its input and is recomputed on every request.
"""
import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from fieldbook.domain.models import AggregateStats, ElevationSummary, FieldRecord
from fieldbook.services.domain.record_joiner import IMPACT_STORAGE_KEYS

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

# Upper bounds are exclusive; the last bucket is open-ended
ELEVATION_BUCKETS = (
    (100.0, "0-100m"),
    (500.0, "100-500m"),
    (1000.0, "500-1000m"),
)
ELEVATION_TOP_BUCKET = "1000m+"

_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INNER_CAPITAL = re.compile(r"([A-Z])")


def humanize_field_name(name: str) -> str:
    """
    Turn a camelCase field name into a label.

    Inserts a space before every capital and upper-cases the first letter,
    e.g. ``runoffHardSurfaces`` -> ``Runoff Hard Surfaces``.
    """
    spaced = _INNER_CAPITAL.sub(r" \1", name)
    return spaced[:1].upper() + spaced[1:]


def parse_elevation(value: str) -> Optional[float]:
    """
    Parse the leading number of an elevation string.

    Accepts values such as ``"1350"`` or ``"1350 m"``.

    Returns:
        The parsed value, or None when no number leads the string
    """
    match = _LEADING_NUMBER.match(value or "")
    if not match:
        return None
    return float(match.group(0))


def elevation_bucket(elevation: float) -> str:
    """Return the range label for a valid elevation."""
    for upper, label in ELEVATION_BUCKETS:
        if elevation < upper:
            return label
    return ELEVATION_TOP_BUCKET


def count_by(values: Iterable[str]) -> Dict[str, int]:
    """Count values, keeping first-seen order of keys."""
    counts: Dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts


def valid_elevations(records: Sequence[FieldRecord]) -> List[float]:
    """Elevations that parse and are strictly positive."""
    elevations = []
    for record in records:
        parsed = parse_elevation(record.biophysical.elevation)
        if parsed is not None and parsed > 0:
            elevations.append(parsed)
    return elevations


def summarize_elevations(elevations: Sequence[float]) -> Optional[ElevationSummary]:
    if not elevations:
        return None
    values = np.asarray(elevations, dtype=float)
    return ElevationSummary(
        avg=float(np.mean(values)),
        min=float(np.min(values)),
        max=float(np.max(values)),
    )


def impact_counts(records: Sequence[FieldRecord]) -> Dict[str, int]:
    """Count, per impact type, the records that recorded a value for it."""
    labels = []
    for record in records:
        if record.impacts is None:
            continue
        for field, stored_name in IMPACT_STORAGE_KEYS.items():
            value = getattr(record.impacts, field)
            if value and value.strip():
                labels.append(humanize_field_name(stored_name))
    return count_by(labels)


def aggregate(records: Sequence[FieldRecord]) -> AggregateStats:
    """
    Compute aggregate statistics over field records.

    Args:
        records: Field records to aggregate

    Returns:
        AggregateStats for the records
    """
    elevations = valid_elevations(records)

    stats = AggregateStats(
        total_entries=len(records),
        total_images=sum(len(record.images) for record in records),
        vegetation_counts=count_by(
            record.biophysical.vegetation_type or UNKNOWN for record in records
        ),
        conservation_counts=count_by(
            record.biophysical.conservation_status or UNKNOWN for record in records
        ),
        impact_counts=impact_counts(records),
        elevation_ranges=count_by(elevation_bucket(e) for e in elevations),
        elevation=summarize_elevations(elevations),
    )

    logger.debug(f"Aggregated {stats.total_entries} records, "
                 f"{len(elevations)} valid elevations")
    return stats
