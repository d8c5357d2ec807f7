"""Actual-versus-target performance of districts and regions.

Three metrics are tracked per month:

``loadMonitoring``
    number of load monitoring readings taken in the district.
``substationInspection``
    number of substation inspections carried out in the district.
``overheadLine``
    kilometres of feeder walked, estimated from the GPS fixes of the overhead
    line inspections. Fixes are grouped per feeder, ordered in time and joined
    by great-circle segments.

Targets are stored per region and month, optionally narrowed to a district.
A district target wins over the region-wide one.
"""

from __future__ import annotations

import datetime
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from django.db.models import Q

from uams.utils import (
    extract_coordinates,
    is_valid_month,
    month_bounds,
    month_datetime_bounds,
    path_length_km,
    record_timestamp,
    record_value,
)

from .query_filters import Condition, QuerySpec
from .storage import RecordStore, StorageError, get_record_store

logger = logging.getLogger(__name__)

LOAD_MONITORING = "loadMonitoring"
SUBSTATION_INSPECTION = "substationInspection"
OVERHEAD_LINE = "overheadLine"
TARGET_TYPES = (LOAD_MONITORING, SUBSTATION_INSPECTION, OVERHEAD_LINE)

COUNTED_COLLECTIONS = {
    LOAD_MONITORING: "loadMonitoring",
    SUBSTATION_INSPECTION: "substationInspections",
}
OVERHEAD_LINE_COLLECTION = "overheadLineInspections"

_EARLIEST = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)


class PerformanceInputError(ValueError):
    """Raised for a malformed month or an unknown target type."""


@dataclass
class PerformanceResult:
    district_id: Optional[int]
    district: str
    region_id: Optional[int]
    region: str
    month: str
    target_type: str
    target: float = 0.0
    actual: float = 0.0
    variance: float = 0.0
    percentage: float = 0.0
    target_id: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "districtId": self.district_id,
            "district": self.district,
            "regionId": self.region_id,
            "region": self.region,
            "month": self.month,
            "targetType": self.target_type,
            "target": self.target,
            "actual": self.actual,
            "variance": self.variance,
            "percentage": self.percentage,
            "targetId": self.target_id,
        }


def validate_month(month: Optional[str]) -> str:
    if not is_valid_month(month):
        raise PerformanceInputError("Invalid month format. Expected YYYY-MM")
    return month


def validate_target_type(target_type: Optional[str]) -> Optional[str]:
    if target_type in (None, "", "all"):
        return None
    if target_type not in TARGET_TYPES:
        allowed = ", ".join(TARGET_TYPES)
        raise PerformanceInputError(f"Invalid targetType. Must be one of: {allowed}")
    return target_type


def compare(target: float, actual: float) -> Tuple[float, float]:
    """Return ``(variance, percentage)``; percentage is 0 without a positive target."""

    variance = round(actual - target, 3)
    percentage = round((actual / target) * 100, 2) if target > 0 else 0.0
    return variance, percentage


def feeder_length_km(records: Iterable[Any]) -> float:
    """Total walked length over all feeders in ``records``.

    Records without a feeder name or a usable GPS fix are ignored. A feeder
    with a single fix contributes nothing.
    """

    feeders: Dict[str, List[Tuple[Optional[datetime.datetime], Tuple[float, float]]]] = defaultdict(list)
    for record in records:
        feeder = record_value(record, "feeder_name", "feederName")
        if not isinstance(feeder, str) or not feeder.strip():
            continue
        point = extract_coordinates(record)
        if point is None:
            continue
        feeders[feeder.strip()].append((record_timestamp(record), point))

    total = 0.0
    for fixes in feeders.values():
        fixes.sort(key=lambda fix: fix[0] or _EARLIEST)
        total += path_length_km([point for _moment, point in fixes])
    return total


def _matches_target(target: Any, target_type: str, month: str) -> bool:
    return (
        record_value(target, "target_type", "targetType") == target_type
        and record_value(target, "month") == month
    )


def resolve_target(
    targets: Sequence[Any], region_id: Any, district_id: Any, month: str, target_type: str
) -> Optional[Any]:
    """Pick the target for a district: its own first, then the region-wide one."""

    district_target = None
    region_target = None
    for target in targets:
        if not _matches_target(target, target_type, month):
            continue
        if record_value(target, "region_id", "regionId") != region_id:
            continue
        target_district = record_value(target, "district_id", "districtId")
        if target_district is None:
            region_target = region_target or target
        elif target_district == district_id:
            district_target = district_target or target
    return district_target or region_target


def _district_month_spec(district, month: str) -> QuerySpec:
    first, last = month_bounds(month)
    return QuerySpec(
        conditions=[
            Condition("district_id", "eq", district.pk),
            Condition("date", "gte", first),
            Condition("date", "lte", last),
        ],
        ordering=("date", "pk"),
    )


def _undated_month_spec(district, month: str) -> QuerySpec:
    start, end = month_datetime_bounds(month)
    by_inspection = Q(date__isnull=True, inspection_date__gte=start, inspection_date__lte=end)
    by_creation = Q(date__isnull=True, inspection_date__isnull=True, created_at__gte=start, created_at__lte=end)
    return QuerySpec(
        conditions=[
            Condition("district_id", "eq", district.pk),
            Condition("window", "q", by_inspection | by_creation),
        ],
        ordering=("created_at", "pk"),
    )


def overhead_line_km(store: RecordStore, district, month: str) -> float:
    records = store.fetch(OVERHEAD_LINE_COLLECTION, _district_month_spec(district, month))
    if not records:
        records = store.fetch(OVERHEAD_LINE_COLLECTION, _undated_month_spec(district, month))
    return round(feeder_length_km(records), 3)


def actual_value(store: RecordStore, district, month: str, target_type: str) -> float:
    """Measured value of ``target_type``; storage failures count as zero."""

    try:
        if target_type == OVERHEAD_LINE:
            return overhead_line_km(store, district, month)
        return float(store.count(COUNTED_COLLECTIONS[target_type], _district_month_spec(district, month)))
    except StorageError as exc:
        logger.warning(
            "Could not compute %s for district %s in %s, reporting 0: %s", target_type, district, month, exc
        )
        return 0.0


def _targets_for(store: RecordStore, region_id: Any, month: str) -> List[Any]:
    spec = QuerySpec(
        conditions=[Condition("region_id", "eq", region_id), Condition("month", "eq", month)],
        ordering=("pk",),
    )
    return store.fetch("targets", spec)


def _district_rows(
    store: RecordStore, district, month: str, target_type: Optional[str], targets: Sequence[Any]
) -> List[PerformanceResult]:
    region = district.region
    rows: List[PerformanceResult] = []
    for kind in (target_type,) if target_type else TARGET_TYPES:
        row = PerformanceResult(
            district_id=district.pk,
            district=district.name,
            region_id=region.pk,
            region=region.name,
            month=month,
            target_type=kind,
        )
        target = resolve_target(targets, region.pk, district.pk, month, kind)
        if target is None:
            if target_type:
                rows.append(row)
            continue

        row.target = float(record_value(target, "target_value", "targetValue") or 0)
        row.target_id = record_value(target, "pk", "id")
        row.actual = actual_value(store, district, month, kind)
        row.variance, row.percentage = compare(row.target, row.actual)
        rows.append(row)
    return rows


def compute_district_performance(
    district, month: str, target_type: Optional[str] = None, *, store: Optional[RecordStore] = None
) -> List[PerformanceResult]:
    """Performance rows of one district for ``month``.

    Without ``target_type`` every metric that has a target is reported. With
    one, a zero row is returned when no target is set.
    """

    month = validate_month(month)
    target_type = validate_target_type(target_type)
    store = store or get_record_store()
    targets = _targets_for(store, district.region_id, month)
    return _district_rows(store, district, month, target_type, targets)


def compute_region_performance(
    region, month: str, target_type: Optional[str] = None, *, store: Optional[RecordStore] = None
) -> List[PerformanceResult]:
    """Performance rows of every district of ``region``, district by district."""

    month = validate_month(month)
    target_type = validate_target_type(target_type)
    store = store or get_record_store()
    districts = sorted(region.districts.all(), key=lambda district: district.name)
    if not districts:
        return []
    targets = _targets_for(store, region.pk, month)
    rows: List[PerformanceResult] = []
    for district in districts:
        rows.extend(_district_rows(store, district, month, target_type, targets))
    return rows


def resolve_region(identifier: Any):
    """Look a region up by primary key, then by name."""

    from uams.models import Region

    text = str(identifier).strip()
    if text.isdigit():
        region = Region.objects.filter(pk=int(text)).first()
        if region is not None:
            return region
    return Region.objects.filter(name__iexact=text).first()
