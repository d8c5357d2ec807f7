"""Utility helpers for shared functionality across modules."""

from __future__ import annotations

import calendar
import datetime
import math
import re
from typing import Any, Optional, Sequence, Tuple

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime, parse_time

# The performance figures agreed with the regions use a 6371 km sphere.
EARTH_RADIUS_KM = 6371.0

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
_COORDINATE_PAIR = re.compile(r"(-?\d+\.?\d*)[,\s]+(-?\d+\.?\d*)")


def haversine_km(start: Sequence[float], end: Sequence[float]) -> float:
    """Return the haversine distance between two ``(lat, lng)`` points in km."""

    lat1, lon1 = float(start[0]), float(start[1])
    lat2, lon2 = float(end[0]), float(end[1])

    lat1_rad, lon1_rad, lat2_rad, lon2_rad = map(math.radians, [lat1, lon1, lat2, lon2])
    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def path_length_km(points: Sequence[Sequence[float]]) -> float:
    """Sum the haversine distance between consecutive ``(lat, lng)`` points."""

    if len(points) < 2:
        return 0.0

    total = 0.0
    for start, end in zip(points[:-1], points[1:]):
        total += haversine_km(start, end)
    return total


def record_value(record: Any, *names: str) -> Any:
    """Return the first non-empty attribute or key from ``names``.

    Records reach the calculations either as model instances or as the raw
    JSON documents captured by the mobile forms, so both access styles are
    supported.
    """

    for name in names:
        if isinstance(record, dict):
            value = record.get(name)
        else:
            value = getattr(record, name, None)
        if value not in (None, ""):
            return value
    return None


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _pair_from_text(text: str) -> Tuple[Optional[float], Optional[float]]:
    match = _COORDINATE_PAIR.search(text)
    if not match:
        return None, None
    return _as_float(match.group(1)), _as_float(match.group(2))


def _pair_from_gps(value: Any) -> Tuple[Optional[float], Optional[float]]:
    if isinstance(value, dict):
        lat = value.get("latitude", value.get("lat"))
        lng = value.get("longitude", value.get("lng", value.get("lon")))
        return _as_float(lat), _as_float(lng)
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        return _as_float(value[0]), _as_float(value[1])
    if isinstance(value, str):
        return _pair_from_text(value)
    return None, None


def is_valid_coordinate(lat: Optional[float], lng: Optional[float]) -> bool:
    if lat is None or lng is None:
        return False
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return False
    # (0, 0) is what unset GPS widgets submit.
    return not (lat == 0 and lng == 0)


def extract_coordinates(record: Any) -> Optional[Tuple[float, float]]:
    """Return a validated ``(lat, lng)`` pair from the legacy encodings.

    Sources are tried in order: ``latitude``/``longitude`` fields, the
    ``gps_coordinates`` value (object, array or ``"lat,lng"`` text) and
    finally the ``gps_location`` text.
    """

    lat = _as_float(record_value(record, "latitude"))
    lng = _as_float(record_value(record, "longitude"))

    if lat is None or lng is None:
        gps = record_value(record, "gps_coordinates", "gpsCoordinates")
        if gps is not None:
            gps_lat, gps_lng = _pair_from_gps(gps)
            if gps_lat is not None and gps_lng is not None:
                lat, lng = gps_lat, gps_lng

    if lat is None or lng is None:
        location = record_value(record, "gps_location", "gpsLocation")
        if isinstance(location, str):
            loc_lat, loc_lng = _pair_from_text(location)
            if loc_lat is not None and loc_lng is not None:
                lat, lng = loc_lat, loc_lng

    if is_valid_coordinate(lat, lng):
        return lat, lng
    return None


def _aware(value: datetime.datetime) -> datetime.datetime:
    if timezone.is_naive(value):
        return timezone.make_aware(value, datetime.timezone.utc)
    return value


def _coerce_datetime(value: Any) -> Optional[datetime.datetime]:
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return _aware(value)
    if isinstance(value, datetime.date):
        return _aware(datetime.datetime.combine(value, datetime.time.min))
    if isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        try:
            parsed = parse_datetime(text)
            if parsed:
                return _aware(parsed)
            parsed_date = parse_date(text)
        except ValueError:
            return None
        if parsed_date:
            return _aware(datetime.datetime.combine(parsed_date, datetime.time.min))
    return None


def _coerce_date(value: Any) -> Optional[datetime.date]:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return parse_date(value.strip()[:10])
        except ValueError:
            return None
    return None


def _coerce_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.time):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_time(value.strip())
        except ValueError:
            parsed = None
        if parsed:
            return parsed
    return datetime.time.min


def record_timestamp(record: Any) -> Optional[datetime.datetime]:
    """Timestamp of an inspection: ``date`` + ``time``, else inspection/creation time."""

    day = _coerce_date(record_value(record, "date"))
    if day is not None:
        moment = datetime.datetime.combine(day, _coerce_time(record_value(record, "time")))
        return _aware(moment)

    for name in ("inspection_date", "inspectionDate", "created_at", "createdAt"):
        moment = _coerce_datetime(record_value(record, name))
        if moment is not None:
            return moment
    return None


def is_valid_month(month: Optional[str]) -> bool:
    return bool(month) and bool(MONTH_PATTERN.match(month))


def month_bounds(month: str) -> Tuple[datetime.date, datetime.date]:
    """Return the first and last calendar day of a ``YYYY-MM`` month."""

    year, month_number = (int(part) for part in month.split("-"))
    last_day = calendar.monthrange(year, month_number)[1]
    return datetime.date(year, month_number, 1), datetime.date(year, month_number, last_day)


def month_datetime_bounds(month: str) -> Tuple[datetime.datetime, datetime.datetime]:
    first, last = month_bounds(month)
    start = datetime.datetime.combine(first, datetime.time.min, tzinfo=datetime.timezone.utc)
    end = datetime.datetime.combine(last, datetime.time.max, tzinfo=datetime.timezone.utc)
    return start, end


def day_bounds(value: str) -> Tuple[str, str]:
    """Expand ``YYYY-MM-DD`` into the inclusive timestamps covering that day."""

    return f"{value}T00:00:00.000Z", f"{value}T23:59:59.999Z"
