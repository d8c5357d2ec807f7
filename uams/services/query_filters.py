"""Translate list request parameters into a typed :class:`QuerySpec`.

Every collection exposed through the API is described by an
:class:`EntitySchema`. Only the parameters and sort fields named there are
accepted, so user input never reaches the query as a field name.
"""

from __future__ import annotations

import datetime
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from django.conf import settings
from django.core.exceptions import FieldDoesNotExist
from django.db import models
from django.db.models import Q
from django.utils.dateparse import parse_date, parse_datetime

from uams.utils import day_bounds, is_valid_month

from .access_scope import UNRESTRICTED, ScopeFilter

logger = logging.getLogger(__name__)

RESERVED_PARAMETERS = frozenset(
    {
        "startDate",
        "endDate",
        "date",
        "month",
        "sort",
        "order",
        "limit",
        "offset",
        "page",
        "countOnly",
        "search",
        "region",
        "district",
        "regionId",
        "districtId",
        "format",
    }
)
LARGE_LIMIT_WARNING = 500


class FilterValidationError(ValueError):
    """Raised for request parameters that cannot be turned into a query."""


@dataclass(frozen=True)
class Condition:
    """Single predicate on a model field.

    ``op`` is one of ``eq``, ``in``, ``gte``, ``lte``, ``month``, ``search``
    or ``q`` (a prepared ``Q`` object from the schema).
    """

    field: str
    op: str
    value: Any

    def as_q(self, model: Optional[type] = None) -> Q:
        if self.op == "q":
            return self.value
        if self.op == "eq":
            return Q(**{self.field: self.value})
        if self.op == "in":
            return Q(**{f"{self.field}__in": list(self.value)})
        if self.op in ("gte", "lte"):
            bound = _coerce_bound(model, self.field, self.value, upper=self.op == "lte")
            return Q(**{f"{self.field}__{self.op}": bound})
        if self.op == "month":
            return _month_q(model, self.field, self.value)
        if self.op == "search":
            term, fields = self.value
            query = Q()
            for name in fields:
                query |= Q(**{f"{name}__icontains": term})
            return query
        raise FilterValidationError(f"Unsupported filter operator '{self.op}'.")


@dataclass(frozen=True)
class EntitySchema:
    """Allow-lists and paging limits of one collection."""

    collection: str
    filter_fields: Mapping[str, str] = field(default_factory=dict)
    sort_fields: Mapping[str, str] = field(default_factory=dict)
    date_field: Optional[str] = None
    default_sort: str = "created_at"
    search_fields: Tuple[str, ...] = ()
    choice_filters: Mapping[str, Mapping[str, Q]] = field(default_factory=dict)
    default_limit: Optional[int] = None
    max_limit: int = 1000


@dataclass
class QuerySpec:
    conditions: List[Condition] = field(default_factory=list)
    scope: ScopeFilter = UNRESTRICTED
    ordering: Tuple[str, ...] = ()
    offset: int = 0
    limit: Optional[int] = None
    count_only: bool = False

    def filter_q(self, model: Optional[type] = None) -> Q:
        query = self.scope.as_q()
        for condition in self.conditions:
            query &= condition.as_q(model)
        return query


def _model_field(model: Optional[type], name: str):
    if model is None or "__" in name:
        return None
    try:
        return model._meta.get_field(name)
    except FieldDoesNotExist:
        return None


def _parse_moment(value: Any, upper: bool) -> Optional[datetime.datetime]:
    if isinstance(value, datetime.datetime):
        moment = value
    elif isinstance(value, datetime.date):
        moment = datetime.datetime.combine(value, datetime.time.max if upper else datetime.time.min)
    else:
        text = str(value).strip()
        try:
            # A bare day covers the whole day on the upper bound.
            day = parse_date(text) if len(text) == 10 else None
            if day is not None:
                moment = datetime.datetime.combine(day, datetime.time.max if upper else datetime.time.min)
            else:
                moment = parse_datetime(text.replace("Z", "+00:00"))
                if moment is None:
                    return None
        except ValueError:
            return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    return moment


def _coerce_bound(model: Optional[type], name: str, value: Any, *, upper: bool) -> Any:
    model_field = _model_field(model, name)
    if isinstance(model_field, models.DateTimeField):
        moment = _parse_moment(value, upper)
        if moment is None:
            raise FilterValidationError(f"Invalid date value '{value}'.")
        return moment
    if isinstance(model_field, models.DateField):
        moment = _parse_moment(value, upper)
        if moment is None:
            raise FilterValidationError(f"Invalid date value '{value}'.")
        return moment.date()
    return value


def _month_q(model: Optional[type], name: str, month: str) -> Q:
    model_field = _model_field(model, name)
    if isinstance(model_field, models.DateField):
        year, month_number = (int(part) for part in month.split("-"))
        return Q(**{f"{name}__year": year, f"{name}__month": month_number})
    return Q(**{f"{name}__startswith": month})


def _int_param(value: Optional[str]) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _is_blank(value: Optional[str]) -> bool:
    return value is None or value == "" or value == "all"


def resolve_limit(schema: EntitySchema, raw_limit: Optional[str]) -> int:
    default = schema.default_limit or getattr(settings, "UAMS_DEFAULT_PAGE_LIMIT", 20)
    requested = _int_param(raw_limit)
    if requested is None or requested <= 0:
        requested = default
    if requested > LARGE_LIMIT_WARNING:
        logger.warning(
            "Large %s query requested: limit=%s (capped at %s)", schema.collection, requested, schema.max_limit
        )
    return min(requested, schema.max_limit)


def build_query_spec(
    params: Mapping[str, Any], schema: EntitySchema, scope: ScopeFilter = UNRESTRICTED
) -> QuerySpec:
    """Build the :class:`QuerySpec` for a list request.

    Raises:
        FilterValidationError: unknown filter parameter, unknown sort field or
            malformed date/month value.
    """

    conditions: List[Condition] = []

    for key in params.keys():
        if key in RESERVED_PARAMETERS or key in schema.filter_fields or key in schema.choice_filters:
            continue
        raise FilterValidationError(f"Unsupported filter parameter '{key}'.")

    for key, lookup in schema.filter_fields.items():
        value = params.get(key)
        if _is_blank(value):
            continue
        conditions.append(Condition(lookup, "eq", value))

    for key, options in schema.choice_filters.items():
        value = params.get(key)
        if _is_blank(value):
            continue
        if value not in options:
            allowed = ", ".join(options)
            raise FilterValidationError(f"Invalid value '{value}' for {key}. Must be one of: {allowed}")
        conditions.append(Condition(key, "q", options[value]))

    date_params = [name for name in ("startDate", "endDate", "date", "month") if params.get(name)]
    if date_params and not schema.date_field:
        raise FilterValidationError(f"Date filters are not supported for {schema.collection}.")

    start_date = params.get("startDate")
    end_date = params.get("endDate")
    if start_date:
        conditions.append(Condition(schema.date_field, "gte", start_date))
    if end_date:
        conditions.append(Condition(schema.date_field, "lte", end_date))

    day = params.get("date")
    if day:
        try:
            parsed = parse_date(day[:10])
        except ValueError:
            parsed = None
        if parsed is None:
            raise FilterValidationError(f"Invalid date '{day}'. Expected YYYY-MM-DD")
        first, last = day_bounds(day[:10])
        conditions.append(Condition(schema.date_field, "gte", first))
        conditions.append(Condition(schema.date_field, "lte", last))

    month = params.get("month")
    if month:
        if not is_valid_month(month):
            raise FilterValidationError("Invalid month format. Expected YYYY-MM")
        conditions.append(Condition(schema.date_field, "month", month))

    search = (params.get("search") or "").strip()
    if search and schema.search_fields:
        conditions.append(Condition("search", "search", (search, schema.search_fields)))

    sort_key = params.get("sort")
    if sort_key:
        sort_field = schema.sort_fields.get(sort_key)
        if sort_field is None:
            raise FilterValidationError(f"Unsupported sort field '{sort_key}'.")
    else:
        sort_field = schema.default_sort
    descending = (params.get("order") or "desc").lower() != "asc"
    prefix = "-" if descending else ""
    ordering = (f"{prefix}{sort_field}", f"{prefix}pk")

    limit = resolve_limit(schema, params.get("limit"))
    offset = _int_param(params.get("offset"))
    if offset is None:
        page = _int_param(params.get("page"))
        offset = (page - 1) * limit if page and page > 0 else 0
    offset = max(offset, 0)

    count_only = str(params.get("countOnly", "")).lower() == "true"

    return QuerySpec(
        conditions=conditions,
        scope=scope,
        ordering=ordering,
        offset=offset,
        limit=limit,
        count_only=count_only,
    )


def page_envelope(data: Sequence[Any], total: int, offset: int, limit: int) -> Dict[str, Any]:
    """Paginated list payload shared by every list endpoint."""

    total_pages = math.ceil(total / limit) if limit else 0
    page = offset // limit + 1 if limit else 1
    return {
        "data": list(data),
        "total": total,
        "page": page,
        "pageSize": limit,
        "totalPages": total_pages,
        "hasNextPage": page < total_pages,
        "hasPreviousPage": offset > 0,
    }
